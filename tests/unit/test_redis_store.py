"""
Unit tests for the Redis session store.

The redis.asyncio client is mocked; these tests check how the store
translates the store contract onto Redis commands.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from config.settings import ConfigurationError
from session.redis_store import RedisSessionStore


class TestRedisStoreConstruction:
    """Tests for client/options handling."""

    def test_requires_client_or_options(self):
        with pytest.raises(ConfigurationError, match="redis client or connection options"):
            RedisSessionStore()

    def test_uses_given_client(self, mock_redis):
        store = RedisSessionStore(client=mock_redis)

        assert store.client is mock_redis

    def test_client_wins_over_options(self, mock_redis):
        with patch("session.redis_store.redis.from_url") as from_url:
            store = RedisSessionStore(client=mock_redis, options={"url": "redis://x"})

        assert store.client is mock_redis
        from_url.assert_not_called()

    def test_url_option_builds_client_from_url(self):
        with patch("session.redis_store.redis.from_url") as from_url:
            RedisSessionStore(options={"url": "redis://localhost:6379/1", "socket_timeout": 2})

        from_url.assert_called_once_with("redis://localhost:6379/1", socket_timeout=2)

    def test_other_options_build_client_directly(self):
        with patch("session.redis_store.redis.Redis") as redis_cls:
            RedisSessionStore(options={"host": "cache", "port": 6380})

        redis_cls.assert_called_once_with(host="cache", port=6380)


class TestRedisStoreOperations:
    """Tests for get/set/destroy."""

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_empty(self, mock_redis):
        store = RedisSessionStore(client=mock_redis)

        assert await store.get("abc") == b""
        mock_redis.get.assert_awaited_once_with("abc")

    @pytest.mark.asyncio
    async def test_get_returns_bytes(self, mock_redis):
        mock_redis.get = AsyncMock(return_value=b'{"a":1}')
        store = RedisSessionStore(client=mock_redis)

        assert await store.get("abc") == b'{"a":1}'

    @pytest.mark.asyncio
    async def test_get_encodes_decoded_responses(self, mock_redis):
        mock_redis.get = AsyncMock(return_value='{"a":1}')
        store = RedisSessionStore(client=mock_redis)

        assert await store.get("abc") == b'{"a":1}'

    @pytest.mark.asyncio
    async def test_set_converts_ttl_to_timedelta(self, mock_redis):
        store = RedisSessionStore(client=mock_redis)

        await store.set("abc", b"data", 90)

        mock_redis.set.assert_awaited_once_with("abc", b"data", ex=timedelta(seconds=90))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ttl", [0, -5])
    async def test_set_with_non_positive_ttl_deletes(self, mock_redis, ttl):
        store = RedisSessionStore(client=mock_redis)

        await store.set("abc", b"data", ttl)

        mock_redis.set.assert_not_awaited()
        mock_redis.delete.assert_awaited_once_with("abc")

    @pytest.mark.asyncio
    async def test_destroy_deletes_key(self, mock_redis):
        store = RedisSessionStore(client=mock_redis)

        await store.destroy("abc")

        mock_redis.delete.assert_awaited_once_with("abc")

    @pytest.mark.asyncio
    async def test_backend_errors_pass_through(self, mock_redis):
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("refused"))
        store = RedisSessionStore(client=mock_redis)

        with pytest.raises(RedisConnectionError):
            await store.get("abc")

    @pytest.mark.asyncio
    async def test_close_closes_client(self, mock_redis):
        store = RedisSessionStore(client=mock_redis)

        await store.close()

        mock_redis.aclose.assert_awaited_once()
