"""
Redis-based session store implementation.

Session payloads are stored verbatim under the session identifier using
``SET ... EX`` so Redis owns expiry. Missing keys read back as an empty
payload; every other Redis error is passed through unchanged.
"""

import logging
from datetime import timedelta
from typing import Any, Optional

import redis.asyncio as redis

from config.settings import ConfigurationError
from session.store import SessionStore

logger = logging.getLogger(__name__)


class RedisSessionStore(SessionStore):
    """
    Redis-backed session store.

    Either an existing client or connection options must be supplied.
    When both are given the client wins. Options holding a ``"url"``
    entry are passed to ``redis.asyncio.from_url``; any other options
    are passed to ``redis.asyncio.Redis``.

    Attributes:
        client: The redis.asyncio client used for every operation.
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        options: Optional[dict[str, Any]] = None
    ):
        """
        Initialize the Redis session store.

        Args:
            client: A pre-built redis.asyncio client.
            options: Connection options used to build a client when
                ``client`` is not given.

        Raises:
            ConfigurationError: If neither a client nor options are given.
        """
        if client is None and options is None:
            raise ConfigurationError(
                "RedisSessionStore requires a redis client or connection options"
            )
        if client is not None:
            self.client = client
        else:
            self.client = self._build_client(dict(options))

    @staticmethod
    def _build_client(options: dict[str, Any]) -> redis.Redis:
        url = options.pop("url", None)
        if url:
            return redis.from_url(url, **options)
        return redis.Redis(**options)

    async def get(self, key: str) -> bytes:
        data = await self.client.get(key)
        if data is None:
            return b""
        if isinstance(data, str):
            # Clients created with decode_responses=True hand back text.
            return data.encode("utf-8")
        return data

    async def set(self, key: str, data: bytes, ttl: int) -> None:
        if ttl <= 0:
            # Redis rejects non-positive expiry; the entry would already be expired.
            await self.client.delete(key)
            return
        await self.client.set(key, data, ex=timedelta(seconds=ttl))

    async def destroy(self, key: str) -> None:
        await self.client.delete(key)

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self.client.aclose()
        logger.debug("Redis session store closed")
