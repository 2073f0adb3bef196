"""Unit tests for building stores and session options from Settings."""

from unittest.mock import patch

import pytest

from config.settings import ConfigurationError, Settings
from session.factory import build_cookie_options, build_session_options, create_store
from session.ids import generate_id, generate_ordered_id
from session.memory_store import MemorySessionStore
from session.redis_store import RedisSessionStore


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestCreateStore:

    def test_memory_store_by_default(self):
        store = create_store(make_settings(memory_size=5))

        assert isinstance(store, MemorySessionStore)
        assert store.size == 5

    def test_redis_store_from_url(self):
        settings = make_settings(store_type="redis", redis_url="redis://cache:6379/2")

        with patch("session.redis_store.redis.from_url") as from_url:
            store = create_store(settings)

        assert isinstance(store, RedisSessionStore)
        from_url.assert_called_once_with("redis://cache:6379/2")

    def test_redis_store_without_url_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            create_store(make_settings(store_type="redis"))

        assert exc_info.value.missing_fields == ["redis_url"]


class TestBuildOptions:

    def test_cookie_options_follow_settings(self):
        settings = make_settings(
            max_age=600,
            cookie_path="/app",
            cookie_domain="example.com",
            cookie_secure=True,
            cookie_samesite="strict",
            keys=["k1", "k2"],
        )

        options = build_cookie_options(settings)

        assert options.path == "/app"
        assert options.domain == "example.com"
        assert options.max_age == 600
        assert options.secure is True
        assert options.samesite == "strict"
        assert options.keys == ["k1", "k2"]

    def test_session_options_follow_settings(self):
        store = MemorySessionStore(size=1)
        settings = make_settings(cookie_key="sid", max_age=600)

        options = build_session_options(settings, store)

        assert options.store is store
        assert options.key == "sid"
        assert options.max_age == 600
        assert options.gen_id is generate_id

    def test_ordered_prefixed_ids(self):
        settings = make_settings(id_strategy="ordered", id_prefix="web-")

        options = build_session_options(settings, MemorySessionStore(size=1))

        assert options.gen_id is not generate_ordered_id
        assert options.gen_id().startswith("web-")

    def test_store_is_created_when_not_given(self):
        options = build_session_options(make_settings())

        assert isinstance(options.store, MemorySessionStore)
