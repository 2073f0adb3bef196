"""
Build stores and session options from Settings.

Usage:
    settings = get_settings()
    options = build_session_options(settings)
    app.add_middleware(SessionMiddleware, options=options)

Environment variables (see config.settings):
    SESSION_STORE_TYPE=redis
    SESSION_REDIS_URL=redis://localhost:6379/0
    SESSION_MAX_AGE=3600
    SESSION_KEYS='["new-key", "old-key"]'
"""

import logging
from typing import Optional

from config.settings import ConfigurationError, Settings
from session.cookies import CookieOptions
from session.ids import make_id_generator
from session.memory_store import MemorySessionStore
from session.redis_store import RedisSessionStore
from session.session import SessionOptions
from session.store import SessionStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> SessionStore:
    """
    Create the store selected by ``settings.store_type``.

    Raises:
        ConfigurationError: If the redis store is selected without a URL.
    """
    if settings.store_type == "redis":
        if not settings.redis_url:
            raise ConfigurationError(
                "Redis session store is not configured",
                missing_fields=["redis_url"],
            )
        logger.info("Using redis session store")
        return RedisSessionStore(options={"url": settings.redis_url})

    logger.info(
        "Using memory session store",
        extra={"extra_data": {"size": settings.memory_size}},
    )
    return MemorySessionStore(size=settings.memory_size)


def build_cookie_options(settings: Settings) -> CookieOptions:
    return CookieOptions(
        path=settings.cookie_path,
        domain=settings.cookie_domain,
        max_age=settings.max_age,
        secure=settings.cookie_secure,
        httponly=settings.cookie_httponly,
        samesite=settings.cookie_samesite,
        keys=list(settings.keys),
    )


def build_session_options(
    settings: Settings,
    store: Optional[SessionStore] = None
) -> SessionOptions:
    """
    Build SessionOptions from settings.

    Args:
        settings: Loaded settings.
        store: Store to use. Created with create_store() when omitted.
    """
    return SessionOptions(
        store=store if store is not None else create_store(settings),
        key=settings.cookie_key,
        max_age=settings.max_age,
        gen_id=make_id_generator(settings.id_strategy, settings.id_prefix),
        cookie_options=build_cookie_options(settings),
    )
