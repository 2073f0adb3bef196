"""
Cookie-backed server-side sessions.

A Session keeps its record in a pluggable SessionStore (in-process LRU
cache or Redis) under an identifier carried in a cookie that can be
signed.
"""

from session.store import SessionStore
from session.codec import JSON_CODEC, Codec
from session.ids import generate_id, generate_ordered_id, make_id_generator
from session.cookies import (
    Cookie,
    CookieOptions,
    Cookies,
    MemoryReadWriter,
    StarletteReadWriter,
)
from session.memory_store import DEFAULT_MEMORY_STORE_SIZE, MemorySessionStore
from session.redis_store import RedisSessionStore
from session.session import (
    CREATED_AT,
    DEFAULT_COOKIE_NAME,
    UPDATED_AT,
    Session,
    SessionOptions,
    SessionState,
)
from session.factory import build_session_options, create_store

__all__ = [
    "SessionStore",
    "JSON_CODEC",
    "Codec",
    "generate_id",
    "generate_ordered_id",
    "make_id_generator",
    "Cookie",
    "CookieOptions",
    "Cookies",
    "MemoryReadWriter",
    "StarletteReadWriter",
    "DEFAULT_MEMORY_STORE_SIZE",
    "MemorySessionStore",
    "RedisSessionStore",
    "CREATED_AT",
    "DEFAULT_COOKIE_NAME",
    "UPDATED_AT",
    "Session",
    "SessionOptions",
    "SessionState",
    "build_session_options",
    "create_store",
]
