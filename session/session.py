"""
Per-request session handle.

A Session reads its identifier from a cookie, lazily loads the record
stored under it, tracks mutations, and writes the record back at most
once. Its lifecycle is a small state machine:

- UNFETCHED -> FETCHED: fetch() succeeded
- FETCHED -> DIRTY: set(), set_map() or refresh()
- DIRTY -> COMMITTED: commit() wrote the record to the store
- DIRTY -> DIRTY: commit() failed, so it can be called again
- DIRTY -> FETCHED: destroy() dropped the pending changes

Mutating an UNFETCHED session raises NotFetchedError. Mutating a
COMMITTED session changes the in-memory record only.

A Session is owned by one request and is not safe to share between
threads or tasks.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import ConfigDict, TypeAdapter, ValidationError

from config.settings import ConfigurationError
from errors.exceptions import AppException, NotFetchedError, ReservedKeyError, StoreError
from session.codec import JSON_CODEC, Codec
from session.cookies import CookieOptions, CookieReadWriter, Cookies, MemoryReadWriter
from session.ids import IdGenerator, generate_id
from session.memory_store import MemorySessionStore
from session.store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "sess"
DEFAULT_MAX_AGE = 86400

CREATED_AT = "_createdAt"
UPDATED_AT = "_updatedAt"
RESERVED_KEYS = frozenset({CREATED_AT, UPDATED_AT})

_BOOL = TypeAdapter(bool)
_INT = TypeAdapter(int)
_FLOAT = TypeAdapter(float)
_STR = TypeAdapter(str, config=ConfigDict(coerce_numbers_to_str=True))
_STR_LIST = TypeAdapter(list[str], config=ConfigDict(coerce_numbers_to_str=True))


class SessionState(Enum):
    """Lifecycle states of a Session."""
    UNFETCHED = "unfetched"
    FETCHED = "fetched"
    DIRTY = "dirty"
    COMMITTED = "committed"


@dataclass
class SessionOptions:
    """
    Options shared by every Session of an application.

    Attributes:
        store: Where session records are kept. Required.
        key: Name of the identifier cookie. The signature cookie is
            ``<key>.sig``.
        max_age: Store TTL in seconds.
        gen_id: Called to mint a new identifier.
        cookie_options: Cookie attributes and signing keys.
        codec: Serializes records for the store.
    """
    store: Optional[SessionStore] = None
    key: str = DEFAULT_COOKIE_NAME
    max_age: int = DEFAULT_MAX_AGE
    gen_id: IdGenerator = generate_id
    cookie_options: Optional[CookieOptions] = None
    codec: Codec = JSON_CODEC


def _now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _init_record() -> dict[str, Any]:
    return {CREATED_AT: _now()}


def _coerce(adapter: TypeAdapter, value: Any, default: Any) -> Any:
    if value is None:
        return default
    try:
        return adapter.validate_python(value)
    except ValidationError:
        return default


class Session:
    """
    Session bound to one request.

    Example:
        session = Session(StarletteReadWriter(request), options)
        await session.fetch()
        session.set("user_id", 42)
        await session.commit()
    """

    def __init__(self, read_writer: CookieReadWriter, options: Optional[SessionOptions]):
        """
        Args:
            read_writer: Cookie access for the current request.
            options: Session options; ``options.store`` is required.

        Raises:
            ConfigurationError: If no options or no store are given.
        """
        if options is None or options.store is None:
            raise ConfigurationError("Session requires options with a store")
        self.options = options
        self.store: SessionStore = options.store
        self.cookies = Cookies(read_writer, options.cookie_options)
        self.signed = self.cookies.can_sign
        self.identifier = ""
        self._record: Optional[dict[str, Any]] = None
        self._state = SessionState.UNFETCHED

    @classmethod
    def mock(
        cls,
        *,
        data: Optional[dict[str, Any]] = None,
        state: Optional[SessionState] = None,
        identifier: str = "",
        signed: Optional[bool] = None,
        options: Optional[SessionOptions] = None,
        read_writer: Optional[CookieReadWriter] = None,
    ) -> "Session":
        """
        Build a Session in a given state without going through a request.

        Intended for tests. ``state`` defaults to FETCHED when ``data`` is
        given and UNFETCHED otherwise. ``options`` defaults to a fresh
        MemorySessionStore.

        Raises:
            ValueError: If ``data`` and ``state`` disagree, or ``signed``
                is requested without signing keys.
        """
        if state is None:
            state = SessionState.UNFETCHED if data is None else SessionState.FETCHED
        if state is SessionState.UNFETCHED and data is not None:
            raise ValueError("an unfetched session cannot hold data")
        if state is not SessionState.UNFETCHED and data is None:
            raise ValueError(f"a {state.value} session requires data")

        sess = cls(
            read_writer if read_writer is not None else MemoryReadWriter(),
            options if options is not None else SessionOptions(store=MemorySessionStore()),
        )
        if signed is not None:
            if signed and not sess.cookies.can_sign:
                raise ValueError("signed sessions require cookie signing keys")
            sess.signed = signed
        sess.identifier = identifier
        sess._record = None if data is None else dict(data)
        sess._state = state
        return sess

    # -- lifecycle ----------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def fetched(self) -> bool:
        return self._state is not SessionState.UNFETCHED

    @property
    def modified(self) -> bool:
        return self._state in (SessionState.DIRTY, SessionState.COMMITTED)

    @property
    def committed(self) -> bool:
        return self._state is SessionState.COMMITTED

    @property
    def cookie_name(self) -> str:
        return self.options.key or DEFAULT_COOKIE_NAME

    @property
    def data(self) -> Optional[dict[str, Any]]:
        """The session record, or None before fetch()."""
        return self._record

    def _read_cookie_value(self) -> str:
        return self.cookies.get(self.cookie_name, self.signed)

    async def _call_store(self, operation: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        try:
            return await func(*args)
        except AppException:
            raise
        except Exception as exc:
            logger.warning(
                "Session store %s failed: %s",
                operation,
                exc,
                extra={"extra_data": {
                    "operation": operation,
                    "session_id": self.identifier,
                    "error_type": type(exc).__name__,
                }},
            )
            raise StoreError(
                f"Session store {operation} failed",
                details={"operation": operation, "error_type": type(exc).__name__},
            ) from exc

    async def fetch(self) -> dict[str, Any]:
        """
        Load the session record, once.

        A missing cookie, a cookie whose signature does not verify, and an
        empty payload all yield a fresh record holding only ``_createdAt``.

        Returns:
            The session record. Later calls return the same object
            without touching cookies or store.

        Raises:
            StoreError: If the store read fails or the payload cannot be
                decoded.
        """
        if self._state is not SessionState.UNFETCHED:
            return self._record

        value = self._read_cookie_value()
        payload = b""
        if value:
            self.identifier = value
            payload = await self._call_store("get", self.store.get, value)

        if payload:
            try:
                record = self.options.codec.unmarshal(payload)
            except ValueError as exc:
                raise StoreError(
                    "Session payload could not be decoded",
                    details={"error_type": type(exc).__name__},
                ) from exc
            if not isinstance(record, dict):
                raise StoreError(
                    "Session payload is not an object",
                    details={"payload_type": type(record).__name__},
                )
        else:
            record = _init_record()

        self._record = record
        self._state = SessionState.FETCHED
        logger.debug(
            "Session fetched",
            extra={"extra_data": {"session_id": self.identifier, "hit": bool(payload)}},
        )
        return record

    def _touch(self) -> None:
        if self._state is SessionState.UNFETCHED:
            raise NotFetchedError()
        self._record[UPDATED_AT] = _now()
        if self._state is SessionState.FETCHED:
            self._state = SessionState.DIRTY

    def _apply(self, key: str, value: Any) -> None:
        if key in RESERVED_KEYS:
            raise ReservedKeyError([key])
        if value is None:
            self._record.pop(key, None)
        else:
            self._record[key] = value

    def set(self, key: str, value: Any) -> None:
        """
        Set ``key`` to ``value``, or delete it when ``value`` is None.

        An empty key is ignored. Otherwise ``_updatedAt`` is stamped and
        the session is marked modified even if nothing changed.

        Raises:
            NotFetchedError: If fetch() has not succeeded yet.
            ReservedKeyError: If ``key`` is ``_createdAt`` or ``_updatedAt``.
        """
        if not key:
            return
        if self._state is SessionState.UNFETCHED:
            raise NotFetchedError()
        self._apply(key, value)
        self._touch()

    def set_map(self, values: Optional[dict[str, Any]]) -> None:
        """
        Bulk form of set(). ``None`` is ignored; empty keys are skipped.

        A map holding a reserved key raises ReservedKeyError before any
        value is applied.
        """
        if values is None:
            return
        if self._state is SessionState.UNFETCHED:
            raise NotFetchedError()
        reserved = RESERVED_KEYS.intersection(values)
        if reserved:
            raise ReservedKeyError(list(reserved))
        for key, value in values.items():
            if key:
                self._apply(key, value)
        self._touch()

    def refresh(self) -> None:
        """
        Mark the session modified and re-issue its cookie.

        The cookie is only re-issued when an identifier already exists;
        its identifier does not change and the store is not touched.
        """
        self._touch()
        if self.identifier:
            self._add_session_cookie(self.identifier)

    async def destroy(self) -> None:
        """
        Delete the stored record and reset the in-memory one.

        Does nothing when the session has no identifier. Cookies are left
        alone, so a later request with the same cookie sees an empty
        session.

        Pending changes are discarded with the record: a modified but
        uncommitted session goes back to FETCHED, so a later commit() does
        not write the fresh record under the destroyed identifier.

        Raises:
            StoreError: If the store delete fails.
        """
        identifier = self.identifier or self._read_cookie_value()
        if not identifier:
            return
        await self._call_store("destroy", self.store.destroy, identifier)
        if self._state is not SessionState.UNFETCHED:
            self._record = _init_record()
        if self._state is SessionState.DIRTY:
            self._state = SessionState.FETCHED
        logger.debug("Session destroyed", extra={"extra_data": {"session_id": identifier}})

    async def commit(self) -> None:
        """
        Write the record to the store if it was modified and not yet written.

        The first commit of a session without an identifier mints one and
        writes the session cookie. A failed write leaves the session
        modified and uncommitted, so commit() can simply be called again.

        Raises:
            StoreError: If the store write fails.
        """
        if self._state is not SessionState.DIRTY:
            return
        if not self.identifier:
            self.regenerate_cookie()
        payload = self.options.codec.marshal(self._record)
        await self._call_store("set", self.store.set, self.identifier, payload, self.options.max_age)
        self._state = SessionState.COMMITTED
        logger.debug(
            "Session committed",
            extra={"extra_data": {"session_id": self.identifier, "bytes": len(payload)}},
        )

    def regenerate_cookie(self) -> None:
        """Mint a new identifier and write its cookie. No-op once committed."""
        if self._state is SessionState.COMMITTED:
            return
        self._add_session_cookie(self.options.gen_id())

    def _add_session_cookie(self, value: str) -> None:
        self.identifier = value
        cookie = self.cookies.create_cookie(self.cookie_name, value)
        self.cookies.set(cookie, self.signed)

    # -- lenient accessors --------------------------------------------
    #
    # These never raise: before fetch(), for a missing key, or for a value
    # that cannot be coerced they return the type's zero value. That hides
    # a forgotten fetch(), so check fetch() errors rather than relying on
    # these.
    #
    # Coercion is pydantic lax mode, which is stricter than a plain cast in
    # some places and looser in others:
    #   get_int(3.7) -> 0, a float with a fraction is not truncated
    #   get_string(True) -> "", booleans are not stringified
    #   get_string_list("a b") -> [], strings are not split on whitespace
    #   get_bool("yes") -> True, as are "on", "y" and "1"

    def get(self, key: str) -> Any:
        if self._record is None:
            return None
        return self._record.get(key)

    def get_bool(self, key: str) -> bool:
        return _coerce(_BOOL, self.get(key), False)

    def get_string(self, key: str) -> str:
        return _coerce(_STR, self.get(key), "")

    def get_int(self, key: str) -> int:
        return _coerce(_INT, self.get(key), 0)

    def get_float(self, key: str) -> float:
        return _coerce(_FLOAT, self.get(key), 0.0)

    def get_string_list(self, key: str) -> list[str]:
        return _coerce(_STR_LIST, self.get(key), [])

    @property
    def created_at(self) -> str:
        return self.get_string(CREATED_AT)

    @property
    def updated_at(self) -> str:
        return self.get_string(UPDATED_AT)
