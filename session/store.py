"""
Session store abstraction.

A store keeps opaque session payloads under the identifier carried by
the session cookie. Absence is never an error: a missing, expired or
destroyed key reads back as an empty payload. Only backend failures
raise.
"""

from abc import ABC, abstractmethod


class SessionStore(ABC):
    """
    Abstract base class for session storage implementations.

    All methods are async so network-backed stores can do non-blocking
    I/O. Implementations must own TTL semantics: a backend without native
    expiry has to implement it itself.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """
        Retrieve the payload stored under ``key``.

        Args:
            key: The session identifier.

        Returns:
            The stored payload, or ``b""`` if the key is absent, expired
            or was never set.
        """

    @abstractmethod
    async def set(self, key: str, data: bytes, ttl: int) -> None:
        """
        Store ``data`` under ``key`` for ``ttl`` seconds from now.

        Upserts. A ``ttl`` of zero or less stores an entry that is
        already expired.

        Args:
            key: The session identifier.
            data: Serialized session payload.
            ttl: Time-to-live in seconds.
        """

    @abstractmethod
    async def destroy(self, key: str) -> None:
        """
        Delete the payload stored under ``key``.

        Idempotent: destroying an absent key does not raise.

        Args:
            key: The session identifier.
        """

    async def close(self) -> None:
        """Release backend resources. The default does nothing."""
