"""
Session identifier generation.

Identifiers are used verbatim as both cookie value and store key, so
uniqueness comes entirely from the generator. Two strategies exist:

- ``random``: 24 alphanumeric characters drawn from ``secrets``.
- ``ordered``: a 12 hex digit millisecond timestamp followed by 12 random
  alphanumeric characters, so identifiers sort by creation time.

Either can be given a fixed prefix.
"""

import secrets
import string
import time
from typing import Callable

ID_ALPHABET = string.ascii_letters + string.digits
DEFAULT_ID_LENGTH = 24

IdGenerator = Callable[[], str]


def random_string(length: int = DEFAULT_ID_LENGTH) -> str:
    """Return ``length`` characters drawn uniformly from ID_ALPHABET."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def generate_id() -> str:
    """Default generator: a 24 character random identifier."""
    return random_string(DEFAULT_ID_LENGTH)


def generate_ordered_id() -> str:
    """A time-ordered identifier: millisecond timestamp plus random suffix."""
    millis = time.time_ns() // 1_000_000
    return f"{millis:012x}{random_string(12)}"


_STRATEGIES: dict[str, IdGenerator] = {
    "random": generate_id,
    "ordered": generate_ordered_id,
}


def make_id_generator(strategy: str = "random", prefix: str = "") -> IdGenerator:
    """
    Build an identifier generator.

    Args:
        strategy: ``"random"`` or ``"ordered"``.
        prefix: Prepended verbatim to every identifier.

    Returns:
        A zero-argument callable returning a new identifier.

    Raises:
        ValueError: If the strategy is unknown.
    """
    try:
        generate = _STRATEGIES[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown id strategy {strategy!r}, expected one of: {', '.join(_STRATEGIES)}"
        ) from None

    if not prefix:
        return generate

    def generate_prefixed() -> str:
        return prefix + generate()

    return generate_prefixed
