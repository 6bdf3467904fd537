"""Room keys for two-party conversations.

A room key is the two participant identities, sorted and joined with ``+``,
so both sides of a conversation compute the same key:

    >>> room_key("bob@x", "alice@x")
    'alice@x+bob@x'

Identities containing the separator would make keys ambiguous and are
rejected.
"""
from typing import Tuple

ROOM_KEY_SEPARATOR = "+"


class InvalidIdentityError(ValueError):
    """Raised for an empty identity, one containing the separator, or a self-pair."""


def validate_identity(identity: str) -> str:
    if not isinstance(identity, str) or not identity.strip():
        raise InvalidIdentityError("Identity must be a non-empty string")
    if ROOM_KEY_SEPARATOR in identity:
        raise InvalidIdentityError(
            f"Identity {identity!r} contains reserved character {ROOM_KEY_SEPARATOR!r}"
        )
    return identity


def room_key(a: str, b: str) -> str:
    """Order-independent key for the conversation between ``a`` and ``b``.

    Raises:
        InvalidIdentityError: If an identity is invalid or both are the same.
    """
    a, b = validate_identity(a), validate_identity(b)
    if a == b:
        raise InvalidIdentityError(f"A room needs two distinct identities, got {a!r} twice")
    return ROOM_KEY_SEPARATOR.join(sorted((a, b)))


def room_participants(key: str) -> Tuple[str, str]:
    """Split a room key back into its two identities."""
    parts = key.split(ROOM_KEY_SEPARATOR)
    if len(parts) != 2:
        raise InvalidIdentityError(f"Malformed room key {key!r}")
    return parts[0], parts[1]


def counterpart(key: str, identity: str) -> str:
    """The participant of ``key`` that is not ``identity``."""
    first, second = room_participants(key)
    return second if identity == first else first
