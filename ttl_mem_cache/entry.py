"""
Immutable cache entry.

An Entry is one stored value plus the metadata replication needs: the
relative lifetime, the absolute expiration and the id of the store that
wrote it.
"""

import json
from typing import Any, Mapping, Optional

from .errors import ImmutableFieldError, InvalidArgument
from .expiry import INFINITE, compute_expiration, is_expired

RECORD_TYPE = "TtlMemCacheEntry"
INFINITE_TOKEN = "infinite"


def encode_number(value: Optional[float]) -> Any:
    """Render INFINITE as the wire token so the record stays strict JSON."""
    if value == INFINITE:
        return INFINITE_TOKEN
    return value


def decode_number(value: Any) -> Optional[float]:
    if value == INFINITE_TOKEN:
        return INFINITE
    return value


class Entry:
    """Read-only record of a stored value."""

    __slots__ = ("key", "value", "lifetime", "origin", "expires_at")

    def __init__(
        self,
        key: Any,
        value: Any = None,
        lifetime: float = 0,
        origin: Optional[str] = None,
        expires_at: Optional[float] = None,
        now: Optional[float] = None,
    ):
        if key is None:
            raise InvalidArgument('Argument "key" cannot be None')

        if expires_at is None:
            expires_at = compute_expiration(lifetime, now)

        object.__setattr__(self, "key", key)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "lifetime", lifetime)
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "expires_at", expires_at)

    def __setattr__(self, name: str, value: Any) -> None:
        raise ImmutableFieldError(name)

    def __delattr__(self, name: str) -> None:
        raise ImmutableFieldError(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return (
            self.key == other.key
            and self.value == other.value
            and self.lifetime == other.lifetime
            and self.origin == other.origin
            and self.expires_at == other.expires_at
        )

    def __repr__(self) -> str:
        return f"Entry(key={self.key!r}, expires_at={self.expires_at!r}, origin={self.origin!r})"

    def expired(self, now: Optional[float] = None) -> bool:
        return is_expired(self.expires_at, now)

    def to_record(self) -> dict:
        """Structured record with the type tag used on the wire."""
        return {
            "key": self.key,
            "value": self.value,
            "lifetime": self.lifetime,
            "origin": self.origin,
            "expiresAt": self.expires_at,
            "type": RECORD_TYPE,
        }

    def to_json(self) -> str:
        """Newline-terminated JSON text of the record."""
        record = self.to_record()
        record["lifetime"] = encode_number(record["lifetime"])
        record["expiresAt"] = encode_number(record["expiresAt"])
        return json.dumps(record) + "\n"

    @classmethod
    def from_record(cls, record: Mapping[str, Any], key: Any = None, now: Optional[float] = None) -> "Entry":
        """
        Rebuild an entry from a wire or snapshot record.

        The record's ``expiresAt`` is kept as is, so the rebuilt entry expires
        when the original did.

        Args:
            record: Mapping with value, lifetime, origin and expiresAt
            key: Key to use when the record does not carry one
            now: Reference time when the record has no expiresAt

        Raises:
            InvalidArgument: If neither the record nor ``key`` gives a key
        """
        record_key = record.get("key")
        lifetime = decode_number(record.get("lifetime"))
        return cls(
            key=record_key if record_key is not None else key,
            value=record.get("value"),
            lifetime=0 if lifetime is None else lifetime,
            origin=record.get("origin"),
            expires_at=decode_number(record.get("expiresAt", record.get("expires_at"))),
            now=now,
        )
