"""
Error taxonomy for the TTL cache.

InvalidArgument and ImmutableFieldError are raised to the caller.
MalformedRecord and MissingKeyOrValue describe bad inbound records; the
replication channel reports them on its "error" event instead of raising.
"""

from typing import Any, Optional


class CacheError(Exception):
    """Base class for all cache errors."""


class InvalidArgument(CacheError, ValueError):
    """Raised when a required argument is missing or has the wrong shape."""


class ImmutableFieldError(CacheError, AttributeError):
    """Raised on any attempt to modify a constructed Entry."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Cannot set read-only property '{field}'")


class RecordError(CacheError):
    """Inbound record could not be applied to the store."""

    def __init__(self, message: str, record: Optional[Any] = None):
        self.record = record
        super().__init__(message)

    def snippet(self, limit: int = 200) -> str:
        text = repr(self.record)
        return text[:limit] + "..." if len(text) > limit else text


class MalformedRecord(RecordError):
    """Inbound payload did not decode into a record."""


class MissingKeyOrValue(RecordError):
    """Inbound record is neither a usable set nor a usable delete."""
