"""
Expiring key/value store.

Every entry carries a lifetime and is removed when a read, an enumeration or
a prune finds it expired. Mutations are reported two ways:

- ``watch()`` handlers get a ``Mutation`` for every set and delete. The
  replication channel uses this to build outbound records.
- ``on()`` listeners get the collaborator-visible events ``set``,
  ``dispose`` and ``clear``.

The store is single-owner: all work happens synchronously inside the call
that triggered it, and events fire after the mutation and before the call
returns.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

import structlog
from pydantic import ValidationError

from . import metrics
from .config import DEFAULT_LIFETIME_MS, CacheOptions, generate_instance_id
from .entry import Entry
from .errors import InvalidArgument
from .events import EventEmitter
from .ports.clock import Clock, SystemClock
from .records import SetRecord, is_hashable

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Mutation:
    """A set or delete, as seen by replication watchers."""
    kind: str
    key: Any
    origin: Optional[str]
    entry: Optional[Entry] = None


MutationHandler = Callable[[Mutation], None]


class _WatchSubscription:
    def __init__(self, store: "TtlStore", handler: MutationHandler) -> None:
        self._store = store; self._handler = handler; self._closed = False
    def close(self) -> None:
        if not self._closed:
            try:
                self._store._watchers.remove(self._handler)
            except ValueError:
                pass
            self._closed = True


class TtlStore(EventEmitter):
    """In-memory map of key to Entry with expiry, staleness and change events."""

    EVENTS = ("set", "dispose", "clear")

    def __init__(
        self,
        default_lifetime: float = DEFAULT_LIFETIME_MS,
        stale: bool = False,
        changefeed: bool = False,
        id: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__()
        self.default_lifetime = default_lifetime
        self.stale = stale
        self.changefeed = changefeed
        self.id = id or generate_instance_id()
        self.clock = clock or SystemClock()
        self._entries: Dict[Any, Entry] = {}
        self._watchers: List[MutationHandler] = []
        self._log = logger.bind(store_id=self.id)

    @classmethod
    def from_options(cls, options: CacheOptions, clock: Optional[Clock] = None) -> "TtlStore":
        return cls(
            default_lifetime=options.default_lifetime,
            stale=options.stale,
            changefeed=options.changefeed,
            id=options.id,
            clock=clock,
        )

    def __repr__(self) -> str:
        return f"TtlStore(id={self.id!r}, entries={len(self._entries)})"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Any) -> bool:
        return key in self._entries

    # Replication hooks

    def watch(self, handler: MutationHandler) -> _WatchSubscription:
        """Register ``handler`` for every set and delete on this store."""
        self._watchers.append(handler)
        return _WatchSubscription(self, handler)

    def _notify(self, mutation: Mutation) -> None:
        for handler in list(self._watchers):
            handler(mutation)

    # Public operations

    def set(
        self,
        key: Any,
        value: Any,
        lifetime: Optional[float] = None,
        *,
        origin: Optional[str] = None,
        expires_at: Optional[float] = None,
    ) -> Any:
        """
        Store ``value`` under ``key``, replacing any existing entry.

        With ``changefeed`` on, the ``old`` value is read without side
        effects: an expired entry being replaced is not disposed first.

        Args:
            key: Entry key
            value: Value to store
            lifetime: Lifetime in ms (defaults to the store's default lifetime)
            origin: Id of the authoring store (defaults to this store's id)
            expires_at: Absolute expiration to keep instead of computing one

        Returns:
            The stored value

        Raises:
            InvalidArgument: If key or value is None
        """
        if key is None:
            raise InvalidArgument('Argument "key" cannot be None')
        if value is None:
            raise InvalidArgument('Argument "value" cannot be None')

        item = value
        if self.changefeed:
            item = {"old": self._current_value(key), "new": value}

        entry = Entry(
            key=key,
            value=value,
            lifetime=self.default_lifetime if lifetime is None else lifetime,
            origin=origin or self.id,
            expires_at=expires_at,
            now=self.clock.now_ms(),
        )
        self._entries[key] = entry

        metrics.entries_set.labels(source="local" if entry.origin == self.id else "replica").inc()
        self._notify(Mutation(kind="set", key=key, origin=entry.origin, entry=entry))
        self.emit("set", key, item)
        return value

    def get(self, key: Any, default: Any = None) -> Any:
        """
        Value for ``key``, or ``default`` when there is none.

        An expired entry is removed. With ``stale`` enabled its value is still
        returned by this call; the next call finds nothing.
        """
        entry = self._entries.get(key)
        if entry is None:
            return default

        if entry.expired(self.clock.now_ms()):
            self._remove(key, reason="expired")
            return entry.value if self.stale else default

        return entry.value

    def delete(self, key: Any, *, origin: Optional[str] = None) -> bool:
        """Remove ``key``. Events fire only when an entry was removed."""
        return self._remove(key, reason="deleted", origin=origin)

    def entries(self, mutator: Optional[Callable[[Any], Any]] = None) -> Iterator[Any]:
        """
        One-shot iterator over the values of all live entries.

        Expired entries found on the way are removed; with ``stale`` enabled
        their values are still part of this result.
        """
        mutate = callable(mutator)
        now = self.clock.now_ms()
        values = []

        for key, entry in list(self._entries.items()):
            if entry.expired(now):
                self._remove(key, reason="expired")
                if not self.stale:
                    continue
            values.append(mutator(entry.value) if mutate else entry.value)

        return iter(values)

    def prune(self) -> None:
        """Remove every expired entry."""
        now = self.clock.now_ms()
        expired = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired:
            self._remove(key, reason="expired")
        if expired:
            self._log.debug("Pruned expired entries", count=len(expired))

    def clear(self) -> None:
        """Drop all entries. Emits a single ``clear`` event and no dispose events."""
        count = len(self._entries)
        self._entries.clear()
        metrics.entries_disposed.labels(reason="cleared").inc(count)
        self._log.debug("Store cleared", count=count)
        self.emit("clear")

    def dump(self) -> List[Tuple[Any, Entry]]:
        """Snapshot of all entries, expired ones included."""
        return list(self._entries.items())

    def load(self, records: Any) -> List[Any]:
        """
        Insert entries from a ``dump()`` style sequence.

        Each item is a ``(key, entry_data)`` pair where ``entry_data`` is an
        Entry or a mapping with at least ``value`` and ``lifetime``. Invalid
        items are skipped. Entries keep their original expiration and no
        events are emitted.

        Returns:
            Keys that were inserted

        Raises:
            InvalidArgument: If ``records`` is not a list or tuple
        """
        if not isinstance(records, (list, tuple)):
            raise InvalidArgument('Argument "records" is not a list')

        now = self.clock.now_ms()
        loaded = []
        for item in records:
            entry = self._entry_from_pair(item, now)
            if entry is None:
                self._log.debug("Skipping invalid snapshot item", item=repr(item)[:200])
                continue
            self._entries[entry.key] = entry
            loaded.append(entry.key)

        metrics.entries_loaded.inc(len(loaded))
        self._log.info("Loaded snapshot", loaded=len(loaded), skipped=len(records) - len(loaded))
        return loaded

    def length(self) -> int:
        """Number of entries held, including expired ones not yet removed."""
        return len(self._entries)

    def peek(self, key: Any) -> Optional[Entry]:
        """Raw entry lookup without expiry side effects."""
        return self._entries.get(key)

    # Internals

    def _current_value(self, key: Any) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self.clock.now_ms()) and not self.stale:
            return None
        return entry.value

    def _remove(self, key: Any, reason: str, origin: Optional[str] = None) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False

        metrics.entries_disposed.labels(reason=reason).inc()
        self._notify(Mutation(kind="delete", key=key, origin=origin or self.id))
        self.emit("dispose", key, entry.value)
        return True

    @staticmethod
    def _entry_from_pair(item: Any, now: float) -> Optional[Entry]:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            return None

        key, data = item
        if isinstance(data, Entry):
            return data if data.value is not None and is_hashable(data.key) else None
        if not isinstance(data, Mapping):
            return None
        if data.get("value") is None or data.get("lifetime") is None:
            return None

        record_key = data.get("key")
        if record_key is None:
            record_key = key
        if record_key is None or not is_hashable(record_key):
            return None

        # lifetime and expiresAt must be numbers or the infinite token
        try:
            record = SetRecord.model_validate({**data, "key": record_key})
        except ValidationError:
            return None

        return Entry(
            key=record.key,
            value=record.value,
            lifetime=record.lifetime,
            origin=record.origin,
            expires_at=record.expires_at,
            now=now,
        )
