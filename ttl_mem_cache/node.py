"""
Cache node: a store and its replication channel built from one set of options.

Nodes are what gets wired together. ``a.pipe(b)`` sends a's mutations into
b; a ring of pipes replicates every write to every node.
"""

from __future__ import annotations
from typing import Any, Callable, Iterator, List, Optional, Tuple

import structlog

from .channel import Chunk, ReplicationChannel
from .config import CacheOptions
from .entry import Entry
from .ports.clock import Clock
from .store import TtlStore

logger = structlog.get_logger(__name__)


class CacheNode:
    """Duplex TTL cache node."""

    def __init__(self, options: Optional[CacheOptions] = None, *, clock: Optional[Clock] = None, **overrides: Any) -> None:
        if options is None:
            options = CacheOptions(**overrides)
        elif overrides:
            options = options.model_copy(update=overrides)

        self.options = options
        self.store = TtlStore.from_options(options, clock=clock)
        self.channel = ReplicationChannel(self.store, byte_mode=options.byte_mode)
        logger.debug("Cache node created", store_id=self.id, options=options.model_dump(exclude={"id"}))

    @classmethod
    def from_env(cls, *, clock: Optional[Clock] = None, **overrides: Any) -> "CacheNode":
        return cls(CacheOptions.from_env(**overrides), clock=clock)

    def __repr__(self) -> str:
        return f"CacheNode(id={self.id!r}, entries={self.store.length()})"

    def __len__(self) -> int:
        return len(self.store)

    @property
    def id(self) -> str:
        return self.store.id

    # Transport boundary

    def write(self, chunk: Chunk) -> bool:
        return self.channel.write(chunk)

    def pipe(self, destination: Any) -> Any:
        return self.channel.pipe(destination)

    def unpipe(self, destination: Any) -> None:
        self.channel.unpipe(destination)

    def on(self, event: str, listener: Callable[..., None]) -> Callable[..., None]:
        """Listen to store events (set, dispose, clear) or channel errors."""
        if event in ReplicationChannel.EVENTS:
            return self.channel.on(event, listener)
        return self.store.on(event, listener)

    def off(self, event: str, listener: Callable[..., None]) -> None:
        if event in ReplicationChannel.EVENTS:
            self.channel.off(event, listener)
        else:
            self.store.off(event, listener)

    def close(self) -> None:
        self.channel.close()

    # Store operations

    def set(self, key: Any, value: Any, lifetime: Optional[float] = None) -> Any:
        return self.store.set(key, value, lifetime)

    def get(self, key: Any, default: Any = None) -> Any:
        return self.store.get(key, default)

    def delete(self, key: Any) -> bool:
        return self.store.delete(key)

    def entries(self, mutator: Optional[Callable[[Any], Any]] = None) -> Iterator[Any]:
        return self.store.entries(mutator)

    def prune(self) -> None:
        self.store.prune()

    def clear(self) -> None:
        self.store.clear()

    def dump(self) -> List[Tuple[Any, Entry]]:
        return self.store.dump()

    def load(self, records: Any) -> List[Any]:
        return self.store.load(records)

    def length(self) -> int:
        return self.store.length()
