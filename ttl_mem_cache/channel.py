"""
Replication channel: the duplex boundary of a store.

Inbound, ``write()`` takes one record from a transport and applies it to the
store. Outbound, every set and delete on the store becomes one record that is
handed to the attached consumers.

Records authored by the receiving store (same ``origin``) are dropped, so
stores wired into a cycle converge instead of echoing forever.
"""

from __future__ import annotations
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

import structlog

from . import metrics
from .errors import MalformedRecord, RecordError
from .events import EventEmitter
from .records import DeleteRecord, SetRecord, classify, decode_record, encode_record
from .store import Mutation, TtlStore

logger = structlog.get_logger(__name__)

Chunk = Union[Mapping[str, Any], bytes, bytearray, str]
Consumer = Callable[[Any], Any]


def _as_consumer(destination: Any) -> Consumer:
    write = getattr(destination, "write", None)
    if callable(write):
        return write
    if callable(destination):
        return destination
    raise TypeError(f"Cannot pipe into {destination!r}: expected a callable or an object with write()")


class ReplicationChannel(EventEmitter):
    """
    Bridge between a TtlStore and a record transport.

    In object mode records are plain dicts; in byte mode they are
    newline-terminated UTF-8 JSON. Outbound records are only produced while
    the channel is flowing (a consumer is attached and the channel is not
    paused). Otherwise they are dropped, never buffered.
    """

    EVENTS = ("error",)

    def __init__(self, store: TtlStore, byte_mode: bool = False) -> None:
        super().__init__()
        self.store = store
        self.byte_mode = byte_mode
        self._consumers: List[tuple] = []
        self._paused = False
        self._subscription = store.watch(self._on_mutation)
        self._log = logger.bind(store_id=store.id, byte_mode=byte_mode)

    def __repr__(self) -> str:
        return f"ReplicationChannel(store={self.store.id!r}, consumers={len(self._consumers)})"

    @property
    def flowing(self) -> bool:
        return bool(self._consumers) and not self._paused

    # Outbound

    def pipe(self, destination: Any) -> Any:
        """Send outbound records to ``destination``. Returns it so pipes chain."""
        self._consumers.append((destination, _as_consumer(destination)))
        return destination

    def unpipe(self, destination: Any) -> None:
        self._consumers = [(d, c) for d, c in self._consumers if d is not destination]

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def close(self) -> None:
        """Detach from the store and drop all consumers."""
        self._subscription.close()
        self._consumers = []

    def _on_mutation(self, mutation: Mutation) -> None:
        if not self.flowing:
            metrics.records_dropped.inc()
            return

        if mutation.kind == "set":
            record = mutation.entry.to_record()
        else:
            record = DeleteRecord(key=mutation.key, origin=mutation.origin).to_wire()

        chunk = encode_record(record) if self.byte_mode else record
        for _, consumer in list(self._consumers):
            consumer(chunk)
        metrics.records_emitted.labels(kind=mutation.kind).inc()

    # Inbound

    def write(self, chunk: Chunk) -> bool:
        """
        Apply one inbound record to the store.

        Bad records are reported on the ``error`` event and never raised, so
        a transport can keep feeding records after one fails.

        Returns:
            True if the store was mutated
        """
        try:
            return self._apply(chunk)
        except RecordError as e:
            self.report(e)
            return False

    def report(self, error: RecordError) -> None:
        """Log, count and emit an inbound record error."""
        metrics.records_received.labels(outcome=type(error).__name__).inc()
        self._log.warning(
            "Rejected inbound record",
            error_type=type(error).__name__,
            error=str(error),
            payload_snippet=error.snippet(),
        )
        self.emit("error", error)

    def write_many(self, chunks: Iterable[Chunk]) -> int:
        """Apply records in order. Returns how many mutated the store."""
        return sum(1 for chunk in chunks if self.write(chunk))

    def _apply(self, chunk: Chunk) -> bool:
        if self.byte_mode:
            obj = decode_record(chunk)
        elif isinstance(chunk, Mapping):
            obj = chunk
        else:
            raise MalformedRecord("Object-mode record is not a mapping", record=chunk)

        origin: Optional[str] = obj.get("origin")
        if origin is not None and origin == self.store.id:
            metrics.records_received.labels(outcome="echo").inc()
            return False

        record = classify(obj)

        if isinstance(record, SetRecord):
            existing = self.store.peek(record.key)
            if (
                existing is not None
                and record.expires_at is not None
                and existing.expires_at == record.expires_at
                and existing.origin == record.origin
                and existing.value == record.value
            ):
                metrics.records_received.labels(outcome="duplicate").inc()
                return False

            self.store.set(
                record.key,
                record.value,
                record.lifetime,
                origin=record.origin,
                expires_at=record.expires_at,
            )
            metrics.records_received.labels(outcome="set").inc()
            return True

        removed = self.store.delete(record.key, origin=record.origin)
        metrics.records_received.labels(outcome="delete").inc()
        return removed
