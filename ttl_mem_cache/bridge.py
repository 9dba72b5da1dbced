"""
Bus bridge: replicate a store over a topic on a Bus port.

Every node on the topic publishes its outbound records and applies every
message it receives. Messages carry the publishing store's id in the
``Origin`` header; a node skips its own publications before decoding them.
"""

from __future__ import annotations
import json
from typing import Any

import structlog

from .channel import ReplicationChannel
from .errors import MalformedRecord
from .ports.bus import Bus, Message
from .records import decode_record, encode_record

logger = structlog.get_logger(__name__)

ORIGIN_HEADER = "Origin"


class BusBridge:
    """Connects one ReplicationChannel to one topic."""

    def __init__(self, channel: ReplicationChannel, bus: Bus, topic: str) -> None:
        self.channel = channel
        self.bus = bus
        self.topic = topic
        self._sink = self._publish
        self._subscription = bus.subscribe(topic, channel.store.id, self._on_message)
        channel.pipe(self._sink)
        logger.info("Bus bridge attached", store_id=channel.store.id, topic=topic)

    def _publish(self, chunk: Any) -> None:
        if isinstance(chunk, (bytes, bytearray)):
            value = bytes(chunk)
            key = json.loads(value).get("key")
        else:
            value = encode_record(chunk)
            key = chunk.get("key")
        headers = {ORIGIN_HEADER: self.channel.store.id}
        self.bus.publish(self.topic, str(key).encode("utf-8"), value, headers)

    def _on_message(self, msg: Message) -> None:
        if msg.headers.get(ORIGIN_HEADER) == self.channel.store.id:
            return
        if self.channel.byte_mode:
            self.channel.write(msg.value)
            return
        try:
            record = decode_record(msg.value)
        except MalformedRecord as e:
            self.channel.report(e)
            return
        self.channel.write(record)

    def close(self) -> None:
        self._subscription.close()
        self.channel.unpipe(self._sink)
        logger.info("Bus bridge detached", store_id=self.channel.store.id, topic=self.topic)
