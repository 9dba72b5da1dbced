"""
Tests for replicating nodes over the in-memory Bus port.
"""

import pytest

from tests.fixtures import EventRecorder
from ttl_mem_cache import BusBridge
from ttl_mem_cache.bridge import ORIGIN_HEADER
from ttl_mem_cache.errors import MalformedRecord
from ttl_mem_cache.ports import InMemoryBus

TOPIC = "cache.replication"


@pytest.fixture
def bus() -> InMemoryBus:
    return InMemoryBus()


@pytest.fixture
def cluster(bus, make_node):
    nodes = [make_node(id=f"n{i}", byte_mode=(i % 2 == 0)) for i in range(3)]
    bridges = [BusBridge(node.channel, bus, TOPIC) for node in nodes]
    return nodes, bridges


class TestBusBridge:

    def test_subscribes_with_store_id(self, bus, cluster):
        assert bus.groups(TOPIC) == ["n0", "n1", "n2"]

    def test_set_fans_out(self, cluster):
        nodes, _ = cluster
        nodes[1].set("k", "v")
        assert [node.get("k") for node in nodes] == ["v", "v", "v"]

    def test_each_node_applies_once(self, cluster):
        nodes, _ = cluster
        recorders = [EventRecorder(node.store, "set") for node in nodes]
        nodes[0].set("k", "v")
        assert [len(r.of("set")) for r in recorders] == [1, 1, 1]

    def test_delete_fans_out(self, cluster):
        nodes, _ = cluster
        nodes[0].set("k", "v")
        nodes[2].delete("k")
        assert [node.get("k") for node in nodes] == [None, None, None]

    def test_message_shape(self, bus, make_node):
        node = make_node(id="solo")
        BusBridge(node.channel, bus, TOPIC)
        messages = []
        bus.subscribe(TOPIC, "observer", messages.append)
        node.set(7, "v")
        [msg] = messages
        assert msg.key == b"7"
        assert msg.headers[ORIGIN_HEADER] == "solo"
        assert msg.value.endswith(b"\n")

    def test_malformed_message_reported(self, bus, make_node):
        node = make_node(id="solo")
        BusBridge(node.channel, bus, TOPIC)
        events = EventRecorder(node.channel, "error")
        bus.publish(TOPIC, b"k", b"garbage", {ORIGIN_HEADER: "other"})
        assert isinstance(events.of("error")[0][0], MalformedRecord)

    def test_close(self, bus, cluster):
        nodes, bridges = cluster
        bridges[2].close()
        nodes[0].set("k", "v")
        assert nodes[2].get("k") is None
        assert bus.groups(TOPIC) == ["n0", "n1"]
        published = bus.published
        nodes[2].set("x", "y")
        assert bus.published == published
