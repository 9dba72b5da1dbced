"""
pytest configuration and shared fixtures for ttl-mem-cache tests.
"""

import pytest

from tests.fixtures import FakeClock, RecordSink, create_test_clock
from ttl_mem_cache import CacheNode, TtlStore


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a controllable clock for testing."""
    return create_test_clock()


@pytest.fixture
def store(fake_clock) -> TtlStore:
    """Store with default options on the fake clock."""
    return TtlStore(id="store-under-test", clock=fake_clock)


@pytest.fixture
def stale_store(fake_clock) -> TtlStore:
    """Store that returns expired values once more."""
    return TtlStore(id="stale-store", stale=True, clock=fake_clock)


@pytest.fixture
def sink() -> RecordSink:
    return RecordSink()


@pytest.fixture
def make_node(fake_clock):
    """Factory for nodes sharing the fake clock."""
    def _make(**options) -> CacheNode:
        return CacheNode(clock=fake_clock, **options)
    return _make


@pytest.fixture
def ring(make_node):
    """Four nodes piped A -> B -> C -> D -> A."""
    nodes = [make_node(id=name) for name in ("A", "B", "C", "D")]
    for source, destination in zip(nodes, nodes[1:] + nodes[:1]):
        source.pipe(destination)
    return nodes
