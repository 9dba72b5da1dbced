"""
Test fixtures for ttl-mem-cache.

- FakeClock: controllable millisecond clock for deterministic expiry
- EventRecorder: captures store and channel events in order
"""

from .fake_clock import FakeClock, create_test_clock, START_MS
from .recorder import EventRecorder, RecordSink

__all__ = [
    "FakeClock",
    "create_test_clock",
    "START_MS",
    "EventRecorder",
    "RecordSink",
]
