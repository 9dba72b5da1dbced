"""
ttl-mem-cache: in-memory key/value store with per-entry TTL and
origin-tagged replication between instances.
"""

from .bridge import BusBridge
from .channel import ReplicationChannel
from .config import CacheOptions, generate_instance_id
from .entry import Entry
from .errors import (
    CacheError,
    ImmutableFieldError,
    InvalidArgument,
    MalformedRecord,
    MissingKeyOrValue,
    RecordError,
)
from .expiry import INFINITE, compute_expiration, is_expired
from .log_config import configure_logging
from .node import CacheNode
from .records import DeleteRecord, SetRecord, decode_snapshot, encode_snapshot
from .store import Mutation, TtlStore

__version__ = "1.0.0"

__all__ = [
    "BusBridge",
    "CacheError",
    "CacheNode",
    "CacheOptions",
    "DeleteRecord",
    "Entry",
    "INFINITE",
    "ImmutableFieldError",
    "InvalidArgument",
    "MalformedRecord",
    "MissingKeyOrValue",
    "Mutation",
    "RecordError",
    "ReplicationChannel",
    "SetRecord",
    "TtlStore",
    "compute_expiration",
    "configure_logging",
    "decode_snapshot",
    "encode_snapshot",
    "generate_instance_id",
    "is_expired",
]
