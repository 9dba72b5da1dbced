"""Prometheus counters shared by every store and channel in the process."""

from prometheus_client import Counter

entries_set = Counter('ttl_cache_entries_set_total', 'Entries written to a store', ['source'])
entries_disposed = Counter('ttl_cache_entries_disposed_total', 'Entries removed from a store', ['reason'])
entries_loaded = Counter('ttl_cache_entries_loaded_total', 'Entries inserted by bulk load')
records_received = Counter('ttl_cache_records_received_total', 'Inbound replication records', ['outcome'])
records_emitted = Counter('ttl_cache_records_emitted_total', 'Outbound replication records delivered', ['kind'])
records_dropped = Counter('ttl_cache_records_dropped_total', 'Outbound records dropped with no flowing consumer')
