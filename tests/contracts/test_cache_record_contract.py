"""
Contract tests for the CacheRecordV1 schema.

Every record a node emits must be accepted by the schema a peer validates
inbound bytes with.
"""

import json

import pytest

from tests.utils.contract_helpers import ContractViolation, assert_conforms, get_schema_errors
from ttl_mem_cache.entry import Entry
from ttl_mem_cache.expiry import INFINITE
from ttl_mem_cache.records import DeleteRecord


class TestCacheRecordV1Contract:

    def test_entry_record_conforms(self):
        entry = Entry(key="a", value={"x": 1}, lifetime=100, origin="n1", now=0)
        assert_conforms("CacheRecordV1", json.loads(entry.to_json()))

    def test_infinite_entry_conforms(self):
        entry = Entry(key="a", value="x", lifetime=INFINITE, origin="n1", now=0)
        assert_conforms("CacheRecordV1", json.loads(entry.to_json()))

    def test_tombstone_conforms(self):
        assert_conforms("CacheRecordV1", DeleteRecord(key="a", origin="n1").to_wire())

    def test_minimal_record_conforms(self):
        assert_conforms("CacheRecordV1", {"key": 1, "value": [1, 2]})

    @pytest.mark.parametrize("field,bad_value", [
        ("lifetime", "forever"),
        ("expiresAt", "tomorrow"),
        ("origin", 42),
        ("key", {"nested": True}),
        ("type", 7),
    ])
    def test_bad_field_rejected(self, field, bad_value):
        record = {"key": "a", "value": "x", field: bad_value}
        assert get_schema_errors("CacheRecordV1", record)

    @pytest.mark.parametrize("payload", [[1, 2], "text", 3, None])
    def test_non_object_rejected(self, payload):
        with pytest.raises(ContractViolation):
            assert_conforms("CacheRecordV1", payload)

    def test_unknown_schema(self):
        with pytest.raises(ValueError):
            assert_conforms("NopeV1", {})
