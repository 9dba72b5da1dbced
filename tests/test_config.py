"""
Tests for CacheOptions and CacheNode construction.
"""

import base64

import pytest
from pydantic import ValidationError

from ttl_mem_cache import CacheNode, CacheOptions, generate_instance_id
from ttl_mem_cache.expiry import INFINITE


class TestCacheOptions:

    def test_defaults(self):
        options = CacheOptions()
        assert options.default_lifetime == 300_000
        assert options.stale is False
        assert options.changefeed is False
        assert options.byte_mode is False
        assert options.id

    def test_generated_id_is_base64(self):
        instance_id = generate_instance_id()
        assert len(base64.b64decode(instance_id)) == 12
        assert generate_instance_id() != instance_id

    def test_infinite_default_lifetime(self):
        assert CacheOptions(default_lifetime="infinite").default_lifetime == INFINITE

    def test_negative_lifetime_rejected(self):
        with pytest.raises(ValidationError):
            CacheOptions(default_lifetime=-1)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            CacheOptions().stale = True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TTL_CACHE_DEFAULT_LIFETIME_MS", "1500")
        monkeypatch.setenv("TTL_CACHE_STALE", "true")
        monkeypatch.setenv("TTL_CACHE_CHANGEFEED", "0")
        monkeypatch.setenv("TTL_CACHE_ID", "env-node")
        monkeypatch.setenv("TTL_CACHE_BYTE_MODE", "yes")
        options = CacheOptions.from_env()
        assert options.default_lifetime == 1500
        assert options.stale is True
        assert options.changefeed is False
        assert options.id == "env-node"
        assert options.byte_mode is True

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TTL_CACHE_ID", "env-node")
        assert CacheOptions.from_env(id="explicit").id == "explicit"


class TestCacheNode:

    def test_builds_store_and_channel(self, fake_clock):
        node = CacheNode(CacheOptions(id="n", stale=True, byte_mode=True), clock=fake_clock)
        assert node.id == "n"
        assert node.store.stale is True
        assert node.channel.byte_mode is True
        assert node.channel.store is node.store

    def test_keyword_overrides(self):
        node = CacheNode(CacheOptions(id="n"), changefeed=True)
        assert node.store.changefeed is True
        assert node.id == "n"

    def test_from_env(self, monkeypatch, fake_clock):
        monkeypatch.setenv("TTL_CACHE_ID", "env-node")
        node = CacheNode.from_env(clock=fake_clock)
        assert node.id == "env-node"

    def test_delegates_store_operations(self, make_node, fake_clock):
        node = make_node(id="n")
        node.set("a", 1)
        node.set("b", 2, 100)
        assert node.get("a") == 1
        assert len(node) == node.length() == 2
        fake_clock.advance(200)
        node.prune()
        assert list(node.entries()) == [1]
        assert node.delete("a") is True
        node.load([("c", {"value": 3, "lifetime": 100})])
        assert [key for key, _ in node.dump()] == ["c"]
        node.clear()
        assert node.length() == 0

    def test_routes_events(self, make_node):
        node = make_node(id="n")
        seen = []
        node.on("set", lambda key, value: seen.append(("set", key)))
        node.on("error", lambda error: seen.append(("error", type(error).__name__)))
        node.set("a", 1)
        node.write({"value": "orphan"})
        assert seen == [("set", "a"), ("error", "MissingKeyOrValue")]
