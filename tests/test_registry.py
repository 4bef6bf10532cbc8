"""
Tests for the concurrent class registry.
"""

import threading

import pytest

from classfinder.core.registry import ClassRegistry, ShardedLock
from classfinder.core.types import ClassInfo


class TestShardedLock:
    """Tests for ShardedLock."""

    def test_same_key_same_lock(self):
        locks = ShardedLock(8)
        assert locks.get_lock("a.B") is locks.get_lock("a.B")

    def test_non_positive_shard_count(self):
        assert ShardedLock(0).shard_count == 1


class TestClassRegistry:
    """Tests for ClassRegistry."""

    def test_put_and_lookup(self):
        registry = ClassRegistry()
        assert registry.put(ClassInfo(name="a.B")) is None
        assert registry["a.B"].name == "a.B"
        assert "a.B" in registry
        assert registry.get("a.C") is None
        assert len(registry) == 1

    def test_last_write_wins(self):
        """A second record for the same name replaces the first."""
        registry = ClassRegistry()
        first = ClassInfo(name="a.B", superclass_name="a.First")
        second = ClassInfo(name="a.B", superclass_name="a.Second")

        registry.put(first)
        assert registry.put(second) is first
        assert registry["a.B"].superclass_name == "a.Second"
        assert registry.replaced == 1

    def test_iteration_follows_first_insertion(self):
        registry = ClassRegistry()
        for name in ["c.C", "a.A", "b.B", "a.A"]:
            registry.put(ClassInfo(name=name))
        assert list(registry) == ["c.C", "a.A", "b.B"]

    def test_frozen_rejects_writes(self):
        registry = ClassRegistry()
        registry.put_all([ClassInfo(name="a.B")])
        registry.freeze()
        assert registry.frozen
        with pytest.raises(RuntimeError):
            registry.put(ClassInfo(name="a.C"))
        assert "frozen" in repr(registry)

    def test_concurrent_puts(self):
        """Concurrent writers lose no records."""
        registry = ClassRegistry(shard_count=4)

        def writer(prefix):
            for i in range(200):
                registry.put(ClassInfo(name=f"{prefix}.C{i}"))
                registry.put(ClassInfo(name=f"shared.C{i}"))

        threads = [threading.Thread(target=writer, args=(f"p{n}",)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 8 * 200 + 200
        assert registry.replaced == 7 * 200
