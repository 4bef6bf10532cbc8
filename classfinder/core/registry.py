"""Thread-safe class registry shared by ingestion workers."""

import hashlib
import threading
from collections.abc import Mapping
from typing import Dict, Iterator, List, Optional

from .types import ClassInfo


class ShardedLock:
    """Fixed set of locks; each key always maps to the same one."""

    def __init__(self, shard_count: int):
        if shard_count <= 0:
            shard_count = 1
        self._shard_count = shard_count
        self._locks = [threading.Lock() for _ in range(shard_count)]

    def _shard_index(self, key: str) -> int:
        digest = hashlib.sha1(key.encode("utf-8")).digest()
        return digest[0] % self._shard_count

    def get_lock(self, key: str) -> threading.Lock:
        return self._locks[self._shard_index(key)]

    @property
    def shard_count(self) -> int:
        return self._shard_count


class ClassRegistry(Mapping):
    """Mapping from fully-qualified class name to ``ClassInfo``.

    Writers call ``put`` concurrently; each write is atomic for its key and
    the last write for a key wins. Iteration follows first insertion of each
    name. Once ``freeze`` is called the registry is read-only and may be
    read from any thread without locking.
    """

    def __init__(self, shard_count: int = 16):
        self._classes: Dict[str, ClassInfo] = {}
        self._locks = ShardedLock(shard_count)
        # Guards resizing of the underlying dict when a new key is inserted
        self._insert_lock = threading.Lock()
        self._frozen = False
        self.replaced = 0

    def put(self, info: ClassInfo) -> Optional[ClassInfo]:
        """Store a record, replacing any previous record with the same name.

        Returns:
            The record that was replaced, if any
        """
        if self._frozen:
            raise RuntimeError("Registry is frozen; discovery has completed")

        with self._locks.get_lock(info.name):
            previous = self._classes.get(info.name)
            if previous is None:
                with self._insert_lock:
                    self._classes[info.name] = info
            else:
                self._classes[info.name] = info
                with self._insert_lock:
                    self.replaced += 1
        return previous

    def put_all(self, infos: List[ClassInfo]) -> None:
        """Store several records, in order."""
        for info in infos:
            self.put(info)

    def freeze(self) -> "ClassRegistry":
        """Mark the registry read-only and return it."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __getitem__(self, name: str) -> ClassInfo:
        return self._classes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._classes)

    def __len__(self) -> int:
        return len(self._classes)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"ClassRegistry({len(self._classes)} classes, {state})"
