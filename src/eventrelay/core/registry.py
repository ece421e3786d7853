# src/eventrelay/core/registry.py
from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple

from eventrelay.core.listeners import Registration, matches
from eventrelay.core.naming import is_wildcard


class ListenerBucket:
    """Ordered slot -> registration map.

    Slots are handed out 0, 1, 2, ... and never reused while the bucket
    lives; removing a registration leaves a gap.
    """

    def __init__(self) -> None:
        self._slots: Dict[int, Registration] = {}
        self._next = 0

    def append(self, registration: Registration) -> int:
        slot = self._next
        self._slots[slot] = registration
        self._next += 1
        return slot

    def remove_matching(self, listener: Any) -> int:
        doomed = [slot for slot, reg in self._slots.items() if matches(reg, listener)]
        for slot in doomed:
            del self._slots[slot]
        return len(doomed)

    def items(self) -> List[Tuple[int, Registration]]:
        return list(self._slots.items())

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._slots))

    def __len__(self) -> int:
        return len(self._slots)

    def __repr__(self) -> str:
        return f"<ListenerBucket slots={list(self._slots)} next={self._next}>"


class ListenerRegistry:
    """Exact-name buckets and wildcard buckets, both keyed by normalized name."""

    def __init__(self) -> None:
        self.exact: Dict[str, ListenerBucket] = {}
        self.wildcard: Dict[str, ListenerBucket] = {}

    def _store(self, name: str) -> Dict[str, ListenerBucket]:
        return self.wildcard if is_wildcard(name) else self.exact

    def add(self, name: str, registration: Registration) -> int:
        store = self._store(name)
        bucket = store.get(name)
        if bucket is None:
            bucket = store[name] = ListenerBucket()
        return bucket.append(registration)

    def remove(self, name: str, listener: Any) -> int:
        """Remove matching registrations from the bucket of ``name``'s kind."""
        store = self._store(name)
        bucket = store.get(name)
        if bucket is None:
            return 0
        removed = bucket.remove_matching(listener)
        if not bucket:
            del store[name]
        return removed

    def drop(self, name: str) -> bool:
        """Delete both the exact and the wildcard bucket stored under ``name``."""
        a = self.exact.pop(name, None)
        b = self.wildcard.pop(name, None)
        return a is not None or b is not None

    def exact_bucket(self, name: str) -> Optional[ListenerBucket]:
        return self.exact.get(name)

    def wildcard_bucket(self, pattern: Optional[str]) -> Optional[ListenerBucket]:
        if pattern is None:
            return None
        return self.wildcard.get(pattern)

    def size(self, name: str) -> int:
        bucket = self._store(name).get(name)
        return 0 if bucket is None else len(bucket)

    def has(self, name: Optional[str] = None) -> bool:
        if name is None:
            return bool(self.exact) or bool(self.wildcard)
        return bool(self.exact.get(name)) or bool(self.wildcard.get(name))

    def keys(self) -> List[str]:
        return list(self.exact) + list(self.wildcard)
