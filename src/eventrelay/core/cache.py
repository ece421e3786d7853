# src/eventrelay/core/cache.py
from __future__ import annotations

from typing import Dict, List, Tuple, Union

from eventrelay.core.listeners import Registration
from eventrelay.core.naming import is_wildcard, wildcard_of
from eventrelay.core.registry import ListenerRegistry

# exact slots keep their int; wildcard slots merged under another name
# are keyed (pattern, slot) so both key spaces coexist
SlotKey = Union[int, Tuple[str, int]]
Snapshot = Dict[SlotKey, Registration]


class ResolutionCache:
    """Per-name merged snapshots of exact + matching wildcard registrations.

    Snapshots hold registrations, never resolved callables, so reading the
    cache has no side effects. Entries are dropped eagerly on every
    mutation of a bucket they were built from.
    """

    def __init__(self, registry: ListenerRegistry):
        self._registry = registry
        self._entries: Dict[str, Snapshot] = {}

    def build(self, name: str) -> Snapshot:
        snap: Snapshot = {}
        exact = self._registry.exact_bucket(name)
        if exact is not None:
            for slot, reg in exact.items():
                snap[slot] = reg
        pattern = wildcard_of(name)
        wild = self._registry.wildcard_bucket(pattern)
        if wild is not None:
            for slot, reg in wild.items():
                snap[slot if pattern == name else (pattern, slot)] = reg
        self._entries[name] = snap
        return snap

    def get(self, name: str) -> Snapshot:
        snap = self._entries.get(name)
        if snap is None:
            snap = self.build(name)
        return snap

    def invalidate(self, name: str) -> None:
        self._entries.pop(name, None)
        if is_wildcard(name):
            for key in [k for k in self._entries if wildcard_of(k) == name]:
                del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
