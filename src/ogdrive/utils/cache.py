"""
Bounded read-through cache used by the metadata store.

Listings are cached per ``(identity, parent_id)`` and dropped by key
pattern when a write touches them.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Callable, Generic, Hashable, List, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """
    Size-bounded mapping that evicts the least recently read or written key.

    Example:
        >>> listings: LRUCache[tuple, list] = LRUCache(max_size=256)
        >>> listings.set(("0xabc", None), [])
        >>> listings.get(("0xabc", None))
        []
        >>> listings.hits, listings.misses
        (1, 0)
    """

    def __init__(self, max_size: int = 1000) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[K, V] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: K) -> Optional[V]:
        """Cached value (marking it most recent), or None on a miss."""
        if key not in self._entries:
            self.misses += 1
            return None
        self.hits += 1
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, key: K, value: V) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def pop(self, key: K) -> bool:
        """Drop ``key``; returns whether it was cached."""
        return self._entries.pop(key, _MISSING) is not _MISSING

    def delete_where(self, predicate: Callable[[K], bool]) -> int:
        """
        Drop every key matching ``predicate``.

        Returns:
            Number of keys dropped
        """
        stale = [key for key in self._entries if predicate(key)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[K]:
        """Keys from least to most recently used."""
        return list(self._entries)


_MISSING = object()
