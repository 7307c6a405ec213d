# =============================================================================
# core/cache.py  -  Cache Pool (LRU + time-based expiry)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   A CachePool is a pure key -> value store.  It does not know what produced
#   its values and never touches the network or disk.
#
# EXPIRY:
#   An entry is visible while  now - inserted_at < ttl.  Reading an entry does
#   NOT extend its life (no sliding expiry).  Expired entries count as absent
#   and are dropped the next time they are looked up or evicted.
#
# EVICTION:
#   Every get() hit and every set() moves the key to the most-recently-used
#   end.  When a set() pushes the pool past max_entries, expired entries go
#   first, then the least-recently-used one.
#
# OWNERSHIP:
#   CachePools holds exactly two pools, one per provider family.  It is built
#   once at startup and passed explicitly to the Dispatcher and the Resource
#   Reader; there is no module-level cache.
#
# CONCURRENCY:
#   No locking.  All access happens on one asyncio event loop, and no pool
#   operation awaits.  A multi-threaded host would need one lock per pool
#   (LRU order is shared state), not per entry.
# =============================================================================

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    inserted_at: float


class CachePool:
    """A bounded LRU store whose entries expire a fixed time after insertion."""

    def __init__(
        self,
        name: str,
        max_entries: int,
        ttl_s: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl_s <= 0:
            raise ValueError("ttl_s must be positive")
        self.name = name
        self.max_entries = max_entries
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at >= self.ttl_s

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for `key`, or None.  A hit counts as a touch."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.value

    def peek(self, key: str) -> Optional[Any]:
        """Like get(), but leaves LRU order and expired entries untouched."""
        entry = self._entries.get(key)
        if entry is None or self._expired(entry, self._clock()):
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """Insert or overwrite `key`; the TTL restarts from now."""
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())
        self._entries.move_to_end(key)
        if len(self._entries) > self.max_entries:
            self._evict()

    def _evict(self) -> None:
        now = self._clock()
        for key in [k for k, e in self._entries.items() if self._expired(e, now)]:
            del self._entries[key]
        while len(self._entries) > self.max_entries:
            key, _ = self._entries.popitem(last=False)
            logger.debug("%s cache evicted %s", self.name, key)

    def keys(self) -> list[str]:
        """Live keys, least-recently-used first."""
        now = self._clock()
        return [k for k, e in self._entries.items() if not self._expired(e, now)]

    def __contains__(self, key: str) -> bool:
        return self.peek(key) is not None

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for e in self._entries.values() if not self._expired(e, now))

    def __repr__(self) -> str:
        return f"CachePool(name={self.name!r}, max_entries={self.max_entries}, ttl_s={self.ttl_s})"


class CachePools:
    """The two provider-family pools.  Keyspaces never overlap."""

    def __init__(self, search: CachePool, encyclopedia: CachePool):
        self.search = search
        self.encyclopedia = encyclopedia

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> "CachePools":
        return cls(
            search=CachePool(
                "search", settings.search_cache_max, settings.search_cache_ttl_s, clock
            ),
            encyclopedia=CachePool(
                "encyclopedia", settings.wikipedia_cache_max, settings.wikipedia_cache_ttl_s, clock
            ),
        )
