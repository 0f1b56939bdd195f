# ofertai/storage/dedup_cache.py

"""In-memory record of listings already delivered to each destination."""

import logging
from collections import OrderedDict
from typing import Protocol

from ofertai.config.settings import Settings

logger = logging.getLogger("ofertai.cache")


class DedupStore(Protocol):
    """Storage interface for delivered dedup keys."""

    def contains(self, key: str) -> bool: ...

    def record(self, key: str) -> None: ...

    def maybe_evict(self) -> int: ...

    def __len__(self) -> int: ...


class InMemoryDedupCache:
    """Soft-bounded, ordered set of ``destination:listing`` keys.

    The bound is soft: the cache may grow past ``max_entries``
    until :meth:`maybe_evict` runs, which then drops the
    ``evict_count`` keys at the front of the order.

    With the ``"recency"`` policy a :meth:`contains` hit moves the key
    to the back, so the front holds the least recently seen keys.
    With ``"insertion"`` the order is first-recorded order.
    """

    def __init__(
        self,
        max_entries: int | None = None,
        evict_count: int | None = None,
        policy: str | None = None,
    ) -> None:
        self.max_entries = max_entries or Settings.DEDUP_MAX_ENTRIES
        self.evict_count = evict_count or Settings.DEDUP_EVICT_COUNT
        self.policy = policy or Settings.DEDUP_EVICTION
        if self.policy not in Settings.DEDUP_POLICIES:
            raise ValueError(f"Unknown eviction policy: {self.policy!r}")
        self._keys: OrderedDict[str, None] = OrderedDict()

    def __len__(self) -> int:
        return len(self._keys)

    def contains(self, key: str) -> bool:
        """Return True if *key* was recorded and not yet evicted."""
        if key not in self._keys:
            return False
        if self.policy == "recency":
            self._keys.move_to_end(key)
        return True

    def record(self, key: str) -> None:
        """Mark *key* as delivered."""
        self._keys[key] = None
        if self.policy == "recency":
            self._keys.move_to_end(key)

    def maybe_evict(self) -> int:
        """Drop the oldest keys once the bound is exceeded.

        Returns the number of keys removed.
        """
        if len(self._keys) <= self.max_entries:
            return 0
        count = min(self.evict_count, len(self._keys))
        for _ in range(count):
            self._keys.popitem(last=False)
        logger.info(
            "Evicted %d dedup keys (%d remain, policy=%s)",
            count,
            len(self._keys),
            self.policy,
        )
        return count
