"""Short-lived price cache for catalogue lookups.

One instance is owned by the service that places orders; it is never a
module-level singleton. Entries expire after ``ttl_seconds`` and the oldest
entry is evicted once ``max_entries`` is reached.

The cache only absorbs repeated lookups; the stock ledger stays the
authority for stock and the price resolved for an order is frozen on its
line items.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class PriceCacheEntry:
    price: float
    cached_at: float


class PriceCache:
    def __init__(
        self,
        ttl_seconds: float = 30.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, PriceCacheEntry] = {}
        # Guards dict structure only; concurrent requests may still read a
        # price that another request is about to refresh.
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, product_id: str) -> float | None:
        with self._lock:
            entry = self._entries.get(product_id)
            if entry is None:
                return None
            if self._clock() - entry.cached_at > self._ttl:
                del self._entries[product_id]
                return None
            return entry.price

    def set(self, product_id: str, price: float) -> None:
        with self._lock:
            self._entries[product_id] = PriceCacheEntry(price=price, cached_at=self._clock())
            if len(self._entries) > self._max_entries:
                oldest = min(self._entries, key=lambda key: self._entries[key].cached_at)
                del self._entries[oldest]

    def invalidate(self, product_id: str) -> bool:
        with self._lock:
            return self._entries.pop(product_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
