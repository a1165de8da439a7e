"""
Pixel Buffer Cache
Batch-scoped LRU of decoded source pages, keyed by a caller-supplied image key
"""
import threading
from collections import OrderedDict
from typing import Callable, Dict, Hashable, Optional
import logging

import numpy as np

from ..config import settings

logger = logging.getLogger(__name__)

ImageLoader = Callable[[Hashable], np.ndarray]


class PixelBufferCache:
    """
    Compute-once store of decoded pixel buffers.

    Stored buffers are treated as read-only after population so concurrent readers
    can share them. Call clear() at batch boundaries.
    """

    def __init__(self, max_entries: Optional[int] = None):
        """
        Args:
            max_entries: Maximum number of pages kept (defaults to settings)
        """
        self.max_entries = max_entries or settings.PIXEL_CACHE_MAX_ENTRIES
        self._entries: "OrderedDict[Hashable, np.ndarray]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = {
            'hits': 0,
            'misses': 0,
            'evictions': 0,
        }

    def get(self, key: Hashable) -> Optional[np.ndarray]:
        """Get a cached buffer, or None"""
        with self._lock:
            if key not in self._entries:
                self._stats['misses'] += 1
                return None
            self._entries.move_to_end(key)
            self._stats['hits'] += 1
            return self._entries[key]

    def put(self, key: Hashable, pixels: np.ndarray) -> np.ndarray:
        """Store a buffer (first writer wins) and return the stored one"""
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                return self._entries[key]

            self._entries[key] = pixels

            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._stats['evictions'] += 1
                logger.debug(f"Evicted pixel buffer: {evicted}")
            return pixels

    def get_or_load(self, key: Hashable, loader: ImageLoader) -> np.ndarray:
        """
        Return the buffer for key, decoding it with loader on first use.

        The decode runs outside the lock; if two callers race, the first
        stored buffer is returned to both.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        pixels = loader(key)
        return self.put(key, pixels)

    def invalidate(self, key: Hashable) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"Pixel cache cleared ({count} entries)")

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            stats = dict(self._stats)
            stats['size'] = len(self._entries)
            return stats
