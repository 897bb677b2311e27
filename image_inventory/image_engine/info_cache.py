"""InfoCache: bounded cache of ImageInfo keyed by path.

Entries are validated against the file's (mtime_ms, size) so a rewritten
file is decoded again. The cache is an explicit object; callers pass it to
``list_images`` / ``get_image_info`` and the in-place transforms.
"""

from __future__ import annotations

import os
from collections import OrderedDict
from threading import RLock
from typing import TYPE_CHECKING

from image_inventory.image_engine.meta_utils import stat_signature
from image_inventory.image_engine.metrics import metrics
from image_inventory.logger import get_logger
from image_inventory.path_utils import cache_key

if TYPE_CHECKING:
    from image_inventory.image_engine.inventory import ImageInfo

_logger = get_logger("info_cache")


class InfoCache:
    def __init__(self, max_entries: int = 2048) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[tuple[int, int], ImageInfo]] = OrderedDict()
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, path: str, stat_result: os.stat_result) -> ImageInfo | None:
        """Return the cached info when it matches ``stat_result``, else None."""
        key = cache_key(path)
        signature = stat_signature(stat_result)
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                metrics.inc("info_cache.miss")
                return None
            cached_sig, info = hit
            if cached_sig != signature:
                _logger.debug("stale entry for %s: %s != %s", key, cached_sig, signature)
                del self._entries[key]
                metrics.inc("info_cache.stale")
                return None
            self._entries.move_to_end(key)
        metrics.inc("info_cache.hit")
        return info

    def put(self, path: str, stat_result: os.stat_result, info: ImageInfo) -> None:
        key = cache_key(path)
        with self._lock:
            self._entries[key] = (stat_signature(stat_result), info)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                _logger.debug("evicted %s", evicted)

    def invalidate(self, path: str) -> None:
        with self._lock:
            self._entries.pop(cache_key(path), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
