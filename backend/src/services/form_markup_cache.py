"""
Cache of rendered form markup keyed by (form definition id, language).

Entries expire after a TTL and the least recently used entry is evicted
when the cache is full. Services that change a definition's schema,
layout, mappings or translations invalidate the affected entries.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

from core.config import FORM_MARKUP_CACHE_MAX_ENTRIES, FORM_MARKUP_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

CacheKey = Tuple[int, str]


class FormMarkupCache:
    """Thread-safe LRU cache with per-entry expiry."""

    def __init__(
        self,
        max_entries: int = FORM_MARKUP_CACHE_MAX_ENTRIES,
        ttl_seconds: int = FORM_MARKUP_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, Tuple[float, str]]" = OrderedDict()
        # Bumped by every invalidation of a form; clear() bumps the epoch
        self._generations: Dict[int, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def get(self, form_id: int, language: str) -> Optional[str]:
        key = (form_id, language)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, markup = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return markup

    def put(self, form_id: int, language: str, markup: str) -> None:
        with self._lock:
            self._store((form_id, language), markup)

    def _store(self, key: CacheKey, markup: str) -> None:
        # Caller holds the lock
        self._entries[key] = (self._clock(), markup)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def _generation(self, form_id: int) -> Tuple[int, int]:
        return self._epoch, self._generations.get(form_id, 0)

    def get_or_render(self, form_id: int, language: str, render: Callable[[], str]) -> str:
        """
        Return cached markup, rendering and storing it on a miss.

        Rendering runs outside the lock. When the form is invalidated while
        it renders, the result is returned but not stored.
        """
        cached = self.get(form_id, language)
        if cached is not None:
            return cached
        with self._lock:
            generation = self._generation(form_id)
        markup = render()
        with self._lock:
            stored = self._generation(form_id) == generation
            if stored:
                self._store((form_id, language), markup)
        if not stored:
            logger.debug(f"Form {form_id} changed while rendering, markup not cached")
        return markup

    def invalidate(self, form_id: int, language: Optional[str] = None) -> None:
        """Drop the entry for one language, or for every language when none is given."""
        with self._lock:
            self._generations[form_id] = self._generations.get(form_id, 0) + 1
            if language is not None:
                self._entries.pop((form_id, language), None)
            else:
                for key in [k for k in self._entries if k[0] == form_id]:
                    del self._entries[key]
        logger.debug(f"Invalidated markup cache for form {form_id} ({language or 'all languages'})")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Process-wide instance used by the services
form_markup_cache = FormMarkupCache()
