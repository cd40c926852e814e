"""LRU cache for scan results.

Scanning is a pure function of the template text, so results can be shared
between callers. The cache is keyed by template text and source label.
"""

import threading
from collections import OrderedDict
from typing import Final, Optional, Union

from mypy_extensions import mypyc_attr

from pg_named_args.diagnostics import Template
from pg_named_args.scanner import ScanResult, scan
from pg_named_args.utils.logging import get_logger

__all__ = ("CacheStats", "ScanCache", "clear_scan_cache", "get_scan_cache")

logger = get_logger("pg_named_args.cache")

DEFAULT_MAX_SIZE: Final = 512


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheStats:
    """Hit, miss and eviction counters."""

    __slots__ = ("evictions", "hits", "misses")

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __repr__(self) -> str:
        return (
            f"CacheStats(hit_rate={self.hit_rate:.1f}%, "
            f"hits={self.hits}, misses={self.misses}, evictions={self.evictions})"
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class ScanCache:
    """Thread-safe LRU cache of :class:`~pg_named_args.scanner.ScanResult`.

    Args:
        max_size: Maximum number of templates kept. ``0`` disables storage.
    """

    __slots__ = ("_entries", "_lock", "_max_size", "_stats")

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        self._entries: OrderedDict[Template, ScanResult] = OrderedDict()
        self._lock = threading.Lock()
        self._max_size = max_size
        self._stats = CacheStats()

    @property
    def max_size(self) -> int:
        return self._max_size

    def resize(self, max_size: int) -> None:
        with self._lock:
            self._max_size = max_size
            self._evict()

    def get(self, template: Template) -> Optional[ScanResult]:
        with self._lock:
            result = self._entries.get(template)
            if result is None:
                self._stats.misses += 1
                return None
            self._entries.move_to_end(template)
            self._stats.hits += 1
            return result

    def put(self, template: Template, result: ScanResult) -> None:
        with self._lock:
            self._entries[template] = result
            self._entries.move_to_end(template)
            self._evict()

    def scan(self, template: Union[str, Template]) -> ScanResult:
        """Return the cached scan of ``template``, scanning it on a miss."""
        if isinstance(template, str):
            template = Template(template)
        result = self.get(template)
        if result is None:
            result = scan(template)
            self.put(template, result)
        return result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._stats.reset()

    def get_stats(self) -> CacheStats:
        return self._stats

    def _evict(self) -> None:
        while self._entries and len(self._entries) > self._max_size:
            self._entries.popitem(last=False)
            self._stats.evictions += 1

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, template: Template) -> bool:
        return template in self._entries


_scan_cache: Optional[ScanCache] = None
_cache_lock = threading.Lock()


def get_scan_cache() -> ScanCache:
    """Get the process-wide scan cache.

    Returns:
        Singleton scan cache instance
    """
    global _scan_cache
    if _scan_cache is None:
        with _cache_lock:
            if _scan_cache is None:
                _scan_cache = ScanCache()
    return _scan_cache


def clear_scan_cache() -> None:
    if _scan_cache is not None:
        _scan_cache.clear()
        logger.debug("Scan cache cleared")
