"""
Compiled-expression cache for the query facade.

The cache is process-wide and read-mostly. Lookups take no lock. A miss
compiles outside any lock and then publishes the result, so two threads
racing on the same expression may both compile it; the last write wins.
Only inserts (and the eviction they trigger) are serialized.
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


class ExpressionCache:
    """
    Bounded mapping of cache key -> compiled expression.

    Entries are evicted oldest-inserted first once ``max_entries`` is
    exceeded. Plain dict operations are atomic under the interpreter lock,
    which is what makes the lock-free lookup safe.
    """

    def __init__(self, max_entries: int = 50):
        """
        Initialize an empty cache.

        Args:
            max_entries: Maximum number of compiled expressions kept
        """
        self.max_entries = max_entries
        self._entries: Dict[Hashable, Any] = {}
        self._write_lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get(self, key: Hashable) -> Optional[Any]:
        """
        Get a cached entry.

        Args:
            key: Cache key

        Returns:
            Cached entry or None if not found
        """
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def put(self, key: Hashable, entry: Any) -> None:
        """
        Publish an entry, evicting the oldest ones if over the limit.

        Args:
            key: Cache key
            entry: Compiled expression to store
        """
        with self._write_lock:
            self._entries[key] = entry
            while len(self._entries) > max(self.max_entries, 0):
                oldest_key = next(iter(self._entries))
                self._entries.pop(oldest_key, None)
                logger.debug("Evicted compiled expression %r", oldest_key)

    def get_or_compile(self, key: Hashable, compile_fn: Callable[[], Any]) -> Any:
        """
        Return the cached entry for ``key``, compiling it on a miss.

        Errors raised by ``compile_fn`` propagate and nothing is cached.

        Args:
            key: Cache key
            compile_fn: Zero-argument callable producing the entry

        Returns:
            The cached or freshly compiled entry
        """
        entry = self.get(key)
        if entry is not None:
            logger.debug("Expression cache hit for %r", key)
            return entry
        logger.debug("Expression cache miss for %r", key)
        entry = compile_fn()
        self.put(key, entry)
        return entry

    def clear(self) -> None:
        """Clear all cache entries and statistics."""
        with self._write_lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache metrics
        """
        stats = {
            'entries': len(self._entries),
            'max_entries': self.max_entries,
            'hits': self.hits,
            'misses': self.misses,
        }

        total_attempts = self.hits + self.misses
        if total_attempts > 0:
            stats['hit_rate'] = self.hits / total_attempts

        return stats
