"""LRU cache of parsed SyntaxTrees keyed by path and content hash.

The key always includes the SHA-256 of the text. A tree cached under a path
alone would silently go stale as soon as the file changed; storing a new hash
for a path evicts the entries for that path's older content.
"""

import hashlib
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from jsx_change_engine.core.models import Language

if TYPE_CHECKING:
    from jsx_change_engine.parsing.source_parser import SyntaxTree

logger = logging.getLogger(__name__)

CacheKey: TypeAlias = tuple[str, str, str]


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of cache effectiveness."""

    hits: int
    misses: int
    size: int
    max_entries: int

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from the cache (0.0 when unused)."""
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class TreeCache:
    """Thread-safe LRU of SyntaxTrees.

    Example:
        >>> from jsx_change_engine.parsing.source_parser import SourceParser
        >>> cache = TreeCache(max_entries=2)
        >>> parser = SourceParser(cache=cache)
        >>> _ = parser.parse("const a = 1;", path="a.ts")
        >>> _ = parser.parse("const a = 1;", path="a.ts")
        >>> cache.get_stats().hits
        1
    """

    def __init__(self, max_entries: int = 128) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[CacheKey, "SyntaxTree"] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(path: str, language: Language, text: str) -> CacheKey:
        """Build the (path, language, content hash) key."""
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return (path, language.value, digest)

    def get(self, path: str, language: Language, text: str) -> "SyntaxTree | None":
        """Return the cached tree for exactly this content, if present."""
        key = self.make_key(path, language, text)
        with self._lock:
            tree = self._entries.get(key)
            if tree is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return tree

    def put(self, path: str, language: Language, text: str, tree: "SyntaxTree") -> None:
        """Store ``tree`` and evict entries for older content of the same path."""
        key = self.make_key(path, language, text)
        with self._lock:
            stale = [k for k in self._entries if k[0] == path and k[1] == key[1] and k != key]
            for old in stale:
                del self._entries[old]
            if stale:
                logger.debug(f"Invalidated {len(stale)} cached tree(s) for {path}")
            self._entries[key] = tree
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, path: str) -> int:
        """Drop every entry for ``path``; returns the number removed."""
        with self._lock:
            keys = [k for k in self._entries if k[0] == path]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> CacheStats:
        """Return current hit/miss counters."""
        with self._lock:
            return CacheStats(self._hits, self._misses, len(self._entries), self.max_entries)
