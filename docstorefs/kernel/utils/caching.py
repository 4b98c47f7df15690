"""Directory cache for collection listings.

Holds, per ``database/collection``, the set of document identifiers seen by
the last listing together with their category/dismissed metadata. Entries
expire after a fixed TTL and are evicted lazily on the next read.

Examples
--------
::

    cache = DirectoryCache()
    cache.set("sampleDB", "users", ["john_doe", "jane_smith"])
    "john_doe" in cache.get("sampleDB", "users")   # True
    cache.invalidate("sampleDB")                     # every sampleDB/* entry
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from docstorefs.kernel.domain.document import DocumentMeta

COLLECTION_CACHE_TTL_MS = 5000


def collection_cache_key(database: str, collection: str) -> str:
    return f"{database}/{collection}"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Identifiers (and their metadata) of one collection at ``cached_at``."""

    collection_key: str
    identifiers: frozenset[str]
    cached_at: float
    metadata: Mapping[str, DocumentMeta] = field(default_factory=dict)


class DirectoryCache:
    """TTL-bounded map of ``database/collection`` to document identifiers.

    Not locked: writes are last-writer-wins, which is all the adapter
    needs since every entry is independently keyed.

    Parameters
    ----------
    ttl_ms : int
        Maximum entry age in milliseconds (default 5000).
    clock : Callable[[], float]
        Monotonic clock returning seconds; injectable for tests.
    """

    __slots__ = ("_clock", "_entries", "_ttl_seconds")

    def __init__(
        self,
        ttl_ms: int = COLLECTION_CACHE_TTL_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_ms / 1000
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def _fresh_entry(self, database: str, collection: str) -> CacheEntry | None:
        key = collection_cache_key(database, collection)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.cached_at > self._ttl_seconds:
            del self._entries[key]
            return None
        return entry

    def get(self, database: str, collection: str) -> frozenset[str] | None:
        """Return the cached identifiers, or None when absent or expired.

        An expired entry is removed as a side effect.
        """
        entry = self._fresh_entry(database, collection)
        return entry.identifiers if entry is not None else None

    def get_metadata(self, database: str, collection: str) -> Mapping[str, DocumentMeta] | None:
        """Return the cached identifier → metadata map, or None when absent or expired."""
        entry = self._fresh_entry(database, collection)
        return entry.metadata if entry is not None else None

    def set(
        self,
        database: str,
        collection: str,
        identifiers: Iterable[str],
        metadata: Mapping[str, DocumentMeta] | None = None,
    ) -> None:
        """Store identifiers for a collection with a fresh timestamp."""
        key = collection_cache_key(database, collection)
        self._entries[key] = CacheEntry(
            collection_key=key,
            identifiers=frozenset(identifiers),
            cached_at=self._clock(),
            metadata=dict(metadata or {}),
        )

    def invalidate(self, database: str | None = None, collection: str | None = None) -> None:
        """Drop one collection, every collection of a database, or everything.

        Parameters
        ----------
        database : str | None
            Restrict to this database. ``None`` clears the whole cache.
        collection : str | None
            With ``database``, drop exactly this collection.
        """
        if database is not None and collection is not None:
            self._entries.pop(collection_cache_key(database, collection), None)
            return

        if database is not None:
            prefix = f"{database}/"
            for key in [key for key in self._entries if key.startswith(prefix)]:
                del self._entries[key]
            return

        self._entries.clear()

    def clear(self) -> None:
        """Remove all cached entries."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, collection_key: object) -> bool:
        return collection_key in self._entries


__all__ = [
    "COLLECTION_CACHE_TTL_MS",
    "CacheEntry",
    "DirectoryCache",
    "collection_cache_key",
]
