"""Resolve parsed virtual paths to filesystem entries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docstorefs.kernel.domain.document import document_identifier
from docstorefs.kernel.domain.entries import CollectionEntry, DatabaseEntry, DocumentEntry, FSEntry
from docstorefs.kernel.logging import get_logger

if TYPE_CHECKING:
    from docstorefs.kernel.paths import ParsedPath
    from docstorefs.kernel.ports.document_store import DocumentStore

logger = get_logger(__name__)


class EntryResolver:
    """Turns a :class:`ParsedPath` into an :data:`FSEntry`.

    Databases and collections are synthesised without asking the store:
    a database only exists while it holds collections, so existence is
    established by listing, not by probing. Documents need a point lookup
    matching either the ``name`` field or the store identifier.

    Results are never cached here; the directory cache only tracks
    identifier existence and lives in the adapter.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self.lookups = 0

    async def aresolve(self, parsed: ParsedPath) -> FSEntry | None:
        """Return the entry for *parsed*, or None when the document is absent.

        Raises
        ------
        StoreIOError
            If the document lookup fails.
        """
        match parsed.depth:
            case 0:
                return DatabaseEntry(name="")
            case 1:
                return DatabaseEntry(name=parsed.database)
            case 2:
                return CollectionEntry(name=parsed.collection)

        self.lookups += 1
        record = await self._store.afind_one(parsed.database, parsed.collection, parsed.document)
        if record is None:
            logger.debug("No document {key}/{doc}", key=parsed.collection_key, doc=parsed.document)
            return None
        return DocumentEntry(identifier=document_identifier(record), record=record)


__all__ = ["EntryResolver"]
