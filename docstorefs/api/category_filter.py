"""Category and dismiss filters over a materialized collection listing.

A UI holds a :class:`FolderListing` for the collection it shows. The
:class:`CategoryFilterCoordinator` hides categorized or dismissed documents
from that listing using the metadata the adapter cached during the last
``areaddir``, so toggling a filter on does not cost a relist. Turning a
filter off always relists, since categories may have changed while hidden.

Usage::

    fs = DocumentStoreFileSystem(store=InMemoryDocumentStore(sample=True))
    listing = FolderListing(fs, "/sampleDB/products")
    await listing.arefresh()

    coordinator = CategoryFilterCoordinator(fs, listing)
    await coordinator.atoggle_hide_categorized()      # hides laptop, book, ...
    await coordinator.aset_category(["book.json"], "Paper, Fiction")
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from docstorefs.kernel.domain.document import DocumentMeta, category_labels
from docstorefs.kernel.domain.entries import DocumentEntry
from docstorefs.kernel.exceptions import InvalidArgumentError, NotFoundError
from docstorefs.kernel.logging import get_logger
from docstorefs.kernel.paths import DOCUMENT_SUFFIX, parse_path

if TYPE_CHECKING:
    from collections.abc import Iterable

    from docstorefs.drivers.vfs.docstore_fs import DocumentStoreFileSystem
    from docstorefs.kernel.domain.entries import Stats

logger = get_logger(__name__)


def entry_identifier(entry: str) -> str:
    """Document identifier of a listing entry (``john_doe.json`` → ``john_doe``)."""
    return entry.removesuffix(DOCUMENT_SUFFIX)


class FolderListing:
    """Listing of one directory as the UI holds it.

    ``files`` maps entry names to their stats (``None`` when the entry
    vanished between listing and stat). ``refresh_count`` counts full
    refreshes.
    """

    def __init__(self, fs: DocumentStoreFileSystem, path: str) -> None:
        self.fs = fs
        self.path = "/" + path.strip("/")
        self.files: dict[str, Stats | None] = {}
        self.refresh_count = 0

    def entry_path(self, entry: str) -> str:
        return f"{self.path.rstrip('/')}/{entry}"

    async def _astat_or_none(self, entry: str) -> Stats | None:
        try:
            return await self.fs.astat(self.entry_path(entry))
        except NotFoundError:
            return None

    async def arefresh(self) -> dict[str, Stats | None]:
        """Relist the directory and stat every entry."""
        names = await self.fs.areaddir(self.path)
        stats = await asyncio.gather(*(self._astat_or_none(name) for name in names))
        self.files = dict(zip(names, stats, strict=True))
        self.refresh_count += 1
        logger.debug("Refreshed {path}: {count} entries", path=self.path, count=len(self.files))
        return self.files

    def hide(self, identifiers: Iterable[str]) -> None:
        """Drop entries whose document identifier is in *identifiers*."""
        hidden = set(identifiers)
        self.files = {
            name: stats
            for name, stats in self.files.items()
            if entry_identifier(name) not in hidden
        }

    def __contains__(self, entry: object) -> bool:
        return entry in self.files

    def __len__(self) -> int:
        return len(self.files)


class CategoryFilterCoordinator:
    """Client-side category/dismiss filtering plus bulk metadata patches.

    The toggles are mirrored onto the adapter's ``hide_categorized`` /
    ``hide_dismissed`` flags, so any refresh issued while a filter is on
    also asks the store to leave those documents out.

    Raises
    ------
    InvalidArgumentError
        If the listing is not a collection listing.
    """

    def __init__(self, fs: DocumentStoreFileSystem, listing: FolderListing) -> None:
        parsed = parse_path(listing.path)
        if parsed.depth != 2:
            raise InvalidArgumentError(listing.path, "category filters apply to collections only")
        self.fs = fs
        self.listing = listing
        self._database: str = parsed.database
        self._collection: str = parsed.collection
        self.snapshot: dict[str, Stats | None] | None = None
        self.dismissed_snapshot: dict[str, Stats | None] | None = None

    @property
    def hide_categorized(self) -> bool:
        return self.fs.hide_categorized

    @property
    def hide_dismissed(self) -> bool:
        return self.fs.hide_dismissed

    async def atoggle_hide_categorized(self) -> bool:
        """Flip the categorized filter and return its new state."""
        enabled = not self.fs.hide_categorized
        self.fs.hide_categorized = enabled
        if not enabled:
            self.snapshot = None
            await self.listing.arefresh()
            return False

        self.snapshot = dict(self.listing.files)
        categorized = self.fs.cached_categorized_names(self._database, self._collection)
        if categorized is None:
            logger.debug("No cached categories for {path}; refreshing", path=self.listing.path)
            await self.listing.arefresh()
        else:
            self.listing.hide(categorized)
        return True

    async def atoggle_hide_dismissed(self) -> bool:
        """Flip the dismissed filter and return its new state."""
        enabled = not self.fs.hide_dismissed
        self.fs.hide_dismissed = enabled
        if not enabled:
            self.dismissed_snapshot = None
            await self.listing.arefresh()
            return False

        self.dismissed_snapshot = dict(self.listing.files)
        dismissed = self.fs.cached_dismissed_names(self._database, self._collection)
        if dismissed is None:
            logger.debug("No cached dismiss flags for {path}; refreshing", path=self.listing.path)
            await self.listing.arefresh()
        else:
            self.listing.hide(dismissed)
        return True

    def _cached_category(self, entry: str) -> str | None:
        return self.fs.cached_document_category(
            self._database, self._collection, entry_identifier(entry)
        )

    def suggest_category(self, entries: Iterable[str]) -> str:
        """Pre-fill value for a category prompt.

        The first entry's category when every entry shares it
        (case-insensitively), otherwise an empty string.
        """
        categories = [self._cached_category(entry) for entry in entries]
        if not categories or categories[0] is None:
            return ""
        first = categories[0]
        if all(c is not None and c.lower() == first.lower() for c in categories):
            return first
        return ""

    async def _apatch_all(self, patches: dict[str, dict[str, object]]) -> list[str]:
        entries = list(patches)
        results = await asyncio.gather(
            *(
                self.fs.apatch_document(self.listing.entry_path(entry), patches[entry])
                for entry in entries
            ),
            return_exceptions=True,
        )
        patched: list[str] = []
        for entry, result in zip(entries, results, strict=True):
            if isinstance(result, Exception):
                logger.warning("Failed to patch {entry}: {error}", entry=entry, error=result)
            else:
                patched.append(entry)
        return patched

    async def _acurrent_category(self, entry: str) -> str | None:
        """Category of *entry* from the listing cache, or from the store on a miss."""
        metadata = self.fs.cache.get_metadata(self._database, self._collection)
        identifier = entry_identifier(entry)
        if metadata is not None and identifier in metadata:
            return metadata[identifier].category

        logger.debug("Category of {entry} not cached; reading the document", entry=entry)
        match await self.fs.resolver.aresolve(parse_path(self.listing.entry_path(entry))):
            case DocumentEntry(record=record):
                return DocumentMeta.from_record(record).category
            case _:
                return None

    async def _acategory_patch(self, entry: str, labels: list[str]) -> dict[str, object] | None:
        existing = category_labels(await self._acurrent_category(entry))
        additions = [label for label in labels if label not in existing]
        if not additions:
            return None
        return {"category": ", ".join([*existing, *additions])}

    async def aset_category(self, entries: Iterable[str], raw: str) -> list[str]:
        """Merge comma-separated labels into each entry's category.

        Labels are lowercased, trimmed and deduplicated against the
        entry's current category, taken from the listing cache or read
        from the store when the cache has expired. Only entries that gain
        a label are patched.

        Returns
        -------
        list[str]
            Entries whose patch succeeded.
        """
        labels = list(dict.fromkeys(category_labels(raw)))
        if not labels:
            return []

        selected = list(dict.fromkeys(entries))
        results = await asyncio.gather(
            *(self._acategory_patch(entry, labels) for entry in selected),
            return_exceptions=True,
        )
        patches: dict[str, dict[str, object]] = {}
        for entry, result in zip(selected, results, strict=True):
            if isinstance(result, Exception):
                logger.warning("Failed to read {entry}: {error}", entry=entry, error=result)
            elif result is not None:
                patches[entry] = result

        return await self._apatch_all(patches)

    async def adismiss(self, entries: Iterable[str]) -> list[str]:
        """Flag entries as dismissed.

        While the dismissed filter is on, the entries leave the listing
        right away without waiting for the patches.
        """
        selected = list(dict.fromkeys(entries))
        if self.fs.hide_dismissed:
            self.listing.hide(entry_identifier(entry) for entry in selected)
        return await self._apatch_all({entry: {"dismissed": True} for entry in selected})


__all__ = ["CategoryFilterCoordinator", "FolderListing", "entry_identifier"]
