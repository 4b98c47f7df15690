"""DocumentStore port: the remote store behind the filesystem adapter.

The store is organised as database → collection → document and has no
directory concept of its own. Drivers talk to it over whatever transport
they like; the adapter only relies on this protocol.

Drivers
-------
- ``ProxyDocumentStore``: HTTP proxy in front of the database.
- ``InMemoryDocumentStore``: in-process store for tests and demos.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol, runtime_checkable

DocumentFilter = dict[str, Any]


@runtime_checkable
class DocumentStore(Protocol):
    """Asynchronous access to a multi-database document store.

    Every failure other than "no such document" is raised as
    :class:`~docstorefs.kernel.exceptions.StoreIOError`.
    """

    @abstractmethod
    async def alist_databases(self) -> list[str]:
        """Names of the databases visible to this connection."""
        ...

    @abstractmethod
    async def alist_collections(self, database: str) -> list[str]:
        """Names of the collections of *database*."""
        ...

    @abstractmethod
    async def afind(
        self,
        database: str,
        collection: str,
        *,
        meta_only: bool = False,
        filter: DocumentFilter | None = None,
    ) -> list[dict[str, Any]]:
        """Documents of a collection sorted by ``name``.

        Args
        ----
            meta_only: Project to ``_id``, ``name``, ``category`` and
                ``dismissed`` only.
            filter: Store-side query filter.
        """
        ...

    @abstractmethod
    async def afind_one(
        self, database: str, collection: str, identifier: str
    ) -> dict[str, Any] | None:
        """The document whose ``name`` or ``_id`` equals *identifier*, or None."""
        ...

    @abstractmethod
    async def areplace_one(
        self,
        database: str,
        collection: str,
        filter: DocumentFilter,
        record: dict[str, Any],
        *,
        upsert: bool = True,
    ) -> None:
        """Replace the document matching *filter*, inserting it when missing."""
        ...

    @abstractmethod
    async def apatch_one(
        self, database: str, collection: str, identifier: str, updates: dict[str, Any]
    ) -> int:
        """Set fields of a document; ``None`` values unset the field.

        Returns the number of modified documents.
        """
        ...

    @abstractmethod
    async def adelete_one(self, database: str, collection: str, filter: DocumentFilter) -> int:
        """Delete one document matching *filter*; returns the deleted count."""
        ...

    @abstractmethod
    async def aget_images(self, database: str, collection: str, identifier: str) -> list[str]:
        """Resolved image URLs of a document (``images`` then ``oldImages``)."""
        ...

    @abstractmethod
    async def acreate(self, database: str, collection: str | None = None) -> None:
        """Create a collection, or a placeholder collection for a bare database."""
        ...

    @abstractmethod
    async def adrop(self, database: str, collection: str | None = None) -> None:
        """Drop a collection, or the whole database when *collection* is None."""
        ...

    @abstractmethod
    async def aping(self) -> bool:
        """Check connectivity."""
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release transport resources."""
        ...


__all__ = ["DocumentFilter", "DocumentStore"]
