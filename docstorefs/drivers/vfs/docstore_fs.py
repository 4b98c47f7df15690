"""Filesystem adapter exposing a document store as a virtual filesystem.

The store's database → collection → document layout is presented as a
three-level directory tree::

    /                                   databases
    /sampleDB                           collections of sampleDB
    /sampleDB/users                     documents, one ``<id>.json`` each
    /sampleDB/users/john_doe.json       the document as indented JSON

Listing a collection only fetches a metadata projection and remembers the
identifiers it saw in a :class:`DirectoryCache`; ``stat``/``exists`` probes
on those identifiers are then answered without a round trip until the
entry expires or a mutation on the collection invalidates it.

Example
-------
.. code-block:: python

    async with DocumentStoreFileSystem(
        "mongodb://localhost:27017/sampleDB",
        base_url="http://localhost:3000/api/mongodb",
    ) as fs:
        names = await fs.areaddir("/sampleDB/users")
        raw = await fs.aread_file("/sampleDB/users/john_doe.json", encoding="utf-8")
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from typing import TYPE_CHECKING, Any, NoReturn, Self

from docstorefs.drivers.document_store.proxy import ProxyDocumentStore
from docstorefs.drivers.vfs.resolver import EntryResolver
from docstorefs.kernel.config.models import DEFAULT_CONNECTION_HEADER, DEFAULT_CONNECTION_STRING
from docstorefs.kernel.domain.document import (
    NOT_DISMISSED_FILTER,
    UNCATEGORIZED_FILTER,
    DocumentMeta,
    document_identifier,
    serialize_record,
)
from docstorefs.kernel.domain.entries import (
    SIZE_NOT_MATERIALIZED,
    SIZE_UNAVAILABLE,
    DocumentEntry,
    Stats,
)
from docstorefs.kernel.exceptions import (
    DocStoreFSError,
    InvalidArgumentError,
    NotFoundError,
    StoreIOError,
    UnsupportedError,
)
from docstorefs.kernel.logging import get_logger
from docstorefs.kernel.paths import (
    DOCUMENT_SUFFIX,
    ParsedPath,
    database_from_connection_string,
    is_document_path,
    parse_path,
    validate_name,
)
from docstorefs.kernel.utils.caching import COLLECTION_CACHE_TTL_MS, DirectoryCache

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from docstorefs.kernel.config.models import DocStoreFSConfig
    from docstorefs.kernel.ports.document_store import DocumentStore

logger = get_logger(__name__)

HIDE_CATEGORIZED_FILTER = UNCATEGORIZED_FILTER
HIDE_DISMISSED_FILTER = NOT_DISMISSED_FILTER


def _unsupported_sync(operation: str) -> Callable[..., NoReturn]:
    def method(self: DocumentStoreFileSystem, *args: Any, **kwargs: Any) -> NoReturn:
        raise UnsupportedError(
            args[0] if args and isinstance(args[0], str) else "",
            f"{self.name} does not support synchronous operations ({operation})",
        )

    method.__name__ = operation
    return method


def _require_document(path: str, parsed: ParsedPath, reason: str) -> None:
    if parsed.depth != 3 or parsed.too_deep:
        raise InvalidArgumentError(path, reason)


class DocumentStoreFileSystem:
    """Mountable filesystem backed by a document store.

    Parameters
    ----------
    connection_string : str
        Identifies the cluster; forwarded to the store proxy and used to
        infer a database when the store refuses to enumerate databases.
    store : DocumentStore | None
        Store driver to use. When omitted a :class:`ProxyDocumentStore` is
        created on first use and kept for the adapter's lifetime.
    base_url : str
        Proxy base URL for the default store driver.
    timeout : float
        Request timeout in seconds for the default store driver.
    connection_header : str
        Header carrying the connection string for the default store driver.
    cache_ttl_ms : int
        Lifetime of directory cache entries (default 5000 ms).
    clock : Callable[[], float]
        Monotonic clock for the directory cache.

    Attributes
    ----------
    hide_categorized : bool
        Collection listings leave out documents with a non-empty ``category``.
    hide_dismissed : bool
        Collection listings leave out documents flagged ``dismissed``.
    """

    name = "DocStoreFS"

    def __init__(
        self,
        connection_string: str = DEFAULT_CONNECTION_STRING,
        *,
        store: DocumentStore | None = None,
        base_url: str = "",
        timeout: float = 30.0,
        connection_header: str = DEFAULT_CONNECTION_HEADER,
        cache_ttl_ms: int = COLLECTION_CACHE_TTL_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.connection_string = connection_string
        self._store = store
        self._base_url = base_url
        self._timeout = timeout
        self._connection_header = connection_header
        self._resolver: EntryResolver | None = None
        self.cache = DirectoryCache(ttl_ms=cache_ttl_ms, clock=clock)
        self.hide_categorized = False
        self.hide_dismissed = False

    @classmethod
    def from_config(cls, config: DocStoreFSConfig, **kwargs: Any) -> Self:
        """Build an adapter talking to the proxy described by *config*."""
        return cls(
            config.store.connection_string,
            base_url=config.store.proxy_url,
            timeout=config.store.timeout,
            connection_header=config.store.connection_header,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def store(self) -> DocumentStore:
        """The store driver, connected lazily on first use."""
        if self._store is None:
            self._store = ProxyDocumentStore(
                self.connection_string,
                base_url=self._base_url,
                timeout=self._timeout,
                connection_header=self._connection_header,
            )
            logger.debug("Created proxy store driver for {url}", url=self._base_url)
        return self._store

    @property
    def resolver(self) -> EntryResolver:
        if self._resolver is None:
            self._resolver = EntryResolver(self.store)
        return self._resolver

    async def aclose(self) -> None:
        """Dispose the store driver and clear the directory cache."""
        if self._store is not None:
            await self._store.aclose()
        self._store = None
        self._resolver = None
        self.cache.clear()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def is_read_only(self) -> bool:
        return False

    def supports_props(self) -> bool:
        return True

    def supports_links(self) -> bool:
        return False

    def supports_sync(self) -> bool:
        return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _cached_hit(self, parsed: ParsedPath) -> bool:
        """True when the directory cache says the document exists."""
        if parsed.depth != 3 or parsed.too_deep:
            return False
        identifiers = self.cache.get(parsed.database, parsed.collection)
        if identifiers is None:
            logger.debug("Directory cache miss for {key}", key=parsed.collection_key)
            return False
        return parsed.document in identifiers

    def _invalidate(self, parsed: ParsedPath) -> None:
        self.cache.invalidate(parsed.database, parsed.collection)
        logger.debug(
            "Invalidated directory cache for {scope}",
            scope=parsed.collection_key or parsed.database or "<all>",
        )

    async def _document_entry(self, path: str, parsed: ParsedPath) -> DocumentEntry:
        match await self.resolver.aresolve(parsed):
            case DocumentEntry() as entry:
                return entry
            case _:
                raise NotFoundError(path)

    def _listing_filter(self) -> dict[str, Any] | None:
        clauses = []
        if self.hide_categorized:
            clauses.append(HIDE_CATEGORIZED_FILTER)
        if self.hide_dismissed:
            clauses.append(HIDE_DISMISSED_FILTER)
        if not clauses:
            return None
        if len(clauses) == 1:
            return dict(clauses[0])
        return {"$and": clauses}

    async def _list_databases(self) -> list[str]:
        fallback = database_from_connection_string(self.connection_string)
        try:
            databases = await self.store.alist_databases()
        except StoreIOError as e:
            if fallback is None:
                raise
            logger.warning(
                "Listing databases failed ({reason}); falling back to '{db}' from the "
                "connection string",
                reason=e.reason,
                db=fallback,
            )
            return [fallback]
        if not databases and fallback is not None:
            return [fallback]
        return databases

    async def _list_documents(self, parsed: ParsedPath) -> list[str]:
        documents = await self.store.afind(
            parsed.database,
            parsed.collection,
            meta_only=True,
            filter=self._listing_filter(),
        )
        identifiers = [document_identifier(doc) for doc in documents]
        metadata = {
            identifier: DocumentMeta.from_record(doc)
            for identifier, doc in zip(identifiers, documents, strict=True)
        }
        self.cache.set(parsed.database, parsed.collection, identifiers, metadata)
        logger.debug(
            "Cached {count} identifiers for {key}", count=len(identifiers), key=parsed.collection_key
        )
        return [f"{identifier}{DOCUMENT_SUFFIX}" for identifier in identifiers]

    # ------------------------------------------------------------------
    # Filesystem contract
    # ------------------------------------------------------------------

    async def astat(self, path: str) -> Stats:
        """Stats for *path*.

        Databases and collections are directories of size 0. A document
        confirmed by the directory cache reports ``SIZE_NOT_MATERIALIZED``
        instead of fetching the record; otherwise the record is fetched and
        its serialized byte length becomes the size.

        Raises
        ------
        NotFoundError
            If the document does not exist.
        StoreIOError
            If the store lookup fails.
        """
        parsed = parse_path(path)
        if parsed.too_deep:
            raise NotFoundError(path)
        if parsed.depth < 3:
            return Stats.directory()

        if self._cached_hit(parsed):
            logger.debug("Directory cache hit for {path}", path=path)
            return Stats.file(SIZE_NOT_MATERIALIZED)

        entry = await self._document_entry(path, parsed)
        try:
            size = len(serialize_record(entry.record).encode("utf-8"))
        except (TypeError, ValueError):
            logger.warning("Document at {path} is not JSON-serializable", path=path)
            size = SIZE_UNAVAILABLE
        return Stats.file(size)

    async def alstat(self, path: str) -> Stats:
        """Same as :meth:`astat`; there are no links."""
        return await self.astat(path)

    async def areaddir(self, path: str) -> list[str]:
        """List databases, collections or ``<identifier>.json`` documents.

        Listing a collection refreshes its directory cache entry.

        Raises
        ------
        InvalidArgumentError
            If *path* addresses a document.
        StoreIOError
            If the store call fails (and, at the root, no database can be
            inferred from the connection string).
        """
        parsed = parse_path(path)
        match parsed.depth:
            case 0:
                return await self._list_databases()
            case 1:
                return await self.store.alist_collections(parsed.database)
            case 2:
                return await self._list_documents(parsed)
        raise InvalidArgumentError(path, "not a directory")

    async def aread_file(self, path: str, encoding: str | None = None) -> bytes | str:
        """Return the document as indented JSON.

        Parameters
        ----------
        path : str
            Document path.
        encoding : str | None
            ``None`` for bytes; a codec name, ``"base64"`` or ``"hex"`` for text.

        Raises
        ------
        InvalidArgumentError
            If *path* is not a document path or the encoding is unknown.
        NotFoundError
            If the document does not exist.
        """
        parsed = parse_path(path)
        _require_document(path, parsed, "is a directory")

        entry = await self._document_entry(path, parsed)
        try:
            content = serialize_record(entry.record).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise StoreIOError(path, f"document is not JSON-serializable: {e}") from e

        if encoding is None:
            return content
        if encoding == "base64":
            return base64.b64encode(content).decode("ascii")
        if encoding == "hex":
            return binascii.hexlify(content).decode("ascii")
        try:
            return content.decode(encoding)
        except LookupError as e:
            raise InvalidArgumentError(path, f"unknown encoding: {encoding}") from e

    async def awrite_file(self, path: str, data: bytes | str, encoding: str = "utf-8") -> None:
        """Upsert a document from a JSON payload.

        The upsert matches on the payload's own ``_id`` when it has a
        non-empty one and on ``name`` = the path's document name otherwise.
        A null or empty ``_id`` is dropped so the store assigns one. A
        payload without a ``name`` gets the path's document name so it
        stays addressable at *path*.

        Raises
        ------
        InvalidArgumentError
            If *path* is not a document path or the payload is not a JSON object.
        """
        parsed = parse_path(path)
        _require_document(path, parsed, "documents can only be written inside a collection")

        try:
            text = data.decode(encoding) if isinstance(data, bytes) else data
            record = json.loads(text)
        except (UnicodeDecodeError, LookupError, ValueError) as e:
            raise InvalidArgumentError(path, f"payload is not valid JSON: {e}") from e
        if not isinstance(record, dict):
            raise InvalidArgumentError(path, "payload must be a JSON object")

        if record.get("_id") not in (None, ""):
            upsert_filter = {"_id": record["_id"]}
        else:
            record.pop("_id", None)
            record.setdefault("name", parsed.document)
            upsert_filter = {"name": parsed.document}

        await self.store.areplace_one(
            parsed.database, parsed.collection, upsert_filter, record, upsert=True
        )
        self._invalidate(parsed)
        logger.info("Wrote document {path}", path=path)

    async def amkdir(self, path: str) -> None:
        """Create a database (depth 1) or a collection (depth 2).

        A database only materialises once it holds a collection, so a bare
        database is created together with a placeholder collection.

        Raises
        ------
        InvalidArgumentError
            At the root or inside a collection.
        ValidationError
            If a name breaks the naming rules.
        """
        parsed = parse_path(path)
        if parsed.depth == 0:
            raise InvalidArgumentError(path, "cannot create the root")
        if parsed.depth == 3 or parsed.too_deep:
            raise InvalidArgumentError(path, "Cannot create a folder inside a collection")

        validate_name(parsed.database, path)
        if parsed.collection is not None:
            validate_name(parsed.collection, path)

        await self.store.acreate(parsed.database, parsed.collection)
        self._invalidate(parsed)
        logger.info("Created {path}", path=path)

    async def aunlink(self, path: str) -> None:
        """Delete a document, matching its ``name`` first and ``_id`` second.

        Raises
        ------
        InvalidArgumentError
            If *path* is not a document path.
        NotFoundError
            If neither filter matched a document.
        """
        parsed = parse_path(path)
        _require_document(path, parsed, "only documents can be unlinked")

        deleted = await self.store.adelete_one(
            parsed.database, parsed.collection, {"name": parsed.document}
        )
        if deleted == 0:
            deleted = await self.store.adelete_one(
                parsed.database, parsed.collection, {"_id": parsed.document}
            )
        self._invalidate(parsed)
        if deleted == 0:
            raise NotFoundError(path)
        logger.info("Deleted document {path}", path=path)

    async def armdir(self, path: str) -> None:
        """Drop a collection (depth 2) or a whole database (depth 1).

        Raises
        ------
        InvalidArgumentError
            At the root or on a document path.
        """
        parsed = parse_path(path)
        if parsed.depth == 0:
            raise InvalidArgumentError(path, "cannot remove the root")
        if parsed.depth == 3 or parsed.too_deep:
            raise InvalidArgumentError(path, "not a directory")

        await self.store.adrop(parsed.database, parsed.collection)
        self._invalidate(parsed)
        logger.info("Dropped {path}", path=path)

    async def aexists(self, path: str) -> bool:
        """True when *path* exists. Store failures report False."""
        parsed = parse_path(path)
        if parsed.too_deep:
            return False
        if self._cached_hit(parsed):
            return True
        try:
            return await self.resolver.aresolve(parsed) is not None
        except DocStoreFSError as e:
            logger.debug("exists({path}) treated as missing: {error}", path=path, error=e)
            return False

    # ------------------------------------------------------------------
    # Document extensions
    # ------------------------------------------------------------------

    async def aget_document_images(self, path: str) -> list[str]:
        """Image URLs of a document (``images`` then ``oldImages``).

        Returns an empty list for non-document paths and on store failure.
        """
        parsed = parse_path(path)
        if parsed.depth != 3 or parsed.too_deep:
            return []
        try:
            return await self.store.aget_images(
                parsed.database, parsed.collection, parsed.document
            )
        except StoreIOError as e:
            logger.warning("Failed to get images for {path}: {error}", path=path, error=e)
            return []

    def is_mongodb_document(self, path: str) -> bool:
        """True when *path* addresses a ``.json`` document file."""
        return is_document_path(path)

    async def apatch_document(self, path: str, updates: dict[str, Any]) -> None:
        """Set fields of a document; fields set to ``None`` are removed.

        Raises
        ------
        InvalidArgumentError
            If *path* is not a document path.
        """
        parsed = parse_path(path)
        _require_document(path, parsed, "Invalid document path")

        await self.store.apatch_one(parsed.database, parsed.collection, parsed.document, updates)
        self._invalidate(parsed)

    async def aping(self) -> bool:
        """Check that the store is reachable."""
        return await self.store.aping()

    # ------------------------------------------------------------------
    # Cached listing metadata
    # ------------------------------------------------------------------

    def cached_categorized_names(self, database: str, collection: str) -> frozenset[str] | None:
        """Identifiers with a category, from the last listing; None on cache miss."""
        metadata = self.cache.get_metadata(database, collection)
        if metadata is None:
            return None
        return frozenset(name for name, meta in metadata.items() if meta.is_categorized)

    def cached_dismissed_names(self, database: str, collection: str) -> frozenset[str] | None:
        """Identifiers flagged dismissed, from the last listing; None on cache miss."""
        metadata = self.cache.get_metadata(database, collection)
        if metadata is None:
            return None
        return frozenset(name for name, meta in metadata.items() if meta.dismissed)

    def cached_document_category(
        self, database: str, collection: str, identifier: str
    ) -> str | None:
        """Category of one document from the last listing, if known."""
        metadata = self.cache.get_metadata(database, collection)
        if metadata is None or identifier not in metadata:
            return None
        return metadata[identifier].category

    # ------------------------------------------------------------------
    # Host contract extras without a document-store meaning
    # ------------------------------------------------------------------

    async def arealpath(self, path: str) -> str:
        return path

    async def achmod(self, path: str, mode: int) -> None:
        return None

    async def achown(self, path: str, uid: int, gid: int) -> None:
        return None

    async def autimes(self, path: str, atime: float, mtime: float) -> None:
        return None

    async def arename(self, old_path: str, new_path: str) -> NoReturn:
        raise UnsupportedError(old_path, "function not implemented")

    async def atruncate(self, path: str, length: int) -> NoReturn:
        raise UnsupportedError(path, "function not implemented")

    async def alink(self, src_path: str, dst_path: str) -> NoReturn:
        raise UnsupportedError(src_path, "links are not supported")

    async def asymlink(self, src_path: str, dst_path: str) -> NoReturn:
        raise UnsupportedError(src_path, "links are not supported")

    async def areadlink(self, path: str) -> NoReturn:
        raise UnsupportedError(path, "links are not supported")

    # The store is asynchronous only; synchronous variants fail fast.
    stat = _unsupported_sync("stat")
    lstat = _unsupported_sync("lstat")
    readdir = _unsupported_sync("readdir")
    read_file = _unsupported_sync("read_file")
    write_file = _unsupported_sync("write_file")
    mkdir = _unsupported_sync("mkdir")
    unlink = _unsupported_sync("unlink")
    rmdir = _unsupported_sync("rmdir")
    exists = _unsupported_sync("exists")
    rename = _unsupported_sync("rename")
    truncate = _unsupported_sync("truncate")
    realpath = _unsupported_sync("realpath")
    chmod = _unsupported_sync("chmod")
    chown = _unsupported_sync("chown")
    utimes = _unsupported_sync("utimes")
    link = _unsupported_sync("link")
    symlink = _unsupported_sync("symlink")
    readlink = _unsupported_sync("readlink")


__all__ = ["HIDE_CATEGORIZED_FILTER", "HIDE_DISMISSED_FILTER", "DocumentStoreFileSystem"]
