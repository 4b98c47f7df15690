"""In-process document store.

Keeps databases as nested dicts and implements the subset of query
semantics the filesystem adapter relies on: equality on fields, ``$or``,
``$exists`` and ``$ne``, a metadata-only projection, upserting
replacement, and patching where ``None`` unsets a field.

Every call is counted in :attr:`InMemoryDocumentStore.calls`, which makes
the store handy for asserting how many round trips an operation costs.
"""

from __future__ import annotations

import copy
import uuid
from collections import Counter
from typing import Any

from docstorefs.kernel.domain.document import document_images
from docstorefs.kernel.exceptions import StoreIOError
from docstorefs.kernel.logging import get_logger

logger = get_logger(__name__)

PLACEHOLDER_COLLECTION = "_placeholder"
META_FIELDS = ("_id", "name", "category", "dismissed")

SAMPLE_DATA: dict[str, dict[str, list[dict[str, Any]]]] = {
    "sampleDB": {
        "users": [
            {"_id": "1", "name": "john_doe", "email": "john@example.com", "age": 30},
            {"_id": "2", "name": "jane_smith", "email": "jane@example.com", "age": 25},
            {"_id": "3", "name": "admin_user", "email": "admin@example.com", "role": "admin"},
        ],
        "products": [
            {"_id": "prod1", "name": "laptop", "price": 999.99, "category": "electronics"},
            {"_id": "prod2", "name": "book", "price": 19.99, "category": "books"},
            {"_id": "prod3", "name": "headphones", "price": 79.99, "category": "electronics"},
        ],
        "orders": [
            {"_id": "order1", "name": "order_001", "userId": "1", "productId": "prod1",
             "quantity": 1, "total": 999.99},
            {"_id": "order2", "name": "order_002", "userId": "2", "productId": "prod2",
             "quantity": 2, "total": 39.98},
        ],
    },
    "blogDB": {
        "posts": [
            {"_id": "post1", "name": "first_post", "title": "Getting Started with MongoDB",
             "content": "MongoDB is a NoSQL database...", "author": "john_doe"},
            {"_id": "post2", "name": "second_post", "title": "Advanced MongoDB Queries",
             "content": "Learn advanced querying techniques...", "author": "jane_smith"},
        ],
        "comments": [
            {"_id": "comment1", "name": "comment_001", "postId": "post1", "author": "user123",
             "text": "Great post!"},
            {"_id": "comment2", "name": "comment_002", "postId": "post1", "author": "user456",
             "text": "Very helpful, thanks!"},
        ],
    },
}


def _matches_condition(document: dict[str, Any], field: str, condition: Any) -> bool:
    present = field in document
    value = document.get(field)
    if isinstance(condition, dict) and any(key.startswith("$") for key in condition):
        for operator, operand in condition.items():
            if operator == "$exists":
                if present != bool(operand):
                    return False
            elif operator == "$ne":
                if present and value == operand:
                    return False
            elif operator == "$eq":
                if not present or value != operand:
                    return False
            else:
                raise StoreIOError("", f"unsupported query operator: {operator}")
        return True
    if field == "_id":
        return present and str(value) == str(condition)
    return present and value == condition


def matches(document: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    """True when *document* satisfies the query *filter*."""
    if not filter:
        return True
    for field, condition in filter.items():
        if field == "$or":
            if not any(matches(document, clause) for clause in condition):
                return False
        elif field == "$and":
            if not all(matches(document, clause) for clause in condition):
                return False
        elif not _matches_condition(document, field, condition):
            return False
    return True


def _identifier_filter(identifier: str) -> dict[str, Any]:
    return {"$or": [{"name": identifier}, {"_id": identifier}]}


def _name_sort_key(document: dict[str, Any]) -> tuple[bool, str]:
    name = document.get("name")
    return (name is not None, str(name) if name is not None else "")


class InMemoryDocumentStore:
    """DocumentStore driver holding everything in process memory.

    Parameters
    ----------
    data : dict | None
        Initial ``{database: {collection: [documents]}}`` content (deep-copied).
    sample : bool
        Seed with the bundled sample databases when *data* is not given.
    list_databases_error : str | None
        When set, :meth:`alist_databases` fails with this reason, emulating
        a user without ``listDatabases`` privileges.
    """

    def __init__(
        self,
        data: dict[str, dict[str, list[dict[str, Any]]]] | None = None,
        *,
        sample: bool = False,
        list_databases_error: str | None = None,
    ) -> None:
        source = data if data is not None else (SAMPLE_DATA if sample else {})
        self._databases: dict[str, dict[str, list[dict[str, Any]]]] = copy.deepcopy(source)
        self.list_databases_error = list_databases_error
        self.calls: Counter[str] = Counter()
        self.closed = False

    def _collection(self, database: str, collection: str) -> list[dict[str, Any]]:
        return self._databases.get(database, {}).get(collection, [])

    async def alist_databases(self) -> list[str]:
        self.calls["list_databases"] += 1
        if self.list_databases_error is not None:
            raise StoreIOError("/", self.list_databases_error)
        return [name for name, collections in self._databases.items() if collections]

    async def alist_collections(self, database: str) -> list[str]:
        self.calls["list_collections"] += 1
        return list(self._databases.get(database, {}))

    async def afind(
        self,
        database: str,
        collection: str,
        *,
        meta_only: bool = False,
        filter: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        self.calls["find"] += 1
        found = [doc for doc in self._collection(database, collection) if matches(doc, filter)]
        found.sort(key=_name_sort_key)
        if meta_only:
            return [{key: doc[key] for key in META_FIELDS if key in doc} for doc in found]
        return copy.deepcopy(found)

    async def afind_one(
        self, database: str, collection: str, identifier: str
    ) -> dict[str, Any] | None:
        self.calls["find_one"] += 1
        for doc in self._collection(database, collection):
            if matches(doc, _identifier_filter(identifier)):
                return copy.deepcopy(doc)
        return None

    async def areplace_one(
        self,
        database: str,
        collection: str,
        filter: dict[str, Any],
        record: dict[str, Any],
        *,
        upsert: bool = True,
    ) -> None:
        self.calls["replace_one"] += 1
        documents = self._collection(database, collection)
        replacement = copy.deepcopy(record)
        for index, doc in enumerate(documents):
            if matches(doc, filter):
                replacement.setdefault("_id", doc.get("_id"))
                documents[index] = replacement
                return
        if not upsert:
            return
        replacement.setdefault("_id", filter.get("_id", uuid.uuid4().hex))
        self._databases.setdefault(database, {}).setdefault(collection, []).append(replacement)

    async def apatch_one(
        self, database: str, collection: str, identifier: str, updates: dict[str, Any]
    ) -> int:
        self.calls["patch_one"] += 1
        for doc in self._collection(database, collection):
            if matches(doc, _identifier_filter(identifier)):
                before = dict(doc)
                for field, value in updates.items():
                    if value is None:
                        doc.pop(field, None)
                    else:
                        doc[field] = copy.deepcopy(value)
                return int(doc != before)
        return 0

    async def adelete_one(self, database: str, collection: str, filter: dict[str, Any]) -> int:
        self.calls["delete_one"] += 1
        documents = self._collection(database, collection)
        for index, doc in enumerate(documents):
            if matches(doc, filter):
                del documents[index]
                return 1
        return 0

    async def aget_images(self, database: str, collection: str, identifier: str) -> list[str]:
        self.calls["get_images"] += 1
        for doc in self._collection(database, collection):
            if matches(doc, _identifier_filter(identifier)):
                return document_images(doc)
        return []

    async def acreate(self, database: str, collection: str | None = None) -> None:
        self.calls["create"] += 1
        collections = self._databases.setdefault(database, {})
        name = collection or PLACEHOLDER_COLLECTION
        if collection is not None and collection in collections:
            raise StoreIOError(f"/{database}/{collection}", "collection already exists")
        collections.setdefault(name, [])

    async def adrop(self, database: str, collection: str | None = None) -> None:
        self.calls["drop"] += 1
        if collection is None:
            self._databases.pop(database, None)
            return
        collections = self._databases.get(database, {})
        collections.pop(collection, None)
        if not collections:
            self._databases.pop(database, None)

    async def aping(self) -> bool:
        self.calls["ping"] += 1
        return not self.closed

    async def aclose(self) -> None:
        self.closed = True
        logger.debug("In-memory document store closed")


__all__ = ["PLACEHOLDER_COLLECTION", "SAMPLE_DATA", "InMemoryDocumentStore", "matches"]
