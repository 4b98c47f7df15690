"""Tests for EntryResolver."""

from __future__ import annotations

import pytest

from docstorefs.drivers.document_store import InMemoryDocumentStore
from docstorefs.drivers.vfs.resolver import EntryResolver
from docstorefs.kernel.domain.entries import CollectionEntry, DatabaseEntry, DocumentEntry
from docstorefs.kernel.paths import parse_path


@pytest.fixture
def resolver(store: InMemoryDocumentStore) -> EntryResolver:
    return EntryResolver(store)


class TestResolve:
    @pytest.mark.asyncio
    async def test_directories_are_synthesised(
        self, resolver: EntryResolver, store: InMemoryDocumentStore
    ) -> None:
        root = await resolver.aresolve(parse_path("/"))
        database = await resolver.aresolve(parse_path("/sampleDB"))
        collection = await resolver.aresolve(parse_path("/sampleDB/users"))

        assert isinstance(root, DatabaseEntry)
        assert root.is_root
        assert isinstance(database, DatabaseEntry)
        assert database.name == "sampleDB"
        assert isinstance(collection, CollectionEntry)
        assert collection.name == "users"
        assert resolver.lookups == 0
        assert sum(store.calls.values()) == 0

    @pytest.mark.asyncio
    async def test_document_by_name(self, resolver: EntryResolver) -> None:
        entry = await resolver.aresolve(parse_path("/sampleDB/users/john_doe.json"))

        assert isinstance(entry, DocumentEntry)
        assert entry.kind == "document"
        assert entry.identifier == "john_doe"
        assert entry.record["email"] == "john@example.com"
        assert resolver.lookups == 1

    @pytest.mark.asyncio
    async def test_document_by_store_identifier(self, resolver: EntryResolver) -> None:
        entry = await resolver.aresolve(parse_path("/sampleDB/products/prod2.json"))
        assert isinstance(entry, DocumentEntry)
        assert entry.identifier == "book"

    @pytest.mark.asyncio
    async def test_missing_document(self, resolver: EntryResolver) -> None:
        assert await resolver.aresolve(parse_path("/sampleDB/users/ghost.json")) is None
        assert resolver.lookups == 1
