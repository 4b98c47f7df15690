"""Tests for InMemoryDocumentStore."""

from __future__ import annotations

import pytest

from docstorefs.drivers.document_store import InMemoryDocumentStore
from docstorefs.drivers.document_store.memory import PLACEHOLDER_COLLECTION, SAMPLE_DATA, matches
from docstorefs.kernel.exceptions import StoreIOError
from docstorefs.kernel.ports import DocumentStore


def test_satisfies_port() -> None:
    assert isinstance(InMemoryDocumentStore(), DocumentStore)


class TestMatches:
    def test_equality(self) -> None:
        assert matches({"name": "x"}, {"name": "x"})
        assert not matches({"name": "x"}, {"name": "y"})
        assert not matches({}, {"name": "x"})

    def test_id_compares_as_string(self) -> None:
        assert matches({"_id": 7}, {"_id": "7"})

    def test_or(self) -> None:
        doc = {"_id": "1", "name": "john"}
        assert matches(doc, {"$or": [{"name": "1"}, {"_id": "1"}]})
        assert not matches(doc, {"$or": [{"name": "2"}, {"_id": "2"}]})

    def test_exists_and_ne(self) -> None:
        assert matches({"name": "a"}, {"category": {"$exists": False}})
        assert not matches({"category": "x"}, {"category": {"$exists": False}})
        assert matches({}, {"dismissed": {"$ne": True}})
        assert matches({"dismissed": False}, {"dismissed": {"$ne": True}})
        assert not matches({"dismissed": True}, {"dismissed": {"$ne": True}})

    def test_and(self) -> None:
        query = {"$and": [{"category": {"$exists": False}}, {"dismissed": {"$ne": True}}]}
        assert matches({"name": "a"}, query)
        assert not matches({"name": "a", "dismissed": True}, query)

    def test_unknown_operator(self) -> None:
        with pytest.raises(StoreIOError, match=r"\$regex"):
            matches({"name": "a"}, {"name": {"$regex": "a"}})

    def test_empty_filter(self) -> None:
        assert matches({"anything": 1}, None)
        assert matches({"anything": 1}, {})


class TestQueries:
    @pytest.mark.asyncio
    async def test_sample_data(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        assert await store.alist_databases() == ["sampleDB", "blogDB"]
        assert await store.alist_collections("sampleDB") == ["users", "products", "orders"]
        assert await store.alist_collections("missing") == []

    @pytest.mark.asyncio
    async def test_data_is_copied(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        await store.apatch_one("sampleDB", "users", "john_doe", {"age": 99})
        assert SAMPLE_DATA["sampleDB"]["users"][0]["age"] == 30

    @pytest.mark.asyncio
    async def test_find_sorted_by_name(self) -> None:
        store = InMemoryDocumentStore({"db": {"c": [{"name": "b"}, {"name": "a"}, {"_id": "z"}]}})
        docs = await store.afind("db", "c")
        assert [d.get("name") for d in docs] == [None, "a", "b"]

    @pytest.mark.asyncio
    async def test_meta_projection(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        docs = await store.afind("sampleDB", "products", meta_only=True)
        assert docs[0] == {"_id": "prod2", "name": "book", "category": "books"}

    @pytest.mark.asyncio
    async def test_find_one_by_name_or_id(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        by_name = await store.afind_one("sampleDB", "users", "john_doe")
        by_id = await store.afind_one("sampleDB", "users", "1")
        assert by_name == by_id
        assert await store.afind_one("sampleDB", "users", "ghost") is None

    @pytest.mark.asyncio
    async def test_list_databases_error(self) -> None:
        store = InMemoryDocumentStore(sample=True, list_databases_error="not authorized")
        with pytest.raises(StoreIOError, match="not authorized"):
            await store.alist_databases()


class TestMutations:
    @pytest.mark.asyncio
    async def test_upsert_inserts_with_generated_id(self) -> None:
        store = InMemoryDocumentStore()
        await store.areplace_one("db", "c", {"name": "x"}, {"name": "x"})
        doc = await store.afind_one("db", "c", "x")
        assert doc is not None
        assert doc["_id"]

    @pytest.mark.asyncio
    async def test_replace_keeps_id(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        await store.areplace_one("sampleDB", "users", {"name": "john_doe"}, {"name": "john_doe"})
        doc = await store.afind_one("sampleDB", "users", "john_doe")
        assert doc == {"name": "john_doe", "_id": "1"}

    @pytest.mark.asyncio
    async def test_replace_without_upsert(self) -> None:
        store = InMemoryDocumentStore()
        await store.areplace_one("db", "c", {"name": "x"}, {"name": "x"}, upsert=False)
        assert await store.alist_databases() == []

    @pytest.mark.asyncio
    async def test_patch_unsets_nulls(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        assert await store.apatch_one("sampleDB", "products", "book", {"category": None}) == 1
        doc = await store.afind_one("sampleDB", "products", "book")
        assert doc is not None
        assert "category" not in doc

    @pytest.mark.asyncio
    async def test_patch_without_change(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        assert await store.apatch_one("sampleDB", "products", "book", {"category": "books"}) == 0
        assert await store.apatch_one("sampleDB", "products", "ghost", {"a": 1}) == 0

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        assert await store.adelete_one("sampleDB", "users", {"name": "john_doe"}) == 1
        assert await store.adelete_one("sampleDB", "users", {"name": "john_doe"}) == 0

    @pytest.mark.asyncio
    async def test_create_database_uses_placeholder(self) -> None:
        store = InMemoryDocumentStore()
        await store.acreate("newdb")
        assert await store.alist_databases() == ["newdb"]
        assert await store.alist_collections("newdb") == [PLACEHOLDER_COLLECTION]

    @pytest.mark.asyncio
    async def test_create_existing_collection_fails(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        with pytest.raises(StoreIOError, match="already exists"):
            await store.acreate("sampleDB", "users")

    @pytest.mark.asyncio
    async def test_drop_last_collection_removes_database(self) -> None:
        store = InMemoryDocumentStore({"db": {"only": []}})
        await store.adrop("db", "only")
        assert await store.alist_databases() == []

    @pytest.mark.asyncio
    async def test_drop_database(self) -> None:
        store = InMemoryDocumentStore(sample=True)
        await store.adrop("blogDB")
        assert await store.alist_databases() == ["sampleDB"]


@pytest.mark.asyncio
async def test_calls_are_counted_and_close() -> None:
    store = InMemoryDocumentStore(sample=True)
    await store.afind("sampleDB", "users")
    await store.afind("sampleDB", "users")
    await store.afind_one("sampleDB", "users", "1")
    assert store.calls["find"] == 2
    assert store.calls["find_one"] == 1

    assert await store.aping() is True
    await store.aclose()
    assert store.closed
    assert await store.aping() is False


@pytest.mark.asyncio
async def test_images() -> None:
    store = InMemoryDocumentStore(
        {"db": {"c": [{"name": "p", "images": ["a.png"], "oldImages": [{"small": "b.png"}]}]}}
    )
    assert await store.aget_images("db", "c", "p") == ["a.png", "b.png"]
    assert await store.aget_images("db", "c", "ghost") == []
