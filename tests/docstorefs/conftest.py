"""Shared fixtures for docstorefs tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from docstorefs.drivers.document_store import InMemoryDocumentStore
from docstorefs.drivers.vfs.docstore_fs import DocumentStoreFileSystem
from docstorefs.kernel.config import clear_config_cache

if TYPE_CHECKING:
    from collections.abc import Iterator

_ENV_VARS = (
    "DOCSTOREFS_CONFIG_PATH",
    "DOCSTOREFS_CONNECTION_STRING",
    "DOCSTOREFS_PROXY_URL",
    "DOCSTOREFS_TIMEOUT",
    "DOCSTOREFS_LOG_LEVEL",
    "DOCSTOREFS_LOG_FORMAT",
    "DOCSTOREFS_LOG_FILE",
    "DOCSTOREFS_LOG_COLOR",
)


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep environment overrides and cached config files out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(sample=True)


@pytest.fixture
def fs(store: InMemoryDocumentStore, clock: FakeClock) -> DocumentStoreFileSystem:
    return DocumentStoreFileSystem("mongodb://localhost:27017/sampleDB", store=store, clock=clock)
