"""Document store drivers."""

from docstorefs.drivers.document_store.memory import InMemoryDocumentStore
from docstorefs.drivers.document_store.proxy import ProxyDocumentStore

__all__ = ["InMemoryDocumentStore", "ProxyDocumentStore"]
