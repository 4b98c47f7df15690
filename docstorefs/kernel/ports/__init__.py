"""Ports (protocols) implemented by drivers."""

from docstorefs.kernel.ports.document_store import DocumentFilter, DocumentStore
from docstorefs.kernel.ports.filesystem import MountableFileSystem

__all__ = ["DocumentFilter", "DocumentStore", "MountableFileSystem"]
