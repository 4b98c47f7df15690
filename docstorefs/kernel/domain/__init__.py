"""Domain models: entries, stats and document records."""

from docstorefs.kernel.domain.document import (
    DocumentMeta,
    DocumentRecord,
    category_labels,
    document_identifier,
    document_images,
    is_categorized,
    resolve_image_ref,
    serialize_record,
)
from docstorefs.kernel.domain.entries import (
    SIZE_NOT_MATERIALIZED,
    SIZE_UNAVAILABLE,
    CollectionEntry,
    DatabaseEntry,
    DocumentEntry,
    FSEntry,
    Stats,
)

__all__ = [
    "SIZE_NOT_MATERIALIZED",
    "SIZE_UNAVAILABLE",
    "CollectionEntry",
    "DatabaseEntry",
    "DocumentEntry",
    "DocumentMeta",
    "DocumentRecord",
    "FSEntry",
    "Stats",
    "category_labels",
    "document_identifier",
    "document_images",
    "is_categorized",
    "resolve_image_ref",
    "serialize_record",
]
