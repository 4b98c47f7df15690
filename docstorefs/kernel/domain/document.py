"""Document records as exposed through the filesystem.

A record is an open mapping mirroring the store's document. Only a handful
of fields carry meaning for the adapter: ``name`` and ``_id`` (the file
identifier), ``images``/``oldImages`` (navigable image list) and
``category``/``dismissed`` (listing filters).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

DocumentRecord = dict[str, Any]

UNNAMED_DOCUMENT = "unnamed"
IMAGE_SIZE_PREFERENCE = ("medium", "small", "large")

# A document is categorized when its category holds anything but these.
EMPTY_CATEGORY_VALUES: tuple[Any, ...] = (None, "", [])

# Store-side query matching exactly the documents `is_categorized` rejects.
UNCATEGORIZED_FILTER: dict[str, Any] = {
    "$or": [
        {"category": {"$exists": False}},
        *({"category": value} for value in EMPTY_CATEGORY_VALUES),
    ]
}
NOT_DISMISSED_FILTER: dict[str, Any] = {"dismissed": {"$ne": True}}


def document_identifier(record: DocumentRecord) -> str:
    """Return the filename stem for *record*.

    ``name`` when present and non-empty, else the store-assigned ``_id``,
    else ``"unnamed"``.

    Examples
    --------
    >>> document_identifier({"_id": "1", "name": "john_doe"})
    'john_doe'
    >>> document_identifier({"_id": "1", "name": ""})
    '1'
    >>> document_identifier({})
    'unnamed'
    """
    for key in ("name", "_id"):
        value = record.get(key)
        if value is not None and value != "":
            return str(value)
    return UNNAMED_DOCUMENT


def resolve_image_ref(ref: Any) -> str | None:
    """Resolve an image reference to a single URL.

    A reference is either a URL string or an object with ``small``,
    ``medium`` and ``large`` variants (medium preferred, then small, then
    large).

    Examples
    --------
    >>> resolve_image_ref("  https://img/a.png ")
    'https://img/a.png'
    >>> resolve_image_ref({"small": "s.png", "large": "l.png"})
    's.png'
    >>> resolve_image_ref("   ") is None
    True
    """
    if isinstance(ref, str):
        url = ref.strip()
        return url or None
    if isinstance(ref, dict):
        for size in IMAGE_SIZE_PREFERENCE:
            url = ref.get(size)
            if url:
                return str(url)
    return None


def document_images(record: DocumentRecord) -> list[str]:
    """All resolvable image URLs of *record*: ``images`` first, then ``oldImages``."""
    urls: list[str] = []
    for field_name in ("images", "oldImages"):
        refs = record.get(field_name)
        if not isinstance(refs, list):
            continue
        for ref in refs:
            if (url := resolve_image_ref(ref)) is not None:
                urls.append(url)
    return urls


def serialize_record(record: DocumentRecord) -> str:
    """Canonical file content of a record: two-space indented JSON.

    Raises
    ------
    TypeError, ValueError
        If the record holds values that have no JSON representation.
    """
    return json.dumps(record, indent=2, ensure_ascii=False)


def is_categorized(record: DocumentRecord) -> bool:
    """True when *record* carries a non-empty ``category``.

    Examples
    --------
    >>> is_categorized({"category": "cats"})
    True
    >>> is_categorized({"category": ""}), is_categorized({"category": None}), is_categorized({})
    (False, False, False)
    """
    return record.get("category") not in EMPTY_CATEGORY_VALUES


def category_labels(category: str | None) -> list[str]:
    """Split a comma-joined category into lowercase labels.

    Examples
    --------
    >>> category_labels("Cats, dogs ,")
    ['cats', 'dogs']
    >>> category_labels(None)
    []
    """
    if not category:
        return []
    return [label.strip().lower() for label in category.split(",") if label.strip()]


@dataclass(frozen=True, slots=True)
class DocumentMeta:
    """Per-document listing metadata from a metadata-only query."""

    category: str | None = None
    dismissed: bool = False

    @property
    def is_categorized(self) -> bool:
        return bool(self.category)

    @classmethod
    def from_record(cls, record: DocumentRecord) -> DocumentMeta:
        category = record.get("category")
        if not is_categorized(record):
            category = None
        elif isinstance(category, list):
            category = ", ".join(str(label) for label in category)
        else:
            category = str(category)
        return cls(category=category, dismissed=record.get("dismissed") is True)


__all__ = [
    "EMPTY_CATEGORY_VALUES",
    "NOT_DISMISSED_FILTER",
    "UNCATEGORIZED_FILTER",
    "UNNAMED_DOCUMENT",
    "DocumentMeta",
    "DocumentRecord",
    "category_labels",
    "document_identifier",
    "document_images",
    "is_categorized",
    "resolve_image_ref",
    "serialize_record",
]
