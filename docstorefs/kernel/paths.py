"""Virtual path parsing and name rules.

Paths address a three-level hierarchy below the mount root::

    /                         depth 0  mount root
    /<database>               depth 1
    /<database>/<collection>  depth 2
    /<database>/<collection>/<identifier>.json   depth 3

Parsing never fails: malformed input simply populates fewer fields and
callers interpret absence positionally.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import unquote

from docstorefs.kernel.exceptions import ValidationError

DOCUMENT_SUFFIX = ".json"
MAX_NAME_LENGTH = 64

_INVALID_NAME_CHARS = re.compile(r'[\s/\\."$*<>:|?]')
_CONNECTION_PROTOCOL = re.compile(r"^mongodb(?:\+srv)?://", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ParsedPath:
    """The ``{database, collection, document}`` triple of a virtual path."""

    database: str | None = None
    collection: str | None = None
    document: str | None = None
    too_deep: bool = False

    @property
    def depth(self) -> int:
        if self.database is None:
            return 0
        if self.collection is None:
            return 1
        if self.document is None:
            return 2
        return 3

    @property
    def collection_key(self) -> str | None:
        if self.database is None or self.collection is None:
            return None
        return f"{self.database}/{self.collection}"


def parse_path(path: str) -> ParsedPath:
    """Parse a virtual path into its database/collection/document parts.

    Examples
    --------
    >>> parse_path("/sampleDB/users/john_doe.json")
    ParsedPath(database='sampleDB', collection='users', document='john_doe', too_deep=False)
    >>> parse_path("//sampleDB//").depth
    1
    >>> parse_path("/").depth
    0
    """
    parts = [part for part in path.split("/") if part]
    document = parts[2].removesuffix(DOCUMENT_SUFFIX) if len(parts) > 2 else None
    return ParsedPath(
        database=parts[0] if parts else None,
        collection=parts[1] if len(parts) > 1 else None,
        document=document or None,
        too_deep=len(parts) > 3,
    )


def is_document_path(path: str) -> bool:
    """True when *path* addresses a document file (depth 3 with ``.json``)."""
    parsed = parse_path(path)
    return parsed.depth == 3 and not parsed.too_deep and path.endswith(DOCUMENT_SUFFIX)


def name_violation(name: str) -> str | None:
    """Return why *name* is not a valid database/collection name, or None."""
    if _INVALID_NAME_CHARS.search(name):
        return 'Name cannot contain spaces or special characters: /\\. "$*<>:|?'
    if not 0 < len(name) <= MAX_NAME_LENGTH:
        return f"Name must be between 1 and {MAX_NAME_LENGTH} characters"
    return None


def validate_name(name: str, path: str = "") -> None:
    """Check a database or collection name before creating it.

    Raises
    ------
    ValidationError
        If the name is empty, longer than 64 characters, or contains
        whitespace or one of ``/ \\ . " $ * < > : | ?``.
    """
    if (reason := name_violation(name)) is not None:
        raise ValidationError(path or f"/{name}", name, reason)


def database_from_connection_string(connection_string: str) -> str | None:
    """Extract the database named in a connection string, if any.

    Examples
    --------
    >>> database_from_connection_string("mongodb+srv://u:p@cluster.example.net/shop?retryWrites=true")
    'shop'
    >>> database_from_connection_string("mongodb://localhost:27017") is None
    True
    """
    match = _CONNECTION_PROTOCOL.match(connection_string)
    if not match:
        return None

    remainder = connection_string[match.end() :]
    slash = remainder.find("/")
    if slash < 0:
        return None

    raw_name = remainder[slash + 1 :].split("?", 1)[0]
    return unquote(raw_name).strip() or None


__all__ = [
    "DOCUMENT_SUFFIX",
    "MAX_NAME_LENGTH",
    "ParsedPath",
    "database_from_connection_string",
    "is_document_path",
    "name_violation",
    "parse_path",
    "validate_name",
]
