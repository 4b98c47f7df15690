"""Domain models for resolved filesystem entries and their stats.

A virtual path resolves to one of three entry kinds. The union is
discriminated on ``kind`` so callers dispatch with ``match`` rather than
``isinstance`` checks against a shared base class.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

DIRECTORY_MODE = 0o40755
FILE_MODE = 0o100644

# Document known to exist (directory cache hit) but its record was not fetched.
SIZE_NOT_MATERIALIZED = -1
# Document was fetched but its record could not be serialized.
SIZE_UNAVAILABLE = -2


class DatabaseEntry(BaseModel):
    """A database directory. The mount root is a database entry named ``""``."""

    kind: Literal["database"] = "database"
    name: str

    @property
    def is_root(self) -> bool:
        return self.name == ""


class CollectionEntry(BaseModel):
    """A collection directory."""

    kind: Literal["collection"] = "collection"
    name: str


class DocumentEntry(BaseModel):
    """A document file and the record it was resolved from."""

    kind: Literal["document"] = "document"
    identifier: str
    record: dict[str, Any]


FSEntry = Annotated[
    DatabaseEntry | CollectionEntry | DocumentEntry,
    Field(discriminator="kind"),
]


def _now() -> datetime:
    return datetime.now()


class Stats(BaseModel):
    """Synthetic stats for a virtual path.

    Timestamps are wall-clock values taken when the stats were built; the
    store's real modification time is not tracked.
    """

    is_directory: bool
    size: int = 0
    mode: int = FILE_MODE
    mtime: datetime = Field(default_factory=_now)
    atime: datetime = Field(default_factory=_now)
    ctime: datetime = Field(default_factory=_now)
    birthtime: datetime = Field(default_factory=_now)

    @classmethod
    def directory(cls) -> Stats:
        return cls(is_directory=True, size=0, mode=DIRECTORY_MODE)

    @classmethod
    def file(cls, size: int) -> Stats:
        return cls(is_directory=False, size=size, mode=FILE_MODE)

    def is_file(self) -> bool:
        return not self.is_directory

    def is_symbolic_link(self) -> bool:
        return False

    @property
    def size_known(self) -> bool:
        return self.size >= 0


__all__ = [
    "DIRECTORY_MODE",
    "FILE_MODE",
    "SIZE_NOT_MATERIALIZED",
    "SIZE_UNAVAILABLE",
    "CollectionEntry",
    "DatabaseEntry",
    "DocumentEntry",
    "FSEntry",
    "Stats",
]
