"""docstorefs: a document store exposed as a path-addressed virtual filesystem.

Databases and collections appear as directories, documents as ``.json``
files::

    from docstorefs import DocumentStoreFileSystem

    async with DocumentStoreFileSystem("mongodb://localhost:27017/shop") as fs:
        for name in await fs.areaddir("/shop/products"):
            print(name)
"""

from docstorefs.drivers.vfs.docstore_fs import DocumentStoreFileSystem
from docstorefs.kernel.exceptions import (
    DocStoreFSError,
    FileSystemError,
    InvalidArgumentError,
    NotFoundError,
    StoreIOError,
    UnsupportedError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "DocStoreFSError",
    "DocumentStoreFileSystem",
    "FileSystemError",
    "InvalidArgumentError",
    "NotFoundError",
    "StoreIOError",
    "UnsupportedError",
    "ValidationError",
    "__version__",
]
