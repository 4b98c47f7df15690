"""Local in-process mount table.

Routes absolute host paths to mounted filesystems using longest-prefix
matching, so several document stores (or the same store under several
connection strings) can share one namespace.

Example
-------
.. code-block:: python

    vfs = LocalVFS()
    vfs.mount("/prod/", DocumentStoreFileSystem("mongodb+srv://.../shop"))
    vfs.mount("/local/", DocumentStoreFileSystem(store=InMemoryDocumentStore(sample=True)))

    names = await vfs.areaddir("/local/sampleDB")
    raw = await vfs.aread_file("/local/sampleDB/users/john_doe.json")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from docstorefs.kernel.domain.entries import Stats
from docstorefs.kernel.exceptions import InvalidArgumentError, NotFoundError
from docstorefs.kernel.logging import get_logger

if TYPE_CHECKING:
    from docstorefs.kernel.ports.filesystem import MountableFileSystem

logger = get_logger(__name__)


class LocalVFS:
    """In-process namespace with mount-based dispatch."""

    def __init__(self) -> None:
        self._mounts: dict[str, MountableFileSystem] = {}

    def mount(self, prefix: str, fs: MountableFileSystem) -> None:
        """Mount a filesystem at a path prefix.

        Args
        ----
            prefix: Path prefix (e.g. ``/prod/``). Must start with ``/``;
                a trailing ``/`` is added when missing.
            fs: The filesystem serving paths under this prefix.
        """
        if not prefix.startswith("/"):
            msg = f"Mount prefix must start with '/': {prefix!r}"
            raise ValueError(msg)
        if not prefix.endswith("/"):
            prefix = prefix + "/"
        self._mounts[prefix] = fs
        logger.debug("Mounted {fs} at {prefix}", fs=type(fs).__name__, prefix=prefix)

    def unmount(self, prefix: str) -> MountableFileSystem:
        """Remove and return the filesystem mounted at *prefix*."""
        if not prefix.endswith("/"):
            prefix = prefix + "/"
        try:
            return self._mounts.pop(prefix)
        except KeyError:
            raise NotFoundError(prefix, "nothing mounted here") from None

    def mounts(self) -> dict[str, MountableFileSystem]:
        """Return a copy of the current mount table."""
        return dict(self._mounts)

    def mount_of(self, path: str) -> tuple[MountableFileSystem, str]:
        """Find the filesystem for *path* by longest-prefix match.

        Returns
        -------
            Tuple of (filesystem, mount-relative path starting with ``/``).

        Raises
        ------
        InvalidArgumentError
            If *path* is not absolute.
        NotFoundError
            If nothing is mounted for *path*.
        """
        if not path.startswith("/"):
            raise InvalidArgumentError(path, "path must be absolute (start with '/')")

        normalized = path if path.endswith("/") else path + "/"
        best_prefix = ""
        best_fs: MountableFileSystem | None = None
        for prefix, fs in self._mounts.items():
            if normalized.startswith(prefix) and len(prefix) > len(best_prefix):
                best_prefix = prefix
                best_fs = fs

        if best_fs is None:
            raise NotFoundError(path, f"no filesystem mounted here; mounts: {sorted(self._mounts)}")

        return best_fs, "/" + path[len(best_prefix) :]

    def _root_names(self) -> list[str]:
        names: list[str] = []
        for prefix in sorted(self._mounts):
            top = prefix.strip("/").split("/")[0]
            if top and top not in names:
                names.append(top)
        return names

    def _is_root(self, path: str) -> bool:
        return path.strip("/") == "" and path.startswith("/") and "/" not in self._mounts

    async def astat(self, path: str) -> Stats:
        if self._is_root(path):
            return Stats.directory()
        fs, relative = self.mount_of(path)
        return await fs.astat(relative)

    async def areaddir(self, path: str) -> list[str]:
        if self._is_root(path):
            return self._root_names()
        fs, relative = self.mount_of(path)
        return await fs.areaddir(relative)

    async def aread_file(self, path: str, encoding: str | None = None) -> bytes | str:
        fs, relative = self.mount_of(path)
        return await fs.aread_file(relative, encoding)

    async def awrite_file(self, path: str, data: bytes | str, encoding: str = "utf-8") -> None:
        fs, relative = self.mount_of(path)
        await fs.awrite_file(relative, data, encoding)

    async def amkdir(self, path: str) -> None:
        fs, relative = self.mount_of(path)
        await fs.amkdir(relative)

    async def aunlink(self, path: str) -> None:
        fs, relative = self.mount_of(path)
        await fs.aunlink(relative)

    async def armdir(self, path: str) -> None:
        fs, relative = self.mount_of(path)
        await fs.armdir(relative)

    async def aexists(self, path: str) -> bool:
        if self._is_root(path):
            return True
        try:
            fs, relative = self.mount_of(path)
        except NotFoundError:
            return False
        return await fs.aexists(relative)


__all__ = ["LocalVFS"]
