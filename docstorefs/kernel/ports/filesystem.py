"""Filesystem port: the contract every mountable filesystem satisfies.

The host virtual-filesystem layer routes absolute paths to mounted
filesystems and calls these coroutines with the mount-relative path. Each
call yields a single result or raises a single
:class:`~docstorefs.kernel.exceptions.FileSystemError`.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from docstorefs.kernel.domain.entries import Stats


@runtime_checkable
class MountableFileSystem(Protocol):
    """Asynchronous filesystem driver contract."""

    @abstractmethod
    async def astat(self, path: str) -> Stats:
        """Stats for *path*; raises ``NotFoundError`` when absent."""
        ...

    @abstractmethod
    async def alstat(self, path: str) -> Stats:
        """Like :meth:`astat` without following links."""
        ...

    @abstractmethod
    async def areaddir(self, path: str) -> list[str]:
        """Names of the children of a directory."""
        ...

    @abstractmethod
    async def aread_file(self, path: str, encoding: str | None = None) -> bytes | str:
        """File content; text when *encoding* is given, bytes otherwise."""
        ...

    @abstractmethod
    async def awrite_file(self, path: str, data: bytes | str, encoding: str = "utf-8") -> None:
        """Replace the file content, creating the file when missing."""
        ...

    @abstractmethod
    async def amkdir(self, path: str) -> None:
        """Create a directory."""
        ...

    @abstractmethod
    async def aunlink(self, path: str) -> None:
        """Remove a file."""
        ...

    @abstractmethod
    async def armdir(self, path: str) -> None:
        """Remove a directory and everything below it."""
        ...

    @abstractmethod
    async def aexists(self, path: str) -> bool:
        """True when *path* exists; never raises."""
        ...


__all__ = ["MountableFileSystem"]
