"""Core exception hierarchy for docstorefs.

Every error raised by the adapter inherits from :class:`DocStoreFSError`.
Filesystem operations raise a :class:`FileSystemError` subclass carrying
the offending path and an errno-style ``code`` so that host layers can map
them onto their own error conventions.
"""

from __future__ import annotations

# ============================================================================
# Base Exception
# ============================================================================


class DocStoreFSError(Exception):
    """Base exception for all docstorefs errors."""

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(DocStoreFSError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("store", "proxy_url must be set")
    """

    def __init__(self, component: str, reason: str) -> None:
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


# ============================================================================
# Filesystem Errors
# ============================================================================


class FileSystemError(DocStoreFSError):
    """Raised when a filesystem operation fails.

    Examples
    --------
    Example usage::

        raise FileSystemError("/sampleDB/users/john.json", "operation failed")
    """

    code = "EIO"

    def __init__(self, path: str, reason: str) -> None:
        """Initialize filesystem error.

        Args
        ----
            path: The virtual path that caused the error
            reason: Explanation of what went wrong
        """
        super().__init__(f"{self.code}: {reason} ('{path}')")
        self.path = path
        self.reason = reason


class NotFoundError(FileSystemError):
    """No such database, collection or document."""

    code = "ENOENT"

    def __init__(self, path: str, reason: str = "no such file or directory") -> None:
        super().__init__(path, reason)


class InvalidArgumentError(FileSystemError):
    """Wrong depth for the operation, malformed payload or invalid name."""

    code = "EINVAL"

    def __init__(self, path: str, reason: str = "invalid argument") -> None:
        super().__init__(path, reason)


class ValidationError(InvalidArgumentError):
    """Raised when a database or collection name breaks the naming rules.

    Examples
    --------
    Example usage::

        raise ValidationError("/my db", "my db", "Name cannot contain spaces ...")
    """

    def __init__(self, path: str, name: str, reason: str) -> None:
        super().__init__(path, reason)
        self.name = name


class StoreIOError(FileSystemError):
    """The remote document store call failed (network, auth, bad response)."""

    code = "EIO"


class UnsupportedError(FileSystemError):
    """The operation is not available on this filesystem."""

    code = "ENOTSUP"

    def __init__(self, path: str = "", reason: str = "operation not supported") -> None:
        super().__init__(path, reason)


# ============================================================================
# Driver Errors
# ============================================================================


class HttpClientError(DocStoreFSError):
    """Raised when an HTTP request fails with a non-2xx status code.

    Attributes
    ----------
    status_code : int
        The HTTP status code.
    body : Any
        The response body.
    """

    def __init__(self, status_code: int, body: object, message: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"HTTP {status_code}")


__all__ = [
    # Base
    "DocStoreFSError",
    # Configuration
    "ConfigurationError",
    # Filesystem
    "FileSystemError",
    "NotFoundError",
    "InvalidArgumentError",
    "ValidationError",
    "StoreIOError",
    "UnsupportedError",
    # Drivers
    "HttpClientError",
]
