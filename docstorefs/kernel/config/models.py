"""Configuration data models for docstorefs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from docstorefs.kernel.exceptions import ConfigurationError

DEFAULT_CONNECTION_STRING = "mongodb://localhost:27017"
DEFAULT_CONNECTION_HEADER = "x-mongodb-connection"


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for docstorefs.

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.docstorefs.logging]
    level = "DEBUG"
    format = "rich"
    ```

    Environment variable overrides:

    ```bash
    export DOCSTOREFS_LOG_LEVEL=DEBUG
    export DOCSTOREFS_LOG_FORMAT=json
    export DOCSTOREFS_LOG_FILE=/var/log/docstorefs/app.log
    ```
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Where the document store lives and how to reach it.

    Attributes
    ----------
    connection_string : str
        Connection string forwarded to the proxy on every request.
    proxy_url : str
        Base URL of the document-store HTTP proxy.
    timeout : float
        Request timeout in seconds.
    connection_header : str
        Header carrying the connection string.
    """

    connection_string: str = DEFAULT_CONNECTION_STRING
    proxy_url: str = "http://localhost:3000/api/mongodb"
    timeout: float = 30.0
    connection_header: str = DEFAULT_CONNECTION_HEADER

    def __post_init__(self) -> None:
        if not self.connection_string:
            raise ConfigurationError("store", "connection_string cannot be empty")
        if self.timeout <= 0:
            raise ConfigurationError("store", f"timeout must be positive (got {self.timeout!r})")


@dataclass(slots=True)
class DocStoreFSConfig:
    """Complete docstorefs configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
