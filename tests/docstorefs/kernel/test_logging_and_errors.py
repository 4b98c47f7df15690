"""Tests for the error hierarchy and logging setup."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from loguru import logger

from docstorefs.kernel import logging as docstorefs_logging
from docstorefs.kernel.exceptions import (
    ConfigurationError,
    DocStoreFSError,
    FileSystemError,
    HttpClientError,
    InvalidArgumentError,
    NotFoundError,
    StoreIOError,
    UnsupportedError,
    ValidationError,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestErrors:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (NotFoundError("/db/c/x.json"), "ENOENT"),
            (InvalidArgumentError("/db"), "EINVAL"),
            (ValidationError("/a b", "a b", "bad"), "EINVAL"),
            (StoreIOError("/db", "timeout"), "EIO"),
            (UnsupportedError("/db"), "ENOTSUP"),
        ],
    )
    def test_codes(self, error: FileSystemError, code: str) -> None:
        assert error.code == code
        assert isinstance(error, DocStoreFSError)
        assert str(error).startswith(f"{code}: ")

    def test_message_includes_path_and_reason(self) -> None:
        error = StoreIOError("/sampleDB/users", "connection refused")
        assert error.path == "/sampleDB/users"
        assert error.reason == "connection refused"
        assert str(error) == "EIO: connection refused ('/sampleDB/users')"

    def test_validation_error_carries_name(self) -> None:
        error = ValidationError("/my db", "my db", "no spaces")
        assert error.name == "my db"
        assert isinstance(error, InvalidArgumentError)

    def test_configuration_error(self) -> None:
        error = ConfigurationError("store", "timeout must be positive")
        assert "store" in str(error)
        assert "timeout must be positive" in str(error)

    def test_http_client_error(self) -> None:
        error = HttpClientError(503, {"error": "down"})
        assert error.status_code == 503
        assert error.body == {"error": "down"}
        assert str(error) == "HTTP 503"


class TestLogging:
    @pytest.fixture(autouse=True)
    def _restore(self):
        yield
        docstorefs_logging.configure_logging(level="WARNING", force_reconfigure=True)

    def test_idempotent(self) -> None:
        docstorefs_logging.configure_logging(level="INFO", format="console", force_reconfigure=True)
        handlers = list(docstorefs_logging._HANDLER_IDS)
        docstorefs_logging.configure_logging(level="INFO", format="console")
        assert docstorefs_logging._HANDLER_IDS == handlers

    def test_file_sink_writes_json(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "docstorefs.log"
        docstorefs_logging.configure_logging(
            level="INFO", format="console", output_file=log_file, force_reconfigure=True
        )

        docstorefs_logging.get_logger("tests.logging").info("directory cache cleared")
        logger.complete()

        content = log_file.read_text()
        assert "directory cache cleared" in content
        assert '"level"' in content

    def test_get_logger_is_cached(self) -> None:
        assert docstorefs_logging.get_logger("a.b") is docstorefs_logging.get_logger("a.b")
