"""Tests for virtual path parsing and name validation."""

from __future__ import annotations

import pytest

from docstorefs.kernel.exceptions import InvalidArgumentError, ValidationError
from docstorefs.kernel.paths import (
    ParsedPath,
    database_from_connection_string,
    is_document_path,
    name_violation,
    parse_path,
    validate_name,
)


class TestParsePath:
    def test_root(self) -> None:
        assert parse_path("/") == ParsedPath()
        assert parse_path("").depth == 0

    def test_database(self) -> None:
        parsed = parse_path("/sampleDB")
        assert parsed.database == "sampleDB"
        assert parsed.collection is None
        assert parsed.depth == 1

    def test_collection(self) -> None:
        parsed = parse_path("/sampleDB/users/")
        assert (parsed.database, parsed.collection) == ("sampleDB", "users")
        assert parsed.depth == 2
        assert parsed.collection_key == "sampleDB/users"

    def test_document_strips_json_suffix(self) -> None:
        parsed = parse_path("/sampleDB/users/john_doe.json")
        assert parsed.document == "john_doe"
        assert parsed.depth == 3
        assert not parsed.too_deep

    def test_document_without_suffix(self) -> None:
        assert parse_path("/sampleDB/users/john_doe").document == "john_doe"

    def test_suffix_only_stripped_from_third_segment(self) -> None:
        parsed = parse_path("/a.json/b.json/c.json")
        assert parsed.database == "a.json"
        assert parsed.collection == "b.json"
        assert parsed.document == "c"

    def test_only_trailing_suffix_is_stripped(self) -> None:
        assert parse_path("/db/coll/report.json.json").document == "report.json"

    def test_empty_segments_are_discarded(self) -> None:
        parsed = parse_path("//sampleDB///users//")
        assert parsed.depth == 2
        assert parsed.collection == "users"

    def test_bare_suffix_has_no_document(self) -> None:
        assert parse_path("/db/coll/.json").depth == 2

    def test_too_deep(self) -> None:
        parsed = parse_path("/db/coll/doc.json/extra")
        assert parsed.too_deep
        assert parsed.document == "doc"

    def test_collection_key_absent_above_collections(self) -> None:
        assert parse_path("/db").collection_key is None


class TestIsDocumentPath:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/db/coll/doc.json", True),
            ("/db/coll/doc", False),
            ("/db/coll", False),
            ("/db.json", False),
            ("/db/coll/doc.json/x.json", False),
        ],
    )
    def test_classification(self, path: str, expected: bool) -> None:
        assert is_document_path(path) is expected


class TestValidateName:
    @pytest.mark.parametrize("name", ["users", "sample_DB", "a", "x" * 64, "données"])
    def test_valid(self, name: str) -> None:
        validate_name(name)
        assert name_violation(name) is None

    @pytest.mark.parametrize(
        "name", ["my db", "a.b", "$cash", "a/b", "a\\b", 'q"', "*", "<", ">", ":", "|", "?", "tab\t"]
    )
    def test_forbidden_characters(self, name: str) -> None:
        with pytest.raises(ValidationError, match="special characters") as exc_info:
            validate_name(name)
        assert exc_info.value.name == name

    def test_empty(self) -> None:
        with pytest.raises(ValidationError, match="between 1 and 64"):
            validate_name("")

    def test_too_long(self) -> None:
        with pytest.raises(ValidationError, match="between 1 and 64"):
            validate_name("x" * 65)

    def test_is_an_invalid_argument(self) -> None:
        with pytest.raises(InvalidArgumentError):
            validate_name("bad name", "/bad name")

    def test_carries_path(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_name("bad.name", "/db/bad.name")
        assert exc_info.value.path == "/db/bad.name"


class TestDatabaseFromConnectionString:
    @pytest.mark.parametrize(
        ("connection", "expected"),
        [
            ("mongodb://localhost:27017/sampleDB", "sampleDB"),
            ("mongodb://localhost:27017/sampleDB?authSource=admin", "sampleDB"),
            ("mongodb+srv://user:pw@cluster0.example.net/shop?retryWrites=true", "shop"),
            ("MONGODB://host/Upper", "Upper"),
            ("mongodb://host/my%20db", "my db"),
            ("mongodb://host/%20padded%20", "padded"),
        ],
    )
    def test_extracts_database(self, connection: str, expected: str) -> None:
        assert database_from_connection_string(connection) == expected

    @pytest.mark.parametrize(
        "connection",
        [
            "mongodb://localhost:27017",
            "mongodb://localhost:27017/",
            "mongodb://localhost:27017/?authSource=admin",
            "postgres://localhost/db",
            "",
        ],
    )
    def test_absent(self, connection: str) -> None:
        assert database_from_connection_string(connection) is None
