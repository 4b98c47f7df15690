"""Tests for the docstorefs CLI."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from docstorefs import __version__
from docstorefs.cli.main import app

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner()


@pytest.fixture(autouse=True)
def _workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty directory so no project config is discovered."""
    monkeypatch.chdir(tmp_path)


def _json(*args: str) -> object:
    result = runner.invoke(app, ["--memory", "--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_help_without_command(self) -> None:
        result = runner.invoke(app, [])
        assert "ls" in result.output

    def test_config_overrides(self) -> None:
        settings = _json("-c", "mongodb://db.test/shop", "--proxy-url", "http://p.test", "config")
        assert isinstance(settings, dict)
        assert settings["store"]["connection_string"] == "mongodb://db.test/shop"
        assert settings["store"]["proxy_url"] == "http://p.test"

    def test_config_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "docstorefs.yaml"
        config_file.write_text("kind: Config\nspec:\n  store:\n    timeout: 5\n")
        result = runner.invoke(app, ["--json", "--config", str(config_file), "config"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["store"]["timeout"] == 5

    def test_invalid_config_value(self, tmp_path: Path) -> None:
        config_file = tmp_path / "docstorefs.yaml"
        config_file.write_text("kind: Config\nspec:\n  store:\n    timeout: soon\n")
        result = runner.invoke(app, ["--config", str(config_file), "config"])
        assert result.exit_code == 2
        assert "timeout must be a number" in result.output

    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--config", str(tmp_path / "nope.yaml"), "config"])
        assert result.exit_code == 2


class TestBrowse:
    def test_ls_root(self) -> None:
        result = runner.invoke(app, ["--memory", "ls"])
        assert result.exit_code == 0, result.output
        assert result.stdout.split() == ["sampleDB", "blogDB"]

    def test_ls_collection_json(self) -> None:
        assert _json("ls", "/sampleDB/users") == [
            "admin_user.json",
            "jane_smith.json",
            "john_doe.json",
        ]

    def test_ls_long_json(self) -> None:
        rows = _json("ls", "-l", "/sampleDB/users")
        assert isinstance(rows, list)
        assert [row["path"] for row in rows] == [
            "/sampleDB/users/admin_user.json",
            "/sampleDB/users/jane_smith.json",
            "/sampleDB/users/john_doe.json",
        ]
        assert {row["type"] for row in rows} == {"file"}
        assert {row["size"] for row in rows} == {-1}

    def test_ls_long_table(self) -> None:
        result = runner.invoke(app, ["--memory", "ls", "-l", "/sampleDB"])
        assert result.exit_code == 0, result.output
        assert "users" in result.stdout
        assert "directory" in result.stdout

    def test_ls_yaml(self) -> None:
        result = runner.invoke(app, ["--memory", "--yaml", "ls", "/blogDB"])
        assert result.exit_code == 0, result.output
        assert result.stdout.strip().splitlines() == ["- posts", "- comments"]

    def test_stat(self) -> None:
        info = _json("stat", "/sampleDB/users/john_doe.json")
        assert isinstance(info, dict)
        assert info["type"] == "file"
        assert info["size"] > 0
        assert info["mode"] == "0o100644"

    def test_cat(self) -> None:
        result = runner.invoke(app, ["--memory", "cat", "/sampleDB/users/john_doe.json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["email"] == "john@example.com"

    def test_cat_missing(self) -> None:
        result = runner.invoke(app, ["--memory", "cat", "/sampleDB/users/ghost.json"])
        assert result.exit_code == 1
        assert "ENOENT" in result.output

    def test_cat_directory(self) -> None:
        result = runner.invoke(app, ["--memory", "cat", "/sampleDB/users"])
        assert result.exit_code == 1
        assert "EINVAL" in result.output

    def test_images(self) -> None:
        assert _json("images", "/sampleDB/users/john_doe.json") == []

    def test_ping(self) -> None:
        assert _json("ping") == {"reachable": True}


class TestEdit:
    def test_put_from_file(self, tmp_path: Path) -> None:
        source = tmp_path / "neo.json"
        source.write_text('{"role": "the one"}')
        result = runner.invoke(app, ["--memory", "put", "/sampleDB/users/neo.json", str(source)])
        assert result.exit_code == 0, result.output
        assert "Wrote /sampleDB/users/neo.json" in result.stdout

    def test_put_from_stdin(self) -> None:
        result = runner.invoke(
            app, ["--memory", "put", "/sampleDB/users/neo.json"], input='{"role": "the one"}'
        )
        assert result.exit_code == 0, result.output

    def test_put_invalid_json(self) -> None:
        result = runner.invoke(app, ["--memory", "put", "/sampleDB/users/neo.json", "-"], input="[")
        assert result.exit_code == 1
        assert "EINVAL" in result.output

    def test_put_unreadable_source(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["--memory", "put", "/sampleDB/users/neo.json", str(tmp_path / "missing.json")]
        )
        assert result.exit_code == 1

    def test_rm(self) -> None:
        result = runner.invoke(app, ["--memory", "rm", "/sampleDB/users/jane_smith.json"])
        assert result.exit_code == 0, result.output
        missing = runner.invoke(app, ["--memory", "rm", "/sampleDB/users/ghost.json"])
        assert missing.exit_code == 1

    def test_mkdir(self) -> None:
        assert runner.invoke(app, ["--memory", "mkdir", "/analytics"]).exit_code == 0
        result = runner.invoke(app, ["--memory", "mkdir", "/sampleDB/bad name"])
        assert result.exit_code == 1
        assert "EINVAL" in result.output

    def test_rmdir_asks_for_confirmation(self) -> None:
        result = runner.invoke(app, ["--memory", "rmdir", "/blogDB"], input="n\n")
        assert result.exit_code == 1
        assert "Dropped" not in result.output

    def test_rmdir_yes(self) -> None:
        result = runner.invoke(app, ["--memory", "rmdir", "--yes", "/blogDB/comments"])
        assert result.exit_code == 0, result.output
        assert "Dropped /blogDB/comments" in result.stdout
