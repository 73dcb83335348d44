"""Tests for the outline-search CLI."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from outline_search.cli import app
from outline_search.config import CASE_SENSITIVE_ENV_VAR, OPERATORS_ENV_VAR

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's environment from changing search defaults."""
    monkeypatch.delenv(CASE_SENSITIVE_ENV_VAR, raising=False)
    monkeypatch.delenv(OPERATORS_ENV_VAR, raising=False)


def test_search_text_output(vault_dir: Path) -> None:
    result = runner.invoke(app, ["search", "launch", "--vault", str(vault_dir)])
    assert result.exit_code == 0, result.output
    assert "Found 2 results (showing 2):" in result.output
    assert "[projects.md:9] score=1" in result.output
    assert "- **Launch** plan #work" in result.output
    assert "  - [ ] draft the announcement" in result.output


def test_search_json_output(vault_dir: Path) -> None:
    result = runner.invoke(app, ["search", "launch", "--vault", str(vault_dir), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["total"] == 2
    first = data["results"][0]
    assert first == {
        "file": "projects.md",
        "path": "projects.md",
        "line": 9,
        "section": "Projects",
        "score": 1,
        "items": [
            "Launch plan #work",
            "[ ] draft the announcement",
            "[x] book the venue",
        ],
    }


def test_search_limit(vault_dir: Path) -> None:
    result = runner.invoke(app, ["search", "launch", "-V", str(vault_dir), "-n", "1"])
    assert result.exit_code == 0, result.output
    assert "Found 2 results (showing 1):" in result.output


def test_search_case_sensitive_flag(vault_dir: Path) -> None:
    result = runner.invoke(app, ["search", "launch", "-V", str(vault_dir), "-c", "-j"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [r["line"] for r in data["results"]] == [18]


def test_search_case_sensitive_from_environment(
    vault_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv(CASE_SENSITIVE_ENV_VAR, "true")
    result = runner.invoke(app, ["search", "launch", "-V", str(vault_dir), "-j"])
    assert json.loads(result.stdout)["total"] == 1


def test_search_operators(vault_dir: Path) -> None:
    result = runner.invoke(app, ["search", "file:recipes", "-V", str(vault_dir), "-j"])
    data = json.loads(result.stdout)
    assert [r["file"] for r in data["results"]] == ["recipes.md", "recipes.md"]
    assert data["results"][0]["path"] == "cooking/recipes.md"


def test_search_without_operators(vault_dir: Path) -> None:
    result = runner.invoke(
        app, ["search", "file:recipes", "-V", str(vault_dir), "--no-operators", "-j"]
    )
    assert json.loads(result.stdout)["total"] == 0


def test_search_invalid_query(vault_dir: Path) -> None:
    result = runner.invoke(app, ["search", '"unterminated', "-V", str(vault_dir)])
    assert result.exit_code == 2
    assert "Invalid query: Unterminated quote at position 14" in result.output


def test_search_missing_vault(tmp_path: Path) -> None:
    result = runner.invoke(app, ["search", "x", "-V", str(tmp_path / "missing")])
    assert result.exit_code == 1


def test_documents(vault_dir: Path) -> None:
    result = runner.invoke(app, ["documents", "-V", str(vault_dir)])
    assert result.exit_code == 0, result.output
    assert "2 documents:" in result.output
    assert "projects.md - 8 items, 3 sections  #work" in result.output


def test_documents_json(vault_dir: Path) -> None:
    result = runner.invoke(app, ["documents", "-V", str(vault_dir), "--json"])
    data = json.loads(result.stdout)
    assert data["count"] == 2
    recipes, projects = data["documents"]
    assert recipes == {
        "path": "cooking/recipes.md",
        "name": "recipes.md",
        "item_count": 3,
        "section_count": 1,
        "tags": [],
    }
    assert projects["tags"] == ["#work"]


def test_parse_normalizes_query() -> None:
    result = runner.invoke(app, ["parse", "a or b  TAG:#x"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "a OR b tag:#x"


def test_parse_json() -> None:
    result = runner.invoke(app, ["parse", "tag:x", "--json"])
    tree = json.loads(result.stdout)
    assert tree["term"]["kind"] == "operator"
    assert tree["term"]["operator"] == "tag"


def test_parse_without_operators() -> None:
    result = runner.invoke(app, ["parse", "tag:x", "--no-operators", "--json"])
    assert json.loads(result.stdout)["term"]["kind"] == "text"


def test_parse_errors() -> None:
    result = runner.invoke(app, ["parse", "(a"])
    assert result.exit_code == 2
    assert "error: Missing ')' at position 3" in result.output
