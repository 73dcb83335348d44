"""Shared test fixtures."""

from pathlib import Path

import pytest

from outline_search.core.importer.loader import VaultIndex, build_index
from outline_search.models.document import SourceDocument
from tests.unit.fakes import FakeDocumentSource

PROJECT_NOTE = """\
---
priority: 5
status: active
owner:
tags: [work]
---
# Projects

- Launch plan #work
  - [ ] draft the announcement
  - [x] book the venue
- Budget review
  1. collect invoices
  2. compare with forecast

## Archive

- Old launch
  - retrospective done
"""

RECIPE_NOTE = """\
# Recipes

* Pancakes
\t* flour and eggs
* Bread
"""

MULTI_VAULT_FILES = {
    "projects.md": PROJECT_NOTE,
    "cooking/recipes.md": RECIPE_NOTE,
}


def make_documents() -> list[SourceDocument]:
    """In-memory equivalents of MULTI_VAULT_FILES."""
    return [
        SourceDocument(
            path="cooking/recipes.md",
            name="recipes.md",
            content=RECIPE_NOTE,
        ),
        SourceDocument(
            path="projects.md",
            name="projects.md",
            content=PROJECT_NOTE,
            tags=frozenset({"#work"}),
            front_matter={"priority": 5, "status": "active", "owner": None, "tags": ["work"]},
        ),
    ]


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """Return a vault directory with two markdown notes."""
    vault = tmp_path / "vault"
    for name, content in MULTI_VAULT_FILES.items():
        path = vault / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return vault


@pytest.fixture
def documents() -> list[SourceDocument]:
    return make_documents()


@pytest.fixture
def vault_index(documents: list[SourceDocument]) -> VaultIndex:
    return build_index(documents)


@pytest.fixture
def fake_source(documents: list[SourceDocument]) -> FakeDocumentSource:
    return FakeDocumentSource(documents)
