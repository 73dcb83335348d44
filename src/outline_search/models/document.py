"""Domain models for indexed outline documents."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

ROOT_SECTION_ID = "root"
SECTION_SEPARATOR = " > "

TaskStatus = Literal["todo", "done"]


@dataclass(frozen=True)
class SourceDocument:
    """A document as handed over by the document store."""

    path: str
    name: str
    content: str
    tags: frozenset[str] = frozenset()
    front_matter: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class Section:
    """A contiguous run of lines governed by one heading path."""

    id: str
    heading: str
    level: int
    start_line: int
    end_line: int
    text: str


@dataclass(frozen=True)
class DocumentContext:
    """Every scope of a single document that queries can match against."""

    file_path: str
    file_name: str
    content: str
    lines: tuple[str, ...]
    tags: frozenset[str]
    front_matter: Mapping[str, Any] | None
    sections: tuple[Section, ...]
    line_to_section_id: tuple[str, ...]

    def find_section(self, section_id: str, line_number: int | None = None) -> Section | None:
        """Return the section with the given heading path, if any.

        A repeated heading yields several sections with the same path. When
        ``line_number`` is given, the one containing that line wins;
        otherwise the first one does.
        """
        matches = [section for section in self.sections if section.id == section_id]
        if line_number is not None:
            for section in matches:
                if section.start_line <= line_number <= section.end_line:
                    return section
        return matches[0] if matches else None


@dataclass(frozen=True)
class OutlineItem:
    """A single list line ("block") of a document."""

    text: str
    search_text: str
    level: int
    line_number: int
    file_path: str
    file_name: str
    section_id: str = ROOT_SECTION_ID
    is_task: bool = False
    task_status: TaskStatus | None = None


@dataclass(frozen=True)
class SearchResult:
    """A matched item group with its ranking score."""

    items: tuple[OutlineItem, ...]
    score: int

    @property
    def root(self) -> OutlineItem:
        return self.items[0]
