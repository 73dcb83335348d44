"""Extract outline items (bullets, numbered items, tasks) from lines."""

import re
from collections.abc import Sequence

from outline_search.models.document import ROOT_SECTION_ID, OutlineItem, TaskStatus

# Marker: -, *, +, a bullet glyph, or an ordinal like "1." / "1)".
_LIST_ITEM_RE = re.compile(r"^([ \t]*)(?:[-*+•]|\d+[.)])[ \t]+(.+)$")
_CHECKBOX_RE = re.compile(r"^\[([ xX])\]\s+(.*)$")

INDENT_WIDTH = 2


def indent_level(indentation: str) -> int:
    """Nesting level of a run of leading whitespace (tabs count as two columns)."""
    return len(indentation.replace("\t", " " * INDENT_WIDTH)) // INDENT_WIDTH


def split_task_marker(text: str) -> tuple[str, TaskStatus | None]:
    """Strip a leading ``[ ]``/``[x]`` checkbox.

    Returns:
        Tuple of (search text, task status); the status is None for
        non-task text, which is returned unchanged.
    """
    match = _CHECKBOX_RE.match(text)
    if match is None:
        return text, None
    status: TaskStatus = "done" if match.group(1) in ("x", "X") else "todo"
    return match.group(2).strip(), status


def extract_outline_items(
    lines: Sequence[str],
    *,
    file_path: str,
    file_name: str,
    line_to_section_id: Sequence[str] = (),
) -> list[OutlineItem]:
    """Return one OutlineItem per list line, in document order.

    Args:
        lines: The document's lines.
        file_path: Path of the owning document.
        file_name: Display name of the owning document.
        line_to_section_id: Section id per line, as built by parse_sections.
    """
    items: list[OutlineItem] = []
    for line_number, line in enumerate(lines):
        if not line.strip():
            continue
        match = _LIST_ITEM_RE.match(line)
        if match is None:
            continue

        text = match.group(2).strip()
        search_text, status = split_task_marker(text)
        if line_number < len(line_to_section_id):
            section_id = line_to_section_id[line_number]
        else:
            section_id = ROOT_SECTION_ID

        items.append(
            OutlineItem(
                text=text,
                search_text=search_text,
                level=indent_level(match.group(1)),
                line_number=line_number,
                file_path=file_path,
                file_name=file_name,
                section_id=section_id,
                is_task=status is not None,
                task_status=status,
            )
        )
    return items
