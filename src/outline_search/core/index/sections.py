"""Split documents into lines and heading sections."""

import re

from loguru import logger

from outline_search.models.document import (
    ROOT_SECTION_ID,
    SECTION_SEPARATOR,
    DocumentContext,
    Section,
    SourceDocument,
)

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")


def parse_sections(lines: list[str] | tuple[str, ...]) -> tuple[list[Section], list[str]]:
    """Partition lines into sections by markdown heading.

    A heading at level L closes the running section and drops every open
    heading at level >= L from the heading path.

    Args:
        lines: The document's lines, in order.

    Returns:
        Tuple of (sections, line_to_section_id), where line_to_section_id has
        one entry per line.
    """
    sections: list[Section] = []
    line_to_section_id = [ROOT_SECTION_ID] * len(lines)
    heading_stack: list[tuple[int, str]] = []

    current_start = 0
    current_id = ROOT_SECTION_ID
    current_heading = ""
    current_level = 0

    def close_section(end_line: int) -> None:
        sections.append(
            Section(
                id=current_id,
                heading=current_heading,
                level=current_level,
                start_line=current_start,
                end_line=end_line,
                text="\n".join(lines[current_start : end_line + 1]),
            )
        )
        for i in range(current_start, end_line + 1):
            line_to_section_id[i] = current_id

    for i, line in enumerate(lines):
        match = _HEADING_RE.match(line)
        if match is None:
            continue

        if i > current_start:
            close_section(i - 1)

        level = len(match.group(1))
        title = match.group(2).strip()
        while heading_stack and heading_stack[-1][0] >= level:
            heading_stack.pop()
        heading_stack.append((level, title))

        current_start = i
        current_heading = title
        current_level = level
        current_id = SECTION_SEPARATOR.join(t for _, t in heading_stack) or ROOT_SECTION_ID

    if lines:
        close_section(len(lines) - 1)

    return sections, line_to_section_id


def build_document_context(source: SourceDocument) -> DocumentContext:
    """Derive lines and sections for one document.

    Tags and front matter are taken as supplied by the document store.
    """
    lines = source.content.split("\n")
    sections, line_to_section_id = parse_sections(lines)
    logger.debug(
        "Indexed {}: {} lines, {} sections", source.path, len(lines), len(sections)
    )
    return DocumentContext(
        file_path=source.path,
        file_name=source.name,
        content=source.content,
        lines=tuple(lines),
        tags=frozenset(source.tags),
        front_matter=dict(source.front_matter) if source.front_matter is not None else None,
        sections=tuple(sections),
        line_to_section_id=tuple(line_to_section_id),
    )
