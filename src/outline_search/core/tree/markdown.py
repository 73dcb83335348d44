"""Render outline item groups as markdown."""

import io
import re
from collections.abc import Sequence

from outline_search.core.query.highlight import highlight_text
from outline_search.models.document import OutlineItem


def render_group_as_markdown(
    items: Sequence[OutlineItem],
    *,
    patterns: list[re.Pattern[str]] | None = None,
    marker: str = "**",
) -> str:
    """Render a result group as an indented bullet list.

    Levels are shown relative to the group's root item.

    Args:
        items: The group, root first.
        patterns: Highlight patterns; matches are wrapped in ``marker``.
        marker: Highlight marker.

    Returns:
        Markdown string with bullet-list hierarchy.
    """
    if not items:
        return ""

    base_level = items[0].level
    out = io.StringIO()
    for item in items:
        indent = "  " * (item.level - base_level)
        text = highlight_text(item.text, patterns, marker=marker) if patterns else item.text
        out.write(f"{indent}- {text}\n")
    return out.getvalue()
