"""YAML front matter parsing for markdown documents.

Front matter is a YAML mapping between two ``---`` lines at the very start of
a file::

    ---
    priority: 5
    tags: [work, planning]
    ---
    # Heading
"""

import re
from typing import Any

import yaml
from loguru import logger

_FRONT_MATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n---[ \t]*(?:\n|$)", re.DOTALL)


def parse_front_matter(content: str) -> tuple[dict[str, Any] | None, str]:
    """Split a document into front matter and body.

    Returns:
        Tuple of (front matter mapping, body). The mapping is None when the
        document has no front matter block, or the block is not valid YAML
        or not a mapping; the body is then the original content.
    """
    match = _FRONT_MATTER_RE.match(content)
    if match is None:
        return None, content

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        logger.warning("Ignoring invalid front matter: {}", exc)
        return None, content

    if data is None:
        return {}, content[match.end() :]
    if not isinstance(data, dict):
        logger.warning("Ignoring front matter that is not a mapping ({})", type(data).__name__)
        return None, content

    return {str(k): v for k, v in data.items()}, content[match.end() :]
