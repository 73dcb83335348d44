"""Load a directory of markdown notes and index it for searching."""

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from outline_search.config import MARKDOWN_EXTENSIONS
from outline_search.core.importer.front_matter import parse_front_matter
from outline_search.core.index.outline import extract_outline_items
from outline_search.core.index.sections import build_document_context
from outline_search.models.document import DocumentContext, OutlineItem, SourceDocument

# "#tag", "#nested/tag"; not "#" headings, "C#" or URL fragments.
_INLINE_TAG_RE = re.compile(r"(?<![\w#/&])#([^\s#`'\",.;:!?()\[\]{}<>|*=+]+)")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_CODE_SPAN_RE = re.compile(r"`[^`]*`")


@dataclass(frozen=True)
class VaultIndex:
    """Outline items of every document plus each document's context."""

    items: list[OutlineItem]
    contexts: dict[str, DocumentContext]


def _normalize_tag(tag: str) -> str | None:
    tag = tag.strip()
    if not tag:
        return None
    return tag if tag.startswith("#") else f"#{tag}"


def extract_tags(body: str, front_matter: Mapping[str, Any] | None = None) -> frozenset[str]:
    """Collect inline ``#tags`` and front-matter ``tags``/``tag`` entries.

    Tags inside fenced code blocks and inline code spans are ignored. Every
    tag is returned with a leading ``#``.
    """
    tags: set[str] = set()

    in_fence = False
    for line in body.split("\n"):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        for match in _INLINE_TAG_RE.finditer(_CODE_SPAN_RE.sub("", line)):
            if not match.group(1).isdigit():
                tags.add(f"#{match.group(1)}")

    for key in ("tags", "tag"):
        raw = (front_matter or {}).get(key)
        if raw is None:
            continue
        values = raw if isinstance(raw, list) else str(raw).replace(",", " ").split()
        for value in values:
            tag = _normalize_tag(str(value))
            if tag:
                tags.add(tag)

    return frozenset(tags)


def load_document(path: Path, *, root: Path) -> SourceDocument:
    """Read one markdown file into a SourceDocument."""
    content = path.read_text(encoding="utf-8")
    front_matter, body = parse_front_matter(content)
    return SourceDocument(
        path=path.relative_to(root).as_posix(),
        name=path.name,
        content=content,
        tags=extract_tags(body, front_matter),
        front_matter=front_matter,
    )


def load_vault(
    root: Path, *, extensions: Sequence[str] = MARKDOWN_EXTENSIONS
) -> list[SourceDocument]:
    """Read every markdown file below ``root``, in sorted path order.

    Files that cannot be read or decoded are logged and skipped.
    """
    if not root.is_dir():
        msg = f"Vault directory not found: {root}"
        raise FileNotFoundError(msg)

    documents: list[SourceDocument] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in extensions:
            continue
        if any(part.startswith(".") for part in path.relative_to(root).parts):
            continue
        try:
            documents.append(load_document(path, root=root))
        except (OSError, UnicodeDecodeError):
            logger.warning("Skipping unreadable file {}", path, exc_info=True)
            continue

    logger.debug("Loaded {} documents from {}", len(documents), root)
    return documents


def build_index(documents: Iterable[SourceDocument]) -> VaultIndex:
    """Index documents and extract their outline items, in document order."""
    items: list[OutlineItem] = []
    contexts: dict[str, DocumentContext] = {}
    for source in documents:
        context = build_document_context(source)
        contexts[context.file_path] = context
        items.extend(
            extract_outline_items(
                context.lines,
                file_path=context.file_path,
                file_name=context.file_name,
                line_to_section_id=context.line_to_section_id,
            )
        )

    logger.debug("Indexed {} documents, {} outline items", len(contexts), len(items))
    return VaultIndex(items=items, contexts=contexts)


class VaultSource:
    """Document store backed by a directory of markdown files.

    Every call re-reads the directory so searches always see current notes.
    """

    def __init__(self, root: Path, *, extensions: Sequence[str] = MARKDOWN_EXTENSIONS) -> None:
        self.root = root
        self.extensions = tuple(extensions)

    def load_documents(self) -> list[SourceDocument]:
        return load_vault(self.root, extensions=self.extensions)
