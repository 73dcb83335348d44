"""Group outline items, evaluate a query per group, and rank the matches."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from loguru import logger

from outline_search.core.query.evaluator import EvalContext, GroupContext, evaluate_query
from outline_search.core.query.parser import parse_query
from outline_search.models.document import DocumentContext, OutlineItem, SearchResult
from outline_search.models.query import QueryNode


@dataclass(frozen=True)
class SearchOutcome:
    """Ranked results, or the parse errors that prevented a search."""

    results: list[SearchResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def group_items(items: Sequence[OutlineItem]) -> list[list[OutlineItem]]:
    """Split items into root + descendant runs.

    A new group starts at every item whose level is not deeper than the
    current group's root, and at every change of document.
    """
    groups: list[list[OutlineItem]] = []
    current: list[OutlineItem] = []
    for item in items:
        if current and item.level > current[0].level and item.file_path == current[0].file_path:
            current.append(item)
            continue
        if current:
            groups.append(current)
        current = [item]
    if current:
        groups.append(current)
    return groups


def rank_results(results: list[SearchResult]) -> list[SearchResult]:
    """Sort by score (descending), then file name, then line number."""
    return sorted(
        results,
        key=lambda r: (-r.score, r.root.file_name.casefold(), r.root.line_number),
    )


def evaluate_groups(
    root: QueryNode,
    groups: Sequence[Sequence[OutlineItem]],
    contexts: Mapping[str, DocumentContext],
    *,
    case_sensitive: bool = False,
) -> list[SearchResult]:
    """Evaluate ``root`` against every group and return the ranked matches."""
    results: list[SearchResult] = []
    for group in groups:
        if not group:
            continue
        document = contexts.get(group[0].file_path)
        if document is None:
            logger.debug("No document context for {}, skipping group", group[0].file_path)
            continue

        ctx = EvalContext(
            document=document,
            group=GroupContext(items=tuple(group)),
            case_sensitive=case_sensitive,
        )
        result = evaluate_query(root, ctx)
        if result.matched:
            results.append(SearchResult(items=tuple(group), score=result.score))
    return rank_results(results)


def search_items(
    query: str,
    items: Sequence[OutlineItem],
    contexts: Mapping[str, DocumentContext],
    *,
    case_sensitive: bool = False,
    allow_operators: bool = True,
) -> SearchOutcome:
    """Search outline items with the query language.

    Args:
        query: Raw query text.
        items: Outline items of all documents, in document order.
        contexts: Document contexts keyed by file path.
        case_sensitive: Default case mode; ``match-case:``/``ignore-case:``
            override it locally.
        allow_operators: Recognise ``name:`` operators.

    Returns:
        SearchOutcome with ranked results, or with the parse errors and no
        results.
    """
    if not query.strip():
        return SearchOutcome()

    parsed = parse_query(query, allow_operators=allow_operators)
    if parsed.errors:
        logger.debug("Query {!r} failed to parse: {}", query, parsed.errors[0])
        return SearchOutcome(errors=list(parsed.errors))

    results = evaluate_groups(
        parsed.root, group_items(items), contexts, case_sensitive=case_sensitive
    )
    logger.debug("Query {!r} matched {} groups", query, len(results))
    return SearchOutcome(results=results)
