"""Score a parsed query against one item group and its document.

AND sums the scores of its children and fails on the first miss, OR keeps
the best matching child, NOT inverts and always scores 0. Scoped operators
scan their scope and keep the single best match.

Case sensitivity is threaded through every call as ``case_override``:
``match-case:`` and ``ignore-case:`` set it for their operand only, and
``None`` falls back to the context default.
"""

import json
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, assert_never

from outline_search.models.document import DocumentContext, OutlineItem, TaskStatus
from outline_search.models.query import (
    NO_MATCH,
    AndNode,
    Comparator,
    EvalResult,
    NotNode,
    OperatorTerm,
    OrNode,
    PropertyTerm,
    QueryNode,
    QueryTerm,
    TermNode,
    TextTerm,
)

_NUMBER_PREFIX_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class GroupContext:
    """The candidate item group: a root item plus its descendants."""

    items: tuple[OutlineItem, ...]

    @property
    def root(self) -> OutlineItem:
        return self.items[0]

    @property
    def text(self) -> str:
        return "\n".join(item.search_text for item in self.items)


@dataclass(frozen=True)
class EvalContext:
    document: DocumentContext
    group: GroupContext
    case_sensitive: bool = False


def evaluate_query(
    node: QueryNode, ctx: EvalContext, case_override: bool | None = None
) -> EvalResult:
    """Evaluate a tree against the group and document in ``ctx``."""
    if isinstance(node, AndNode):
        total = 0
        for child in node.terms:
            result = evaluate_query(child, ctx, case_override)
            if not result.matched:
                return NO_MATCH
            total += result.score
        return EvalResult(matched=True, score=total)
    if isinstance(node, OrNode):
        return _best(evaluate_query(child, ctx, case_override) for child in node.terms)
    if isinstance(node, NotNode):
        return _invert(evaluate_query(node.term, ctx, case_override))
    if isinstance(node, TermNode):
        return _evaluate_term(node.term, ctx, case_override)
    assert_never(node)


def evaluate_on_text(node: QueryNode, text: str, case_sensitive: bool) -> EvalResult:
    """Evaluate a tree against a single string.

    Only text terms can match here; operator and property leaves nested in a
    scoped operand never match.
    """
    if isinstance(node, AndNode):
        total = 0
        for child in node.terms:
            result = evaluate_on_text(child, text, case_sensitive)
            if not result.matched:
                return NO_MATCH
            total += result.score
        return EvalResult(matched=True, score=total)
    if isinstance(node, OrNode):
        return _best(evaluate_on_text(child, text, case_sensitive) for child in node.terms)
    if isinstance(node, NotNode):
        return _invert(evaluate_on_text(node.term, text, case_sensitive))
    if isinstance(node, TermNode):
        if not isinstance(node.term, TextTerm):
            return NO_MATCH
        return match_text_term(node.term, text, case_sensitive)
    assert_never(node)


def best_over(node: QueryNode, texts: Iterable[str], case_sensitive: bool) -> EvalResult:
    """Best single match of ``node`` over several texts."""
    return _best(evaluate_on_text(node, text, case_sensitive) for text in texts)


def match_text_term(term: TextTerm, text: str, case_sensitive: bool) -> EvalResult:
    """Count occurrences of a text term; the count is the score."""
    if not term.value:
        return NO_MATCH

    if term.is_regex:
        pattern = compile_regex_term(term, case_sensitive)
        if pattern is None:
            return NO_MATCH
        count = count_regex_matches(pattern, text, sticky="y" in (term.regex_flags or ""))
        return EvalResult(matched=True, score=count) if count else NO_MATCH

    needle = term.value if case_sensitive else term.value.lower()
    haystack = text if case_sensitive else text.lower()
    count = haystack.count(needle)
    return EvalResult(matched=True, score=count) if count else NO_MATCH


def compile_regex_term(term: TextTerm, case_sensitive: bool) -> re.Pattern[str] | None:
    """Compile a regex term, or return None when the pattern is invalid.

    Matching is case-insensitive unless ``case_sensitive`` is set and the
    term has no ``i`` flag of its own.
    """
    flags = term.regex_flags or ""
    re_flags = 0
    if "i" in flags or not case_sensitive:
        re_flags |= re.IGNORECASE
    if "m" in flags:
        re_flags |= re.MULTILINE
    if "s" in flags:
        re_flags |= re.DOTALL
    try:
        return re.compile(term.value, re_flags)
    except re.error:
        return None


def count_regex_matches(pattern: re.Pattern[str], text: str, *, sticky: bool = False) -> int:
    """Count matches; sticky matching only counts back-to-back matches from 0."""
    if not sticky:
        return sum(1 for _ in pattern.finditer(text))

    count = 0
    pos = 0
    while pos <= len(text):
        match = pattern.match(text, pos)
        if match is None:
            break
        count += 1
        pos = match.end() if match.end() > pos else pos + 1
    return count


def _evaluate_term(term: QueryTerm, ctx: EvalContext, case_override: bool | None) -> EvalResult:
    case_sensitive = ctx.case_sensitive if case_override is None else case_override
    if isinstance(term, TextTerm):
        return match_text_term(term, ctx.group.text, case_sensitive)
    if isinstance(term, OperatorTerm):
        return _evaluate_operator(term, ctx, case_sensitive)
    if isinstance(term, PropertyTerm):
        return _evaluate_property(term, ctx.document.front_matter, case_sensitive)
    assert_never(term)


def _evaluate_operator(term: OperatorTerm, ctx: EvalContext, case_sensitive: bool) -> EvalResult:
    operand = term.operand
    document = ctx.document
    operator = term.operator
    if operator == "file":
        return evaluate_on_text(operand, document.file_name, case_sensitive)
    if operator == "path":
        return evaluate_on_text(operand, document.file_path, case_sensitive)
    if operator == "content":
        return evaluate_on_text(operand, document.content, case_sensitive)
    if operator == "match-case":
        return evaluate_query(operand, ctx, True)
    if operator == "ignore-case":
        return evaluate_query(operand, ctx, False)
    if operator == "tag":
        return best_over(operand, document.tags, case_sensitive)
    if operator == "line":
        return best_over(operand, document.lines, case_sensitive)
    if operator == "block":
        return best_over(operand, (i.search_text for i in ctx.group.items), case_sensitive)
    if operator == "section":
        root = ctx.group.root
        section = document.find_section(root.section_id, root.line_number)
        if section is None:
            return NO_MATCH
        return evaluate_on_text(operand, section.text, case_sensitive)
    if operator == "task":
        return _evaluate_tasks(operand, ctx.group.items, None, case_sensitive)
    if operator == "task-todo":
        return _evaluate_tasks(operand, ctx.group.items, "todo", case_sensitive)
    if operator == "task-done":
        return _evaluate_tasks(operand, ctx.group.items, "done", case_sensitive)
    assert_never(operator)


def _evaluate_tasks(
    operand: QueryNode,
    items: Sequence[OutlineItem],
    status: TaskStatus | None,
    case_sensitive: bool,
) -> EvalResult:
    texts = (
        item.search_text
        for item in items
        if item.is_task and (status is None or item.task_status == status)
    )
    return best_over(operand, texts, case_sensitive)


def _evaluate_property(
    term: PropertyTerm, front_matter: Mapping[str, Any] | None, case_sensitive: bool
) -> EvalResult:
    if not front_matter:
        return NO_MATCH

    best = NO_MATCH
    for key, value in front_matter.items():
        if term.name_query is not None:
            if not evaluate_on_text(term.name_query, str(key), case_sensitive).matched:
                continue

        if term.value_query is None and not term.null_check:
            return EvalResult(matched=True, score=1)

        if term.null_check:
            if is_empty_value(value):
                return EvalResult(matched=True, score=1)
            continue

        for entry in normalize_values(value):
            if term.comparator is not None:
                if _compare(entry, term.value_query, term.comparator, case_sensitive):
                    return EvalResult(matched=True, score=1)
                continue
            if term.value_query is not None:
                result = evaluate_on_text(term.value_query, entry, case_sensitive)
                if result.matched and (not best.matched or result.score > best.score):
                    best = result

    return best


def _compare(
    value: str, query: QueryNode | None, comparator: Comparator, case_sensitive: bool
) -> bool:
    if query is None:
        return False
    target = literal_text(query)
    left_num = parse_number(value)
    right_num = parse_number(target)
    if left_num is not None and right_num is not None:
        return left_num < right_num if comparator == "lt" else left_num > right_num

    left = value if case_sensitive else value.lower()
    right = target if case_sensitive else target.lower()
    return left < right if comparator == "lt" else left > right


def literal_text(node: QueryNode) -> str:
    """Value of the first text term in a tree, or ``""``."""
    if isinstance(node, TermNode):
        return node.term.value if isinstance(node.term, TextTerm) else ""
    if isinstance(node, (AndNode, OrNode)):
        return literal_text(node.terms[0]) if node.terms else ""
    if isinstance(node, NotNode):
        return literal_text(node.term)
    assert_never(node)


def parse_number(text: str) -> float | None:
    """Parse the leading decimal number of ``text`` (``"5kg"`` -> 5.0).

    Values that overflow to infinity (``"1e999"``) are not numbers.
    """
    match = _NUMBER_PREFIX_RE.match(text)
    if match is None:
        return None
    value = float(match.group(0))
    if math.isinf(value):
        return None
    return value


def normalize_values(value: Any) -> list[str]:
    """Flatten a front-matter value into the strings it is matched as."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [s for entry in value for s in normalize_values(entry)]
    if isinstance(value, Mapping):
        return [json.dumps(value, separators=(",", ":"), default=str)]
    if isinstance(value, bool):
        return ["true" if value else "false"]
    return [str(value)]


def is_empty_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    if isinstance(value, str):
        return not value.strip()
    return False


def _best(results: Iterable[EvalResult]) -> EvalResult:
    best = NO_MATCH
    for result in results:
        if result.matched and (not best.matched or result.score > best.score):
            best = result
    return best


def _invert(result: EvalResult) -> EvalResult:
    return NO_MATCH if result.matched else EvalResult(matched=True, score=0)
