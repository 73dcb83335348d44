"""Find the spans of a text that a query's terms would match."""

import re

from outline_search.core.query.evaluator import compile_regex_term
from outline_search.models.query import (
    AndNode,
    NotNode,
    OperatorTerm,
    OrNode,
    PropertyTerm,
    QueryNode,
    TermNode,
    TextTerm,
)


def collect_text_terms(node: QueryNode) -> list[TextTerm]:
    """Every text term in the tree, including operands and property parts."""
    found: list[TextTerm] = []

    def visit(current: QueryNode | None) -> None:
        if current is None:
            return
        if isinstance(current, (AndNode, OrNode)):
            for child in current.terms:
                visit(child)
        elif isinstance(current, NotNode):
            visit(current.term)
        elif isinstance(current, TermNode):
            term = current.term
            if isinstance(term, TextTerm):
                found.append(term)
            elif isinstance(term, OperatorTerm):
                visit(term.operand)
            elif isinstance(term, PropertyTerm):
                visit(term.name_query)
                visit(term.value_query)

    visit(node)
    return found


def collect_highlight_patterns(node: QueryNode, *, case_sensitive: bool) -> list[re.Pattern[str]]:
    """Compile one pattern per distinct term; invalid regexes are skipped."""
    regexes: list[re.Pattern[str]] = []
    literals: dict[str, None] = {}
    for term in collect_text_terms(node):
        if term.is_regex:
            pattern = compile_regex_term(term, case_sensitive)
            if pattern is not None:
                regexes.append(pattern)
        elif term.value.strip():
            literals[term.value] = None

    flags = 0 if case_sensitive else re.IGNORECASE
    return regexes + [re.compile(re.escape(value), flags) for value in literals]


def highlight_spans(text: str, patterns: list[re.Pattern[str]]) -> list[tuple[int, int]]:
    """Non-overlapping ``(start, end)`` spans, earliest (then longest) match first."""
    spans = sorted(
        (
            (m.start(), m.end())
            for pattern in patterns
            for m in pattern.finditer(text)
            if m.end() > m.start()
        ),
        key=lambda span: (span[0], -span[1]),
    )
    kept: list[tuple[int, int]] = []
    for start, end in spans:
        if not kept or start >= kept[-1][1]:
            kept.append((start, end))
    return kept


def highlight_text(text: str, patterns: list[re.Pattern[str]], *, marker: str = "**") -> str:
    """Wrap every highlighted span of ``text`` in ``marker``."""
    out: list[str] = []
    last = 0
    for start, end in highlight_spans(text, patterns):
        out.append(text[last:start])
        out.append(f"{marker}{text[start:end]}{marker}")
        last = end
    out.append(text[last:])
    return "".join(out)
