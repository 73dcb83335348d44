"""Turn an expression tree back into query text."""

from typing import Any, assert_never

from outline_search.models.query import (
    AndNode,
    NotNode,
    OperatorTerm,
    OrNode,
    PropertyTerm,
    QueryNode,
    QueryTerm,
    TermNode,
    TextTerm,
)


def format_query(node: QueryNode) -> str:
    """Render ``node`` so that parsing the result yields the same tree."""
    if isinstance(node, AndNode):
        return " ".join(
            f"({format_query(t)})" if isinstance(t, OrNode) else format_query(t)
            for t in node.terms
        )
    if isinstance(node, OrNode):
        return " OR ".join(format_query(t) for t in node.terms)
    if isinstance(node, NotNode):
        return f"-{_primary(node.term)}"
    if isinstance(node, TermNode):
        return format_term(node.term)
    assert_never(node)


def format_term(term: QueryTerm) -> str:
    if isinstance(term, TextTerm):
        if term.is_regex:
            return f"/{term.value}/{term.regex_flags or ''}"
        if term.is_phrase:
            escaped = term.value.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        return term.value
    if isinstance(term, OperatorTerm):
        operand = term.operand
        if isinstance(operand, TermNode) and isinstance(operand.term, TextTerm):
            if not (operand.term.is_phrase or operand.term.is_regex):
                return f"{term.operator}:{operand.term.value}"
        return f"{term.operator}: {_primary(operand)}"
    if isinstance(term, PropertyTerm):
        name = format_query(term.name_query) if term.name_query is not None else ""
        if term.null_check:
            return f"[{name}:null]"
        if term.value_query is None and term.comparator is None:
            return f"[{name}]"
        prefix = {"lt": "<", "gt": ">", None: ""}[term.comparator]
        value = format_query(term.value_query) if term.value_query is not None else ""
        return f"[{name}:{prefix}{value}]"
    assert_never(term)


def _primary(node: QueryNode) -> str:
    if isinstance(node, TermNode):
        return format_query(node)
    return f"({format_query(node)})"


def query_to_dict(node: QueryNode) -> dict[str, Any]:
    """JSON-friendly structure of a tree."""
    if isinstance(node, (AndNode, OrNode)):
        kind = "and" if isinstance(node, AndNode) else "or"
        return {"type": kind, "terms": [query_to_dict(t) for t in node.terms]}
    if isinstance(node, NotNode):
        return {"type": "not", "term": query_to_dict(node.term)}
    if isinstance(node, TermNode):
        return {"type": "term", "term": _term_to_dict(node.term)}
    assert_never(node)


def _term_to_dict(term: QueryTerm) -> dict[str, Any]:
    if isinstance(term, TextTerm):
        return {
            "kind": "text",
            "value": term.value,
            "is_phrase": term.is_phrase,
            "is_regex": term.is_regex,
            "regex_flags": term.regex_flags,
        }
    if isinstance(term, OperatorTerm):
        return {"kind": "operator", "operator": term.operator, "operand": query_to_dict(term.operand)}
    if isinstance(term, PropertyTerm):
        return {
            "kind": "property",
            "name_query": query_to_dict(term.name_query) if term.name_query is not None else None,
            "value_query": query_to_dict(term.value_query) if term.value_query is not None else None,
            "comparator": term.comparator,
            "null_check": term.null_check,
        }
    assert_never(term)
