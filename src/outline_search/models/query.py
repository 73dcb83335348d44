"""Expression tree produced by the query parser.

The tree is a closed union: ``QueryNode`` is one of ``AndNode``, ``OrNode``,
``NotNode`` or ``TermNode``, and a ``TermNode`` wraps one of ``TextTerm``,
``OperatorTerm`` or ``PropertyTerm``. Consumers dispatch with ``isinstance``
and finish with ``assert_never`` so a new variant fails type checking.
"""

from dataclasses import dataclass
from typing import Literal, TypeAlias

OperatorName = Literal[
    "file",
    "path",
    "content",
    "match-case",
    "ignore-case",
    "tag",
    "line",
    "block",
    "section",
    "task",
    "task-todo",
    "task-done",
]

OPERATORS: tuple[OperatorName, ...] = (
    "file",
    "path",
    "content",
    "match-case",
    "ignore-case",
    "tag",
    "line",
    "block",
    "section",
    "task",
    "task-todo",
    "task-done",
)

Comparator = Literal["lt", "gt"]

REGEX_FLAGS = frozenset("gimsuy")


@dataclass(frozen=True)
class TextTerm:
    """A bare word, a quoted phrase or a ``/regex/flags`` literal."""

    value: str
    is_phrase: bool = False
    is_regex: bool = False
    regex_flags: str | None = None


@dataclass(frozen=True)
class OperatorTerm:
    """``name:operand`` redirecting the operand to another scope."""

    operator: OperatorName
    operand: "QueryNode"


@dataclass(frozen=True)
class PropertyTerm:
    """A bracketed front-matter filter such as ``[status:done]``."""

    name_query: "QueryNode | None" = None
    value_query: "QueryNode | None" = None
    comparator: Comparator | None = None
    null_check: bool = False


QueryTerm: TypeAlias = TextTerm | OperatorTerm | PropertyTerm


@dataclass(frozen=True)
class AndNode:
    terms: tuple["QueryNode", ...]


@dataclass(frozen=True)
class OrNode:
    terms: tuple["QueryNode", ...]


@dataclass(frozen=True)
class NotNode:
    term: "QueryNode"


@dataclass(frozen=True)
class TermNode:
    term: QueryTerm


QueryNode: TypeAlias = AndNode | OrNode | NotNode | TermNode

EMPTY_QUERY = AndNode(terms=())


@dataclass(frozen=True)
class ParseResult:
    """Parsed tree plus any grammar errors.

    The tree is always present; it must not be evaluated when ``errors`` is
    non-empty.
    """

    root: QueryNode
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class EvalResult:
    matched: bool
    score: int = 0


NO_MATCH = EvalResult(matched=False, score=0)
