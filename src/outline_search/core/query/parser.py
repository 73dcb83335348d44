"""Recursive descent parser for the outline search query language.

Grammar::

    expression := and ("OR" and)*
    and        := unary+
    unary      := "-" unary | primary
    primary    := "(" expression ")" | QUOTED | REGEX | "[" property "]"
                | word_or_operator
    QUOTED     := '"' (escaped char | [^"])* '"'
    REGEX      := "/" (escaped char | [^/])* "/" [gimsuy]*
    property   := [name] [":" (null | ["<" | ">"] value)]
    word_or_operator := OPERATOR ":" (inline operand | primary) | WORD

Operands and bracket parts are themselves full queries, parsed by a fresh
parser instance. Errors never raise; they are collected as strings and the
parser always returns a tree. Nesting (groups, negations, operands and
bracket parts) is capped at ``MAX_NESTING_DEPTH`` levels.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from outline_search.models.query import (
    EMPTY_QUERY,
    OPERATORS,
    REGEX_FLAGS,
    AndNode,
    Comparator,
    NotNode,
    OperatorName,
    OperatorTerm,
    OrNode,
    ParseResult,
    PropertyTerm,
    QueryNode,
    TermNode,
    TextTerm,
)

_WORD_STOP = frozenset("()]")

MAX_NESTING_DEPTH = 64


class _NestingTooDeep(Exception):
    """Aborts a parse whose nesting exceeds MAX_NESTING_DEPTH."""


def parse_query(text: str, *, allow_operators: bool = True) -> ParseResult:
    """Parse a query string into an expression tree.

    Args:
        text: The raw query.
        allow_operators: Recognise ``name:`` operator prefixes. When False,
            ``tag:x`` is an ordinary word.

    Returns:
        ParseResult with the tree (an empty AND if nothing parsed) and the
        list of error messages.
    """
    return QueryParser(text, allow_operators=allow_operators).parse()


def split_property(content: str) -> tuple[str, str | None]:
    """Split bracket content on the first ``:`` outside quotes and regexes.

    Returns:
        Tuple of (name part, value part); the value part is None when there is
        no separator.
    """
    in_quote = False
    in_regex = False
    escaped = False
    for i, ch in enumerate(content):
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
            continue
        if ch == '"' and not in_regex:
            in_quote = not in_quote
            continue
        if ch == "/" and not in_quote:
            in_regex = not in_regex
            continue
        if ch == ":" and not in_quote and not in_regex:
            return content[:i].strip(), content[i + 1 :].strip()
    return content.strip(), None


class QueryParser:
    """Single-use parser over one query string."""

    def __init__(self, text: str, *, allow_operators: bool = True, depth: int = 0) -> None:
        self._input = text
        self._pos = 0
        self._errors: list[str] = []
        self._allow_operators = allow_operators
        self._depth = depth

    def parse(self) -> ParseResult:
        self._skip_whitespace()
        try:
            root = self._parse_expression()
        except _NestingTooDeep:
            return ParseResult(root=EMPTY_QUERY, errors=tuple(self._errors))
        self._skip_whitespace()
        if not self._at_end():
            self._error("Unexpected token")
        return ParseResult(root=root if root is not None else EMPTY_QUERY, errors=tuple(self._errors))

    # --- Grammar rules ---

    def _parse_expression(self) -> QueryNode | None:
        left = self._parse_and()
        if left is None:
            return None

        alternatives = [left]
        while True:
            self._skip_whitespace()
            if not self._match_keyword("OR"):
                break
            right = self._parse_and()
            if right is None:
                self._error("Expected term after OR")
                break
            alternatives.append(right)

        if len(alternatives) == 1:
            return left
        return OrNode(terms=tuple(alternatives))

    def _parse_and(self) -> QueryNode | None:
        terms: list[QueryNode] = []
        while True:
            self._skip_whitespace()
            if self._at_end() or self._peek() in (")", "]") or self._at_keyword("OR"):
                break
            term = self._parse_unary()
            if term is None:
                break
            terms.append(term)

        if not terms:
            return None
        if len(terms) == 1:
            return terms[0]
        return AndNode(terms=tuple(terms))

    def _parse_unary(self) -> QueryNode | None:
        self._skip_whitespace()
        if self._peek() == "-":
            with self._nested():
                self._advance()
                term = self._parse_unary()
            if term is None:
                self._error("Expected term after '-'")
                return None
            return NotNode(term=term)
        return self._parse_primary()

    def _parse_primary(self) -> QueryNode | None:
        self._skip_whitespace()
        ch = self._peek()
        if ch is None:
            return None

        if ch == "(":
            with self._nested():
                self._advance()
                expr = self._parse_expression()
            self._skip_whitespace()
            if self._peek() != ")":
                self._error("Missing ')'")
            else:
                if expr is None:
                    self._error("Expected term inside '()'")
                self._advance()
            return expr

        if ch == '"':
            phrase = self._read_quoted()
            if phrase is None:
                return None
            return TermNode(term=TextTerm(value=phrase, is_phrase=True))

        if ch == "/":
            regex = self._read_regex()
            if regex is None:
                return None
            pattern, flags = regex
            return TermNode(term=TextTerm(value=pattern, is_regex=True, regex_flags=flags))

        if ch == "[":
            prop = self._read_bracket()
            if prop is None:
                return None
            return TermNode(term=prop)

        return self._parse_word_or_operator()

    def _parse_word_or_operator(self) -> QueryNode | None:
        self._skip_whitespace()
        word = self._read_word()
        if word is None:
            return None

        if self._allow_operators:
            operator_term = self._match_operator(word)
            if operator_term is not None:
                return TermNode(term=operator_term)

        return TermNode(term=TextTerm(value=word))

    def _match_operator(self, word: str) -> OperatorTerm | None:
        operator = _extract_operator(word)
        if operator is None:
            return None

        inline = word[len(operator) + 1 :]
        if inline:
            operand = self._parse_inline_operand(inline)
            if operand is None:
                return None
            return OperatorTerm(operator=operator, operand=operand)

        self._skip_whitespace()
        with self._nested():
            operand = self._parse_primary()
        if operand is None:
            self._error(f"Expected operand for {operator}:")
            return None
        return OperatorTerm(operator=operator, operand=operand)

    def _parse_inline_operand(self, text: str) -> QueryNode | None:
        with self._nested():
            result = QueryParser(text, allow_operators=self._allow_operators, depth=self._depth).parse()
        if result.errors:
            self._errors.extend(result.errors)
            return None
        return result.root

    @contextmanager
    def _nested(self) -> Iterator[None]:
        if self._depth >= MAX_NESTING_DEPTH:
            self._error("Query nested too deeply")
            raise _NestingTooDeep
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    # --- Lexical helpers ---

    def _read_word(self) -> str | None:
        start = self._pos
        while not self._at_end():
            ch = self._input[self._pos]
            if ch.isspace() or ch in _WORD_STOP:
                break
            self._pos += 1
        if self._pos == start:
            return None
        return self._input[start : self._pos]

    def _read_quoted(self) -> str | None:
        self._advance()
        chars: list[str] = []
        escaped = False
        while not self._at_end():
            ch = self._advance()
            if escaped:
                chars.append(ch)
                escaped = False
                continue
            if ch == "\\":
                escaped = True
                continue
            if ch == '"':
                return "".join(chars)
            chars.append(ch)
        self._error("Unterminated quote")
        return None

    def _read_regex(self) -> tuple[str, str | None] | None:
        self._advance()
        chars: list[str] = []
        escaped = False
        while not self._at_end():
            ch = self._advance()
            if escaped:
                chars.append(ch)
                escaped = False
                continue
            if ch == "\\":
                # Keep the backslash: it is part of the pattern.
                escaped = True
                chars.append(ch)
                continue
            if ch == "/":
                return "".join(chars), self._read_regex_flags()
            chars.append(ch)
        self._error("Unterminated regex")
        return None

    def _read_regex_flags(self) -> str | None:
        start = self._pos
        while not self._at_end() and self._input[self._pos] in REGEX_FLAGS:
            self._pos += 1
        return self._input[start : self._pos] or None

    def _read_bracket(self) -> PropertyTerm | None:
        self._advance()
        chars: list[str] = []
        escaped = False
        in_quote = False
        in_regex = False
        while not self._at_end():
            ch = self._advance()
            if escaped:
                chars.append(ch)
                escaped = False
                continue
            if ch == "\\":
                escaped = True
                chars.append(ch)
                continue
            if ch == '"' and not in_regex:
                in_quote = not in_quote
            elif ch == "/" and not in_quote:
                in_regex = not in_regex
            elif ch == "]" and not in_quote and not in_regex:
                return self._parse_property_content("".join(chars).strip())
            chars.append(ch)
        self._error("Unterminated property filter")
        return None

    def _parse_property_content(self, content: str) -> PropertyTerm:
        name_part, value_part = split_property(content)
        name_query = self._parse_sub_query(name_part) if name_part else None

        if not value_part:
            return PropertyTerm(name_query=name_query)

        value = value_part.strip()
        if value.lower() == "null":
            return PropertyTerm(name_query=name_query, null_check=True)

        comparator: Comparator | None = None
        if value.startswith("<"):
            comparator = "lt"
            value = value[1:].strip()
        elif value.startswith(">"):
            comparator = "gt"
            value = value[1:].strip()

        value_query = self._parse_sub_query(value) if value else None
        return PropertyTerm(name_query=name_query, value_query=value_query, comparator=comparator)

    def _parse_sub_query(self, text: str) -> QueryNode:
        with self._nested():
            result = QueryParser(text, allow_operators=False, depth=self._depth).parse()
        self._errors.extend(result.errors)
        return result.root

    def _match_keyword(self, keyword: str) -> bool:
        if not self._at_keyword(keyword):
            return False
        self._pos += len(keyword)
        return True

    def _at_keyword(self, keyword: str) -> bool:
        end = self._pos + len(keyword)
        if self._input[self._pos : end].upper() != keyword:
            return False
        # "ORDER" or "OR-ish" is a word, not the keyword.
        return end >= len(self._input) or self._input[end].isspace() or self._input[end] == ")"

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._input[self._pos].isspace():
            self._pos += 1

    def _peek(self) -> str | None:
        if self._at_end():
            return None
        return self._input[self._pos]

    def _advance(self) -> str:
        ch = self._input[self._pos]
        self._pos += 1
        return ch

    def _at_end(self) -> bool:
        return self._pos >= len(self._input)

    def _error(self, message: str) -> None:
        self._errors.append(f"{message} at position {self._pos + 1}")


def _extract_operator(word: str) -> OperatorName | None:
    lower = word.lower()
    for operator in OPERATORS:
        if lower.startswith(f"{operator}:"):
            return operator
    return None
