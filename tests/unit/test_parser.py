"""Tests for the query parser."""

import pytest

from outline_search.core.query.parser import parse_query, split_property
from outline_search.models.query import (
    EMPTY_QUERY,
    AndNode,
    NotNode,
    OperatorTerm,
    OrNode,
    PropertyTerm,
    TermNode,
    TextTerm,
)


def word(value: str) -> TermNode:
    return TermNode(term=TextTerm(value=value))


def test_single_word() -> None:
    result = parse_query("hello")
    assert result.errors == ()
    assert result.ok
    assert result.root == word("hello")


def test_adjacent_words_are_anded() -> None:
    result = parse_query("  foo   bar ")
    assert result.root == AndNode(terms=(word("foo"), word("bar")))


def test_or_keyword() -> None:
    assert parse_query("a OR b").root == OrNode(terms=(word("a"), word("b")))
    assert parse_query("a or b").root == OrNode(terms=(word("a"), word("b")))


def test_or_binds_looser_than_and() -> None:
    result = parse_query("a b OR c")
    assert result.root == OrNode(terms=(AndNode(terms=(word("a"), word("b"))), word("c")))


def test_or_chain_is_flat() -> None:
    result = parse_query("a OR b OR c")
    assert result.root == OrNode(terms=(word("a"), word("b"), word("c")))


def test_or_inside_a_word_is_not_a_keyword() -> None:
    result = parse_query("ORDER ore")
    assert result.root == AndNode(terms=(word("ORDER"), word("ore")))


def test_or_before_closing_paren() -> None:
    result = parse_query("(a OR)")
    assert any("Expected term after OR" in e for e in result.errors)


def test_negation() -> None:
    assert parse_query("-done").root == NotNode(term=word("done"))
    assert parse_query("--done").root == NotNode(term=NotNode(term=word("done")))


def test_negated_group() -> None:
    result = parse_query("-(a OR b) c")
    assert result.root == AndNode(
        terms=(NotNode(term=OrNode(terms=(word("a"), word("b")))), word("c"))
    )


def test_grouping() -> None:
    result = parse_query("(a OR b) c")
    assert result.root == AndNode(terms=(OrNode(terms=(word("a"), word("b"))), word("c")))


def test_quoted_phrase() -> None:
    result = parse_query('"hello world" x')
    assert result.root == AndNode(
        terms=(TermNode(term=TextTerm(value="hello world", is_phrase=True)), word("x"))
    )


def test_quoted_phrase_escapes() -> None:
    result = parse_query(r'"say \"hi\" \\ ok"')
    assert result.root == TermNode(term=TextTerm(value='say "hi" \\ ok', is_phrase=True))


def test_regex_with_flags() -> None:
    result = parse_query("/fo+/gi")
    assert result.root == TermNode(
        term=TextTerm(value="fo+", is_regex=True, regex_flags="gi")
    )


def test_regex_keeps_escaped_slash() -> None:
    result = parse_query(r"/a\/b/")
    assert result.root == TermNode(term=TextTerm(value=r"a\/b", is_regex=True))


def test_regex_flags_stop_at_unknown_letter() -> None:
    result = parse_query("/abc/mx")
    assert result.root == AndNode(
        terms=(TermNode(term=TextTerm(value="abc", is_regex=True, regex_flags="m")), word("x"))
    )


def test_inline_operator_operand() -> None:
    result = parse_query("tag:#work")
    assert result.root == TermNode(term=OperatorTerm(operator="tag", operand=word("#work")))


def test_deferred_operator_operand() -> None:
    assert parse_query("tag: #work").root == parse_query("tag:#work").root


def test_operator_names_are_case_insensitive() -> None:
    result = parse_query("FILE:notes")
    assert result.root == TermNode(term=OperatorTerm(operator="file", operand=word("notes")))


def test_operator_with_grouped_operand() -> None:
    result = parse_query("line:(a OR b) c")
    assert result.root == AndNode(
        terms=(
            TermNode(
                term=OperatorTerm(operator="line", operand=OrNode(terms=(word("a"), word("b"))))
            ),
            word("c"),
        )
    )


def test_operator_with_phrase_operand() -> None:
    result = parse_query('section: "weekly review"')
    operand = TermNode(term=TextTerm(value="weekly review", is_phrase=True))
    assert result.root == TermNode(term=OperatorTerm(operator="section", operand=operand))


def test_nested_inline_operators() -> None:
    result = parse_query("match-case:tag:Work")
    inner = TermNode(term=OperatorTerm(operator="tag", operand=word("Work")))
    assert result.root == TermNode(term=OperatorTerm(operator="match-case", operand=inner))


def test_task_operators_are_distinct() -> None:
    for name in ("task", "task-todo", "task-done"):
        result = parse_query(f"{name}:x")
        assert result.root == TermNode(term=OperatorTerm(operator=name, operand=word("x")))


def test_unknown_prefix_is_plain_word() -> None:
    assert parse_query("foo:bar").root == word("foo:bar")


def test_operators_can_be_disabled() -> None:
    result = parse_query("tag:#work", allow_operators=False)
    assert result.root == word("tag:#work")


def test_missing_operator_operand() -> None:
    result = parse_query("tag:")
    assert result.errors == ("Expected operand for tag: at position 5",)


def test_inline_operand_errors_are_reported() -> None:
    result = parse_query('tag:"work')
    assert any("Unterminated quote" in e for e in result.errors)


def test_property_existence() -> None:
    result = parse_query("[status]")
    assert result.root == TermNode(term=PropertyTerm(name_query=word("status")))


def test_property_value() -> None:
    result = parse_query("[status:done]")
    assert result.root == TermNode(
        term=PropertyTerm(name_query=word("status"), value_query=word("done"))
    )


def test_property_comparators() -> None:
    gt = parse_query("[priority:>3]").root
    lt = parse_query("[priority: < 3]").root
    assert gt == TermNode(
        term=PropertyTerm(name_query=word("priority"), value_query=word("3"), comparator="gt")
    )
    assert lt == TermNode(
        term=PropertyTerm(name_query=word("priority"), value_query=word("3"), comparator="lt")
    )


def test_property_null_check() -> None:
    result = parse_query("[due:NULL]")
    assert result.root == TermNode(term=PropertyTerm(name_query=word("due"), null_check=True))


def test_property_quoted_value_may_contain_colon_and_bracket() -> None:
    result = parse_query('[title:"a: [b]"]')
    value = TermNode(term=TextTerm(value="a: [b]", is_phrase=True))
    assert result.root == TermNode(term=PropertyTerm(name_query=word("title"), value_query=value))


def test_property_regex_name() -> None:
    result = parse_query("[/^st/:x]")
    name = TermNode(term=TextTerm(value="^st", is_regex=True))
    assert result.root == TermNode(term=PropertyTerm(name_query=name, value_query=word("x")))


def test_property_parts_never_parse_operators() -> None:
    result = parse_query("[tag:file:x]")
    assert result.root == TermNode(
        term=PropertyTerm(name_query=word("tag"), value_query=word("file:x"))
    )


def test_property_without_name() -> None:
    result = parse_query("[:x]")
    assert result.root == TermNode(term=PropertyTerm(value_query=word("x")))


def test_split_property() -> None:
    assert split_property("a:b") == ("a", "b")
    assert split_property('"x:y":z') == ('"x:y"', "z")
    assert split_property("/a:b/") == ("/a:b/", None)
    assert split_property(r"a\:b:c") == (r"a\:b", "c")


@pytest.mark.parametrize(
    ("query", "message"),
    [
        ('"unterminated', "Unterminated quote at position 14"),
        ("/abc", "Unterminated regex at position 5"),
        ("[abc", "Unterminated property filter at position 5"),
        ("a )", "Unexpected token at position 3"),
        ("(a", "Missing ')' at position 3"),
        ("a OR", "Expected term after OR at position 5"),
        ("a -", "Expected term after '-' at position 4"),
        ("()", "Expected term inside '()' at position 2"),
    ],
)
def test_errors_are_reported(query: str, message: str) -> None:
    result = parse_query(query)
    assert message in result.errors


def test_unterminated_quote_yields_empty_tree() -> None:
    result = parse_query('"unterminated')
    assert result.root == EMPTY_QUERY
    assert not result.ok


@pytest.mark.parametrize(
    "query",
    ["", "   ", "OR", ")", "]", "-", "((", "[", "/", '"', "tag:", "a OR OR b", "[x:\"", "-(-)"],
)
def test_parse_always_returns_a_tree(query: str) -> None:
    result = parse_query(query)
    assert result.root is not None


@pytest.mark.parametrize(
    "query",
    [
        "(" * 250 + "x" + ")" * 250,
        "-" * 1200 + "x",
        "(-" * 300 + "x" + ")" * 300,
    ],
)
def test_deep_nesting_is_an_error(query: str) -> None:
    result = parse_query(query)
    assert result.errors == ("Query nested too deeply at position 65",)
    assert result.root == EMPTY_QUERY


@pytest.mark.parametrize(
    "query",
    [
        "match-case:" * 200 + "x",
        "match-case: " * 200 + "x",
        "tag:(" * 200 + "x" + ")" * 200,
    ],
)
def test_deep_operator_nesting_is_an_error(query: str) -> None:
    result = parse_query(query)
    assert any("Query nested too deeply" in error for error in result.errors)
    assert result.root is not None


def test_nesting_below_the_limit_parses() -> None:
    result = parse_query("(" * 50 + "x" + ")" * 50)
    assert result.errors == ()
    assert result.root == word("x")

    result = parse_query("-" * 60 + "x")
    assert result.errors == ()


def test_empty_query_has_no_errors() -> None:
    result = parse_query("")
    assert result.root == EMPTY_QUERY
    assert result.errors == ()
