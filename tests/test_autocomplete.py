"""Tests for query autocomplete."""

import pytest

from dgraph_lens.autocomplete import (
    DQL_DIRECTIVES,
    DQL_FUNCTIONS,
    SCALAR_TYPES,
    AutocompleteContextResolver,
    CompletionContext,
    rank_matches,
)
from dgraph_lens.schema import parse_schema


@pytest.fixture
def resolver():
    schema = parse_schema("type Person {\n name: string\n nickname: string\n age: int\n}")
    return AutocompleteContextResolver(schema)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("name @ind", CompletionContext.DIRECTIVE),
        ("name @", CompletionContext.DIRECTIVE),
        ("q(func: e", CompletionContext.FUNCTION),
        ("q(func:", CompletionContext.FUNCTION),
        ("type Pe", CompletionContext.TYPE),
        ("{ q { na", CompletionContext.PREDICATE),
        ("", CompletionContext.PREDICATE),
    ],
)
def test_resolve_context(resolver, text, expected):
    """Test the text before the cursor decides the context."""
    assert resolver.resolve_context(text, len(text)) is expected


def test_directive_suggestions(resolver):
    """Test directive completion after @."""
    suggestions = resolver.suggest("name: string @re", 16)

    assert [s.label for s in suggestions] == ["reverse"]
    assert suggestions[0].kind == "keyword"
    assert suggestions[0].start == 14


def test_function_suggestions(resolver):
    """Test function completion after a colon."""
    labels = [s.label for s in resolver.suggest("q(func: eq", 10)]

    assert labels == ["eq"]


def test_function_context_with_empty_word(resolver):
    """Test an empty word lists every function."""
    suggestions = resolver.suggest("q(func: ", 8)

    assert [s.label for s in suggestions] == list(DQL_FUNCTIONS)
    assert all(s.kind == "function" for s in suggestions)


def test_type_suggestions(resolver):
    """Test scalar type completion after the type keyword."""
    suggestions = resolver.suggest("type st", 7)

    assert [s.label for s in suggestions] == ["string"]
    assert suggestions[0].kind == "type"


def test_predicate_suggestions_from_schema(resolver):
    """Test schema fields are offered in predicate context."""
    suggestions = resolver.suggest("{ q(func: has(name)) { na", 25)

    labels = [s.label for s in suggestions]
    assert labels == ["name", "nickname"]
    assert all(s.kind == "property" for s in suggestions)


def test_prefix_matches_rank_first(resolver):
    """Test prefix matches come before inner substring matches."""
    labels = [s.label for s in resolver.suggest("{ a", 3)]

    assert labels[0] == "age"
    assert "false" in labels


def test_cursor_in_middle_of_text(resolver):
    """Test only text before the cursor is considered."""
    text = "@lan and more"

    suggestions = resolver.suggest(text, 4)

    assert [s.label for s in suggestions] == ["lang"]
    assert suggestions[0].start == 1


def test_cursor_out_of_range_is_clamped(resolver):
    """Test cursor offsets beyond the text."""
    assert [s.label for s in resolver.suggest("@up", 99)] == ["upsert"]
    assert resolver.resolve_context("@up", -5) is CompletionContext.PREDICATE


def test_no_match_gives_empty_list(resolver):
    """Test unmatched words."""
    assert resolver.suggest("@zzz", 4) == []


def test_invalid_text_gives_empty_list(resolver):
    """Test non-text input never raises."""
    assert resolver.suggest(None, 0) == []


def test_update_schema():
    """Test predicate suggestions follow the current schema."""
    resolver = AutocompleteContextResolver()
    assert resolver.suggest("tit", 3) == []

    resolver.update_schema(parse_schema("type Book { title: string }"))

    assert [s.label for s in resolver.suggest("tit", 3)] == ["title"]


def test_static_tables():
    """Test the static tables used for completion."""
    assert DQL_DIRECTIVES == ("index", "upsert", "lang", "reverse", "count", "list")
    assert "datetime" in SCALAR_TYPES
    assert "uid_in" in DQL_FUNCTIONS


def test_rank_matches_is_case_insensitive_and_unique():
    """Test ranking helper."""
    assert rank_matches(["Name", "nickname", "name", "Name"], "NA") == ["Name", "name", "nickname"]
