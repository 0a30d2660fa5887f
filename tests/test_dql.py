"""Tests for DQL query helpers."""

import pytest

from dgraph_lens.dql import (
    DQLVariable,
    detect_variables,
    extract_declared_variables,
    format_variable_value,
    has_named_query_with_vars,
    validate_dql_syntax,
    validate_variable_value,
)

NAMED_QUERY = """query people($name: string, $limit: int) {
  q(func: eq(name, $name), first: $limit) { uid name }
}"""


def test_extract_declared_variables():
    """Test declared variables with their types."""
    assert extract_declared_variables(NAMED_QUERY) == [
        DQLVariable(name="name", type="string"),
        DQLVariable(name="limit", type="int"),
    ]


def test_detect_variables_includes_undeclared():
    """Test used-but-undeclared variables are found too."""
    query = "{ q(func: uid($id)) { name } }"

    assert detect_variables(query) == ["id"]
    assert detect_variables(NAMED_QUERY) == ["name", "limit"]
    assert detect_variables("") == []


def test_has_named_query_with_vars():
    """Test detection of the named query form."""
    assert has_named_query_with_vars(NAMED_QUERY)
    assert not has_named_query_with_vars("{ q(func: has(name)) { uid } }")


@pytest.mark.parametrize(
    "value,type_,expected",
    [
        ("42", "int", 42),
        ("4.5", "float", 4.5),
        ("abc", "int", "abc"),
        ("true", "bool", True),
        ("yes", "bool", False),
        ("hello", "string", "hello"),
        ('{"a": 1}', "json", {"a": 1}),
        ("[1, 2]", None, "[1, 2]"),
        ("{broken", "json", "{broken"),
    ],
)
def test_format_variable_value(value, type_, expected):
    """Test conversion by declared type."""
    assert format_variable_value(value, type_) == expected


def test_validate_variable_value():
    """Test blank values are rejected."""
    assert validate_variable_value("x")
    assert not validate_variable_value("   ")
    assert not validate_variable_value("")


def test_validate_balanced_query():
    """Test a well-formed query."""
    result = validate_dql_syntax(NAMED_QUERY)

    assert result.is_valid
    assert result.errors == []


def test_validate_empty_query():
    """Test an empty query."""
    result = validate_dql_syntax("  ")

    assert not result.is_valid
    assert result.errors == ["Query cannot be empty"]


def test_validate_unbalanced_brackets():
    """Test missing and mismatched brackets."""
    missing = validate_dql_syntax("{ q(func: has(name)) { uid }")
    mismatched = validate_dql_syntax("{ q(func: has(name]) }")

    assert not missing.is_valid
    assert any("Missing closing bracket '}'" in error for error in missing.errors)
    assert not mismatched.is_valid
    assert any("unexpected ']'" in error for error in mismatched.errors)


def test_validate_requires_a_block():
    """Test text without any block."""
    result = validate_dql_syntax("hello world")

    assert not result.is_valid
    assert "Query must contain at least one block" in result.errors
