"""Helpers for DQL query text: variables and a bracket-balance check."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

_VARIABLE_RE = re.compile(r"\$([a-zA-Z][a-zA-Z0-9_]*)\b")
_QUERY_DECLARATION_RE = re.compile(r"^\s*query\s+\w+\s*\((.+?)\)\s*\{", re.IGNORECASE | re.DOTALL)
_DECLARED_VARIABLE_RE = re.compile(r"\$(\w+)\s*:\s*(\w+)")

_BRACKETS = {"{": "}", "(": ")", "[": "]"}
_CLOSERS = {close: open_ for open_, close in _BRACKETS.items()}


@dataclass
class DQLVariable:
    """A query variable, named without its ``$``."""

    name: str
    type: str | None = None
    value: str = ""


@dataclass
class DQLValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def extract_declared_variables(query: str) -> list[DQLVariable]:
    """Variables declared in ``query name($a: int, $b: string) {``."""
    if not query:
        return []
    match = _QUERY_DECLARATION_RE.match(query)
    if match is None:
        return []
    return [DQLVariable(name=name, type=type_) for name, type_ in _DECLARED_VARIABLE_RE.findall(match.group(1))]


def detect_variables(query: str) -> list[str]:
    """Names of declared and used variables, first occurrence order."""
    if not query:
        return []
    names: dict[str, None] = {}
    for variable in extract_declared_variables(query):
        names.setdefault(variable.name)
    for name in _VARIABLE_RE.findall(query):
        names.setdefault(name)
    return list(names)


def has_named_query_with_vars(query: str) -> bool:
    return bool(query) and _QUERY_DECLARATION_RE.match(query) is not None


def validate_variable_value(value: str) -> bool:
    """A value is usable when it is not blank."""
    return bool(value and value.strip())


def format_variable_value(value: str, type_: str | None = None) -> Any:
    """Convert a raw input string according to the declared variable type.

    Unparseable numbers and JSON fall back to the original string.
    """
    if not type_:
        return value

    kind = type_.lower()
    try:
        if kind == "int":
            return int(value.strip())
        if kind == "float":
            return float(value.strip())
    except ValueError:
        return value
    if kind in ("bool", "boolean"):
        return value.strip().lower() == "true"
    if kind == "string":
        return value

    stripped = value.strip()
    if (stripped.startswith("{") and stripped.endswith("}")) or (
        stripped.startswith("[") and stripped.endswith("]")
    ):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    return value


def validate_dql_syntax(query: str) -> DQLValidationResult:
    """Check that brackets balance and that the text has at least one block."""
    if not query or not query.strip():
        return DQLValidationResult(is_valid=False, errors=["Query cannot be empty"])

    errors: list[str] = []
    stack: list[str] = []
    for char in query:
        if char in _BRACKETS:
            stack.append(char)
        elif char in _CLOSERS:
            if not stack or stack.pop() != _CLOSERS[char]:
                errors.append(f"Mismatched bracket: unexpected '{char}'")
    for open_ in stack:
        errors.append(f"Missing closing bracket '{_BRACKETS[open_]}' for '{open_}'")

    if "{" not in query and "}" not in query and not any(
        word in query for word in ("schema", "type", "scalar")
    ):
        errors.append("Query must contain at least one block")

    return DQLValidationResult(is_valid=not errors, errors=errors)
