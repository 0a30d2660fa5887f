"""Context-aware completion for DQL query text.

The text immediately before the cursor decides what kind of word is being
typed. Checks run in order and the first match wins:

- ``@word``       directive
- ``: word``      function / value
- ``type word``   type declaration
- anything else   predicate or keyword
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from dgraph_lens.schema import SchemaModel

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


class CompletionContext(str, Enum):
    """What the word at the cursor is expected to be."""

    DIRECTIVE = "directive"
    FUNCTION = "function"
    TYPE = "type"
    PREDICATE = "predicate"


DQL_FUNCTIONS: tuple[str, ...] = (
    "count", "sum", "avg", "min", "max", "len",
    "eq", "ne", "gt", "ge", "lt", "le",
    "regexp", "match", "alloftext", "anyoftext",
    "uid", "uid_in", "has", "type",
)

DQL_DIRECTIVES: tuple[str, ...] = ("index", "upsert", "lang", "reverse", "count", "list")

SCALAR_TYPES: tuple[str, ...] = ("string", "int", "float", "bool", "datetime", "geo", "password")

DQL_KEYWORDS: tuple[str, ...] = (
    "query", "mutation", "schema", "type", "interface", "input", "enum",
    "scalar", "union", "fragment", "directive", "on", "true", "false", "null",
)

# Suggestion kind reported for each context
CONTEXT_KINDS: dict[CompletionContext, str] = {
    CompletionContext.FUNCTION: "function",
    CompletionContext.DIRECTIVE: "keyword",
    CompletionContext.TYPE: "type",
    CompletionContext.PREDICATE: "property",
}

_CONTEXT_PATTERNS: tuple[tuple[re.Pattern[str], CompletionContext], ...] = (
    (re.compile(r"@\w*$"), CompletionContext.DIRECTIVE),
    (re.compile(r":\s*\w*$"), CompletionContext.FUNCTION),
    (re.compile(r"\btype\s+\w*$"), CompletionContext.TYPE),
)
_WORD_RE = re.compile(r"\w*$")


@dataclass(frozen=True)
class Suggestion:
    """One completion candidate.

    Attributes:
        label: Text to insert
        kind: "function", "keyword", "type" or "property"
        start: Offset where the partial word being replaced begins
    """

    label: str
    kind: str
    start: int


class AutocompleteContextResolver:
    """Suggests completions for query text from static tables and a schema."""

    def __init__(self, schema: SchemaModel | None = None) -> None:
        self.schema = schema or SchemaModel()

    def update_schema(self, schema: SchemaModel) -> None:
        """Replace the schema used for predicate suggestions."""
        self.schema = schema

    @staticmethod
    def _before_cursor(text: str, cursor: int) -> str:
        cursor = max(0, min(cursor, len(text)))
        return text[:cursor]

    def current_word(self, text: str, cursor: int) -> str:
        """The partial word ending at the cursor."""
        match = _WORD_RE.search(self._before_cursor(text, cursor))
        return match.group(0) if match else ""

    def resolve_context(self, text: str, cursor: int) -> CompletionContext:
        before = self._before_cursor(text, cursor)
        for pattern, context in _CONTEXT_PATTERNS:
            if pattern.search(before):
                return context
        return CompletionContext.PREDICATE

    def candidates(self, context: CompletionContext) -> list[str]:
        """Unfiltered suggestion source for a context."""
        if context is CompletionContext.FUNCTION:
            return list(DQL_FUNCTIONS)
        if context is CompletionContext.DIRECTIVE:
            return list(DQL_DIRECTIVES)
        if context is CompletionContext.TYPE:
            return list(SCALAR_TYPES)
        return list(DQL_KEYWORDS) + self.schema.field_names()

    def suggest(self, text: str, cursor: int) -> list[Suggestion]:
        """Ranked suggestions for the word at the cursor.

        Args:
            text: Full query text
            cursor: Cursor offset into the text

        Returns:
            Case-insensitive substring matches, prefix matches first
        """
        try:
            if not isinstance(text, str):
                return []
            context = self.resolve_context(text, cursor)
            word = self.current_word(text, cursor)
            start = len(self._before_cursor(text, cursor)) - len(word)
            kind = CONTEXT_KINDS[context]
            return [
                Suggestion(label=label, kind=kind, start=start)
                for label in rank_matches(self.candidates(context), word)
            ]
        except Exception:
            logger.warning("Autocomplete failed", exc_info=True)
            return []

    def __repr__(self) -> str:
        return f"AutocompleteContextResolver(types={len(self.schema.types)})"


def rank_matches(options: Iterable[str], word: str) -> list[str]:
    """Filter by case-insensitive substring; prefix matches rank first.

    Order within each group follows ``options``; duplicates are dropped.
    """
    needle = word.lower()
    prefix: list[str] = []
    inner: list[str] = []
    seen: set[str] = set()
    for option in options:
        if option in seen:
            continue
        seen.add(option)
        lowered = option.lower()
        if lowered.startswith(needle):
            prefix.append(option)
        elif needle in lowered:
            inner.append(option)
    return prefix + inner
