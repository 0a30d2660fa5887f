"""Schema model and a tolerant parser for DQL schema text.

Two kinds of declarations are recognized::

    name: string @index(exact) @lang .

    type Person {
        name: string
        friend: [uid] @reverse
    }

Anything else is skipped. The parser never raises: an unterminated type
block ends parsing with only the types that were closed before it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

_NAME = r"<[^<>\s]+>|[\w.~\-]+"
_TYPE_EXPR = r"\[\s*[\w.]+!?\s*\]!?|[\w.]+!?"
_DIRECTIVE = r"@\w+(?:\([^)]*\))?"

# Bracketed names may contain "#" (IRIs); they are matched first and kept
_COMMENT_RE = re.compile(r"(<[^<>\n]*>)|#.*$", re.MULTILINE)
_TYPE_HEADER_RE = re.compile(rf"(?<![\w.])type\s+({_NAME})\s*\{{")
_DIRECTIVE_RE = re.compile(_DIRECTIVE)
_PREDICATE_RE = re.compile(
    rf"^(?P<name>{_NAME})\s*:\s*(?P<type>{_TYPE_EXPR})(?P<rest>(?:\s*{_DIRECTIVE})*)\s*\.?$"
)
_FIELD_RE = re.compile(
    rf"(?P<name>{_NAME})\s*:\s*(?P<type>{_TYPE_EXPR})(?P<rest>(?:\s*{_DIRECTIVE})*)"
)
_BARE_NAME_RE = re.compile(rf"^(?:{_NAME})$")


def _unwrap_name(name: str) -> str:
    if name.startswith("<") and name.endswith(">"):
        return name[1:-1]
    return name


@dataclass
class FieldDef:
    """A field of a type block.

    Attributes:
        name: Field (predicate) name
        type: Type expression, verbatim (``[uid]`` keeps its brackets)
        directives: Directives in declaration order, e.g. ``"@index(exact)"``
    """

    name: str
    type: str = ""
    directives: list[str] = field(default_factory=list)

    @property
    def is_array(self) -> bool:
        """True when the type is written in ``[Type]`` list notation."""
        expr = self.type.rstrip("!")
        return expr.startswith("[") and expr.endswith("]")

    @property
    def base_type(self) -> str:
        """Type name with list brackets and non-null markers removed."""
        return self.type.replace("[", "").replace("]", "").replace("!", "").strip()

    def has_directive(self, name: str) -> bool:
        """Check for a directive by name, with or without ``@`` and arguments."""
        wanted = name.lstrip("@").split("(", 1)[0]
        return any(d.lstrip("@").split("(", 1)[0] == wanted for d in self.directives)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "directives": list(self.directives)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldDef:
        return cls(
            name=data["name"],
            type=data.get("type", ""),
            directives=list(data.get("directives", [])),
        )


@dataclass
class PredicateDef(FieldDef):
    """A top-level ``name: type @directive .`` declaration."""


@dataclass
class TypeDef:
    """A ``type Name { ... }`` block with its fields in declaration order."""

    name: str
    fields: list[FieldDef] = field(default_factory=list)

    def get_field(self, name: str) -> FieldDef | None:
        for item in self.fields:
            if item.name == name:
                return item
        return None

    def field_names(self) -> list[str]:
        return [item.name for item in self.fields]

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "fields": [item.to_dict() for item in self.fields]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TypeDef:
        return cls(
            name=data["name"],
            fields=[FieldDef.from_dict(item) for item in data.get("fields", [])],
        )


@dataclass
class SchemaModel:
    """Parsed schema: type blocks and top-level predicates.

    Type names are unique within a model.
    """

    types: list[TypeDef] = field(default_factory=list)
    predicates: list[PredicateDef] = field(default_factory=list)

    def get_type(self, name: str) -> TypeDef | None:
        for type_def in self.types:
            if type_def.name == name:
                return type_def
        return None

    def get_predicate(self, name: str) -> PredicateDef | None:
        for predicate in self.predicates:
            if predicate.name == name:
                return predicate
        return None

    def type_names(self) -> list[str]:
        return [type_def.name for type_def in self.types]

    def field_names(self) -> list[str]:
        """Every field name across every type, first occurrence order."""
        names: dict[str, None] = {}
        for type_def in self.types:
            for item in type_def.fields:
                names.setdefault(item.name)
        return list(names)

    def is_empty(self) -> bool:
        return not self.types and not self.predicates

    def to_dict(self) -> dict[str, Any]:
        return {
            "types": [type_def.to_dict() for type_def in self.types],
            "predicates": [predicate.to_dict() for predicate in self.predicates],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchemaModel:
        return cls(
            types=[TypeDef.from_dict(item) for item in data.get("types", [])],
            predicates=[
                PredicateDef(
                    name=item["name"],
                    type=item.get("type", ""),
                    directives=list(item.get("directives", [])),
                )
                for item in data.get("predicates", [])
            ],
        )


def strip_comments(text: str) -> str:
    """Remove ``#`` comments through end of line, outside ``<...>`` names."""
    return _COMMENT_RE.sub(lambda match: match.group(1) or "", text)


def _find_block_end(text: str, start: int) -> int:
    """Index of the ``}`` closing a block whose body begins at ``start``, or -1."""
    depth = 1
    for index in range(start, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


class SchemaTextParser:
    """Turns raw schema text into a SchemaModel.

    Block scanning uses a brace depth counter rather than a grammar, so
    unexpected content inside or between declarations is skipped instead of
    failing the whole parse.
    """

    def parse(self, text: str) -> SchemaModel:
        """Parse schema text.

        Args:
            text: Raw schema text as returned by the schema endpoint

        Returns:
            Parsed model; empty for empty or unusable input
        """
        try:
            return self._parse(text)
        except Exception:
            logger.warning("Schema parsing failed; returning empty schema", exc_info=True)
            return SchemaModel()

    def _parse(self, text: str) -> SchemaModel:
        if not isinstance(text, str) or not text.strip():
            return SchemaModel()

        source = strip_comments(text)
        model = SchemaModel()
        outside: list[str] = []
        pos = 0

        while True:
            header = _TYPE_HEADER_RE.search(source, pos)
            if header is None:
                outside.append(source[pos:])
                break
            outside.append(source[pos:header.start()])

            name = _unwrap_name(header.group(1))
            close = _find_block_end(source, header.end())
            if close < 0:
                logger.debug("Unterminated type block %r; keeping %d closed types", name, len(model.types))
                break

            if model.get_type(name) is None:
                model.types.append(TypeDef(name=name, fields=self._parse_fields(source[header.end():close])))
            else:
                logger.debug("Duplicate type %r ignored", name)
            pos = close + 1

        for segment in outside:
            for line in segment.splitlines():
                line = line.strip()
                if not line:
                    continue
                predicate = self.parse_predicate(line)
                if predicate is None:
                    logger.debug("Skipping unparseable schema line: %r", line)
                elif model.get_predicate(predicate.name) is None:
                    model.predicates.append(predicate)

        self._resolve_bare_fields(model)
        logger.debug(
            "Parsed schema: %d types, %d predicates", len(model.types), len(model.predicates)
        )
        return model

    def parse_predicate(self, line: str) -> PredicateDef | None:
        """Parse one ``name: type @directive... .`` line, or return None."""
        match = _PREDICATE_RE.match(line.strip())
        if match is None:
            return None
        return PredicateDef(
            name=_unwrap_name(match.group("name")),
            type=match.group("type"),
            directives=_DIRECTIVE_RE.findall(match.group("rest")),
        )

    def _parse_fields(self, body: str) -> list[FieldDef]:
        fields: list[FieldDef] = []
        seen: set[str] = set()

        def add(item: FieldDef) -> None:
            if item.name not in seen:
                seen.add(item.name)
                fields.append(item)

        for line in body.splitlines():
            line = line.strip().rstrip(",")
            if not line:
                continue
            matches = list(_FIELD_RE.finditer(line))
            if matches:
                for match in matches:
                    add(FieldDef(
                        name=_unwrap_name(match.group("name")),
                        type=match.group("type"),
                        directives=_DIRECTIVE_RE.findall(match.group("rest")),
                    ))
                continue
            # The database lists type fields by name only
            for token in line.split():
                if _BARE_NAME_RE.match(token):
                    add(FieldDef(name=_unwrap_name(token)))
        return fields

    @staticmethod
    def _resolve_bare_fields(model: SchemaModel) -> None:
        declared = {predicate.name: predicate for predicate in model.predicates}
        for type_def in model.types:
            for item in type_def.fields:
                if not item.type and item.name in declared:
                    item.type = declared[item.name].type


def parse_schema(text: str) -> SchemaModel:
    """Parse schema text with a default parser."""
    return SchemaTextParser().parse(text)
