"""Schema diagram: a SchemaModel drawn as a graph.

Types point at their fields ("has field"); fields and top-level predicates
point at their value type ("has type"). Field nodes are namespaced by
their type (``Person.name``) so that equally named fields of different
types stay separate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dgraph_lens.graph_model import GraphModel, GraphNode

if TYPE_CHECKING:
    from dgraph_lens.schema import FieldDef, SchemaModel

logger = logging.getLogger(__name__)

SCALAR_TYPES = frozenset({"int", "float", "string", "bool", "datetime", "geo", "password", "uid"})

KIND_COLORS: dict[str, str] = {
    "type": "#EA4335",  # Red
    "field": "#4285F4",  # Blue
    "predicate": "#4285F4",
    "scalar": "#34A853",  # Green
    "uid": "#FBBC05",  # Yellow
}

HAS_FIELD = "has field"
HAS_TYPE = "has type"


def value_kind(type_name: str) -> str:
    """Classify a value type as "uid", "scalar" or "type"."""
    if type_name == "uid" or "<uid>" in type_name:
        return "uid"
    if type_name in SCALAR_TYPES:
        return "scalar"
    return "type"


def _add(model: GraphModel, node_id: str, label: str, kind: str, **raw: str) -> None:
    model.add_node(GraphNode(id=node_id, label=label, type=kind, color=KIND_COLORS[kind], raw=raw))


def _link_value_type(model: GraphModel, source_id: str, item: FieldDef) -> None:
    value_type = item.base_type
    if not value_type:
        return
    _add(model, value_type, value_type, value_kind(value_type), type=value_type)
    model.add_edge(source_id, value_type, HAS_TYPE)


def schema_to_graph(schema: SchemaModel) -> GraphModel:
    """Convert a schema into a diagram graph.

    Node types are the diagram kinds: "type", "field", "predicate",
    "scalar" and "uid".
    """
    model = GraphModel()
    try:
        for predicate in schema.predicates:
            _add(model, predicate.name, predicate.name, "predicate", predicate=predicate.name)
            _link_value_type(model, predicate.name, predicate)

        for type_def in schema.types:
            _add(model, type_def.name, type_def.name, "type", type=type_def.name)
            for item in type_def.fields:
                field_id = f"{type_def.name}.{item.name}"
                _add(model, field_id, item.name, "field", field=item.name, type=item.type)
                model.add_edge(type_def.name, field_id, HAS_FIELD)
                _link_value_type(model, field_id, item)
    except Exception:
        logger.warning("Schema diagram conversion failed", exc_info=True)
        return GraphModel()

    model.type_colors = {kind: KIND_COLORS[kind] for kind in ("type", "field", "predicate", "scalar", "uid")}
    logger.debug("Schema diagram: %d nodes, %d edges", len(model.nodes), len(model.edges))
    return model


def ensure_non_empty(model: GraphModel) -> GraphModel:
    """Fill an empty diagram with a small example schema."""
    if model.nodes:
        return model

    _add(model, "Person", "Person", "type")
    for name, value_type in (("name", "string"), ("age", "int"), ("friend", "uid")):
        _add(model, name, name, "predicate")
        _add(model, value_type, value_type, value_kind(value_type))
        model.add_edge(name, value_type, HAS_TYPE)
        model.add_edge("Person", name, HAS_FIELD)
    return model
