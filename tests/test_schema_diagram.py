"""Tests for the schema diagram."""

from dgraph_lens.graph_model import GraphModel
from dgraph_lens.schema import SchemaModel, parse_schema
from dgraph_lens.schema_diagram import HAS_FIELD, HAS_TYPE, KIND_COLORS, ensure_non_empty, schema_to_graph, value_kind


def test_type_fields_and_value_types():
    """Test types link to fields and fields to value types."""
    schema = parse_schema("type Person {\n name: string\n friend: [uid]\n boss: Person\n}")

    diagram = schema_to_graph(schema)

    assert diagram.get_node("Person").type == "type"
    assert diagram.get_node("Person.name").label == "name"
    assert diagram.get_node("string").type == "scalar"
    assert diagram.get_node("uid").type == "uid"
    assert diagram.has_edge("Person", "Person.name", HAS_FIELD)
    assert diagram.has_edge("Person.name", "string", HAS_TYPE)
    assert diagram.has_edge("Person.friend", "uid", HAS_TYPE)
    assert diagram.has_edge("Person.boss", "Person", HAS_TYPE)


def test_same_field_name_in_two_types():
    """Test equally named fields stay separate per type."""
    schema = parse_schema("type A { name: string }\ntype B { name: int }")

    diagram = schema_to_graph(schema)

    assert diagram.has_node("A.name")
    assert diagram.has_node("B.name")
    assert diagram.has_edge("B.name", "int", HAS_TYPE)


def test_top_level_predicates():
    """Test predicates appear with their value type."""
    diagram = schema_to_graph(parse_schema("age: int @index(int) ."))

    assert diagram.get_node("age").type == "predicate"
    assert diagram.get_node("age").color == KIND_COLORS["predicate"]
    assert diagram.has_edge("age", "int", HAS_TYPE)


def test_untyped_field_has_no_type_edge():
    """Test bare fields without a predicate declaration."""
    diagram = schema_to_graph(parse_schema("type A {\n mystery\n}"))

    assert diagram.has_node("A.mystery")
    assert diagram.neighbors("A.mystery") == ["A"]


def test_empty_schema():
    """Test an empty schema gives an empty diagram."""
    assert len(schema_to_graph(SchemaModel())) == 0


def test_ensure_non_empty_fills_example():
    """Test the example content for an empty diagram."""
    diagram = ensure_non_empty(GraphModel())

    assert diagram.has_edge("Person", "name", HAS_FIELD)
    assert diagram.has_edge("friend", "uid", HAS_TYPE)
    assert len(diagram) == 7
    assert len(diagram.edges) == 6


def test_ensure_non_empty_keeps_content():
    """Test a populated diagram is returned unchanged."""
    diagram = schema_to_graph(parse_schema("type A { x: int }"))
    count = len(diagram)

    assert ensure_non_empty(diagram) is diagram
    assert len(diagram) == count


def test_value_kind():
    """Test value type classification."""
    assert value_kind("uid") == "uid"
    assert value_kind("datetime") == "scalar"
    assert value_kind("Person") == "type"
