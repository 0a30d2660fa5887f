"""Tests for GraphModel, GraphNode and GraphEdge."""

from dgraph_lens.colors import DEFAULT_COLOR
from dgraph_lens.graph_model import GraphEdge, GraphModel, GraphNode


def _model(*ids):
    model = GraphModel()
    for node_id in ids:
        model.add_node(GraphNode(id=node_id, label=node_id))
    return model


def test_node_creation():
    """Test node defaults."""
    node = GraphNode(id="0x1", label="Alice")

    assert node.type is None
    assert node.color == DEFAULT_COLOR
    assert node.position is None


def test_node_move_to():
    """Test node positioning."""
    node = GraphNode(id="0x1")
    node.move_to(1, 2)

    assert node.position == (1.0, 2.0)
    assert isinstance(node.x, float)


def test_node_serialization():
    """Test node to_dict/from_dict."""
    node = GraphNode(id="0x1", label="Alice", type="Person", color="#FF0000", x=0.5, y=0.25)

    restored = GraphNode.from_dict(node.to_dict())

    assert restored == node


def test_add_node_is_unique():
    """Test a second node with the same ID is ignored."""
    model = GraphModel()

    assert model.add_node(GraphNode(id="0x1", label="first"))
    assert not model.add_node(GraphNode(id="0x1", label="second"))
    assert len(model) == 1
    assert model.get_node("0x1").label == "first"


def test_add_edge():
    """Test adding a labeled edge."""
    model = _model("0x1", "0x2")

    edge = model.add_edge("0x1", "0x2", "friend")

    assert edge == GraphEdge("0x1", "0x2", "friend")
    assert edge.id == ("0x1", "0x2", "friend")
    assert edge.key == "0x1-0x2-friend"
    assert model.has_edge("0x1", "0x2", "friend")


def test_duplicate_edge_ignored():
    """Test the composite key is unique."""
    model = _model("0x1", "0x2")

    model.add_edge("0x1", "0x2", "friend")
    assert model.add_edge("0x1", "0x2", "friend") is None
    assert len(model.edges) == 1


def test_parallel_edges_with_different_labels():
    """Test the same pair may be linked under different keys."""
    model = _model("0x1", "0x2")

    model.add_edge("0x1", "0x2", "friend")
    model.add_edge("0x1", "0x2", "boss")

    assert len(model.edges) == 2


def test_edge_rejections():
    """Test self-loops and dangling edges are not added."""
    model = _model("0x1")

    assert model.add_edge("0x1", "0x1", "self") is None
    assert model.add_edge("0x1", "0x9", "friend") is None
    assert model.add_edge("0x9", "0x1", "friend") is None
    assert model.edges == []


def test_neighbors():
    """Test neighbors in both directions."""
    model = _model("a", "b", "c")
    model.add_edge("a", "b", "knows")
    model.add_edge("c", "a", "knows")

    assert model.neighbors("a") == ["b", "c"]
    assert model.neighbors("b") == ["a"]


def test_type_summary():
    """Test legend counts, grouping untyped nodes as unknown."""
    model = GraphModel()
    model.add_node(GraphNode(id="1", type="Person", color="#111111"))
    model.add_node(GraphNode(id="2", type="Person", color="#111111"))
    model.add_node(GraphNode(id="3"))

    summary = {info.type: info for info in model.type_summary()}

    assert summary["Person"].count == 2
    assert summary["Person"].color == "#111111"
    assert summary["unknown"].count == 1


def test_to_networkx():
    """Test export to a networkx multigraph."""
    model = _model("0x1", "0x2")
    model.add_edge("0x1", "0x2", "friend")
    model.add_edge("0x1", "0x2", "boss")

    graph = model.to_networkx()

    assert graph.number_of_nodes() == 2
    assert graph.number_of_edges() == 2
    assert graph.has_edge("0x1", "0x2", key="boss")


def test_model_round_trip():
    """Test to_dict/from_dict keeps nodes, edges and colors."""
    model = _model("0x1", "0x2")
    model.add_edge("0x1", "0x2", "friend")
    model.type_colors = {"Person": "#111111"}

    restored = GraphModel.from_dict(model.to_dict())

    assert list(restored.nodes) == ["0x1", "0x2"]
    assert restored.edges == model.edges
    assert restored.type_colors == {"Person": "#111111"}


def test_from_dict_drops_dangling_edges():
    """Test invariants are re-checked when loading."""
    data = {
        "nodes": [{"id": "0x1"}],
        "edges": [{"source": "0x1", "target": "0x2", "label": "friend"}],
    }

    model = GraphModel.from_dict(data)

    assert len(model) == 1
    assert model.edges == []
