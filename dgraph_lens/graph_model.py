"""Node/edge graph model built from query results.

A GraphModel holds uniquely identified nodes and directed, labeled edges.
Every edge references existing nodes and is unique by its composite key
``(source, target, label)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import networkx as nx

from dgraph_lens.colors import DEFAULT_COLOR

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass
class GraphNode:
    """A graph entity discovered in a query result.

    Attributes:
        id: Value of the entity's identifier field
        label: Display label (name/title, or a truncated-id fallback)
        type: First type tag, or None when untyped
        color: Color assigned to the node's type
        x: Horizontal layout coordinate, None until laid out
        y: Vertical layout coordinate, None until laid out
        raw: The result object the node was discovered in
    """

    id: str
    label: str = ""
    type: str | None = None
    color: str = DEFAULT_COLOR
    x: float | None = None
    y: float | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def position(self) -> tuple[float, float] | None:
        """Current (x, y) position, or None if the node has not been placed."""
        if self.x is None or self.y is None:
            return None
        return (self.x, self.y)

    def move_to(self, x: float, y: float) -> None:
        """Set the node's layout coordinates."""
        self.x = float(x)
        self.y = float(y)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "color": self.color,
            "x": self.x,
            "y": self.y,
            "raw": self.raw,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GraphNode:
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            type=data.get("type"),
            color=data.get("color", DEFAULT_COLOR),
            x=data.get("x"),
            y=data.get("y"),
            raw=data.get("raw", {}),
        )


@dataclass(frozen=True)
class GraphEdge:
    """A directed parent -> child relation found under a result key.

    Attributes:
        source: Parent node ID
        target: Child node ID
        label: Key the child was nested under
    """

    source: str
    target: str
    label: str

    @property
    def id(self) -> tuple[str, str, str]:
        """Composite key ``(source, target, label)``."""
        return (self.source, self.target, self.label)

    @property
    def key(self) -> str:
        """String form of the composite key for renderers that need one."""
        return f"{self.source}-{self.target}-{self.label}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.key,
            "source": self.source,
            "target": self.target,
            "label": self.label,
        }


@dataclass(frozen=True)
class TypeInfo:
    """Legend entry: a node type, its color and how many nodes carry it."""

    type: str
    color: str
    count: int


class GraphModel:
    """Deduplicated node/edge graph.

    Nodes are keyed by ID; edges are kept in insertion order and indexed by
    composite key. The model is rebuilt wholesale for every query result.
    """

    def __init__(self) -> None:
        self.nodes: dict[str, GraphNode] = {}
        self.edges: list[GraphEdge] = []
        self.type_colors: dict[str, str] = {}
        self._edge_keys: set[tuple[str, str, str]] = set()

    def add_node(self, node: GraphNode) -> bool:
        """Register a node unless its ID is already present.

        Args:
            node: Node to add

        Returns:
            True if the node was added, False if the ID already existed
        """
        if node.id in self.nodes:
            return False
        self.nodes[node.id] = node
        return True

    def get_node(self, node_id: str) -> GraphNode | None:
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def add_edge(self, source_id: str, target_id: str, label: str) -> GraphEdge | None:
        """Add a directed edge between two existing nodes.

        Self-loops, duplicate composite keys and edges touching unknown
        nodes are ignored.

        Args:
            source_id: Source node ID
            target_id: Target node ID
            label: Edge label (the key the target was nested under)

        Returns:
            The new edge, or None if nothing was added
        """
        if source_id == target_id:
            return None
        if source_id not in self.nodes or target_id not in self.nodes:
            return None
        key = (source_id, target_id, label)
        if key in self._edge_keys:
            return None
        edge = GraphEdge(source=source_id, target=target_id, label=label)
        self.edges.append(edge)
        self._edge_keys.add(key)
        return edge

    def has_edge(self, source_id: str, target_id: str, label: str) -> bool:
        return (source_id, target_id, label) in self._edge_keys

    def neighbors(self, node_id: str) -> list[str]:
        """IDs of nodes connected to ``node_id`` in either direction."""
        seen: dict[str, None] = {}
        for edge in self.edges:
            if edge.source == node_id:
                seen.setdefault(edge.target)
            elif edge.target == node_id:
                seen.setdefault(edge.source)
        return list(seen)

    def type_summary(self) -> list[TypeInfo]:
        """Count nodes per type for a legend, in first-seen order.

        Untyped nodes are grouped under ``"unknown"``.
        """
        counts: dict[str, int] = {}
        colors: dict[str, str] = {}
        for node in self.nodes.values():
            name = node.type or "unknown"
            counts[name] = counts.get(name, 0) + 1
            colors.setdefault(name, node.color)
        return [TypeInfo(type=name, color=colors[name], count=count) for name, count in counts.items()]

    def to_networkx(self) -> nx.MultiDiGraph:
        """Export as a networkx multigraph, one edge per composite key."""
        graph = nx.MultiDiGraph()
        for node in self.nodes.values():
            graph.add_node(
                node.id,
                label=node.label,
                type=node.type,
                color=node.color,
                x=node.x,
                y=node.y,
            )
        for edge in self.edges:
            graph.add_edge(edge.source, edge.target, key=edge.label, label=edge.label)
        return graph

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges],
            "type_colors": dict(self.type_colors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GraphModel:
        """Rebuild a model from ``to_dict`` output, re-checking invariants."""
        model = cls()
        for node_data in data.get("nodes", []):
            model.add_node(GraphNode.from_dict(node_data))
        for edge_data in data.get("edges", []):
            model.add_edge(edge_data["source"], edge_data["target"], edge_data["label"])
        model.type_colors = dict(data.get("type_colors", {}))
        return model

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(self.nodes.values())

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self.nodes)

    def __repr__(self) -> str:
        return f"GraphModel(nodes={len(self.nodes)}, edges={len(self.edges)})"
