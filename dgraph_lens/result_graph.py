"""Graph extraction from nested query results.

Query results are arbitrarily nested objects and arrays. Objects carrying
the identifier field are graph entities; an entity nested under a key of
another entity is an edge labeled with that key. The same entity may appear
many times (diamonds) and objects may even reference themselves, so every
traversal here is an explicit worklist with its own visited set.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from dgraph_lens.colors import PALETTE, TypeColorAssigner
from dgraph_lens.config import EngineSettings
from dgraph_lens.graph_model import GraphModel, GraphNode

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)

_ENVELOPE_KEYS = {"data", "extensions", "errors"}


def unwrap_response(payload: Any) -> Any:
    """Strip the ``{"data": ..., "extensions": ...}`` envelope of a full response.

    Anything that does not look like an envelope is returned unchanged.
    """
    if (
        isinstance(payload, dict)
        and isinstance(payload.get("data"), (dict, list))
        and set(payload) <= _ENVELOPE_KEYS
    ):
        return payload["data"]
    return payload


def walk_objects(root: Any, max_depth: int | None = None) -> Iterator[dict[str, Any]]:
    """Yield every object reachable from ``root`` exactly once.

    Depth-first in document order. Containers are tracked by identity, so
    shared or self-referencing structures terminate.

    Args:
        root: Nested value to scan
        max_depth: Stop descending below this many container levels

    Yields:
        Each dict found in the structure
    """
    stack: list[tuple[Any, int]] = [(root, 0)]
    seen: set[int] = set()

    while stack:
        value, depth = stack.pop()
        if not isinstance(value, (dict, list)) or id(value) in seen:
            continue
        seen.add(id(value))

        if isinstance(value, dict):
            yield value
            children = list(value.values())
        else:
            children = list(value)

        if max_depth is not None and depth >= max_depth:
            continue
        for child in reversed(children):
            if isinstance(child, (dict, list)) and id(child) not in seen:
                stack.append((child, depth + 1))


def entity_id(obj: dict[str, Any], identifier_field: str = "uid") -> str | None:
    """Return the entity identifier of an object, or None if it has none."""
    value = obj.get(identifier_field)
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    text = str(value).strip()
    return text or None


def child_links(obj: dict[str, Any], identifier_field: str = "uid") -> Iterator[tuple[str, str]]:
    """Yield ``(key, child_id)`` for entities nested directly under ``obj``.

    Children count whether they appear as a single object or inside an
    array under the key.
    """
    for key, value in obj.items():
        if key == identifier_field:
            continue
        items = value if isinstance(value, list) else [value]
        for item in items:
            if isinstance(item, dict):
                child = entity_id(item, identifier_field)
                if child is not None:
                    yield str(key), child


def entity_type(obj: dict[str, Any], type_fields: Sequence[str]) -> str | None:
    """First type tag of an object (first element when the tag is an array)."""
    for type_field in type_fields:
        value = obj.get(type_field)
        if isinstance(value, list):
            if value and isinstance(value[0], str) and value[0]:
                return value[0]
        elif isinstance(value, str) and value:
            return value
    return None


def entity_label(
    obj: dict[str, Any],
    node_id: str,
    label_fields: Sequence[str],
    id_length: int = 8,
) -> str:
    """Display label: the first name-like field, else ``Node <id prefix>``."""
    for label_field in label_fields:
        value = obj.get(label_field)
        if isinstance(value, str) and value.strip():
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    return f"Node {node_id[:id_length]}"


class ResultGraphBuilder:
    """Builds a GraphModel from a nested query result.

    Two passes over the same structure: node discovery registers each
    entity once by identifier, then edge discovery links every entity to the
    entities nested directly under its keys. Colors come from a
    TypeColorAssigner created fresh for each build.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        palette: Sequence[str] = PALETTE,
    ) -> None:
        """Initialize the builder.

        Args:
            settings: Field names and traversal bound (read from env if None)
            palette: Colors for type assignment

        Raises:
            ValueError: If the palette is empty
        """
        if not palette:
            raise ValueError("palette must contain at least one color")
        self.settings = settings or EngineSettings.from_env()
        self.palette = tuple(palette)

    def build(self, payload: Any) -> GraphModel:
        """Build a graph from a query result.

        Args:
            payload: Result object or array, optionally inside a response envelope

        Returns:
            The graph; empty for malformed input or input without entities
        """
        try:
            return self._build(payload)
        except Exception:
            logger.warning("Result graph build failed; returning empty graph", exc_info=True)
            return GraphModel()

    def _build(self, payload: Any) -> GraphModel:
        model = GraphModel()
        root = unwrap_response(payload)
        if not isinstance(root, (dict, list)):
            return model

        assigner = TypeColorAssigner(self.palette)
        self._discover_nodes(root, model, assigner)
        self._discover_edges(root, model)
        model.type_colors = assigner.assignments

        logger.debug(
            "Built result graph: %d nodes, %d edges, %d types",
            len(model.nodes),
            len(model.edges),
            len(model.type_colors),
        )
        return model

    def _discover_nodes(self, root: Any, model: GraphModel, assigner: TypeColorAssigner) -> None:
        settings = self.settings
        for obj in walk_objects(root, settings.max_depth):
            node_id = entity_id(obj, settings.identifier_field)
            if node_id is None or model.has_node(node_id):
                continue
            node_type = entity_type(obj, settings.type_fields)
            model.add_node(GraphNode(
                id=node_id,
                label=entity_label(obj, node_id, settings.label_fields, settings.label_id_length),
                type=node_type,
                color=assigner.color_for(node_type),
                raw=obj,
            ))

    def _discover_edges(self, root: Any, model: GraphModel) -> None:
        settings = self.settings
        for obj in walk_objects(root, settings.max_depth):
            node_id = entity_id(obj, settings.identifier_field)
            if node_id is None:
                continue
            for key, child_id in child_links(obj, settings.identifier_field):
                model.add_edge(node_id, child_id, key)

    def __repr__(self) -> str:
        return f"ResultGraphBuilder(id_field={self.settings.identifier_field!r}, palette={len(self.palette)})"
