"""Geographic point extraction from nested query results.

Entities can carry coordinates in several shapes. Each shape is handled by
a strategy; strategies are tried in a fixed order and the first one that
yields an in-range pair wins:

1. ``{"lat": .., "lng": ..}`` / ``{"latitude": .., "longitude": ..}``
2. the same, one level down under a location-like key
3. ``[lng, lat]`` under a coordinates-like key
4. the same, one level down (GeoJSON ``{"type": "Point", "coordinates": [..]}``)

Entities without a usable pair are left out of the geo model.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dgraph_lens.colors import PALETTE, TypeColorAssigner
from dgraph_lens.config import EngineSettings
from dgraph_lens.result_graph import (
    child_links,
    entity_id,
    entity_label,
    entity_type,
    unwrap_response,
    walk_objects,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)

LAT_FIELDS: tuple[str, ...] = ("latitude", "lat")
LNG_FIELDS: tuple[str, ...] = ("longitude", "lng", "lon")
LOCATION_KEYS: tuple[str, ...] = ("location", "geo", "coordinates", "position", "point", "coords")
COORDINATE_KEYS: tuple[str, ...] = ("coordinates", "location", "geo", "position", "point", "coords")

DEFAULT_CENTER: tuple[float, float] = (40.7128, -74.0060)

GEO_ID_PREFIX = "geo:"


def to_coordinate(value: Any) -> float | None:
    """Convert a number or numeric string to a finite float, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def validate_coordinates(lat: Any, lng: Any) -> tuple[float, float] | None:
    """Return ``(lat, lng)`` as floats if both are numeric and in range."""
    latitude = to_coordinate(lat)
    longitude = to_coordinate(lng)
    if latitude is None or longitude is None:
        return None
    if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
        return None
    return (latitude, longitude)


def matching_keys(obj: dict[str, Any], names: Sequence[str]) -> list[str]:
    """Keys of ``obj`` matching ``names``, in ``names`` priority order.

    A dotted predicate such as ``Geo.location`` matches on its last segment.
    """
    keys: list[str] = []
    for name in names:
        if name in obj and name not in keys:
            keys.append(name)
        for key in obj:
            if isinstance(key, str) and key.endswith("." + name) and key not in keys:
                keys.append(key)
    return keys


class CoordinateStrategy:
    """Base class for one coordinate convention."""

    name = "base"

    def candidates(self, obj: dict[str, Any]) -> Iterator[tuple[Any, Any]]:
        """Yield raw ``(lat, lng)`` pairs found in ``obj``."""
        raise NotImplementedError

    def extract(self, obj: dict[str, Any]) -> tuple[float, float] | None:
        """Return the first valid ``(lat, lng)`` pair, or None."""
        for lat, lng in self.candidates(obj):
            pair = validate_coordinates(lat, lng)
            if pair is not None:
                return pair
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DirectLatLngStrategy(CoordinateStrategy):
    """Latitude/longitude fields directly on the entity."""

    name = "direct"

    def __init__(
        self,
        lat_fields: Sequence[str] = LAT_FIELDS,
        lng_fields: Sequence[str] = LNG_FIELDS,
    ) -> None:
        self.lat_fields = tuple(lat_fields)
        self.lng_fields = tuple(lng_fields)

    def candidates(self, obj: dict[str, Any]) -> Iterator[tuple[Any, Any]]:
        for lat_field in self.lat_fields:
            if lat_field not in obj:
                continue
            for lng_field in self.lng_fields:
                if lng_field in obj:
                    yield obj[lat_field], obj[lng_field]


class NestedLatLngStrategy(CoordinateStrategy):
    """Latitude/longitude fields in an object under a location-like key."""

    name = "nested"

    def __init__(
        self,
        location_keys: Sequence[str] = LOCATION_KEYS,
        inner: DirectLatLngStrategy | None = None,
    ) -> None:
        self.location_keys = tuple(location_keys)
        self.inner = inner or DirectLatLngStrategy()

    def candidates(self, obj: dict[str, Any]) -> Iterator[tuple[Any, Any]]:
        for key in matching_keys(obj, self.location_keys):
            value = obj[key]
            if isinstance(value, dict):
                yield from self.inner.candidates(value)


class CoordinateArrayStrategy(CoordinateStrategy):
    """A ``[lng, lat]`` pair under a coordinates-like key."""

    name = "array"

    def __init__(self, coordinate_keys: Sequence[str] = COORDINATE_KEYS) -> None:
        self.coordinate_keys = tuple(coordinate_keys)

    def candidates(self, obj: dict[str, Any]) -> Iterator[tuple[Any, Any]]:
        for key in matching_keys(obj, self.coordinate_keys):
            value = obj[key]
            if isinstance(value, (list, tuple)) and len(value) == 2:
                yield value[1], value[0]


class NestedCoordinateArrayStrategy(CoordinateStrategy):
    """A ``[lng, lat]`` pair one level down, as in GeoJSON points."""

    name = "nested_array"

    def __init__(
        self,
        location_keys: Sequence[str] = LOCATION_KEYS,
        inner: CoordinateArrayStrategy | None = None,
    ) -> None:
        self.location_keys = tuple(location_keys)
        self.inner = inner or CoordinateArrayStrategy()

    def candidates(self, obj: dict[str, Any]) -> Iterator[tuple[Any, Any]]:
        for key in matching_keys(obj, self.location_keys):
            value = obj[key]
            if isinstance(value, dict):
                yield from self.inner.candidates(value)


DEFAULT_STRATEGIES: tuple[CoordinateStrategy, ...] = (
    DirectLatLngStrategy(),
    NestedLatLngStrategy(),
    CoordinateArrayStrategy(),
    NestedCoordinateArrayStrategy(),
)


def extract_coordinates(
    obj: Any,
    strategies: Sequence[CoordinateStrategy] = DEFAULT_STRATEGIES,
) -> tuple[float, float] | None:
    """Try each strategy in order; return the first valid ``(lat, lng)``."""
    if not isinstance(obj, dict):
        return None
    for strategy in strategies:
        pair = strategy.extract(obj)
        if pair is not None:
            return pair
    return None


def geo_id(uid: str) -> str:
    """Geo node ID for an entity identifier."""
    return GEO_ID_PREFIX + uid


@dataclass
class GeoNode:
    """An entity with a validated geographic position.

    Attributes:
        id: Geo node ID, ``geo:<uid>``
        uid: Identifier of the source entity
        label: Display label
        lat: Latitude in [-90, 90]
        lng: Longitude in [-180, 180]
        type: First type tag, or None
        color: Color assigned to the type
        raw: The result object the entity came from
    """

    id: str
    uid: str
    label: str
    lat: float
    lng: float
    type: str | None = None
    color: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "uid": self.uid,
            "label": self.label,
            "lat": self.lat,
            "lng": self.lng,
            "type": self.type,
            "color": self.color,
            "raw": self.raw,
        }


@dataclass(frozen=True)
class GeoEdge:
    """A parent -> child relation between two geo nodes."""

    source: str
    target: str
    label: str

    @property
    def id(self) -> tuple[str, str, str]:
        return (self.source, self.target, self.label)

    @property
    def key(self) -> str:
        return f"{self.source}-{self.target}-{self.label}"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.key, "source": self.source, "target": self.target, "label": self.label}


class GeoModel:
    """Geo nodes and the edges among them."""

    def __init__(self) -> None:
        self.nodes: dict[str, GeoNode] = {}
        self.edges: list[GeoEdge] = []
        self.type_colors: dict[str, str] = {}
        self._edge_keys: set[tuple[str, str, str]] = set()

    def add_node(self, node: GeoNode) -> bool:
        if node.id in self.nodes:
            return False
        self.nodes[node.id] = node
        return True

    def get_node(self, node_id: str) -> GeoNode | None:
        return self.nodes.get(node_id)

    def add_edge(self, source_id: str, target_id: str, label: str) -> GeoEdge | None:
        """Add an edge between two present geo nodes; see GraphModel.add_edge."""
        if source_id == target_id:
            return None
        if source_id not in self.nodes or target_id not in self.nodes:
            return None
        key = (source_id, target_id, label)
        if key in self._edge_keys:
            return None
        edge = GeoEdge(source=source_id, target=target_id, label=label)
        self.edges.append(edge)
        self._edge_keys.add(key)
        return edge

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        return f"GeoModel(nodes={len(self.nodes)}, edges={len(self.edges)})"


class GeoExtractor:
    """Builds a GeoModel from a nested query result."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        palette: Sequence[str] = PALETTE,
        strategies: Sequence[CoordinateStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        """Initialize the extractor.

        Args:
            settings: Field names and traversal bound (read from env if None)
            palette: Colors for type assignment
            strategies: Coordinate conventions in priority order
        """
        if not palette:
            raise ValueError("palette must contain at least one color")
        self.settings = settings or EngineSettings.from_env()
        self.palette = tuple(palette)
        self.strategies = tuple(strategies)

    def extract(self, payload: Any) -> GeoModel:
        """Extract geo nodes and edges.

        Args:
            payload: Result object or array, optionally inside a response envelope

        Returns:
            Geo model; empty when nothing carries valid coordinates
        """
        try:
            return self._extract(payload)
        except Exception:
            logger.warning("Geo extraction failed; returning empty geo model", exc_info=True)
            return GeoModel()

    def _extract(self, payload: Any) -> GeoModel:
        model = GeoModel()
        root = unwrap_response(payload)
        if not isinstance(root, (dict, list)):
            return model

        settings = self.settings
        assigner = TypeColorAssigner(self.palette)
        accepted: set[str] = set()
        skipped = 0

        for obj in walk_objects(root, settings.max_depth):
            uid = entity_id(obj, settings.identifier_field)
            if uid is None or uid in accepted:
                continue
            pair = extract_coordinates(obj, self.strategies)
            if pair is None:
                skipped += 1
                continue
            node_type = entity_type(obj, settings.type_fields)
            model.add_node(GeoNode(
                id=geo_id(uid),
                uid=uid,
                label=entity_label(obj, uid, settings.label_fields, settings.label_id_length),
                lat=pair[0],
                lng=pair[1],
                type=node_type,
                color=assigner.color_for(node_type),
                raw=obj,
            ))
            accepted.add(uid)

        for obj in walk_objects(root, settings.max_depth):
            uid = entity_id(obj, settings.identifier_field)
            if uid is None or uid not in accepted:
                continue
            for key, child in child_links(obj, settings.identifier_field):
                if child in accepted:
                    model.add_edge(geo_id(uid), geo_id(child), key)

        model.type_colors = assigner.assignments
        logger.debug(
            "Extracted geo model: %d nodes, %d edges, %d entity occurrences without coordinates",
            len(model.nodes),
            len(model.edges),
            skipped,
        )
        return model


def has_geo_data(
    payload: Any,
    strategies: Sequence[CoordinateStrategy] = DEFAULT_STRATEGIES,
) -> bool:
    """Cheap check whether a result is worth showing on a map.

    Only the items of the first top-level array are inspected, each with the
    coordinate strategies at one level of nesting. Deeper entities are not
    searched; use GeoExtractor for a full scan.
    """
    try:
        root = unwrap_response(payload)
        if isinstance(root, list):
            items = root
        elif isinstance(root, dict):
            items = next((value for value in root.values() if isinstance(value, list)), [])
        else:
            return False
        return any(extract_coordinates(item, strategies) is not None for item in items)
    except Exception:
        logger.warning("Geo presence check failed", exc_info=True)
        return False


def calculate_geo_center(nodes: Sequence[GeoNode]) -> tuple[float, float]:
    """Mean ``(lat, lng)`` of the nodes; New York City when there are none."""
    if not nodes:
        return DEFAULT_CENTER
    lat = sum(node.lat for node in nodes) / len(nodes)
    lng = sum(node.lng for node in nodes) / len(nodes)
    return (lat, lng)
