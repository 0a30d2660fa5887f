"""dgraph-lens: schema and result graph modeling for a graph database client.

Turns raw DQL schema text and nested query results into typed models:
a schema model for autocomplete and schema diagrams, a node/edge graph
with force-directed layout for the graph view, and geographic points for
the map view.
"""

from dgraph_lens.autocomplete import AutocompleteContextResolver, CompletionContext, Suggestion
from dgraph_lens.colors import DEFAULT_COLOR, PALETTE, TypeColorAssigner
from dgraph_lens.config import EngineSettings
from dgraph_lens.engine import ModelingEngine
from dgraph_lens.geo import GeoEdge, GeoExtractor, GeoModel, GeoNode, calculate_geo_center, has_geo_data
from dgraph_lens.graph_model import GraphEdge, GraphModel, GraphNode, TypeInfo
from dgraph_lens.layout import ForceDirectedLayout, ForceLayoutSettings, GeoProjectionLayout, LayoutWorker
from dgraph_lens.result_graph import ResultGraphBuilder
from dgraph_lens.schema import FieldDef, PredicateDef, SchemaModel, SchemaTextParser, TypeDef, parse_schema
from dgraph_lens.schema_diagram import schema_to_graph

__version__ = "0.1.0"
__all__ = [
    "ModelingEngine",
    "EngineSettings",
    "SchemaTextParser",
    "SchemaModel",
    "TypeDef",
    "FieldDef",
    "PredicateDef",
    "parse_schema",
    "ResultGraphBuilder",
    "GraphModel",
    "GraphNode",
    "GraphEdge",
    "TypeInfo",
    "GeoExtractor",
    "GeoModel",
    "GeoNode",
    "GeoEdge",
    "has_geo_data",
    "calculate_geo_center",
    "TypeColorAssigner",
    "PALETTE",
    "DEFAULT_COLOR",
    "ForceDirectedLayout",
    "ForceLayoutSettings",
    "LayoutWorker",
    "GeoProjectionLayout",
    "AutocompleteContextResolver",
    "CompletionContext",
    "Suggestion",
    "schema_to_graph",
]
