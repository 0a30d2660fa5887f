"""High-level interface for the modeling engine.

Ties the parser, builders and layout together and keeps the current
models. Each new input replaces the corresponding model wholesale.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from dgraph_lens.autocomplete import AutocompleteContextResolver, Suggestion
from dgraph_lens.colors import PALETTE
from dgraph_lens.config import EngineSettings
from dgraph_lens.geo import GeoExtractor, GeoModel, has_geo_data
from dgraph_lens.graph_model import GraphModel
from dgraph_lens.layout import (
    ForceDirectedLayout,
    ForceLayoutSettings,
    GeoProjectionLayout,
    LayoutWorker,
    continuous_settings,
)
from dgraph_lens.result_graph import ResultGraphBuilder
from dgraph_lens.schema import SchemaModel, SchemaTextParser
from dgraph_lens.schema_diagram import ensure_non_empty, schema_to_graph

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class ModelingEngine:
    """Main interface: schema text and query results in, models out.

    No method raises on bad input; failures surface as empty models or
    empty suggestion lists.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        palette: Sequence[str] = PALETTE,
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Engine settings (read from env if None)
            palette: Colors for type assignment
        """
        self.settings = settings or EngineSettings.from_env()
        self.parser = SchemaTextParser()
        self.graph_builder = ResultGraphBuilder(self.settings, palette)
        self.geo_extractor = GeoExtractor(self.settings, palette)
        self.autocomplete = AutocompleteContextResolver()
        self.geo_layout = GeoProjectionLayout()

        self.schema = SchemaModel()
        self.graph = GraphModel()
        self.geo = GeoModel()
        self.worker: LayoutWorker | None = None
        self._lock = threading.Lock()

    def load_schema(self, text: str) -> SchemaModel:
        """Parse schema text and make it the current schema."""
        schema = self.parser.parse(text)
        self.schema = schema
        self.autocomplete.update_schema(schema)
        logger.info("Loaded schema: %d types, %d predicates", len(schema.types), len(schema.predicates))
        return schema

    def load_result(self, payload: Any, layout: bool = True) -> GraphModel:
        """Build graph and geo models from a query result.

        Any layout worker bound to the previous graph is stopped first.

        Args:
            payload: Query result (object, array or full response)
            layout: Run a one-shot force-directed layout on the new graph

        Returns:
            The new graph model
        """
        self.stop_layout()

        graph = self.graph_builder.build(payload)
        if layout and graph.nodes:
            try:
                ForceDirectedLayout(
                    ForceLayoutSettings.from_engine_settings(self.settings),
                    seed=self.settings.layout_seed,
                ).run(graph, self.settings.layout_iterations)
            except Exception:
                logger.warning("Initial layout failed; keeping unpositioned graph", exc_info=True)

        self.graph = graph
        self.geo = self.geo_extractor.extract(payload)
        logger.info(
            "Loaded result: %d nodes, %d edges, %d geo nodes",
            len(graph.nodes),
            len(graph.edges),
            len(self.geo.nodes),
        )
        return graph

    def suggest(self, text: str, cursor: int) -> list[Suggestion]:
        return self.autocomplete.suggest(text, cursor)

    def has_geo_data(self, payload: Any) -> bool:
        return has_geo_data(payload)

    def schema_diagram(self, fill_empty: bool = False) -> GraphModel:
        """Diagram of the current schema, optionally with example content when empty."""
        diagram = schema_to_graph(self.schema)
        return ensure_non_empty(diagram) if fill_empty else diagram

    def geo_positions(self) -> dict[str, tuple[float, float]]:
        """Validated ``(lat, lng)`` per geo node for the map view."""
        return self.geo_layout.positions(self.geo)

    def start_layout(self, token: threading.Event | None = None) -> LayoutWorker:
        """Start (or resume) continuous layout of the current graph.

        A worker bound to another graph or another token is replaced.

        Args:
            token: Cancellation token owned by the caller's view

        Returns:
            The worker driving the current graph
        """
        with self._lock:
            worker = self.worker
            if (
                worker is None
                or worker.cancelled
                or worker.model is not self.graph
                or (token is not None and worker.token is not token)
            ):
                if worker is not None:
                    worker.stop()
                worker = LayoutWorker(
                    self.graph,
                    ForceDirectedLayout(continuous_settings(self.settings), seed=self.settings.layout_seed),
                    interval=self.settings.layout_interval,
                    token=token,
                )
                self.worker = worker
            worker.start()
            return worker

    def pause_layout(self) -> None:
        if self.worker is not None:
            self.worker.pause()

    def resume_layout(self) -> None:
        if self.worker is not None:
            self.worker.resume()

    def stop_layout(self) -> None:
        with self._lock:
            if self.worker is not None:
                self.worker.stop()
                self.worker = None

    def close(self) -> None:
        self.stop_layout()

    def __enter__(self) -> ModelingEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ModelingEngine(schema_types={len(self.schema.types)}, graph={self.graph!r}, geo={self.geo!r})"

