"""Layout for result graphs.

Force-directed mode relaxes node positions with ForceAtlas2-style forces,
either for a fixed number of iterations or continuously on a background
thread. Geo mode does no relaxation: it only hands validated coordinates
to whatever projects them onto a map.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import numpy as np

from dgraph_lens.config import EngineSettings
from dgraph_lens.geo import calculate_geo_center, validate_coordinates

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from dgraph_lens.geo import GeoModel, GeoNode
    from dgraph_lens.graph_model import GraphModel

logger = logging.getLogger(__name__)

# How often a paused worker checks for cancellation
_POLL_INTERVAL = 0.05
# Rows of the pairwise repulsion computed at once
_REPULSION_BLOCK = 256


@dataclass
class ForceLayoutSettings:
    """Force parameters.

    Attributes:
        gravity: Pull toward the origin
        scaling_ratio: Repulsion strength
        slow_down: Divisor applied to every displacement
        lin_log_mode: Attraction grows with log(1 + distance) instead of distance
        strong_gravity_mode: Gravity grows with distance from the origin
    """

    gravity: float = 0.05
    scaling_ratio: float = 2.0
    slow_down: float = 2.5
    lin_log_mode: bool = False
    strong_gravity_mode: bool = False

    def __post_init__(self) -> None:
        if self.slow_down <= 0:
            raise ValueError("slow_down must be positive")

    @classmethod
    def from_engine_settings(cls, settings: EngineSettings) -> ForceLayoutSettings:
        return cls(
            gravity=settings.gravity,
            scaling_ratio=settings.scaling_ratio,
            slow_down=settings.slow_down,
            lin_log_mode=settings.lin_log_mode,
            strong_gravity_mode=settings.strong_gravity_mode,
        )


# Gentler settings for the continuously stepping view
CONTINUOUS_SETTINGS = ForceLayoutSettings(gravity=0.05, scaling_ratio=2.0, slow_down=2.5)
# Stronger settings for the initial one-shot layout
ONE_SHOT_SETTINGS = ForceLayoutSettings(gravity=0.05, scaling_ratio=4.0, slow_down=5.0)


def continuous_settings(settings: EngineSettings) -> ForceLayoutSettings:
    """Continuous-mode forces with the configured gravity and modes.

    Scaling and slow-down stay at the gentler continuous values.
    """
    return replace(
        CONTINUOUS_SETTINGS,
        gravity=settings.gravity,
        lin_log_mode=settings.lin_log_mode,
        strong_gravity_mode=settings.strong_gravity_mode,
    )


def node_mass(count: int, src: np.ndarray, tgt: np.ndarray) -> np.ndarray:
    """Degree + 1 per node, counting both endpoints of every edge."""
    degree = np.bincount(np.concatenate([src, tgt]), minlength=count)
    return degree.astype(float) + 1.0


class ForceDirectedLayout:
    """Iterative attractive/repulsive relaxation over a GraphModel.

    Node mass is degree + 1. Positions live on the model's nodes, so a
    paused or restarted layout continues from where it left off. Nodes
    without coordinates are placed uniformly at random in the unit square;
    pass ``seed`` for reproducible placement.
    """

    def __init__(
        self,
        settings: ForceLayoutSettings | None = None,
        seed: int | None = None,
    ) -> None:
        self.settings = replace(settings) if settings else ForceLayoutSettings()
        self.rng = np.random.default_rng(seed)
        self._previous: dict[str, np.ndarray] = {}

    def seed_positions(self, model: GraphModel) -> int:
        """Give every unplaced node random coordinates.

        Returns:
            Number of nodes that were placed
        """
        placed = 0
        for node in list(model.nodes.values()):
            if node.position is None:
                x, y = self.rng.random(2)
                node.move_to(x, y)
                placed += 1
        return placed

    def step(self, model: GraphModel) -> None:
        """Run one relaxation step, moving the model's nodes in place."""
        self.seed_positions(model)
        nodes = list(model.nodes.values())
        if not nodes:
            return

        ids = [node.id for node in nodes]
        index = {node_id: i for i, node_id in enumerate(ids)}
        positions = np.array([[node.x, node.y] for node in nodes], dtype=float)

        pairs = [
            (index[edge.source], index[edge.target])
            for edge in list(model.edges)
            if edge.source in index and edge.target in index
        ]
        src = np.array([s for s, _ in pairs], dtype=np.intp)
        tgt = np.array([t for _, t in pairs], dtype=np.intp)
        mass = node_mass(len(ids), src, tgt)
        forces = self._forces(positions, mass, src, tgt)

        previous = np.array([self._previous.get(node_id, (0.0, 0.0)) for node_id in ids], dtype=float)
        swinging = mass * np.linalg.norm(previous - forces, axis=1)
        factor = 1.0 / (1.0 + np.sqrt(swinging))
        positions += forces * (factor / self.settings.slow_down)[:, None]

        for node, (x, y) in zip(nodes, positions):
            node.move_to(x, y)
        self._previous = {node_id: forces[i] for i, node_id in enumerate(ids)}

    def _forces(
        self,
        positions: np.ndarray,
        mass: np.ndarray,
        src: np.ndarray,
        tgt: np.ndarray,
    ) -> np.ndarray:
        settings = self.settings
        forces = np.zeros_like(positions)

        # Repulsion between every pair, one block of rows at a time;
        # coincident nodes exert nothing
        for start in range(0, len(positions), _REPULSION_BLOCK):
            stop = start + _REPULSION_BLOCK
            delta = positions[start:stop, None, :] - positions[None, :, :]
            dist2 = np.einsum("ijk,ijk->ij", delta, delta)
            dist2[dist2 == 0] = np.inf
            repulsion = settings.scaling_ratio * mass[start:stop, None] * mass[None, :] / dist2
            forces[start:stop] = np.einsum("ijk,ij->ik", delta, repulsion)

        # Attraction along edges, applied to both endpoints
        if len(src):
            diff = positions[src] - positions[tgt]
            if settings.lin_log_mode:
                dist = np.linalg.norm(diff, axis=1)
                safe = np.where(dist > 0, dist, 1.0)
                attraction = np.where(dist > 0, -np.log1p(dist) / safe, 0.0)
            else:
                attraction = -np.ones(len(src))
            pull = diff * attraction[:, None]
            np.add.at(forces, src, pull)
            np.add.at(forces, tgt, -pull)

        # Gravity toward the origin
        if settings.strong_gravity_mode:
            gravity = mass * settings.gravity
        else:
            dist = np.linalg.norm(positions, axis=1)
            safe = np.where(dist > 0, dist, 1.0)
            gravity = np.where(dist > 0, mass * settings.gravity / safe, 0.0)
        forces -= positions * gravity[:, None]

        return forces

    def run(self, model: GraphModel, iterations: int = 50) -> GraphModel:
        """Lay out a model with a fixed number of steps.

        Args:
            model: Graph to lay out
            iterations: Number of relaxation steps

        Returns:
            The same model, positioned
        """
        if iterations < 0:
            raise ValueError("iterations must be non-negative")
        self.seed_positions(model)
        for _ in range(iterations):
            self.step(model)
        logger.debug("Laid out %d nodes in %d iterations", len(model), iterations)
        return model

    def reset(self) -> None:
        """Forget per-node damping history."""
        self._previous = {}

    def __repr__(self) -> str:
        return f"ForceDirectedLayout({self.settings})"


class LayoutWorker:
    """Continuously steps a ForceDirectedLayout on a background thread.

    One step runs per tick while the running flag is set. ``pause`` and
    ``resume`` toggle the flag without losing positions. Setting the
    cancellation token, directly or through ``stop``, ends the thread for
    good; the owning view should do so when it is torn down.
    """

    def __init__(
        self,
        model: GraphModel,
        layout: ForceDirectedLayout | None = None,
        interval: float = 1 / 60,
        token: threading.Event | None = None,
    ) -> None:
        """Initialize the worker.

        Args:
            model: Graph whose node coordinates the worker mutates
            layout: Layout to step (continuous settings if None)
            interval: Seconds to wait between steps
            token: Cancellation token shared with the owner

        Raises:
            ValueError: If interval is negative
        """
        if interval < 0:
            raise ValueError("interval must be non-negative")
        self.model = model
        self.layout = layout or ForceDirectedLayout(CONTINUOUS_SETTINGS)
        self.interval = interval
        self.token = token or threading.Event()
        self.steps = 0
        self._running = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_running(self) -> bool:
        """True while the worker is alive and not paused."""
        return self._running.is_set() and not self.token.is_set() and self.is_alive

    @property
    def cancelled(self) -> bool:
        return self.token.is_set()

    def start(self) -> bool:
        """Start stepping (or resume if already started).

        Returns:
            False if the worker was already cancelled
        """
        if self.token.is_set():
            logger.debug("Layout worker already cancelled; not starting")
            return False
        self._running.set()
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, name="dgraph-lens-layout", daemon=True)
            self._thread.start()
        return True

    def pause(self) -> None:
        self._running.clear()

    def resume(self) -> None:
        if not self.token.is_set():
            self._running.set()

    def toggle(self) -> bool:
        """Flip between running and paused; return the new running state."""
        if self._running.is_set():
            self.pause()
        else:
            self.resume()
        return self._running.is_set()

    def stop(self, timeout: float | None = 1.0) -> None:
        """Cancel the worker and wait for its thread to finish."""
        self.token.set()
        self._running.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._running.clear()

    def _run(self) -> None:
        while not self.token.is_set():
            if not self._running.wait(timeout=_POLL_INTERVAL):
                continue
            if self.token.is_set():
                break
            try:
                self.layout.step(self.model)
            except Exception:
                logger.warning("Layout step failed; pausing worker", exc_info=True)
                self._running.clear()
                continue
            self.steps += 1
            if self.interval:
                self.token.wait(self.interval)
        logger.debug("Layout worker stopped after %d steps", self.steps)

    def __enter__(self) -> LayoutWorker:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"LayoutWorker(running={self.is_running}, steps={self.steps})"


class GeoProjectionLayout:
    """Pass-through layout for geo models.

    Coordinates are re-validated and handed on unchanged; projecting them
    to screen space belongs to the map view. Coincident points stay
    coincident.
    """

    def positions(self, geo: GeoModel | Iterable[GeoNode]) -> dict[str, tuple[float, float]]:
        """Map geo node ID to ``(lat, lng)``, dropping invalid pairs."""
        nodes = geo.nodes.values() if hasattr(geo, "nodes") else geo
        result: dict[str, tuple[float, float]] = {}
        for node in nodes:
            pair = validate_coordinates(node.lat, node.lng)
            if pair is not None:
                result[node.id] = pair
        return result

    def center(self, nodes: Sequence[GeoNode]) -> tuple[float, float]:
        return calculate_geo_center(nodes)

    def normalized_positions(self, nodes: Iterable[GeoNode]) -> dict[str, tuple[float, float]]:
        """Scale coordinates into the unit square with north up.

        x grows with longitude, y shrinks with latitude. A zero-width range
        is treated as width 1.
        """
        nodes = list(nodes)
        if not nodes:
            return {}
        lats = np.array([node.lat for node in nodes], dtype=float)
        lngs = np.array([node.lng for node in nodes], dtype=float)
        lat_range = (lats.max() - lats.min()) or 1.0
        lng_range = (lngs.max() - lngs.min()) or 1.0
        xs = (lngs - lngs.min()) / lng_range
        ys = 1.0 - (lats - lats.min()) / lat_range
        return {node.id: (float(x), float(y)) for node, x, y in zip(nodes, xs, ys)}

    def apply(self, model: GraphModel, nodes: Iterable[GeoNode]) -> int:
        """Place graph nodes at the normalized position of their geo node.

        Returns:
            Number of graph nodes positioned
        """
        nodes = list(nodes)
        by_uid = {node.uid: node.id for node in nodes}
        normalized = self.normalized_positions(nodes)
        placed = 0
        for uid, geo_node_id in by_uid.items():
            graph_node = model.get_node(uid)
            if graph_node is not None:
                graph_node.move_to(*normalized[geo_node_id])
                placed += 1
        return placed
