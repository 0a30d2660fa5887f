"""Engine configuration.

Values come from environment variables (optionally via a ``.env`` file)
prefixed with ``DGRAPH_LENS_``. Explicit constructor arguments elsewhere in
the package always take precedence over these defaults.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

ENV_PREFIX = "DGRAPH_LENS_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _in_range(name: str, value: float, minimum: float | None, strict: bool) -> bool:
    if minimum is None:
        return True
    if value > minimum or (value == minimum and not strict):
        return True
    bound = ">" if strict else ">="
    logger.warning("Ignoring %s%s=%r: must be %s %s", ENV_PREFIX, name, value, bound, minimum)
    return False


def env_float(name: str, default: float, minimum: float | None = None, strict: bool = False) -> float:
    """Read a float setting, falling back to the default on bad input.

    Args:
        name: Variable name without the prefix
        default: Value used when unset, unparseable or out of range
        minimum: Lowest accepted value
        strict: Reject ``minimum`` itself
    """
    value = _env(name)
    if value is None:
        return default
    try:
        number = float(value)
    except ValueError:
        logger.warning("Ignoring %s%s=%r: not a number", ENV_PREFIX, name, value)
        return default
    if not math.isfinite(number):
        logger.warning("Ignoring %s%s=%r: not finite", ENV_PREFIX, name, value)
        return default
    return number if _in_range(name, number, minimum, strict) else default


def env_int(name: str, default: int | None, minimum: int | None = None) -> int | None:
    """Read an integer setting, falling back to the default on bad or out-of-range input."""
    value = _env(name)
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError:
        logger.warning("Ignoring %s%s=%r: not an integer", ENV_PREFIX, name, value)
        return default
    return number if _in_range(name, number, minimum, False) else default


def env_bool(name: str, default: bool) -> bool:
    """Read a boolean setting ("true"/"false", "1"/"0", "yes"/"no", "on"/"off")."""
    value = _env(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning("Ignoring %s%s=%r: not a boolean", ENV_PREFIX, name, value)
    return default


def env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Read a comma-separated list setting."""
    value = _env(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


@dataclass
class EngineSettings:
    """Tunables shared by the builders and the layout engine.

    Attributes:
        identifier_field: Reserved key naming a graph entity
        type_fields: Keys holding an entity's type tag, checked in order
        label_fields: Keys used for a node label, checked in order
        label_id_length: Identifier prefix length for fallback labels
        max_depth: Optional nesting bound for result traversal
        layout_iterations: Iterations for a one-shot layout
        layout_seed: Seed for random coordinate seeding (None = unseeded)
        layout_interval: Seconds between background layout steps
        gravity: Pull toward the origin
        scaling_ratio: Repulsion strength
        slow_down: Step damping divisor
        lin_log_mode: Use logarithmic attraction
        strong_gravity_mode: Gravity grows with distance from the origin
    """

    identifier_field: str = "uid"
    type_fields: tuple[str, ...] = ("dgraph.type", "type")
    label_fields: tuple[str, ...] = ("name", "title")
    label_id_length: int = 8
    max_depth: int | None = None
    layout_iterations: int = 50
    layout_seed: int | None = None
    layout_interval: float = 1 / 60
    gravity: float = 0.05
    scaling_ratio: float = 4.0
    slow_down: float = 5.0
    lin_log_mode: bool = False
    strong_gravity_mode: bool = False

    def __post_init__(self) -> None:
        if self.label_id_length < 0:
            raise ValueError("label_id_length must be non-negative")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        if self.layout_seed is not None and self.layout_seed < 0:
            raise ValueError("layout_seed must be non-negative")
        if self.layout_iterations < 0:
            raise ValueError("layout_iterations must be non-negative")
        if self.layout_interval < 0:
            raise ValueError("layout_interval must be non-negative")
        if self.slow_down <= 0:
            raise ValueError("slow_down must be positive")

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Build settings from ``DGRAPH_LENS_*`` environment variables."""
        defaults = cls()
        return cls(
            identifier_field=_env("ID_FIELD") or defaults.identifier_field,
            type_fields=env_list("TYPE_FIELDS", defaults.type_fields),
            label_fields=env_list("LABEL_FIELDS", defaults.label_fields),
            label_id_length=env_int("LABEL_ID_LENGTH", defaults.label_id_length, minimum=0),
            max_depth=env_int("MAX_DEPTH", defaults.max_depth, minimum=0),
            layout_iterations=env_int("LAYOUT_ITERATIONS", defaults.layout_iterations, minimum=0),
            layout_seed=env_int("LAYOUT_SEED", defaults.layout_seed, minimum=0),
            layout_interval=env_float("LAYOUT_INTERVAL", defaults.layout_interval, minimum=0),
            gravity=env_float("GRAVITY", defaults.gravity),
            scaling_ratio=env_float("SCALING_RATIO", defaults.scaling_ratio),
            slow_down=env_float("SLOW_DOWN", defaults.slow_down, minimum=0, strict=True),
            lin_log_mode=env_bool("LIN_LOG_MODE", defaults.lin_log_mode),
            strong_gravity_mode=env_bool("STRONG_GRAVITY_MODE", defaults.strong_gravity_mode),
        )
