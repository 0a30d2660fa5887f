"""Tests for environment configuration."""

import pytest

from dgraph_lens.config import EngineSettings, env_bool, env_float, env_int, env_list
from dgraph_lens.engine import ModelingEngine


def test_defaults(monkeypatch):
    """Test defaults when nothing is set."""
    for name in ("ID_FIELD", "TYPE_FIELDS", "GRAVITY", "LAYOUT_ITERATIONS"):
        monkeypatch.delenv(f"DGRAPH_LENS_{name}", raising=False)

    settings = EngineSettings.from_env()

    assert settings.identifier_field == "uid"
    assert settings.type_fields == ("dgraph.type", "type")
    assert settings.gravity == 0.05
    assert settings.layout_iterations == 50


def test_values_from_env(monkeypatch):
    """Test settings read from the environment."""
    monkeypatch.setenv("DGRAPH_LENS_ID_FIELD", "id")
    monkeypatch.setenv("DGRAPH_LENS_TYPE_FIELDS", "kind, type")
    monkeypatch.setenv("DGRAPH_LENS_MAX_DEPTH", "6")
    monkeypatch.setenv("DGRAPH_LENS_SCALING_RATIO", "2.5")
    monkeypatch.setenv("DGRAPH_LENS_LIN_LOG_MODE", "yes")

    settings = EngineSettings.from_env()

    assert settings.identifier_field == "id"
    assert settings.type_fields == ("kind", "type")
    assert settings.max_depth == 6
    assert settings.scaling_ratio == 2.5
    assert settings.lin_log_mode is True


def test_bad_values_fall_back(monkeypatch):
    """Test unparseable values keep the defaults."""
    monkeypatch.setenv("DGRAPH_LENS_A", "many")
    monkeypatch.setenv("DGRAPH_LENS_B", "maybe")
    monkeypatch.setenv("DGRAPH_LENS_C", " , ")

    assert env_int("A", 3) == 3
    assert env_float("A", 1.5) == 1.5
    assert env_bool("B", False) is False
    assert env_list("C", ("x",)) == ("x",)


@pytest.mark.parametrize(
    "name,value,attribute,default",
    [
        ("LAYOUT_INTERVAL", "-1", "layout_interval", 1 / 60),
        ("SLOW_DOWN", "0", "slow_down", 5.0),
        ("SLOW_DOWN", "inf", "slow_down", 5.0),
        ("LAYOUT_ITERATIONS", "-3", "layout_iterations", 50),
        ("LABEL_ID_LENGTH", "-1", "label_id_length", 8),
        ("MAX_DEPTH", "-2", "max_depth", None),
        ("LAYOUT_SEED", "-5", "layout_seed", None),
    ],
)
def test_out_of_range_values_fall_back(monkeypatch, name, value, attribute, default):
    """Test out-of-range values keep the defaults."""
    monkeypatch.setenv(f"DGRAPH_LENS_{name}", value)

    settings = EngineSettings.from_env()

    assert getattr(settings, attribute) == default


def test_boundary_values_accepted(monkeypatch):
    """Test zero is allowed where only negatives are rejected."""
    monkeypatch.setenv("DGRAPH_LENS_LAYOUT_INTERVAL", "0")
    monkeypatch.setenv("DGRAPH_LENS_LAYOUT_ITERATIONS", "0")

    settings = EngineSettings.from_env()

    assert settings.layout_interval == 0
    assert settings.layout_iterations == 0


def test_layout_starts_with_bad_env_interval(monkeypatch):
    """Test a negative interval in the environment cannot break the engine."""
    monkeypatch.setenv("DGRAPH_LENS_LAYOUT_INTERVAL", "-1")

    with ModelingEngine(EngineSettings.from_env()) as engine:
        engine.load_result({"q": [{"uid": "0x1", "friend": {"uid": "0x2"}}]})
        worker = engine.start_layout()

        assert worker.interval == pytest.approx(1 / 60)
        assert worker.is_alive


@pytest.mark.parametrize(
    "kwargs",
    [
        {"layout_interval": -1},
        {"slow_down": 0},
        {"layout_iterations": -1},
        {"label_id_length": -1},
        {"max_depth": -1},
        {"layout_seed": -1},
    ],
)
def test_explicit_out_of_range_settings_rejected(kwargs):
    """Test explicit bad settings are programming errors."""
    with pytest.raises(ValueError):
        EngineSettings(**kwargs)
