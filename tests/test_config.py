"""Tests for configuration loading and override behavior."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from textgraph.utils.config import Config, LLMConfig, get_config, load_config, reset_config


@pytest.fixture(autouse=True)
def _reset_global_config() -> None:
    """Ensure config singleton doesn't leak between tests."""
    reset_config()
    yield
    reset_config()


def _write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def test_defaults_match_documented_values() -> None:
    cfg = Config()

    assert cfg.node_colors.entity == "#FF6B6B"
    assert cfg.node_colors.concept == "#45B7D1"
    assert cfg.node_shapes.attribute == "diamond"
    assert cfg.layout.algorithm == "hierarchical"
    assert cfg.layout.spacing == 200.0
    assert cfg.extraction.use_llm is False
    assert cfg.extraction.llm.model == "llama3.2"
    assert cfg.extraction.llm.endpoint == "http://localhost:11434/api/generate"
    assert cfg.extraction.llm.retry_attempts == 1


def test_yaml_loads_values(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"layout": {"algorithm": "circular"}, "extraction": {"use_llm": True}})

    cfg = load_config(cfg_path)

    assert cfg.layout.algorithm == "circular"
    assert cfg.extraction.use_llm is True
    # Untouched sections keep their defaults.
    assert cfg.layout.spacing == 200.0
    assert get_config() is cfg


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"extraction": {"llm": {"model": "yaml-model", "timeout": 5}}})

    monkeypatch.setenv("TEXTGRAPH_EXTRACTION__LLM__MODEL", "env-model")

    cfg = load_config(cfg_path)

    assert cfg.extraction.llm.model == "env-model"
    assert cfg.extraction.llm.timeout == 5


def test_missing_yaml_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_get_config_requires_load() -> None:
    with pytest.raises(RuntimeError):
        get_config()


def test_invalid_pattern_rejected_at_load(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    _write_yaml(cfg_path, {"extraction": {"entity_patterns": ["("]}})

    with pytest.raises(ValidationError):
        load_config(cfg_path)


@pytest.mark.parametrize("field,value", [("timeout", 0), ("retry_attempts", 0)])
def test_llm_config_validation(field: str, value: float) -> None:
    with pytest.raises(ValidationError):
        LLMConfig(**{field: value})


def test_to_yaml_round_trips(tmp_path: Path) -> None:
    cfg = Config()
    cfg.layout.algorithm = "force"

    path = cfg.to_yaml(tmp_path / "out" / "graph_config.yaml")
    loaded = load_config(path)

    assert loaded.layout.algorithm == "force"
    assert loaded.extraction.entity_patterns == cfg.extraction.entity_patterns
