from __future__ import annotations

import json
from pathlib import Path

from ctxkit.core.config import DEFAULT_TOTAL_BUDGET, ContextConfig, load_config


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    config, meta = load_config(config_path=tmp_path / "missing.toml")

    assert config.total_budget == DEFAULT_TOTAL_BUDGET
    assert config.priorities.work_items == 10
    assert config.priorities.pull_requests == 8
    assert config.priorities.projects == 6
    assert config.max_items is None
    assert not meta.file_loaded
    assert meta.error is None


def test_reads_toml_file(tmp_path: Path) -> None:
    path = tmp_path / "ctx.toml"
    path.write_text(
        'total_budget = 2000\nmax_items = 5\n\n[priorities]\nprojects = 9\n',
        encoding="utf-8",
    )

    config, meta = load_config(config_path=path)

    assert meta.file_loaded
    assert config.total_budget == 2000
    assert config.max_items == 5
    assert config.priorities.projects == 9
    assert config.priorities.work_items == 10


def test_reads_json_file(tmp_path: Path) -> None:
    path = tmp_path / "ctx.json"
    path.write_text(json.dumps({"total_budget": 1234}), encoding="utf-8")

    config, _ = load_config(config_path=path)

    assert config.total_budget == 1234


def test_env_overrides_file(tmp_path: Path) -> None:
    path = tmp_path / "ctx.toml"
    path.write_text("total_budget = 2000\n", encoding="utf-8")

    config, meta = load_config(
        config_path=path,
        env={"CTX_TOTAL_BUDGET": "3000", "CTX_PRIORITIES__PROJECTS": "11"},
    )

    assert config.total_budget == 3000
    assert config.priorities.projects == 11
    assert meta.env_overrides == {"total_budget", "priorities.projects"}


def test_config_path_from_env(tmp_path: Path) -> None:
    path = tmp_path / "custom.toml"
    path.write_text("total_budget = 777\n", encoding="utf-8")

    config, meta = load_config(env={"CTX_CONFIG": str(path)})

    assert meta.path == path
    assert config.total_budget == 777


def test_syntax_error_falls_back_to_safe_mode(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("total_budget = = 5", encoding="utf-8")

    config, meta = load_config(config_path=path)

    assert meta.error is not None
    assert "Syntax error" in meta.error
    assert config.total_budget == DEFAULT_TOTAL_BUDGET


def test_invalid_values_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "bad.toml"
    path.write_text("total_budget = -5\n", encoding="utf-8")

    config, meta = load_config(config_path=path)

    assert meta.error is not None
    assert "non-negative" in meta.error
    assert config.total_budget == DEFAULT_TOTAL_BUDGET
    assert isinstance(config, ContextConfig)
