from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolate_config(tmp_path: Path, monkeypatch: Any) -> Path:
    """Point config to a temp path so tests don't touch user state."""
    cfg_path = tmp_path / "config.toml"
    monkeypatch.setenv("CTX_CONFIG", str(cfg_path))
    for key in ("CTX_TOTAL_BUDGET", "CTX_MODEL", "CTX_MAX_ITEMS", "CTX_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    return cfg_path


@pytest.fixture(autouse=True)
def offline_tiktoken(monkeypatch: Any) -> None:
    """Keep tiktoken from downloading BPE files; counters fall back to estimates."""
    import ctxkit.core.tokens as tokens

    def no_model(model: str) -> Any:
        raise KeyError(model)

    def no_encoding(name: str) -> Any:
        raise ValueError(f"encoding {name} unavailable in tests")

    monkeypatch.setattr(tokens.tiktoken, "encoding_for_model", no_model)
    monkeypatch.setattr(tokens.tiktoken, "get_encoding", no_encoding)
