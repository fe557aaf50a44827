import os
import sys

import pytest

sys.path.insert(0, os.path.abspath("src"))

from pantry_receipts.config import load_openai, load_vision_config

_KEYS = (
    "OPENAI_API_KEY",
    "openai_api_key",
    "OPEN_ROUTER_API_KEY",
    "open_router_api_key",
    "VISION_BACKEND",
    "VISION_MODEL",
    "OPENROUTER_MODEL",
    "VISION_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_with_key_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", " sk-env ")
    cfg = load_vision_config(str(tmp_path))
    assert cfg.backend == "openai"
    assert cfg.model == "gpt-4o"
    assert cfg.api_key == "sk-env"
    assert cfg.timeout_seconds == 90.0


def test_dotenv_file_is_read_without_touching_environ(tmp_path):
    (tmp_path / ".env").write_text(
        "VISION_BACKEND=openrouter\nOPEN_ROUTER_API_KEY=or-key\n", encoding="utf-8"
    )
    nested = tmp_path / "sub" / "dir"
    nested.mkdir(parents=True)

    cfg = load_vision_config(str(nested))
    assert cfg.backend == "openrouter"
    assert cfg.api_key == "or-key"
    assert cfg.model == "openai/gpt-4o"
    assert "OPEN_ROUTER_API_KEY" not in os.environ


def test_environment_wins_over_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("OPENAI_API_KEY=from-file\n", encoding="utf-8")
    monkeypatch.setenv("OPENAI_API_KEY", "from-env")
    assert load_openai(str(tmp_path)) == "from-env"


def test_unknown_backend_and_bad_timeout_fall_back(tmp_path, monkeypatch):
    monkeypatch.setenv("VISION_BACKEND", "ollama")
    monkeypatch.setenv("VISION_TIMEOUT", "soon")
    monkeypatch.setenv("VISION_MODEL", "gpt-4o-mini")
    cfg = load_vision_config(str(tmp_path))
    assert cfg.backend == "openai"
    assert cfg.model == "gpt-4o-mini"
    assert cfg.timeout_seconds == 90.0
    assert cfg.api_key is None
