import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger
from .paths import find_upwards

log = get_logger("config")

DEFAULT_BACKEND = "openai"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_OPENROUTER_MODEL = "openai/gpt-4o"
SUPPORTED_BACKENDS = ("openai", "openrouter")


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Return key/value pairs from the nearest .env without touching os.environ."""
    path = find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    values = {k: (v or "").strip() for k, v in dotenv_values(path).items()}
    log.debug(f"Loaded {len(values)} key(s) from .env at {path}")
    return values


def _lookup(dotenv_dir: str, *keys: str) -> Optional[str]:
    for key in keys:
        v = os.environ.get(key)
        if v and v.strip():
            return v.strip()
    env = _read_dotenv(dotenv_dir)
    for key in keys:
        v = env.get(key)
        if v:
            return v
    return None


def load_openai(dotenv_dir: str) -> Optional[str]:
    """Return the OpenAI API key from env or .env (OPENAI_API_KEY)."""
    return _lookup(dotenv_dir, "OPENAI_API_KEY", "openai_api_key")


def load_openrouter(dotenv_dir: str) -> Optional[str]:
    """Return the OpenRouter API key from env or .env (OPEN_ROUTER_API_KEY)."""
    return _lookup(dotenv_dir, "OPEN_ROUTER_API_KEY", "open_router_api_key")


@dataclass(frozen=True)
class VisionConfig:
    backend: str
    model: str
    api_key: Optional[str]
    timeout_seconds: float = 90.0
    max_tokens: int = 4000
    temperature: float = 0.0


def load_vision_config(dotenv_dir: Optional[str] = None) -> VisionConfig:
    """Resolve backend, model and credentials for the vision orchestrator.

    The key may be None here; the orchestrator raises when a call actually
    needs it.
    """
    start = dotenv_dir or os.getcwd()
    backend = (_lookup(start, "VISION_BACKEND") or DEFAULT_BACKEND).lower()
    if backend not in SUPPORTED_BACKENDS:
        log.warning(f"Unknown VISION_BACKEND={backend!r}; defaulting to '{DEFAULT_BACKEND}'")
        backend = DEFAULT_BACKEND

    if backend == "openrouter":
        model = _lookup(start, "OPENROUTER_MODEL", "VISION_MODEL") or DEFAULT_OPENROUTER_MODEL
        api_key = load_openrouter(start)
    else:
        model = _lookup(start, "VISION_MODEL") or DEFAULT_OPENAI_MODEL
        api_key = load_openai(start)

    timeout_raw = _lookup(start, "VISION_TIMEOUT")
    try:
        timeout = float(timeout_raw) if timeout_raw else 90.0
    except ValueError:
        log.warning(f"VISION_TIMEOUT={timeout_raw!r} is not a number; using 90s")
        timeout = 90.0

    if not api_key:
        log.debug(f"No API key configured for backend {backend}")
    return VisionConfig(backend=backend, model=model, api_key=api_key, timeout_seconds=timeout)
