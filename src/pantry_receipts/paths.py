import os
from typing import Iterator, Optional

from .logging import get_logger

log = get_logger("paths")

ROOT_MARKERS = (".git", "pyproject.toml", ".env")


def expand_abs(path: str) -> str:
    """Absolute path after ``~`` and ``$VAR`` expansion."""
    return os.path.abspath(os.path.expanduser(os.path.expandvars(path or "")))


def _ancestors(start_dir: Optional[str]) -> Iterator[str]:
    current = os.path.abspath(start_dir or ".")
    yield current
    while os.path.dirname(current) != current:
        current = os.path.dirname(current)
        yield current


def find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return the nearest ``filename`` at or above start_dir, or None.

    Lets the CLI run from a subdirectory (e.g. ``src/``) and still pick up the
    repository-level ``.env``.
    """
    for directory in _ancestors(start_dir):
        candidate = os.path.join(directory, filename)
        if os.path.isfile(candidate):
            return candidate
    return None


def find_project_root(start_dir: Optional[str] = None) -> str:
    """Nearest directory holding one of ROOT_MARKERS; start_dir itself otherwise."""
    start = start_dir or os.getcwd()
    for directory in _ancestors(start):
        for marker in ROOT_MARKERS:
            if os.path.exists(os.path.join(directory, marker)):
                log.debug(f"Project root {directory} (found {marker})")
                return directory
    return os.path.abspath(start)
