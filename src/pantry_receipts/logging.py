import logging
import os
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "pantry_receipts"

_LEVEL_NAMES = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def parse_level(value: Union[str, int, None], default: int = logging.INFO) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        return _LEVEL_NAMES.get(value.strip().upper(), default)
    return default


def _package_logger() -> logging.Logger:
    """Package-wide logger that owns the handlers; module loggers propagate to it.

    Output goes to stderr so CLI JSON on stdout stays machine-readable.
    LOG_LEVEL (default INFO) and LOG_FILE (optional, appended) are read once.
    """
    root = logging.getLogger(PACKAGE_LOGGER)
    if getattr(root, "_pantry_configured", False):
        return root

    level = parse_level(os.environ.get("LOG_LEVEL"))
    root.setLevel(level)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    root.addHandler(stream)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
            fh.setFormatter(formatter)
            root.addHandler(fh)
        except OSError as exc:
            root.warning(f"LOG_FILE {log_file!r} could not be opened ({exc}); logging to stderr only")

    root.propagate = False
    setattr(root, "_pantry_configured", True)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return ``pantry_receipts.<name>``, configuring the package logger on first use."""
    _package_logger()
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def set_level(level: Optional[Union[str, int]]) -> None:
    """Override the package log level (e.g. from a CLI flag)."""
    if level is None:
        return
    _package_logger().setLevel(parse_level(level))
