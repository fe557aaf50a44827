import logging
import os
import sys

sys.path.insert(0, os.path.abspath("src"))

from pantry_receipts.logging import PACKAGE_LOGGER, get_logger, parse_level, set_level


def test_parse_level_names_and_fallback():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level(" WARN ") == logging.WARNING
    assert parse_level("verbose") == logging.INFO
    assert parse_level(None, default=logging.ERROR) == logging.ERROR
    assert parse_level(15) == 15


def test_module_loggers_share_package_handlers():
    a = get_logger("alpha")
    b = get_logger("beta")
    package = logging.getLogger(PACKAGE_LOGGER)

    assert a.name == "pantry_receipts.alpha"
    assert a.parent is package and b.parent is package
    assert not a.handlers
    assert package.propagate is False

    handler_count = len(package.handlers)
    get_logger("alpha")
    assert len(package.handlers) == handler_count


def test_set_level_overrides_package_level():
    package = logging.getLogger(PACKAGE_LOGGER)
    original = package.level
    try:
        set_level("ERROR")
        assert package.level == logging.ERROR
        set_level(None)
        assert package.level == logging.ERROR
    finally:
        package.setLevel(original)
