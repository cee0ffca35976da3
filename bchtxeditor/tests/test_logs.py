import logging

import pytest

from bchtxeditor.logs import logs, PACKAGE_LOGGER_NAME


@pytest.fixture
def restore_level():
    level = logs.package_logger.level
    yield
    logs.set_level(level)


def test_get_logger_is_below_package_logger() -> None:
    logger = logs.get_logger("transaction")
    assert logger.name == PACKAGE_LOGGER_NAME + ".transaction"
    assert logger.parent is logs.package_logger


@pytest.mark.parametrize("level, expected", (
    ("debug", logging.DEBUG), ("info", logging.INFO), ("warning", logging.WARNING),
    (logging.ERROR, logging.ERROR)))
def test_set_level(restore_level, level, expected) -> None:
    logs.set_level(level)
    assert logs.package_logger.level == expected
    assert logs.get_logger("commands").getEffectiveLevel() == expected


def test_root_logger_untouched() -> None:
    assert logs.stream_handler not in logging.getLogger().handlers
