from __future__ import annotations

import logging

import pytest
from concurrent_log_handler import ConcurrentRotatingFileHandler

from atomex_playground.logging_setup import (
    PACKAGE_LOGGER_NAME,
    attach_file_handler,
    log_file_path,
    parse_log_level,
)


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    previous_level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if isinstance(handler, ConcurrentRotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(previous_level)


def test_parse_log_level_known_names() -> None:
    assert parse_log_level("DEBUG") == logging.DEBUG
    assert parse_log_level(" warning ") == logging.WARNING
    assert parse_log_level("error") == logging.ERROR


@pytest.mark.parametrize("value", [None, "", "VERBOSE", "Level 5"])
def test_parse_log_level_defaults_to_info(value) -> None:
    assert parse_log_level(value) == logging.INFO


def test_log_file_path_is_under_home_logs(tmp_path) -> None:
    assert log_file_path(tmp_path) == (tmp_path / "logs" / "playground.log").resolve()


def test_attach_file_handler_writes_package_records(tmp_path, package_logger) -> None:
    handler = attach_file_handler(tmp_path, level=logging.INFO)

    logging.getLogger("atomex_playground.core.client").info("client_initialized id=mm0_tez")
    logging.getLogger("atomex_playground.core.client").debug("hidden_debug_line")
    logging.getLogger("somebody.else").warning("not_ours")
    handler.flush()

    text = log_file_path(tmp_path).read_text(encoding="utf-8")
    assert "INFO     atomex_playground.core.client: client_initialized id=mm0_tez" in text
    assert "hidden_debug_line" not in text
    assert "not_ours" not in text
    assert handler not in logging.getLogger().handlers


def test_attach_file_handler_is_idempotent_per_home(tmp_path, package_logger) -> None:
    first = attach_file_handler(tmp_path, level=logging.INFO)
    second = attach_file_handler(tmp_path, level=logging.DEBUG)

    file_handlers = [h for h in package_logger.handlers if isinstance(h, ConcurrentRotatingFileHandler)]
    assert first is second
    assert file_handlers == [first]
    assert first.level == logging.DEBUG
    assert package_logger.level == logging.DEBUG
