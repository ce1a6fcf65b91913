"""Tests for structured logging setup."""

import logging

from sciexpr_pkg.logging_config import StructuredFormatter, get_logger, setup_logging


def test_get_logger_is_namespaced():
    assert get_logger("parser").name == "sciexpr.parser"


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "run.log"
    logger = setup_logging("DEBUG", str(log_file))
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    logger = setup_logging("WARNING")
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING


def test_structured_format():
    record = logging.LogRecord("sciexpr.calculator", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    text = StructuredFormatter().format(record)
    assert "[INFO] sciexpr.calculator: hello world" in text


def test_messages_reach_log_file(tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging("DEBUG", str(log_file))
    get_logger("modes").debug("Angle mode set to deg")
    assert "Angle mode set to deg" in log_file.read_text()
