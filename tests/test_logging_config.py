"""Tests for logging setup."""
import logging

from logging_config import HANDLER_NAMES, setup_logging


def test_repeated_setup_does_not_stack_handlers(tmp_path):
    setup_logging(log_level="DEBUG", log_file=str(tmp_path / "relay.log"))
    setup_logging(log_level="INFO")

    root_logger = logging.getLogger()
    names = [h.get_name() for h in root_logger.handlers if h.get_name() in HANDLER_NAMES]
    assert names == ["signaling.console"]
    assert root_logger.level == logging.INFO
