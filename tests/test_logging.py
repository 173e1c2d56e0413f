"""
Tests for logging setup.
"""

import logging

from ops.logging import setup_logging


def test_writes_to_log_file(tmp_path):
    log_path = tmp_path / "logs" / "monitor.log"
    setup_logging(str(log_path), "INFO")

    logging.info("monitor started")
    logging.debug("hidden at INFO")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_path.read_text()
    assert "INFO - monitor started" in text
    assert "hidden at INFO" not in text
    assert logging.getLogger("ultralytics").level == logging.WARNING

    for handler in list(logging.getLogger().handlers):
        handler.close()
        logging.getLogger().removeHandler(handler)


def test_stream_only_without_path():
    setup_logging(None, "DEBUG")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert not any(isinstance(h, logging.FileHandler) for h in root.handlers)
    for handler in list(root.handlers):
        root.removeHandler(handler)
