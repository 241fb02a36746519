"""Test logging helpers."""

import logging

from moment_video.shared.logging import get_content_logger, get_logger, setup_logger


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


def test_get_logger_configures_package_root():
    get_logger("moment_video.infrastructure.media.prober")

    root = logging.getLogger("moment_video")
    assert root.handlers
    assert root.propagate is False


def test_content_logger_prefixes_messages():
    base = logging.getLogger("test_content_logger")
    base.setLevel(logging.INFO)
    handler = ListHandler()
    base.addHandler(handler)
    try:
        get_content_logger("moment-42", base).info("Probing")
    finally:
        base.removeHandler(handler)

    assert handler.messages == ["[moment-42] Probing"]


def test_setup_logger_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"

    logger = setup_logger("test_setup_logger_file", log_file=log_file)
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()

    assert "hello" in log_file.read_text(encoding="utf-8")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
