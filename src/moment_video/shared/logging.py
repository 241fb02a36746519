"""Centralized logging utilities."""

import logging
import sys
from typing import Optional
from pathlib import Path

DEFAULT_FORMAT = '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s'


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Args:
        name: Logger name
        level: Logging level
        log_file: Optional file to write logs to
        format_string: Custom format string

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Package root owns the handler; children propagate to it
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package root.

    The ``moment_video`` root logger is configured on first use so that
    library modules log somewhere sensible without extra setup.
    """
    root = logging.getLogger("moment_video")
    if not root.handlers:
        setup_logger("moment_video")
    return logging.getLogger(name)


class ContentLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the content id being processed."""

    def process(self, msg, kwargs):
        return f"[{self.extra['content_id']}] {msg}", kwargs


def get_content_logger(
    content_id: str,
    base_logger: Optional[logging.Logger] = None
) -> logging.LoggerAdapter:
    """
    Create a logger adapter that tags messages with a content id.

    Args:
        content_id: Identifier of the clip being processed
        base_logger: Logger to wrap (defaults to the orchestrator logger)

    Returns:
        LoggerAdapter for per-request tracing
    """
    if base_logger is None:
        base_logger = get_logger("moment_video.application.orchestrator")
    return ContentLoggerAdapter(base_logger, {"content_id": content_id})
