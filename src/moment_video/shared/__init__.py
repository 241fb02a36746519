"""Shared utilities package."""

from moment_video.shared.logging import setup_logger, get_logger, get_content_logger
from moment_video.shared.retry import AsyncRetryStrategy
from moment_video.shared.metrics import MetricsCollector
from moment_video.shared.types import ObjectMetadata, PathLike

__all__ = [
    "setup_logger",
    "get_logger",
    "get_content_logger",
    "AsyncRetryStrategy",
    "MetricsCollector",
    "ObjectMetadata",
    "PathLike",
]
