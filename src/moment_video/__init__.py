"""Moment video ingestion pipeline."""

__version__ = "0.1.0"

from moment_video.domain import (
    ProcessingRequest,
    ProcessingResult,
    RequestMetadata,
    PublishResult,
)
from moment_video.infrastructure.config import VideoPolicy, load_policy
from moment_video.application import (
    VideoProcessingOrchestrator,
    ContentPublisher,
    build_orchestrator,
    build_publisher,
)

__all__ = [
    "__version__",
    "ProcessingRequest",
    "ProcessingResult",
    "RequestMetadata",
    "PublishResult",
    "VideoPolicy",
    "load_policy",
    "VideoProcessingOrchestrator",
    "ContentPublisher",
    "build_orchestrator",
    "build_publisher",
]
