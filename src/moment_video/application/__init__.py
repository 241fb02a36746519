"""Application layer package."""

from moment_video.application.orchestrator import VideoProcessingOrchestrator
from moment_video.application.publisher import ContentPublisher
from moment_video.application.factories import (
    build_orchestrator,
    build_publisher,
    build_audio_extractor,
)

__all__ = [
    "VideoProcessingOrchestrator",
    "ContentPublisher",
    "build_orchestrator",
    "build_publisher",
    "build_audio_extractor",
]
