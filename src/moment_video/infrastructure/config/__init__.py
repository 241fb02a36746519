"""Configuration package."""

from moment_video.infrastructure.config.schema import (
    CompressionOptions,
    ThumbnailPolicy,
    ValidationPolicy,
    ProcessingPolicy,
    TranscoderPolicy,
    VideoPolicy,
)
from moment_video.infrastructure.config.loader import PolicyLoader, load_policy

__all__ = [
    "CompressionOptions",
    "ThumbnailPolicy",
    "ValidationPolicy",
    "ProcessingPolicy",
    "TranscoderPolicy",
    "VideoPolicy",
    "PolicyLoader",
    "load_policy",
]
