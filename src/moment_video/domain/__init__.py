"""Domain layer package."""

from .models import (
    CANONICAL_FORMAT,
    CANONICAL_CODEC,
    Resolution,
    RequestMetadata,
    ProcessingRequest,
    ExtractedMetadata,
    TransformResult,
    ThumbnailOptions,
    ThumbnailResult,
    StorageKeys,
    ProcessingResult,
    AudioExtractionResult,
    UploadResult,
    ModerationVerdict,
    PublishResult,
)
from .exceptions import (
    DomainException,
    VideoProcessingError,
    ValidationFailure,
    ConfigurationError,
    UploadError,
    TranscodeFailure,
)
from .geometry import target_size, even_size
from .formats import detect_video_format, parse_frame_rate
from .protocols import (
    CommandTemplate,
    ITranscoder,
    IProber,
    IThumbnailExtractor,
    ITransformPipeline,
    IStorageAdapter,
    IModerationEngine,
    IMetricsCollector,
)

__all__ = [
    # Models
    "CANONICAL_FORMAT",
    "CANONICAL_CODEC",
    "Resolution",
    "RequestMetadata",
    "ProcessingRequest",
    "ExtractedMetadata",
    "TransformResult",
    "ThumbnailOptions",
    "ThumbnailResult",
    "StorageKeys",
    "ProcessingResult",
    "AudioExtractionResult",
    "UploadResult",
    "ModerationVerdict",
    "PublishResult",
    # Exceptions
    "DomainException",
    "VideoProcessingError",
    "ValidationFailure",
    "ConfigurationError",
    "UploadError",
    "TranscodeFailure",
    # Helpers
    "target_size",
    "even_size",
    "detect_video_format",
    "parse_frame_rate",
    # Protocols
    "CommandTemplate",
    "ITranscoder",
    "IProber",
    "IThumbnailExtractor",
    "ITransformPipeline",
    "IStorageAdapter",
    "IModerationEngine",
    "IMetricsCollector",
]
