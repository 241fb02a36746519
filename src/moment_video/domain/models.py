"""Domain models for moment video processing."""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any


CANONICAL_FORMAT = "mp4"
CANONICAL_CODEC = "h264"


@dataclass(frozen=True)
class Resolution:
    """Width/height pair in pixels."""

    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def exceeds(self, other: "Resolution") -> bool:
        """True if either dimension is larger than ``other``."""
        return self.width > other.width or self.height > other.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class RequestMetadata:
    """Client-supplied description of an upload."""

    filename: str
    mime_type: str
    size: int


@dataclass(frozen=True)
class ProcessingRequest:
    """One uploaded clip to run through the pipeline."""

    content_id: str
    owner_id: str
    raw_bytes: bytes
    metadata: RequestMetadata


@dataclass(frozen=True)
class ExtractedMetadata:
    """
    Video metadata as reported by the prober.

    ``estimated`` is True when the values come from the size-based heuristic
    rather than from real probe output.
    """

    duration: float
    width: int
    height: int
    format: str
    codec: str
    has_audio: bool
    size: int
    bitrate: int = 0
    fps: float = 0.0
    estimated: bool = False

    @property
    def resolution(self) -> Resolution:
        return Resolution(self.width, self.height)

    @classmethod
    def empty(cls) -> "ExtractedMetadata":
        return cls(
            duration=0.0,
            width=0,
            height=0,
            format="",
            codec="",
            has_audio=False,
            size=0,
            bitrate=0,
            fps=0.0,
        )


@dataclass(frozen=True)
class TransformResult:
    """Output of the transform pipeline plus what changed the bytes."""

    data: bytes
    was_processed: bool = False
    was_cropped: bool = False
    was_compressed: bool = False
    was_converted: bool = False
    original_resolution: Optional[Resolution] = None
    original_format: Optional[str] = None

    @classmethod
    def passthrough(cls, data: bytes) -> "TransformResult":
        return cls(data=data)

    @classmethod
    def empty(cls) -> "TransformResult":
        return cls(data=b"")


@dataclass(frozen=True)
class ThumbnailOptions:
    """Target box and encoding for a still frame."""

    width: int
    height: int
    quality: int
    format: str = "jpeg"
    time_position: float = 0.0


@dataclass(frozen=True)
class ThumbnailResult:
    """
    A still frame. On failure ``data`` is empty while width/height/format
    still echo what was requested.
    """

    data: bytes
    width: int
    height: int
    format: str

    @property
    def is_empty(self) -> bool:
        return len(self.data) == 0

    @classmethod
    def empty(cls, format: str = "jpeg") -> "ThumbnailResult":
        return cls(data=b"", width=0, height=0, format=format)


@dataclass(frozen=True)
class StorageKeys:
    """Proposed object keys for the processed video and its thumbnail."""

    video_key: str
    thumbnail_key: str

    @classmethod
    def for_content(
        cls,
        owner_id: str,
        content_id: str,
        thumbnail_format: str = "jpeg"
    ) -> "StorageKeys":
        ext = "jpg" if thumbnail_format in ("jpeg", "jpg") else thumbnail_format
        return cls(
            video_key=f"videos/{owner_id}/{content_id}.{CANONICAL_FORMAT}",
            thumbnail_key=f"thumbnails/{owner_id}/{content_id}.{ext}",
        )

    @classmethod
    def empty(cls) -> "StorageKeys":
        return cls(video_key="", thumbnail_key="")


@dataclass
class ProcessingResult:
    """Result of one orchestration run."""

    success: bool
    content_id: str
    thumbnail: ThumbnailResult
    video_metadata: ExtractedMetadata
    processed_video: TransformResult
    processing_time_ms: float
    error: Optional[str] = None
    storage_keys: StorageKeys = field(default_factory=StorageKeys.empty)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(
        cls,
        content_id: str,
        error: str,
        processing_time_ms: float,
        metrics: Optional[Dict[str, Any]] = None
    ) -> "ProcessingResult":
        """Failure result where every nested record is its zero value."""
        return cls(
            success=False,
            content_id=content_id,
            thumbnail=ThumbnailResult.empty(),
            video_metadata=ExtractedMetadata.empty(),
            processed_video=TransformResult.empty(),
            processing_time_ms=processing_time_ms,
            error=error,
            storage_keys=StorageKeys.empty(),
            metrics=metrics or {},
        )


@dataclass
class AudioExtractionResult:
    """Result of extracting an audio track."""

    success: bool
    data: bytes = b""
    duration: float = 0.0
    sample_rate: int = 16000
    channels: int = 1
    format: str = "wav"
    error: Optional[str] = None


@dataclass
class UploadResult:
    """Result of a storage upload."""

    success: bool
    key: str = ""
    url: Optional[str] = None
    provider: str = ""
    size_bytes: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class ModerationVerdict:
    """Decision returned by a moderation engine."""

    approved: bool
    requires_review: bool = False
    moderation_id: str = ""
    flags: tuple = ()
    confidence: float = 0.0

    @classmethod
    def empty(cls) -> "ModerationVerdict":
        return cls(approved=False)


@dataclass
class PublishResult:
    """Result of processing, moderating and uploading one clip."""

    success: bool
    content_id: str
    video_url: str = ""
    thumbnail_url: str = ""
    storage_keys: StorageKeys = field(default_factory=StorageKeys.empty)
    provider: str = ""
    video_metadata: ExtractedMetadata = field(default_factory=ExtractedMetadata.empty)
    moderation: ModerationVerdict = field(default_factory=ModerationVerdict.empty)
    processing_time_ms: float = 0.0
    error: Optional[str] = None
