"""Protocol definitions for dependency inversion."""

from typing import Protocol, Callable, List, Optional, Dict, Any
from pathlib import Path

from .models import (
    ExtractedMetadata,
    ThumbnailOptions,
    ThumbnailResult,
    TransformResult,
    UploadResult,
    ModerationVerdict,
    ProcessingRequest,
)

# Builds an argv list from (input_path, output_path).
CommandTemplate = Callable[[Path, Path], List[str]]


class ITranscoder(Protocol):
    """Interface for running the external media tool on in-memory bytes."""

    async def invoke(
        self,
        command: CommandTemplate,
        input_bytes: bytes,
        input_suffix: str = ".mp4",
        output_suffix: str = ".mp4",
        prefix: str = "transcode"
    ) -> bytes:
        """Run a transform command and return the produced file's bytes."""
        ...

    async def inspect(
        self,
        command: Callable[[Path], List[str]],
        input_bytes: bytes,
        input_suffix: str = ".mp4",
        prefix: str = "probe"
    ) -> str:
        """Run an inspect command and return its stdout."""
        ...


class IProber(Protocol):
    """Interface for extracting metadata from raw video bytes."""

    async def probe(self, raw_bytes: bytes) -> ExtractedMetadata:
        ...


class IThumbnailExtractor(Protocol):
    """Interface for grabbing a still frame from video bytes."""

    async def extract_thumbnail(
        self,
        video_bytes: bytes,
        options: ThumbnailOptions
    ) -> ThumbnailResult:
        ...


class ITransformPipeline(Protocol):
    """Interface for the crop/compress/convert pipeline."""

    async def transform(
        self,
        video_bytes: bytes,
        metadata: ExtractedMetadata,
        original_mime_type: str,
        strict: bool = False,
        metrics: Optional["IMetricsCollector"] = None
    ) -> TransformResult:
        ...


class IStorageAdapter(Protocol):
    """Interface for the object storage sink."""

    provider: str

    async def upload(
        self,
        key: str,
        data: bytes,
        metadata: Optional[Dict[str, Any]] = None
    ) -> UploadResult:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def get_url(self, key: str, quality: Optional[str] = None) -> str:
        ...


class IModerationEngine(Protocol):
    """Interface for an external content moderation engine."""

    async def moderate(self, request: ProcessingRequest) -> ModerationVerdict:
        ...


class IMetricsCollector(Protocol):
    """Interface for collecting metrics."""

    def start_timer(self, name: str) -> None:
        ...

    def stop_timer(self, name: str) -> float:
        ...

    def increment_counter(self, name: str, amount: int = 1) -> None:
        ...

    def get_summary(self) -> dict:
        ...
