"""Main orchestrator for the video ingestion pipeline."""

import time
from dataclasses import replace
from typing import Optional

from moment_video.domain.exceptions import TranscodeFailure, ValidationFailure
from moment_video.domain.formats import detect_video_format
from moment_video.domain.models import (
    CANONICAL_CODEC,
    CANONICAL_FORMAT,
    ExtractedMetadata,
    ProcessingRequest,
    ProcessingResult,
    StorageKeys,
    TransformResult,
)
from moment_video.domain.protocols import IProber, IThumbnailExtractor, ITransformPipeline
from moment_video.infrastructure.config.schema import VideoPolicy
from moment_video.shared.logging import get_content_logger, get_logger
from moment_video.shared.metrics import MetricsCollector
from moment_video.shared.retry import AsyncRetryStrategy

logger = get_logger(__name__)

GENERIC_ERROR = "Video processing failed"

MB = 1024 * 1024


class VideoProcessingOrchestrator:
    """
    Coordinates validate -> probe -> transform -> re-probe -> thumbnail.

    The policy is fixed at construction. ``process_video`` never raises:
    every failure comes back as a ProcessingResult with ``success=False``
    and zero-value nested records.
    """

    def __init__(
        self,
        policy: VideoPolicy,
        prober: IProber,
        transformer: ITransformPipeline,
        thumbnailer: IThumbnailExtractor
    ):
        self.policy = policy
        self._prober = prober
        self._transformer = transformer
        self._thumbnailer = thumbnailer
        self._logger = get_logger(__name__)

    async def process_video(self, request: ProcessingRequest) -> ProcessingResult:
        """Run the full pipeline for one request."""
        log = get_content_logger(request.content_id, self._logger)
        metrics = MetricsCollector()
        started = time.perf_counter()

        try:
            log.info(
                f"Processing {request.metadata.filename or '<unnamed>'} "
                f"({len(request.raw_bytes)} bytes, {request.metadata.mime_type})"
            )
            self.validate_request(request)

            metrics.start_timer('probe')
            original = await self._prober.probe(request.raw_bytes)
            metrics.stop_timer('probe')
            if original.estimated:
                metrics.increment_counter('probe_fallbacks')
            self.validate_metadata(original)

            metrics.start_timer('transform')
            transformed = await self._transform_with_retry(request, original, metrics, log)
            metrics.stop_timer('transform')

            if transformed.was_processed:
                metrics.start_timer('reprobe')
                final_metadata = await self._prober.probe(transformed.data)
                metrics.stop_timer('reprobe')
            else:
                final_metadata = original

            final_metadata = replace(final_metadata, format=CANONICAL_FORMAT, codec=CANONICAL_CODEC)

            metrics.start_timer('thumbnail')
            thumbnail = await self._thumbnailer.extract_thumbnail(
                transformed.data,
                self.policy.thumbnail.to_options(),
            )
            metrics.stop_timer('thumbnail')
            if thumbnail.is_empty:
                metrics.increment_counter('thumbnail_fallbacks')

            elapsed_ms = (time.perf_counter() - started) * 1000.0
            log.info(
                f"Done in {elapsed_ms:.0f} ms: {final_metadata.width}x{final_metadata.height}, "
                f"processed={transformed.was_processed}, thumbnail={len(thumbnail.data)} bytes"
            )
            metrics.log_summary(log)

            return ProcessingResult(
                success=True,
                content_id=request.content_id,
                thumbnail=thumbnail,
                video_metadata=final_metadata,
                processed_video=transformed,
                processing_time_ms=elapsed_ms,
                storage_keys=StorageKeys.for_content(
                    request.owner_id,
                    request.content_id,
                    self.policy.thumbnail.format,
                ),
                metrics=metrics.get_summary(),
            )

        except ValidationFailure as e:
            log.warning(f"Rejected: {e}")
            return self._failure(request, e, started, metrics)
        except Exception as e:
            log.exception(f"Processing failed: {e}")
            return self._failure(request, e, started, metrics)

    def validate_request(self, request: ProcessingRequest) -> None:
        """
        Check size and container before anything touches the transcoder.

        Raises:
            ValidationFailure: Naming the violated bound
        """
        rules = self.policy.validation
        size = len(request.raw_bytes)

        if size > rules.max_file_size:
            raise ValidationFailure(
                f"Video too large. Maximum size: {rules.max_file_size / MB:.0f} MB"
            )
        if size == 0:
            raise ValidationFailure("Video is empty")

        video_format = detect_video_format(request.metadata.mime_type)
        if video_format not in rules.allowed_formats:
            raise ValidationFailure(
                f"Unsupported format: {video_format or request.metadata.mime_type!r}. "
                f"Supported formats: {', '.join(rules.allowed_formats)}"
            )

    def validate_metadata(self, metadata: ExtractedMetadata) -> None:
        """
        Optional duration/resolution bounds, only for real probe output.

        Raises:
            ValidationFailure: Naming the violated bound
        """
        rules = self.policy.validation
        if metadata.estimated:
            return

        if rules.enforce_duration:
            if metadata.duration < rules.min_duration:
                raise ValidationFailure(
                    f"Video too short. Minimum duration: {rules.min_duration:g} seconds"
                )
            if metadata.duration > rules.max_duration:
                raise ValidationFailure(
                    f"Video too long. Maximum duration: {rules.max_duration:g} seconds"
                )

        if rules.enforce_resolution:
            minimum = rules.min_resolution
            if metadata.width < minimum.width or metadata.height < minimum.height:
                raise ValidationFailure(
                    f"Resolution too low: {metadata.width}x{metadata.height}. "
                    f"Minimum resolution: {minimum}"
                )

    async def _transform_with_retry(
        self,
        request: ProcessingRequest,
        metadata: ExtractedMetadata,
        metrics: MetricsCollector,
        log
    ) -> TransformResult:
        """
        Re-run the transform on TranscodeFailure.

        All but the last attempt are strict; the last one lets each stage
        fall back to pass-through, so this never raises TranscodeFailure.
        """
        attempts = self.policy.processing.max_attempts
        strategy = AsyncRetryStrategy(max_attempts=attempts, exceptions=(TranscodeFailure,))

        async def attempt(number: int) -> TransformResult:
            metrics.increment_counter('transform_attempts')
            return await self._transformer.transform(
                request.raw_bytes,
                metadata,
                request.metadata.mime_type,
                strict=number < attempts,
                metrics=metrics,
            )

        def on_retry(number: int, error: BaseException) -> None:
            log.warning(f"Transform attempt {number}/{attempts} failed: {error}")

        return await strategy.execute(attempt, on_retry=on_retry)

    def _failure(
        self,
        request: ProcessingRequest,
        error: Exception,
        started: float,
        metrics: Optional[MetricsCollector] = None
    ) -> ProcessingResult:
        return ProcessingResult.failure(
            content_id=request.content_id,
            error=str(error) or GENERIC_ERROR,
            processing_time_ms=(time.perf_counter() - started) * 1000.0,
            metrics=metrics.get_summary() if metrics else None,
        )
