"""Crop / compress / convert pipeline."""

from typing import Optional, Tuple

from moment_video.domain.exceptions import TranscodeFailure
from moment_video.domain.formats import detect_video_format
from moment_video.domain.geometry import even_size, target_size
from moment_video.domain.models import CANONICAL_FORMAT, ExtractedMetadata, Resolution, TransformResult
from moment_video.domain.protocols import CommandTemplate, IMetricsCollector, ITranscoder
from moment_video.infrastructure.config.schema import CompressionOptions, VideoPolicy
from moment_video.infrastructure.media.ffmpeg import FFmpegCommands
from moment_video.shared.logging import get_logger

logger = get_logger(__name__)


class TransformPipeline:
    """
    Applies zero or more of crop, compress and convert to a clip.

    Stages run in a fixed order: one geometry stage (crop in ``normalize``
    mode, compress in ``threshold`` mode), then container conversion. In
    lenient mode a failing stage hands the previous bytes on unchanged; in
    strict mode the TranscodeFailure propagates so the caller can retry.
    Implements ITransformPipeline protocol.
    """

    def __init__(
        self,
        transcoder: ITranscoder,
        policy: Optional[VideoPolicy] = None,
        commands: Optional[FFmpegCommands] = None
    ):
        self._transcoder = transcoder
        self.policy = policy or VideoPolicy()
        self._commands = commands or FFmpegCommands()
        self._logger = get_logger(__name__)

    async def transform(
        self,
        video_bytes: bytes,
        metadata: ExtractedMetadata,
        original_mime_type: str,
        strict: bool = False,
        metrics: Optional[IMetricsCollector] = None
    ) -> TransformResult:
        """
        Run the configured stages over ``video_bytes``.

        When nothing changed the very same bytes object is returned.

        Raises:
            TranscodeFailure: Only when ``strict`` is set and a stage fails
        """
        processing = self.policy.processing
        source_format = detect_video_format(original_mime_type) or CANONICAL_FORMAT
        input_suffix = f".{source_format}"
        source_resolution = metadata.resolution if metadata.width > 0 and metadata.height > 0 else None

        data = video_bytes
        cropped = compressed = converted = False
        original_resolution = None
        original_format = None

        plan = self._plan_geometry(metadata)
        if plan is not None:
            stage, box, command = plan
            self._logger.info(f"{stage.capitalize()} {source_resolution or 'unknown'} -> {box}")
            output = await self._run_stage(stage, command, data, input_suffix, strict, metrics)
            if output is not None:
                data = output
                cropped = stage == "crop"
                compressed = stage == "compress"
                original_resolution = source_resolution
                input_suffix = f".{CANONICAL_FORMAT}"

        if processing.auto_convert_to_mp4 and source_format != CANONICAL_FORMAT:
            if cropped or compressed:
                # Geometry stage already re-encoded to H.264 in an mp4 container
                converted = True
                original_format = source_format
            else:
                self._logger.info(f"Convert {source_format} -> {CANONICAL_FORMAT}")
                command = self._commands.encode(processing.convert_options)
                output = await self._run_stage("convert", command, data, input_suffix, strict, metrics)
                if output is not None:
                    data = output
                    converted = True
                    original_format = source_format

        if not (cropped or compressed or converted):
            return TransformResult.passthrough(video_bytes)

        return TransformResult(
            data=data,
            was_processed=True,
            was_cropped=cropped,
            was_compressed=compressed,
            was_converted=converted,
            original_resolution=original_resolution,
            original_format=original_format,
        )

    async def compress_for_delivery(
        self,
        video_bytes: bytes,
        options: Optional[CompressionOptions] = None
    ) -> TransformResult:
        """
        Slow, small-output re-encode for background delivery.

        Falls back to the input bytes if the encoder fails.
        """
        options = options or CompressionOptions.delivery()
        self._logger.info(f"Delivery compression: preset={options.preset} crf={options.crf}")

        try:
            data = await self._transcoder.invoke(
                self._commands.encode(options),
                video_bytes,
                input_suffix=".mp4",
                output_suffix=".mp4",
            )
        except TranscodeFailure as e:
            self._logger.warning(f"Delivery compression failed, keeping original: {e}")
            return TransformResult.passthrough(video_bytes)

        ratio = len(data) / len(video_bytes) if video_bytes else 0.0
        self._logger.info(f"Delivery compression: {len(video_bytes)} -> {len(data)} bytes ({ratio:.0%})")
        return TransformResult(data=data, was_processed=True, was_compressed=True)

    def _plan_geometry(
        self,
        metadata: ExtractedMetadata
    ) -> Optional[Tuple[str, Resolution, CommandTemplate]]:
        """Pick the geometry stage for this clip, if any."""
        processing = self.policy.processing
        target = processing.target_resolution

        if processing.transform_mode == "normalize":
            command = self._commands.cover_crop(target.width, target.height, processing.crop_options)
            return "crop", target, command

        if processing.transform_mode == "threshold":
            if not processing.auto_compress or metadata.width <= 0 or metadata.height <= 0:
                return None
            if not metadata.resolution.exceeds(self.policy.validation.max_resolution):
                return None
            width, height = even_size(*target_size(
                metadata.width, metadata.height, target.width, target.height
            ))
            command = self._commands.scale(width, height, processing.compress_options)
            return "compress", Resolution(width, height), command

        return None

    async def _run_stage(
        self,
        stage: str,
        command: CommandTemplate,
        data: bytes,
        input_suffix: str,
        strict: bool,
        metrics: Optional[IMetricsCollector]
    ) -> Optional[bytes]:
        try:
            return await self._transcoder.invoke(
                command,
                data,
                input_suffix=input_suffix,
                output_suffix=f".{CANONICAL_FORMAT}",
            )
        except TranscodeFailure as e:
            if strict:
                raise
            self._logger.warning(f"{stage} stage failed, passing input through: {e}")
            if metrics is not None:
                metrics.increment_counter(f"{stage}_fallbacks")
            return None
