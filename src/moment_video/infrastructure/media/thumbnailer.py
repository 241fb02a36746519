"""Single-frame thumbnail extraction."""

from typing import Optional

from moment_video.domain.exceptions import TranscodeFailure
from moment_video.domain.models import ThumbnailOptions, ThumbnailResult
from moment_video.domain.protocols import ITranscoder
from moment_video.infrastructure.config.schema import THUMBNAIL_QUALITY_RANGES
from moment_video.infrastructure.media.ffmpeg import FFmpegCommands
from moment_video.shared.logging import get_logger

logger = get_logger(__name__)

IMAGE_SUFFIXES = {
    'jpeg': '.jpg',
    'jpg': '.jpg',
    'png': '.png',
    'webp': '.webp',
}


class FFmpegThumbnailExtractor:
    """
    Grabs one frame, covers the requested box exactly and encodes it.

    On failure the result carries empty data but still echoes the requested
    width, height and format.
    Implements IThumbnailExtractor protocol.
    """

    def __init__(self, transcoder: ITranscoder, commands: Optional[FFmpegCommands] = None):
        self._transcoder = transcoder
        self._commands = commands or FFmpegCommands()
        self._logger = get_logger(__name__)

    async def extract_thumbnail(
        self,
        video_bytes: bytes,
        options: ThumbnailOptions
    ) -> ThumbnailResult:
        placeholder = ThumbnailResult(
            data=b"",
            width=options.width,
            height=options.height,
            format=options.format,
        )

        problem = self._check_options(options)
        if problem:
            self._logger.warning(f"Thumbnail skipped: {problem}")
            return placeholder

        command = self._commands.still_frame(
            options.width,
            options.height,
            options.quality,
            options.format,
            options.time_position,
        )

        try:
            data = await self._transcoder.invoke(
                command,
                video_bytes,
                input_suffix=".mp4",
                output_suffix=IMAGE_SUFFIXES[options.format],
            )
        except (TranscodeFailure, OSError) as e:
            self._logger.warning(f"Thumbnail extraction failed: {e}")
            return placeholder

        return ThumbnailResult(
            data=data,
            width=options.width,
            height=options.height,
            format=options.format,
        )

    @staticmethod
    def _check_options(options: ThumbnailOptions) -> Optional[str]:
        if options.width <= 0 or options.height <= 0:
            return f"invalid size {options.width}x{options.height}"
        if options.format not in IMAGE_SUFFIXES:
            return f"unsupported format {options.format}"
        low, high = THUMBNAIL_QUALITY_RANGES[options.format]
        if not low <= options.quality <= high:
            return f"quality {options.quality} outside [{low}, {high}] for {options.format}"
        if options.time_position < 0:
            return f"negative time position {options.time_position}"
        return None
