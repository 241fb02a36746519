"""Video metadata extraction via ffprobe, with a size-based fallback."""

import json
from typing import Any, Dict, List, Optional

from moment_video.domain.exceptions import TranscodeFailure
from moment_video.domain.formats import parse_frame_rate
from moment_video.domain.models import (
    CANONICAL_CODEC,
    CANONICAL_FORMAT,
    ExtractedMetadata,
    Resolution,
)
from moment_video.domain.protocols import ITranscoder
from moment_video.infrastructure.media.ffmpeg import FFmpegCommands
from moment_video.shared.logging import get_logger

logger = get_logger(__name__)

MB = 1024 * 1024

# (min size in bytes, estimated duration in seconds), largest first
SIZE_DURATION_TABLE = (
    (100 * MB, 30.0),
    (50 * MB, 25.0),
    (20 * MB, 20.0),
    (0, 15.0),
)


def _parse_bitrate(value: Any) -> int:
    """ffprobe bit_rate field to bits/s; 0 for absent or "N/A"."""
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError):
        return 0


class FFprobeMetadataProber:
    """
    Extracts duration, dimensions, audio presence, bitrate and fps from bytes.

    Never fails: when ffprobe errors, times out or prints something we can't
    use, a deterministic estimate keyed on the byte length is returned instead
    (``estimated=True``). Format and codec are always reported as the
    canonical mp4/h264.
    Implements IProber protocol.
    """

    def __init__(
        self,
        transcoder: ITranscoder,
        commands: Optional[FFmpegCommands] = None,
        target_resolution: Resolution = Resolution(1080, 1674)
    ):
        self._transcoder = transcoder
        self._commands = commands or FFmpegCommands()
        self.target_resolution = target_resolution
        self._logger = get_logger(__name__)

    async def probe(self, raw_bytes: bytes) -> ExtractedMetadata:
        size = len(raw_bytes)
        try:
            output = await self._transcoder.inspect(self._commands.probe(), raw_bytes)
            metadata = self.parse_probe_output(output, size)
        except (TranscodeFailure, ValueError, TypeError, KeyError, OSError) as e:
            self._logger.warning(f"Probe failed, using size-based estimate: {e}")
            return self.estimate(size)

        self._logger.debug(
            f"Probed {metadata.width}x{metadata.height}, {metadata.duration:.2f}s, "
            f"{metadata.fps:.2f} fps, audio={metadata.has_audio}"
        )
        return metadata

    def parse_probe_output(self, output: str, size: int) -> ExtractedMetadata:
        """
        Parse ``ffprobe -print_format json -show_format -show_streams`` output.

        Raises:
            ValueError: If there is no video stream or no usable duration/size
        """
        data = json.loads(output)
        if not isinstance(data, dict):
            raise ValueError("ffprobe output is not a JSON object")

        streams: List[Dict[str, Any]] = data.get('streams') or []
        fmt: Dict[str, Any] = data.get('format') or {}

        video = next((s for s in streams if s.get('codec_type') == 'video'), None)
        if video is None:
            raise ValueError("No video stream found")
        has_audio = any(s.get('codec_type') == 'audio' for s in streams)

        duration = float(fmt.get('duration') or video.get('duration') or 0)
        if duration <= 0:
            raise ValueError("Missing or zero duration")

        width = int(video.get('width') or 0)
        height = int(video.get('height') or 0)
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid dimensions: {width}x{height}")

        bitrate = _parse_bitrate(fmt.get('bit_rate')) or _parse_bitrate(video.get('bit_rate'))
        if bitrate <= 0:
            bitrate = round(size * 8 / duration)

        # avg_frame_rate is "0/0" for some containers; r_frame_rate is the backup
        fps = parse_frame_rate(
            video.get('avg_frame_rate'),
            default=parse_frame_rate(video.get('r_frame_rate')),
        )

        return ExtractedMetadata(
            duration=duration,
            width=width,
            height=height,
            format=CANONICAL_FORMAT,
            codec=CANONICAL_CODEC,
            has_audio=has_audio,
            size=size,
            bitrate=bitrate,
            fps=fps,
        )

    def estimate(self, size: int) -> ExtractedMetadata:
        """Heuristic metadata for when probing is impossible."""
        duration = next(d for threshold, d in SIZE_DURATION_TABLE if size > threshold or threshold == 0)
        return ExtractedMetadata(
            duration=duration,
            width=self.target_resolution.width,
            height=self.target_resolution.height,
            format=CANONICAL_FORMAT,
            codec=CANONICAL_CODEC,
            has_audio=True,
            size=size,
            bitrate=round(size * 8 / duration),
            fps=30.0,
            estimated=True,
        )
