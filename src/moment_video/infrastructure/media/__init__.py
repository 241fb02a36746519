"""Media processing package."""

from moment_video.infrastructure.media.ffmpeg import FFmpegCommands, FFmpegInvoker
from moment_video.infrastructure.media.prober import FFprobeMetadataProber
from moment_video.infrastructure.media.thumbnailer import FFmpegThumbnailExtractor
from moment_video.infrastructure.media.transformer import TransformPipeline
from moment_video.infrastructure.media.audio import FFmpegAudioExtractor

__all__ = [
    "FFmpegCommands",
    "FFmpegInvoker",
    "FFprobeMetadataProber",
    "FFmpegThumbnailExtractor",
    "TransformPipeline",
    "FFmpegAudioExtractor",
]
