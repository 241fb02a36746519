"""Factories wiring the default ffmpeg-backed components."""

from typing import Optional

from moment_video.domain.protocols import IModerationEngine, IStorageAdapter
from moment_video.application.orchestrator import VideoProcessingOrchestrator
from moment_video.application.publisher import ContentPublisher
from moment_video.infrastructure.config.loader import load_policy
from moment_video.infrastructure.config.schema import VideoPolicy
from moment_video.infrastructure.media.ffmpeg import FFmpegCommands, FFmpegInvoker
from moment_video.infrastructure.media.prober import FFprobeMetadataProber
from moment_video.infrastructure.media.thumbnailer import FFmpegThumbnailExtractor
from moment_video.infrastructure.media.transformer import TransformPipeline
from moment_video.infrastructure.media.audio import FFmpegAudioExtractor
from moment_video.infrastructure.storage.memory_storage import InMemoryStorageAdapter
from moment_video.infrastructure.storage.temp_storage import TempStorage
from moment_video.shared.logging import get_logger

logger = get_logger(__name__)


def build_invoker(policy: VideoPolicy) -> FFmpegInvoker:
    """Transcoder invoker honouring the policy timeout and temp dir."""
    return FFmpegInvoker(
        timeout=policy.processing.timeout,
        temp_storage=TempStorage(policy.transcoder.temp_dir),
    )


def build_commands(policy: VideoPolicy) -> FFmpegCommands:
    return FFmpegCommands(
        ffmpeg_path=policy.transcoder.ffmpeg_path,
        ffprobe_path=policy.transcoder.ffprobe_path,
    )


def build_orchestrator(policy: Optional[VideoPolicy] = None) -> VideoProcessingOrchestrator:
    """
    Create an orchestrator backed by ffmpeg/ffprobe.

    Args:
        policy: Pipeline policy (loaded from file/env if None)
    """
    policy = policy or load_policy()
    invoker = build_invoker(policy)
    commands = build_commands(policy)

    if not FFmpegInvoker.is_available(policy.transcoder.ffmpeg_path):
        logger.warning(
            f"{policy.transcoder.ffmpeg_path} not found on PATH; "
            f"transforms and thumbnails will fall back"
        )

    logger.info(
        f"Orchestrator: mode={policy.processing.transform_mode}, "
        f"target={policy.processing.target_resolution}, "
        f"timeout={policy.processing.timeout}s, attempts={policy.processing.max_attempts}"
    )

    return VideoProcessingOrchestrator(
        policy=policy,
        prober=FFprobeMetadataProber(invoker, commands, policy.processing.target_resolution),
        transformer=TransformPipeline(invoker, policy, commands),
        thumbnailer=FFmpegThumbnailExtractor(invoker, commands),
    )


def build_publisher(
    policy: Optional[VideoPolicy] = None,
    storage: Optional[IStorageAdapter] = None,
    moderation: Optional[IModerationEngine] = None
) -> ContentPublisher:
    """
    Create a publisher around a default orchestrator.

    Args:
        policy: Pipeline policy (loaded from file/env if None)
        storage: Storage sink (in-memory if None)
        moderation: Optional moderation engine
    """
    return ContentPublisher(
        orchestrator=build_orchestrator(policy),
        storage=storage or InMemoryStorageAdapter(),
        moderation=moderation,
    )


def build_audio_extractor(policy: Optional[VideoPolicy] = None) -> FFmpegAudioExtractor:
    policy = policy or load_policy()
    return FFmpegAudioExtractor(build_invoker(policy), build_commands(policy))
