"""
Integration tests against the real ffmpeg/ffprobe binaries.

A short synthetic clip (lavfi test pattern plus a sine tone) is generated
once per session. Skipped when ffmpeg or ffprobe is not on PATH.

Run with:
    pytest tests/integration/ -v
"""

import shutil
import subprocess

import pytest

from moment_video.application.factories import build_audio_extractor, build_orchestrator
from moment_video.domain.models import ProcessingRequest, RequestMetadata, Resolution
from moment_video.infrastructure.config.schema import VideoPolicy
from moment_video.infrastructure.media.ffmpeg import FFmpegInvoker
from moment_video.infrastructure.media.prober import FFprobeMetadataProber
from moment_video.infrastructure.storage.temp_storage import TempStorage

pytestmark = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg/ffprobe not installed",
)


def make_clip(path, container_args=()):
    cmd = [
        'ffmpeg', '-y',
        '-f', 'lavfi', '-i', 'testsrc=duration=2:size=640x360:rate=24',
        '-f', 'lavfi', '-i', 'sine=frequency=440:duration=2',
        '-pix_fmt', 'yuv420p',
        '-c:v', 'libx264', '-preset', 'ultrafast',
        '-c:a', 'aac',
        '-shortest',
        *container_args,
        str(path),
    ]
    subprocess.run(cmd, capture_output=True, check=True)
    return path.read_bytes()


@pytest.fixture(scope="session")
def mp4_clip(tmp_path_factory):
    return make_clip(tmp_path_factory.mktemp("clips") / "test.mp4")


@pytest.fixture(scope="session")
def mov_clip(tmp_path_factory):
    return make_clip(tmp_path_factory.mktemp("clips") / "test.mov", ('-f', 'mov'))


def request_for(data, mime_type="video/mp4", content_id="it-1"):
    return ProcessingRequest(
        content_id=content_id,
        owner_id="owner",
        raw_bytes=data,
        metadata=RequestMetadata(filename="clip", mime_type=mime_type, size=len(data)),
    )


def policy_for(tmp_path, **processing):
    return VideoPolicy.from_dict({
        "processing": processing,
        "transcoder": {"temp_dir": str(tmp_path)},
    })


async def test_probe_real_clip(mp4_clip, tmp_path):
    invoker = FFmpegInvoker(timeout=30, temp_storage=TempStorage(tmp_path))

    meta = await FFprobeMetadataProber(invoker).probe(mp4_clip)

    assert meta.estimated is False
    assert (meta.width, meta.height) == (640, 360)
    assert meta.duration == pytest.approx(2.0, abs=0.2)
    assert meta.fps == pytest.approx(24.0)
    assert meta.has_audio is True
    assert list(tmp_path.iterdir()) == []


async def test_normalize_pipeline(mp4_clip, tmp_path):
    orchestrator = build_orchestrator(policy_for(tmp_path))

    result = await orchestrator.process_video(request_for(mp4_clip))

    assert result.success, result.error
    assert result.processed_video.was_cropped
    assert (result.video_metadata.width, result.video_metadata.height) == (1080, 1674)
    assert result.video_metadata.estimated is False
    assert result.thumbnail.data[:2] == b"\xff\xd8"
    assert list(tmp_path.iterdir()) == []


async def test_threshold_pipeline_scales_down(mp4_clip, tmp_path):
    policy = VideoPolicy.from_dict({
        "validation": {"max_resolution": "320x320", "min_resolution": "100x100"},
        "processing": {
            "transform_mode": "threshold",
            "auto_compress": True,
            "target_resolution": "320x320",
        },
        "thumbnail": {"width": 160, "height": 248, "format": "png", "quality": 50},
        "transcoder": {"temp_dir": str(tmp_path)},
    })

    result = await build_orchestrator(policy).process_video(request_for(mp4_clip))

    assert result.success, result.error
    assert result.processed_video.was_compressed
    assert result.processed_video.original_resolution == Resolution(640, 360)
    assert (result.video_metadata.width, result.video_metadata.height) == (320, 180)
    assert result.thumbnail.data[:4] == b"\x89PNG"


async def test_mov_converted_to_mp4(mov_clip, tmp_path):
    orchestrator = build_orchestrator(policy_for(tmp_path, transform_mode="disabled"))

    result = await orchestrator.process_video(request_for(mov_clip, "video/quicktime"))

    assert result.success, result.error
    assert result.processed_video.was_converted
    assert result.processed_video.original_format == "mov"
    assert result.processed_video.data[4:8] == b"ftyp"
    assert (result.video_metadata.width, result.video_metadata.height) == (640, 360)


async def test_garbage_bytes_degrade_gracefully(tmp_path):
    orchestrator = build_orchestrator(policy_for(tmp_path, retry_attempts=1))
    data = b"definitely not a video" * 100

    result = await orchestrator.process_video(request_for(data))

    assert result.success
    assert result.video_metadata.estimated is True
    assert result.video_metadata.format == "mp4"
    assert result.processed_video.data is data
    assert result.thumbnail.data == b""
    assert list(tmp_path.iterdir()) == []


async def test_audio_extraction(mp4_clip, tmp_path):
    extractor = build_audio_extractor(policy_for(tmp_path))

    result = await extractor.extract_audio(mp4_clip)

    assert result.success, result.error
    assert result.data[:4] == b"RIFF"
    assert result.duration == pytest.approx(2.0, abs=0.2)
