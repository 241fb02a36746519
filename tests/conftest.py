"""Shared fixtures: a scriptable transcoder and policy/request builders."""

import asyncio
import os
import json
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from moment_video.application.orchestrator import VideoProcessingOrchestrator
from moment_video.domain.exceptions import TranscodeFailure
from moment_video.domain.models import ProcessingRequest, RequestMetadata
from moment_video.infrastructure.config.schema import VideoPolicy
from moment_video.infrastructure.media.prober import FFprobeMetadataProber
from moment_video.infrastructure.media.thumbnailer import FFmpegThumbnailExtractor
from moment_video.infrastructure.media.transformer import TransformPipeline

ALWAYS = -1


def probe_json(
    width: int = 1920,
    height: int = 1080,
    duration: float = 12.5,
    fps: str = "30/1",
    with_audio: bool = True,
    bit_rate: Optional[int] = 2_000_000
) -> str:
    """ffprobe-shaped JSON for a single clip."""
    streams = [{
        "index": 0,
        "codec_type": "video",
        "codec_name": "h264",
        "width": width,
        "height": height,
        "avg_frame_rate": fps,
        "r_frame_rate": fps,
    }]
    if with_audio:
        streams.append({"index": 1, "codec_type": "audio", "codec_name": "aac"})
    fmt = {"format_name": "mov,mp4,m4a,3gp,3g2,mj2", "duration": str(duration)}
    if bit_rate is not None:
        fmt["bit_rate"] = str(bit_rate)
    return json.dumps({"streams": streams, "format": fmt})


def classify(argv: List[str]) -> str:
    """Name the kind of ffmpeg/ffprobe call an argv represents."""
    if Path(argv[0]).name.startswith("ffprobe"):
        return "probe"
    if "-frames:v" in argv:
        return "thumbnail"
    if "-vn" in argv:
        return "audio"
    if "-vf" in argv:
        video_filter = argv[argv.index("-vf") + 1]
        return "crop" if "crop=" in video_filter else "compress"
    return "encode"


class FakeTranscoder:
    """
    Stands in for FFmpegInvoker without spawning processes.

    Outputs are ``b"<kind>:" + input`` so tests can see which stages ran.
    ``fail`` maps a call kind to how many times it should fail
    (``ALWAYS`` for every call).
    """

    def __init__(
        self,
        fail: Optional[Dict[str, int]] = None,
        probe: Optional[Callable[[bytes], str]] = None,
        delay: float = 0.0
    ):
        self.fail = dict(fail or {})
        self.probe = probe or default_probe
        self.delay = delay
        self.calls: List[Tuple[str, List[str]]] = []

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]

    def _maybe_fail(self, kind: str, argv: List[str]) -> None:
        remaining = self.fail.get(kind, 0)
        if remaining == 0:
            return
        if remaining > 0:
            self.fail[kind] = remaining - 1
        raise TranscodeFailure(
            f"{kind} failed",
            command=argv,
            returncode=1,
            stderr=f"simulated {kind} error",
        )

    async def invoke(
        self,
        command,
        input_bytes: bytes,
        input_suffix: str = ".mp4",
        output_suffix: str = ".mp4",
        prefix: str = "transcode"
    ) -> bytes:
        argv = command(Path(f"/tmp/in{input_suffix}"), Path(f"/tmp/out{output_suffix}"))
        kind = classify(argv)
        self.calls.append((kind, argv))
        if self.delay:
            await asyncio.sleep(self.delay)
        self._maybe_fail(kind, argv)
        return kind.encode() + b":" + input_bytes

    async def inspect(
        self,
        command,
        input_bytes: bytes,
        input_suffix: str = ".mp4",
        prefix: str = "probe"
    ) -> str:
        argv = command(Path(f"/tmp/in{input_suffix}"))
        self.calls.append(("probe", argv))
        if self.delay:
            await asyncio.sleep(self.delay)
        self._maybe_fail("probe", argv)
        return self.probe(input_bytes)


def default_probe(data: bytes) -> str:
    """Source clips are 1920x1080; anything cropped reports the default box."""
    if data.startswith(b"crop:"):
        return probe_json(1080, 1674)
    return probe_json(1920, 1080)


def make_request(
    content_id: str = "moment-1",
    owner_id: str = "user-1",
    data: bytes = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64,
    mime_type: str = "video/mp4",
    filename: str = "clip.mp4"
) -> ProcessingRequest:
    return ProcessingRequest(
        content_id=content_id,
        owner_id=owner_id,
        raw_bytes=data,
        metadata=RequestMetadata(filename=filename, mime_type=mime_type, size=len(data)),
    )


def make_orchestrator(
    transcoder: FakeTranscoder,
    policy: Optional[VideoPolicy] = None
) -> VideoProcessingOrchestrator:
    policy = policy or VideoPolicy()
    return VideoProcessingOrchestrator(
        policy=policy,
        prober=FFprobeMetadataProber(transcoder, target_resolution=policy.processing.target_resolution),
        transformer=TransformPipeline(transcoder, policy),
        thumbnailer=FFmpegThumbnailExtractor(transcoder),
    )


@pytest.fixture
def transcoder():
    return FakeTranscoder()


@pytest.fixture
def policy():
    return VideoPolicy()


@pytest.fixture
def request_factory():
    return make_request


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep MOMENT_VIDEO_* variables from the host out of tests."""
    for name in list(os.environ):
        if name.startswith("MOMENT_VIDEO_") or name == "TMP_DIR":
            monkeypatch.delenv(name, raising=False)
