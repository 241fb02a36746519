"""
Test the transcoder invoker against real subprocesses.

The "tools" here are small Python one-liners run with the current
interpreter, so these tests don't need ffmpeg installed.
"""

import asyncio
import inspect
import sys
from pathlib import Path

import pytest

from moment_video.domain.exceptions import TranscodeFailure
from moment_video.domain.protocols import ITranscoder
from moment_video.infrastructure.config.schema import CompressionOptions
from moment_video.infrastructure.media.ffmpeg import FFmpegCommands, FFmpegInvoker, cover_filter
from moment_video.infrastructure.storage.temp_storage import TempStorage


def script(code: str):
    """Command template running ``code`` with argv = [input, output]."""
    def build(input_path: Path, output_path: Path = None):
        cmd = [sys.executable, "-c", code, str(input_path)]
        if output_path is not None:
            cmd.append(str(output_path))
        return cmd
    return build


COPY = script("import shutil, sys; shutil.copyfile(sys.argv[1], sys.argv[2])")
REVERSE = script(
    "import sys; data = open(sys.argv[1], 'rb').read(); open(sys.argv[2], 'wb').write(data[::-1])"
)


@pytest.fixture
def invoker(tmp_path):
    return FFmpegInvoker(timeout=10.0, temp_storage=TempStorage(tmp_path))


async def test_invoke_returns_output_bytes(invoker, tmp_path):
    assert await invoker.invoke(REVERSE, b"abc") == b"cba"
    assert list(tmp_path.iterdir()) == []


async def test_non_zero_exit(invoker, tmp_path):
    failing = script("import sys; sys.stderr.write('Invalid data found\\n'); sys.exit(3)")

    with pytest.raises(TranscodeFailure) as exc_info:
        await invoker.invoke(failing, b"abc")

    assert exc_info.value.returncode == 3
    assert "Invalid data found" in exc_info.value.stderr
    assert "Invalid data found" in str(exc_info.value)
    assert list(tmp_path.iterdir()) == []


async def test_missing_output(invoker, tmp_path):
    with pytest.raises(TranscodeFailure, match="empty or missing"):
        await invoker.invoke(script("pass"), b"abc")
    assert list(tmp_path.iterdir()) == []


async def test_empty_output(invoker, tmp_path):
    empty = script("import sys; open(sys.argv[2], 'wb').close()")
    with pytest.raises(TranscodeFailure, match="empty or missing"):
        await invoker.invoke(empty, b"abc")
    assert list(tmp_path.iterdir()) == []


async def test_timeout_kills_process(tmp_path):
    invoker = FFmpegInvoker(timeout=0.3, temp_storage=TempStorage(tmp_path))
    slow = script("import time; time.sleep(30)")

    with pytest.raises(TranscodeFailure) as exc_info:
        await invoker.invoke(slow, b"abc")

    assert exc_info.value.timed_out is True
    assert list(tmp_path.iterdir()) == []


async def test_cancelled_invoke_kills_process(tmp_path):
    work_dir = tmp_path / "work"
    marker = tmp_path / "finished"
    invoker = FFmpegInvoker(timeout=10.0, temp_storage=TempStorage(work_dir))
    slow = script(f"import time; time.sleep(1); open({str(marker)!r}, 'w').close()")

    task = asyncio.create_task(invoker.invoke(slow, b"abc"))
    await asyncio.sleep(0.3)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    await asyncio.sleep(1.2)
    assert not marker.exists()
    assert list(work_dir.iterdir()) == []


class ExitedProcess:
    """Process that exits between the returncode check and kill()."""

    returncode = None

    def __init__(self):
        self.waited = False

    def kill(self):
        raise ProcessLookupError()

    async def wait(self):
        self.waited = True
        return 0


async def test_terminate_tolerates_already_exited_process(invoker):
    process = ExitedProcess()

    await invoker._terminate(process)

    assert process.waited


async def test_missing_binary(invoker, tmp_path):
    def missing(input_path, output_path):
        return ["/nonexistent/bin/ffmpeg", "-i", str(input_path), str(output_path)]

    with pytest.raises(TranscodeFailure, match="not found"):
        await invoker.invoke(missing, b"abc")
    assert list(tmp_path.iterdir()) == []


async def test_inspect_returns_stdout(invoker, tmp_path):
    size = script("import os, sys; print(os.path.getsize(sys.argv[1]))")
    assert (await invoker.inspect(size, b"12345")).strip() == "5"
    assert list(tmp_path.iterdir()) == []


async def test_inspect_non_zero_exit(invoker):
    with pytest.raises(TranscodeFailure):
        await invoker.inspect(script("import sys; sys.exit(1)"), b"abc")


async def test_concurrent_invocations_do_not_collide(invoker, tmp_path):
    payloads = [f"clip-{i}".encode() * 100 for i in range(12)]

    results = await asyncio.gather(*(invoker.invoke(COPY, p) for p in payloads))

    assert results == payloads
    assert list(tmp_path.iterdir()) == []


class TestFFmpegCommands:

    def setup_method(self):
        self.commands = FFmpegCommands("ffmpeg", "ffprobe")
        self.inp = Path("/tmp/in.mp4")
        self.out = Path("/tmp/out.mp4")

    def test_probe(self):
        argv = self.commands.probe()(self.inp)
        assert argv == [
            "ffprobe", "-v", "quiet", "-print_format", "json",
            "-show_format", "-show_streams", "/tmp/in.mp4",
        ]

    def test_cover_crop(self):
        argv = self.commands.cover_crop(1080, 1674, CompressionOptions(preset="fast", crf=18))(self.inp, self.out)
        assert argv[argv.index("-vf") + 1] == cover_filter(1080, 1674)
        assert "scale=1080:1674:force_original_aspect_ratio=increase,crop=1080:1674" == cover_filter(1080, 1674)
        assert argv[argv.index("-crf") + 1] == "18"
        assert argv[argv.index("-movflags") + 1] == "+faststart"
        assert argv[-1] == "/tmp/out.mp4"

    def test_scale(self):
        argv = self.commands.scale(1080, 608, CompressionOptions())(self.inp, self.out)
        assert argv[argv.index("-vf") + 1] == "scale=1080:608"

    def test_encode_has_no_filter(self):
        argv = self.commands.encode(CompressionOptions(preset="veryfast"))(self.inp, self.out)
        assert "-vf" not in argv
        assert argv[argv.index("-preset") + 1] == "veryfast"

    def test_still_frame_jpeg(self):
        argv = self.commands.still_frame(1080, 1674, 30, "jpeg", 0.0)(self.inp, Path("/tmp/t.jpg"))
        assert argv[argv.index("-ss") + 1] == "0.0"
        assert argv[argv.index("-frames:v") + 1] == "1"
        assert argv[argv.index("-q:v") + 1] == "30"
        assert argv.index("-ss") < argv.index("-i")

    def test_still_frame_png_has_no_quality(self):
        argv = self.commands.still_frame(100, 100, 50, "png")(self.inp, Path("/tmp/t.png"))
        assert "-q:v" not in argv

    def test_audio(self):
        argv = self.commands.audio(16000, 1)(self.inp, Path("/tmp/a.wav"))
        assert "-vn" in argv
        assert argv[argv.index("-ar") + 1] == "16000"
        assert argv[argv.index("-ac") + 1] == "1"

    def test_is_available(self):
        assert FFmpegInvoker.is_available(sys.executable)
        assert not FFmpegInvoker.is_available("/nonexistent/bin/ffmpeg")


@pytest.mark.parametrize("method", ["invoke", "inspect"])
def test_invoker_matches_transcoder_protocol(method):
    expected = inspect.signature(getattr(ITranscoder, method))
    actual = inspect.signature(getattr(FFmpegInvoker, method))

    assert list(actual.parameters) == list(expected.parameters)
    for name, param in expected.parameters.items():
        assert actual.parameters[name].default == param.default
