"""Async wrapper around the ffmpeg/ffprobe command-line tools."""

import asyncio
import shutil
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from moment_video.domain.exceptions import TranscodeFailure
from moment_video.domain.protocols import CommandTemplate
from moment_video.infrastructure.config.schema import CompressionOptions
from moment_video.infrastructure.storage.temp_storage import TempStorage
from moment_video.shared.logging import get_logger

logger = get_logger(__name__)


def cover_filter(width: int, height: int) -> str:
    """Scale up to cover ``width``x``height``, then crop to exactly that box."""
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=increase,"
        f"crop={width}:{height}"
    )


class FFmpegCommands:
    """Builds argv templates for the ffmpeg/ffprobe invocations we use."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", ffprobe_path: str = "ffprobe"):
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path

    def probe(self) -> Callable[[Path], List[str]]:
        """Full JSON dump of format and streams."""
        def build(input_path: Path) -> List[str]:
            return [
                self.ffprobe_path,
                '-v', 'quiet',
                '-print_format', 'json',
                '-show_format',
                '-show_streams',
                str(input_path),
            ]
        return build

    def cover_crop(self, width: int, height: int, options: CompressionOptions) -> CommandTemplate:
        """Scale-to-cover and crop to an exact box, re-encoding to H.264/AAC."""
        def build(input_path: Path, output_path: Path) -> List[str]:
            return [
                self.ffmpeg_path, '-y',
                '-i', str(input_path),
                '-vf', cover_filter(width, height),
                *options.to_args(),
                '-movflags', '+faststart',
                str(output_path),
            ]
        return build

    def scale(self, width: int, height: int, options: CompressionOptions) -> CommandTemplate:
        """Plain resize to ``width``x``height``."""
        def build(input_path: Path, output_path: Path) -> List[str]:
            return [
                self.ffmpeg_path, '-y',
                '-i', str(input_path),
                '-vf', f"scale={width}:{height}",
                *options.to_args(),
                '-movflags', '+faststart',
                str(output_path),
            ]
        return build

    def encode(self, options: CompressionOptions) -> CommandTemplate:
        """Re-encode without touching geometry (container conversion, delivery pass)."""
        def build(input_path: Path, output_path: Path) -> List[str]:
            return [
                self.ffmpeg_path, '-y',
                '-i', str(input_path),
                *options.to_args(),
                '-movflags', '+faststart',
                str(output_path),
            ]
        return build

    def still_frame(
        self,
        width: int,
        height: int,
        quality: int,
        image_format: str,
        time_position: float = 0.0
    ) -> CommandTemplate:
        """Grab one frame at ``time_position`` covering the exact target box."""
        def build(input_path: Path, output_path: Path) -> List[str]:
            cmd = [
                self.ffmpeg_path, '-y',
                '-ss', str(time_position),
                '-i', str(input_path),
                '-frames:v', '1',
                '-vf', cover_filter(width, height),
            ]
            if image_format in ('jpeg', 'jpg', 'webp'):
                cmd += ['-q:v', str(quality)]
            cmd.append(str(output_path))
            return cmd
        return build

    def audio(self, sample_rate: int, channels: int) -> CommandTemplate:
        """Drop video, resample audio."""
        def build(input_path: Path, output_path: Path) -> List[str]:
            return [
                self.ffmpeg_path, '-y',
                '-i', str(input_path),
                '-vn',
                '-ac', str(channels),
                '-ar', str(sample_rate),
                str(output_path),
            ]
        return build


class FFmpegInvoker:
    """
    Runs transcoder commands against in-memory bytes.

    Each call writes its input to a unique temp file, awaits the subprocess
    under a hard timeout, reads the output back and removes both files no
    matter how the call ends. Failures surface as TranscodeFailure; retrying
    is left to the caller.
    Implements ITranscoder protocol.
    """

    def __init__(self, timeout: float = 60.0, temp_storage: Optional[TempStorage] = None):
        """
        Args:
            timeout: Seconds before a running subprocess is killed
            temp_storage: Where temp files go (defaults to system temp)
        """
        self.timeout = timeout
        self._temp = temp_storage or TempStorage()
        self._logger = get_logger(__name__)

    async def run(self, cmd: List[str]) -> Tuple[int, str, str]:
        """
        Run a command and return (returncode, stdout, stderr).

        Raises:
            TranscodeFailure: If the binary is missing or the timeout expires
        """
        self._logger.debug(f"Executing: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise TranscodeFailure(f"Transcoder not found: {cmd[0]}", command=cmd) from e
        except OSError as e:
            raise TranscodeFailure(f"Failed to start {cmd[0]}: {e}", command=cmd) from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            await self._terminate(process)
            raise TranscodeFailure(
                f"{Path(cmd[0]).name} timed out after {self.timeout}s",
                command=cmd,
                timed_out=True,
            ) from e
        except BaseException:
            # Cancelled: the child must not outlive its temp files
            await self._terminate(process)
            raise

        return (
            process.returncode,
            stdout.decode(errors='replace'),
            stderr.decode(errors='replace'),
        )

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await asyncio.shield(process.wait())

    async def invoke(
        self,
        command: CommandTemplate,
        input_bytes: bytes,
        input_suffix: str = ".mp4",
        output_suffix: str = ".mp4",
        prefix: str = "transcode"
    ) -> bytes:
        """
        Run a transform command and return the produced file's bytes.

        Raises:
            TranscodeFailure: On non-zero exit, missing/empty output or timeout
        """
        with self._temp.scoped_files(prefix, input_suffix, output_suffix) as (input_path, output_path):
            input_path.write_bytes(input_bytes)
            cmd = command(input_path, output_path)

            returncode, stdout, stderr = await self.run(cmd)

            if returncode != 0:
                raise TranscodeFailure(
                    f"{Path(cmd[0]).name} exited with code {returncode}",
                    command=cmd,
                    returncode=returncode,
                    stdout=stdout,
                    stderr=stderr,
                )

            if not output_path.exists() or output_path.stat().st_size == 0:
                raise TranscodeFailure(
                    "Output file is empty or missing",
                    command=cmd,
                    returncode=returncode,
                    stdout=stdout,
                    stderr=stderr,
                )

            return output_path.read_bytes()

    async def inspect(
        self,
        command: Callable[[Path], List[str]],
        input_bytes: bytes,
        input_suffix: str = ".mp4",
        prefix: str = "probe"
    ) -> str:
        """
        Run an inspect command and return its stdout.

        Raises:
            TranscodeFailure: On non-zero exit or timeout
        """
        with self._temp.scoped_files(prefix, input_suffix) as (input_path, _):
            input_path.write_bytes(input_bytes)
            cmd = command(input_path)

            returncode, stdout, stderr = await self.run(cmd)

            if returncode != 0:
                raise TranscodeFailure(
                    f"{Path(cmd[0]).name} exited with code {returncode}",
                    command=cmd,
                    returncode=returncode,
                    stdout=stdout,
                    stderr=stderr,
                )

            return stdout

    @staticmethod
    def is_available(binary: str = "ffmpeg") -> bool:
        """Check whether a transcoder binary is on PATH."""
        return shutil.which(binary) is not None
