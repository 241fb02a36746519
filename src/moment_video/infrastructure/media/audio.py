"""Audio track extraction for transcription."""

import io
import wave
from typing import Optional

from moment_video.domain.exceptions import ConfigurationError, TranscodeFailure
from moment_video.domain.models import AudioExtractionResult
from moment_video.domain.protocols import ITranscoder
from moment_video.infrastructure.media.ffmpeg import FFmpegCommands
from moment_video.shared.logging import get_logger

logger = get_logger(__name__)

AUDIO_FORMATS = ("wav", "mp3", "flac", "ogg")


class FFmpegAudioExtractor:
    """Pulls a resampled audio track out of a clip (mono 16 kHz WAV by default)."""

    def __init__(self, transcoder: ITranscoder, commands: Optional[FFmpegCommands] = None):
        self._transcoder = transcoder
        self._commands = commands or FFmpegCommands()
        self._logger = get_logger(__name__)

    async def extract_audio(
        self,
        video_bytes: bytes,
        sample_rate: int = 16000,
        channels: int = 1,
        format: str = "wav"
    ) -> AudioExtractionResult:
        """
        Extract the audio track.

        Returns:
            AudioExtractionResult; ``success`` is False with empty data when
            the clip has no audio or the tool fails

        Raises:
            ConfigurationError: If sample rate, channels or format are invalid
        """
        if sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got: {sample_rate}")
        if channels not in (1, 2):
            raise ConfigurationError(f"channels must be 1 or 2, got: {channels}")
        if format not in AUDIO_FORMATS:
            raise ConfigurationError(
                f"Unsupported audio format: {format}. Supported: {', '.join(AUDIO_FORMATS)}"
            )

        try:
            data = await self._transcoder.invoke(
                self._commands.audio(sample_rate, channels),
                video_bytes,
                input_suffix=".mp4",
                output_suffix=f".{format}",
                prefix="audio",
            )
        except TranscodeFailure as e:
            self._logger.warning(f"Audio extraction failed: {e}")
            return AudioExtractionResult(
                success=False,
                sample_rate=sample_rate,
                channels=channels,
                format=format,
                error=str(e),
            )

        return AudioExtractionResult(
            success=True,
            data=data,
            duration=self._wav_duration(data) if format == "wav" else 0.0,
            sample_rate=sample_rate,
            channels=channels,
            format=format,
        )

    def _wav_duration(self, data: bytes) -> float:
        try:
            with wave.open(io.BytesIO(data)) as wav:
                rate = wav.getframerate()
                return wav.getnframes() / rate if rate else 0.0
        except (wave.Error, EOFError) as e:
            self._logger.debug(f"Could not read WAV header: {e}")
            return 0.0
