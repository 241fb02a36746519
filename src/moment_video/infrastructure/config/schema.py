"""Policy dataclasses for the video pipeline."""

import re
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple

from moment_video.domain.exceptions import ConfigurationError
from moment_video.domain.models import Resolution, ThumbnailOptions
from moment_video.shared.logging import get_logger
from moment_video.shared.remote_config import deep_merge, normalize_keys

logger = get_logger(__name__)

X264_PRESETS = (
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow", "placebo",
)

TRANSFORM_MODES = ("normalize", "threshold", "disabled")

THUMBNAIL_QUALITY_RANGES = {
    "jpeg": (1, 31),
    "jpg": (1, 31),
    "png": (0, 100),
    "webp": (0, 100),
}

MAX_CRF = 51


def parse_resolution(value: Any, name: str) -> Resolution:
    """Accept a Resolution, a {width, height} mapping or a "WxH" string."""
    if isinstance(value, Resolution):
        return value
    try:
        if isinstance(value, dict):
            return Resolution(int(value["width"]), int(value["height"]))
        if isinstance(value, str):
            width, height = re.split(r"[x:X]", value.strip(), maxsplit=1)
            return Resolution(int(width), int(height))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return Resolution(int(value[0]), int(value[1]))
    except (KeyError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid {name}: {value!r} ({e})") from e
    raise ConfigurationError(f"Invalid {name}: {value!r}")


def parse_formats(value: Any, name: str) -> Tuple[str, ...]:
    """Accept a list of container names or a comma-separated string."""
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ConfigurationError(f"Invalid {name}: {value!r}")
    return tuple(str(item).strip().lower() for item in items if str(item).strip())


@dataclass(frozen=True)
class CompressionOptions:
    """
    H.264 encoder knobs passed straight to ffmpeg.

    Bitrates are in kbit/s; ``None`` leaves the knob unset.
    """

    preset: str = "fast"
    crf: int = 23
    target_bitrate: Optional[int] = None
    max_bitrate: Optional[int] = None
    buffer_size: Optional[int] = None
    audio_bitrate: Optional[int] = None

    def __post_init__(self):
        self._validate()

    def _validate(self):
        if self.preset not in X264_PRESETS:
            raise ConfigurationError(
                f"Unknown preset: {self.preset}. Known presets: {', '.join(X264_PRESETS)}"
            )
        if isinstance(self.crf, bool) or not isinstance(self.crf, int):
            raise ConfigurationError(f"CRF must be an integer, got: {self.crf!r}")
        if not 0 <= self.crf <= MAX_CRF:
            raise ConfigurationError(f"CRF must be in [0, {MAX_CRF}], got: {self.crf}")
        for name in ("target_bitrate", "max_bitrate", "buffer_size", "audio_bitrate"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive, got: {value}")
        if (
            self.target_bitrate is not None
            and self.max_bitrate is not None
            and self.max_bitrate < self.target_bitrate
        ):
            raise ConfigurationError(
                f"max_bitrate ({self.max_bitrate}k) is below target_bitrate ({self.target_bitrate}k)"
            )

    def to_args(self) -> List[str]:
        """ffmpeg encoder arguments for these options."""
        args = ["-c:v", "libx264", "-preset", self.preset, "-crf", str(self.crf)]
        if self.target_bitrate:
            args += ["-b:v", f"{self.target_bitrate}k"]
        if self.max_bitrate:
            args += ["-maxrate", f"{self.max_bitrate}k"]
        if self.buffer_size:
            args += ["-bufsize", f"{self.buffer_size}k"]
        args += ["-c:a", "aac"]
        if self.audio_bitrate:
            args += ["-b:a", f"{self.audio_bitrate}k"]
        return args

    @classmethod
    def delivery(cls) -> "CompressionOptions":
        """Slow, small-output settings used for the background delivery pass."""
        return cls(
            preset="slow",
            crf=28,
            target_bitrate=300,
            max_bitrate=500,
            buffer_size=600,
            audio_bitrate=64,
        )


@dataclass(frozen=True)
class ThumbnailPolicy:
    """Thumbnail box and encoding."""

    width: int = 1080
    height: int = 1674
    quality: int = 30
    format: str = "jpeg"
    time_position: float = 0.0

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Thumbnail size must be positive, got: {self.width}x{self.height}"
            )
        if self.format not in THUMBNAIL_QUALITY_RANGES:
            raise ConfigurationError(f"Unsupported thumbnail format: {self.format}")
        low, high = THUMBNAIL_QUALITY_RANGES[self.format]
        if not low <= self.quality <= high:
            raise ConfigurationError(
                f"Thumbnail quality for {self.format} must be in [{low}, {high}], got: {self.quality}"
            )
        if self.time_position < 0:
            raise ConfigurationError(f"time_position cannot be negative: {self.time_position}")

    def to_options(self) -> ThumbnailOptions:
        return ThumbnailOptions(
            width=self.width,
            height=self.height,
            quality=self.quality,
            format=self.format,
            time_position=self.time_position,
        )


@dataclass(frozen=True)
class ValidationPolicy:
    """Bounds a request must satisfy before any transcoding."""

    max_file_size: int = 500 * 1024 * 1024
    max_duration: float = 180.0
    min_duration: float = 3.0
    allowed_formats: Tuple[str, ...] = ("mp4", "mov", "avi", "webm")
    min_resolution: Resolution = Resolution(360, 558)
    max_resolution: Resolution = Resolution(1080, 1674)
    # Duration/resolution checks only apply to real probe output
    enforce_duration: bool = False
    enforce_resolution: bool = False

    def __post_init__(self):
        if self.max_file_size <= 0:
            raise ConfigurationError(f"max_file_size must be positive, got: {self.max_file_size}")
        if self.min_duration < 0 or self.max_duration <= 0:
            raise ConfigurationError("Duration bounds must be positive")
        if self.min_duration > self.max_duration:
            raise ConfigurationError(
                f"min_duration ({self.min_duration}) exceeds max_duration ({self.max_duration})"
            )
        if not self.allowed_formats:
            raise ConfigurationError("allowed_formats cannot be empty")


@dataclass(frozen=True)
class ProcessingPolicy:
    """
    Transform behaviour.

    ``transform_mode`` selects the crop/compress predicate set:
    ``normalize`` always crops to ``target_resolution``; ``threshold`` scales
    down to fit ``target_resolution`` only when the source exceeds the
    validation ceiling and ``auto_compress`` is on; ``disabled`` skips both.
    Conversion to mp4 is controlled separately by ``auto_convert_to_mp4``.
    """

    timeout: float = 60.0
    retry_attempts: int = 3
    auto_compress: bool = False
    auto_convert_to_mp4: bool = True
    target_resolution: Resolution = Resolution(1080, 1674)
    transform_mode: str = "normalize"

    crop_quality: int = 18
    crop_preset: str = "fast"

    compress_quality: int = 23
    compress_preset: str = "fast"
    compress_video_bitrate: Optional[int] = 200
    compress_max_bitrate: Optional[int] = 300
    compress_buffer_size: Optional[int] = 400
    compress_audio_bitrate: Optional[int] = 32

    convert_quality: int = 23
    convert_preset: str = "veryfast"

    def __post_init__(self):
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got: {self.timeout}")
        if self.retry_attempts < 0:
            raise ConfigurationError(f"retry_attempts cannot be negative: {self.retry_attempts}")
        if self.transform_mode not in TRANSFORM_MODES:
            raise ConfigurationError(
                f"Invalid transform_mode: {self.transform_mode}. Expected one of {', '.join(TRANSFORM_MODES)}"
            )
        # Building the option sets validates every encoder knob up front
        _ = (self.crop_options, self.compress_options, self.convert_options)

    @property
    def crop_options(self) -> CompressionOptions:
        return CompressionOptions(preset=self.crop_preset, crf=self.crop_quality)

    @property
    def compress_options(self) -> CompressionOptions:
        return CompressionOptions(
            preset=self.compress_preset,
            crf=self.compress_quality,
            target_bitrate=self.compress_video_bitrate,
            max_bitrate=self.compress_max_bitrate,
            buffer_size=self.compress_buffer_size,
            audio_bitrate=self.compress_audio_bitrate,
        )

    @property
    def convert_options(self) -> CompressionOptions:
        return CompressionOptions(preset=self.convert_preset, crf=self.convert_quality)

    @property
    def max_attempts(self) -> int:
        return max(1, self.retry_attempts)


@dataclass(frozen=True)
class TranscoderPolicy:
    """Where to find the external tools and where to put temp files."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    temp_dir: Optional[Path] = None


_RESOLUTION_FIELDS = {"min_resolution", "max_resolution", "target_resolution"}


def _build_section(cls, data: Dict[str, Any], section: str):
    """Instantiate one policy section from a merged dict, dropping unknown keys."""
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown {section} keys: {', '.join(sorted(unknown))}")

    kwargs = {}
    for key, value in data.items():
        if key not in known:
            continue
        if key in _RESOLUTION_FIELDS:
            value = parse_resolution(value, f"{section}.{key}")
        elif key == "allowed_formats":
            value = parse_formats(value, f"{section}.{key}")
        elif key == "temp_dir" and value is not None:
            value = Path(value)
        kwargs[key] = value

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ConfigurationError(f"Invalid {section} configuration: {e}") from e


@dataclass(frozen=True)
class VideoPolicy:
    """Complete, immutable pipeline policy."""

    thumbnail: ThumbnailPolicy = field(default_factory=ThumbnailPolicy)
    validation: ValidationPolicy = field(default_factory=ValidationPolicy)
    processing: ProcessingPolicy = field(default_factory=ProcessingPolicy)
    transcoder: TranscoderPolicy = field(default_factory=TranscoderPolicy)

    SECTIONS = ("thumbnail", "validation", "processing", "transcoder")

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: asdict(getattr(self, name)) for name in self.SECTIONS}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None) -> "VideoPolicy":
        """
        Build a policy from a partial nested dict.

        Each section is merged key-by-key over the defaults, so overriding
        ``processing.timeout`` keeps every other processing default.
        """
        data = normalize_keys(data or {})
        unknown = set(data) - set(cls.SECTIONS)
        if unknown:
            logger.warning(f"Ignoring unknown policy sections: {', '.join(sorted(unknown))}")

        merged = deep_merge(cls().to_dict(), {k: v for k, v in data.items() if k in cls.SECTIONS})
        for name, value in merged.items():
            if not isinstance(value, dict):
                raise ConfigurationError(f"Policy section '{name}' must be a mapping")

        return cls(
            thumbnail=_build_section(ThumbnailPolicy, merged["thumbnail"], "thumbnail"),
            validation=_build_section(ValidationPolicy, merged["validation"], "validation"),
            processing=_build_section(ProcessingPolicy, merged["processing"], "processing"),
            transcoder=_build_section(TranscoderPolicy, merged["transcoder"], "transcoder"),
        )
