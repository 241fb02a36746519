"""Container format and frame-rate parsing helpers."""

from typing import Any, Optional

MIME_FORMATS = {
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
    "video/webm": "webm",
}

DEFAULT_FPS = 30.0


def detect_video_format(mime_type: Optional[str]) -> str:
    """
    Map a MIME type to a container name.

    Unknown types resolve to their subtype ("video/unsupported" -> "unsupported")
    so that allow-list checks reject them instead of silently accepting mp4.
    """
    if not mime_type:
        return ""
    mime = mime_type.split(";", 1)[0].strip().lower()
    if mime in MIME_FORMATS:
        return MIME_FORMATS[mime]
    return mime.split("/", 1)[-1].strip()


def parse_frame_rate(value: Any, default: float = DEFAULT_FPS) -> float:
    """
    Parse an ffprobe frame rate such as "30/1", "30000/1001" or "25".

    Returns ``default`` for anything malformed, zero, negative or missing.
    """
    if value is None:
        return default

    if isinstance(value, (int, float)):
        return float(value) if value > 0 else default

    text = str(value).strip()
    if not text:
        return default

    try:
        if "/" in text:
            num, den = text.split("/", 1)
            numerator = float(num)
            denominator = float(den)
            if denominator == 0:
                return default
            fps = numerator / denominator
        else:
            fps = float(text)
    except ValueError:
        return default

    if fps != fps or fps <= 0 or fps == float("inf"):
        return default
    return fps
