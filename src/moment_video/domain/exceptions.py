"""Domain exceptions for the moment video pipeline."""

from typing import List, Optional


class DomainException(Exception):
    """Base exception for all domain errors."""
    pass


class VideoProcessingError(DomainException):
    """Raised when video processing fails."""
    pass


class ValidationFailure(DomainException):
    """Raised when a request violates a size, format or duration bound."""
    pass


class ConfigurationError(DomainException):
    """Raised when configuration is invalid."""
    pass


class UploadError(DomainException):
    """Raised when a storage upload fails."""
    pass


class TranscodeFailure(DomainException):
    """
    Raised when an external transcoder invocation fails.

    Covers non-zero exit, missing or empty output, a missing binary and
    timeouts. The captured output is kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False
    ):
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            tail = self.stderr.strip().splitlines()[-1:] or [""]
            return f"{base}: {tail[0]}"
        return base
