"""Temporary file management for transcoder invocations."""

import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

from moment_video.shared.logging import get_logger
from moment_video.shared.types import PathLike

logger = get_logger(__name__)


class TempStorage:
    """
    Hands out collision-free temp paths and guarantees their removal.

    Names carry a uuid4 component, so concurrent pipeline runs sharing one
    directory never clash.
    """

    def __init__(self, base_dir: Optional[PathLike] = None):
        """
        Initialize temp storage manager.

        Args:
            base_dir: Base directory for temp files (defaults to system temp)
        """
        self.base_dir = Path(base_dir) if base_dir else Path(tempfile.gettempdir())
        self._logger = get_logger(__name__)

    def unique_path(self, prefix: str, suffix: str) -> Path:
        """Return a fresh, unused path under ``base_dir``."""
        if suffix and not suffix.startswith("."):
            suffix = f".{suffix}"
        return self.base_dir / f"{prefix}_{uuid.uuid4().hex}{suffix}"

    @contextmanager
    def scoped_files(
        self,
        prefix: str,
        input_suffix: str,
        output_suffix: Optional[str] = None
    ) -> Iterator[Tuple[Path, Optional[Path]]]:
        """
        Yield an (input, output) path pair and delete both on exit.

        The output path is ``None`` when no output suffix is given.
        Removal happens on every exit path, including exceptions.
        """
        self.base_dir.mkdir(parents=True, exist_ok=True)
        input_path = self.unique_path(f"{prefix}_in", input_suffix)
        output_path = self.unique_path(f"{prefix}_out", output_suffix) if output_suffix else None

        try:
            yield input_path, output_path
        finally:
            self.remove(input_path)
            if output_path is not None:
                self.remove(output_path)

    def remove(self, path: Path) -> None:
        """Delete a temp file if it exists."""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self._logger.error(f"Failed to remove temp file {path}: {e}")
