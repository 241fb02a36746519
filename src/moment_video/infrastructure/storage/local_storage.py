"""Filesystem storage adapter."""

import asyncio
from pathlib import Path
from typing import Optional

import yaml

from moment_video.domain.exceptions import UploadError
from moment_video.domain.models import UploadResult
from moment_video.shared.logging import get_logger
from moment_video.shared.types import ObjectMetadata, PathLike

logger = get_logger(__name__)


class LocalStorageAdapter:
    """
    Writes objects under ``base_dir``, mirroring the key as a relative path.

    Metadata, when given, is written next to the object as ``<name>.meta.yaml``.
    Implements IStorageAdapter protocol.
    """

    provider = "local"

    def __init__(self, base_dir: PathLike, base_url: Optional[str] = None):
        """
        Args:
            base_dir: Root directory for stored objects
            base_url: Public URL prefix (defaults to a file:// URL of base_dir)
        """
        self.base_dir = Path(base_dir)
        self.base_url = base_url or self.base_dir.resolve().as_uri()
        self._logger = get_logger(__name__)

    def _path_for(self, key: str) -> Path:
        path = (self.base_dir / key).resolve()
        if not path.is_relative_to(self.base_dir.resolve()):
            raise UploadError(f"Key escapes storage root: {key}")
        return path

    async def upload(
        self,
        key: str,
        data: bytes,
        metadata: Optional[ObjectMetadata] = None
    ) -> UploadResult:
        try:
            path = self._path_for(key)
            await asyncio.to_thread(self._write, path, data, metadata)
        except (OSError, UploadError) as e:
            self._logger.error(f"Upload failed for {key}: {e}")
            return UploadResult(success=False, key=key, provider=self.provider, error=str(e))

        self._logger.info(f"Stored {key} ({len(data)} bytes)")
        return UploadResult(
            success=True,
            key=key,
            url=await self.get_url(key),
            provider=self.provider,
            size_bytes=len(data),
        )

    @staticmethod
    def _write(path: Path, data: bytes, metadata: Optional[ObjectMetadata]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if metadata:
            meta_path = path.with_name(f"{path.name}.meta.yaml")
            with open(meta_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(dict(metadata), f, default_flow_style=False)

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
            path.with_name(f"{path.name}.meta.yaml").unlink(missing_ok=True)
        except OSError as e:
            raise UploadError(f"Delete failed for {key}: {e}") from e

    async def get_url(self, key: str, quality: Optional[str] = None) -> str:
        url = f"{self.base_url.rstrip('/')}/{key}"
        return f"{url}?quality={quality}" if quality else url
