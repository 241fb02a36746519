"""In-memory storage adapter."""

from typing import Dict, Optional, Set

from moment_video.domain.models import UploadResult
from moment_video.shared.logging import get_logger
from moment_video.shared.types import ObjectMetadata

logger = get_logger(__name__)


class InMemoryStorageAdapter:
    """
    Keeps uploaded objects in a dict owned by the instance.

    Each instance is its own namespace, so parallel tests never share state.
    ``fail_keys`` makes uploads of the listed keys fail.
    Implements IStorageAdapter protocol.
    """

    provider = "memory"

    def __init__(self, base_url: str = "memory://", fail_keys: Optional[Set[str]] = None):
        self.base_url = base_url
        self.fail_keys = set(fail_keys or ())
        self.objects: Dict[str, bytes] = {}
        self.metadata: Dict[str, ObjectMetadata] = {}
        self._logger = get_logger(__name__)

    async def upload(
        self,
        key: str,
        data: bytes,
        metadata: Optional[ObjectMetadata] = None
    ) -> UploadResult:
        if key in self.fail_keys:
            self._logger.warning(f"Simulated upload failure: {key}")
            return UploadResult(
                success=False,
                key=key,
                provider=self.provider,
                error=f"Upload rejected for {key}",
            )

        self.objects[key] = data
        self.metadata[key] = dict(metadata or {})
        return UploadResult(
            success=True,
            key=key,
            url=await self.get_url(key),
            provider=self.provider,
            size_bytes=len(data),
        )

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.metadata.pop(key, None)

    async def get_url(self, key: str, quality: Optional[str] = None) -> str:
        url = f"{self.base_url}{key}"
        return f"{url}?quality={quality}" if quality else url

    def __contains__(self, key: str) -> bool:
        return key in self.objects

    def __len__(self) -> int:
        return len(self.objects)
