"""Process, moderate and upload a clip in one call."""

import time
from typing import Optional

from moment_video.domain.exceptions import UploadError, VideoProcessingError
from moment_video.domain.models import (
    ModerationVerdict,
    ProcessingRequest,
    PublishResult,
)
from moment_video.domain.protocols import IModerationEngine, IStorageAdapter
from moment_video.application.orchestrator import GENERIC_ERROR, VideoProcessingOrchestrator
from moment_video.shared.logging import get_content_logger, get_logger

logger = get_logger(__name__)

THUMBNAIL_CONTENT_TYPES = {
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}


class ContentPublisher:
    """
    Wraps the orchestrator with moderation and storage uploads.

    Flow: process -> moderate (when an engine is configured) -> upload video
    -> upload thumbnail. Content that is neither approved nor sent to review
    is not uploaded. Like the orchestrator, ``publish`` never raises.
    """

    def __init__(
        self,
        orchestrator: VideoProcessingOrchestrator,
        storage: IStorageAdapter,
        moderation: Optional[IModerationEngine] = None
    ):
        self._orchestrator = orchestrator
        self._storage = storage
        self._moderation = moderation
        self._logger = get_logger(__name__)

    async def publish(self, request: ProcessingRequest) -> PublishResult:
        log = get_content_logger(request.content_id, self._logger)
        started = time.perf_counter()
        uploaded = []

        try:
            result = await self._orchestrator.process_video(request)
            if not result.success:
                raise VideoProcessingError(result.error or GENERIC_ERROR)

            verdict = await self._moderate(request)
            if not verdict.approved and not verdict.requires_review:
                flags = ", ".join(verdict.flags) or "no flags"
                raise VideoProcessingError(f"Content blocked by moderation: {flags}")

            keys = result.storage_keys
            video_upload = await self._storage.upload(
                keys.video_key,
                result.processed_video.data,
                {
                    "content_id": request.content_id,
                    "owner_id": request.owner_id,
                    "content_type": "video/mp4",
                    "duration": result.video_metadata.duration,
                    "width": result.video_metadata.width,
                    "height": result.video_metadata.height,
                },
            )
            if not video_upload.success:
                raise UploadError(video_upload.error or "Video upload failed")
            uploaded.append(keys.video_key)

            thumbnail_url = ""
            if result.thumbnail.is_empty:
                log.warning("No thumbnail produced, skipping thumbnail upload")
            else:
                thumbnail_upload = await self._storage.upload(
                    keys.thumbnail_key,
                    result.thumbnail.data,
                    {
                        "content_id": request.content_id,
                        "owner_id": request.owner_id,
                        "content_type": THUMBNAIL_CONTENT_TYPES.get(result.thumbnail.format, "image/jpeg"),
                        "width": result.thumbnail.width,
                        "height": result.thumbnail.height,
                    },
                )
                if not thumbnail_upload.success:
                    raise UploadError(thumbnail_upload.error or "Thumbnail upload failed")
                uploaded.append(keys.thumbnail_key)
                thumbnail_url = thumbnail_upload.url or ""

            elapsed_ms = (time.perf_counter() - started) * 1000.0
            log.info(f"Published to {self._storage.provider} in {elapsed_ms:.0f} ms")

            return PublishResult(
                success=True,
                content_id=request.content_id,
                video_url=video_upload.url or "",
                thumbnail_url=thumbnail_url,
                storage_keys=keys,
                provider=self._storage.provider,
                video_metadata=result.video_metadata,
                moderation=verdict,
                processing_time_ms=elapsed_ms,
            )

        except Exception as e:
            log.error(f"Publish failed: {e}")
            await self._rollback(uploaded, log)
            return PublishResult(
                success=False,
                content_id=request.content_id,
                processing_time_ms=(time.perf_counter() - started) * 1000.0,
                error=str(e) or GENERIC_ERROR,
            )

    async def delete_content(self, video_key: str, thumbnail_key: str) -> None:
        """
        Remove a published clip and its thumbnail.

        Raises:
            UploadError: If the storage backend refuses the delete
        """
        self._logger.info(f"Deleting {video_key} and {thumbnail_key}")
        await self._storage.delete(video_key)
        await self._storage.delete(thumbnail_key)

    async def _moderate(self, request: ProcessingRequest) -> ModerationVerdict:
        if self._moderation is None:
            return ModerationVerdict(approved=True)
        return await self._moderation.moderate(request)

    async def _rollback(self, keys, log) -> None:
        for key in keys:
            try:
                await self._storage.delete(key)
            except UploadError as e:
                log.warning(f"Could not remove {key} after failed publish: {e}")
