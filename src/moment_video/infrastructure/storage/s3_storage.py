"""
S3-compatible storage adapter.

Uploads processed clips and thumbnails with boto3. Works against AWS S3 and
S3-compatible providers (Backblaze B2, MinIO) through ``endpoint``.
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from moment_video.domain.exceptions import ConfigurationError, UploadError
from moment_video.domain.models import UploadResult
from moment_video.shared.logging import get_logger
from moment_video.shared.types import ObjectMetadata

logger = get_logger(__name__)

CONTENT_TYPES = {
    "mp4": "video/mp4",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "wav": "audio/wav",
}


@dataclass
class S3Credentials:
    """Bucket credentials and addressing."""
    key_id: str
    application_key: str
    bucket: str
    endpoint: Optional[str] = None
    region: Optional[str] = None
    public_base_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'S3Credentials':
        """Load from MOMENT_VIDEO_S3_* environment variables."""
        return cls(
            key_id=os.getenv('MOMENT_VIDEO_S3_KEY', ''),
            application_key=os.getenv('MOMENT_VIDEO_S3_SECRET', ''),
            bucket=os.getenv('MOMENT_VIDEO_S3_BUCKET', ''),
            endpoint=os.getenv('MOMENT_VIDEO_S3_ENDPOINT') or None,
            region=os.getenv('MOMENT_VIDEO_S3_REGION') or None,
            public_base_url=os.getenv('MOMENT_VIDEO_S3_PUBLIC_URL') or None,
        )

    def validate(self) -> bool:
        """Check if credentials are set."""
        return bool(self.key_id and self.application_key and self.bucket)


def guess_content_type(key: str) -> str:
    ext = key.rsplit('.', 1)[-1].lower() if '.' in key else ''
    return CONTENT_TYPES.get(ext, 'application/octet-stream')


class S3StorageAdapter:
    """
    Storage sink backed by an S3-compatible bucket.

    boto3 is blocking, so every call runs in a worker thread.
    Implements IStorageAdapter protocol.
    """

    provider = "s3"

    def __init__(
        self,
        credentials: Optional[S3Credentials] = None,
        client: Any = None,
        url_expires_in: int = 3600
    ):
        """
        Initialize S3 adapter.

        Args:
            credentials: Bucket credentials (loads from env if None)
            client: Pre-built boto3 S3 client (built from credentials if None)
            url_expires_in: Lifetime of presigned URLs in seconds
        """
        self.credentials = credentials or S3Credentials.from_env()
        if not self.credentials.validate():
            raise ConfigurationError(
                "S3 credentials not set (MOMENT_VIDEO_S3_KEY, MOMENT_VIDEO_S3_SECRET, MOMENT_VIDEO_S3_BUCKET)"
            )

        self.s3 = client or boto3.client(
            's3',
            endpoint_url=self.credentials.endpoint,
            region_name=self.credentials.region,
            aws_access_key_id=self.credentials.key_id,
            aws_secret_access_key=self.credentials.application_key,
        )
        self.bucket = self.credentials.bucket
        self.url_expires_in = url_expires_in
        self._logger = get_logger(__name__)

    async def upload(
        self,
        key: str,
        data: bytes,
        metadata: Optional[ObjectMetadata] = None
    ) -> UploadResult:
        self._logger.info(f"Uploading s3://{self.bucket}/{key} ({len(data)} bytes)")

        extra: Dict[str, Any] = {'ContentType': guess_content_type(key)}
        if metadata:
            extra['Metadata'] = {str(k): str(v) for k, v in metadata.items()}

        try:
            await asyncio.to_thread(
                self.s3.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                **extra,
            )
            url = await self.get_url(key)
        except (ClientError, BotoCoreError, UploadError) as e:
            self._logger.error(f"Upload failed: {e}")
            return UploadResult(
                success=False,
                key=key,
                provider=self.provider,
                error=str(e),
            )

        self._logger.info(f"Upload completed: {key}")
        return UploadResult(
            success=True,
            key=key,
            url=url,
            provider=self.provider,
            size_bytes=len(data),
        )

    async def delete(self, key: str) -> None:
        self._logger.info(f"Deleting s3://{self.bucket}/{key}")
        try:
            await asyncio.to_thread(self.s3.delete_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Delete failed for {key}: {e}") from e

    async def get_url(self, key: str, quality: Optional[str] = None) -> str:
        """Public URL when a base URL is configured, presigned GET URL otherwise."""
        if self.credentials.public_base_url:
            url = f"{self.credentials.public_base_url.rstrip('/')}/{key}"
            return f"{url}?quality={quality}" if quality else url

        try:
            return await asyncio.to_thread(
                self.s3.generate_presigned_url,
                'get_object',
                Params={'Bucket': self.bucket, 'Key': key},
                ExpiresIn=self.url_expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"Failed to generate presigned URL: {e}") from e
