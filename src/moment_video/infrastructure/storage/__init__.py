"""Storage infrastructure."""

from moment_video.infrastructure.storage.temp_storage import TempStorage
from moment_video.infrastructure.storage.memory_storage import InMemoryStorageAdapter
from moment_video.infrastructure.storage.local_storage import LocalStorageAdapter
from moment_video.infrastructure.storage.s3_storage import S3Credentials, S3StorageAdapter

__all__ = [
    'TempStorage',
    'InMemoryStorageAdapter',
    'LocalStorageAdapter',
    'S3Credentials',
    'S3StorageAdapter',
]
