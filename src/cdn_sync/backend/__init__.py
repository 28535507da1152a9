"""Remote storage backend implementations."""

from cdn_sync.backend.base import StorageBackend
from cdn_sync.backend.s3_backend import S3StorageBackend, build_s3_backend

__all__ = [
    "S3StorageBackend",
    "StorageBackend",
    "build_s3_backend",
]
