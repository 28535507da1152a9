"""S3-compatible storage backend built on boto3."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from cdn_sync.config import StorageSettings
from cdn_sync.errors import BackendOperationFailed, LocalFileMissing

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=315360000"


class S3StorageBackend:
    """Put/delete objects in one bucket, optionally under a key prefix."""

    def __init__(
        self,
        *,
        client: Any,
        bucket: str,
        key_prefix: str = "",
        acl: str | None = "public-read",
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.key_prefix = key_prefix.strip("/")
        self.acl = acl

    def put(self, local_path: Path, remote_suffix: str, mime_type: str) -> None:
        key = self._key(remote_suffix)
        extra_args: dict[str, str] = {
            "ContentType": mime_type,
            "CacheControl": CACHE_CONTROL,
        }
        if self.acl:
            extra_args["ACL"] = self.acl
        logger.debug("Uploading %s to s3://%s/%s", local_path, self.bucket, key)
        try:
            self.client.upload_file(str(local_path), self.bucket, key, ExtraArgs=extra_args)
        except FileNotFoundError as error:
            raise LocalFileMissing(str(local_path)) from error
        except (BotoCoreError, ClientError, S3UploadFailedError) as error:
            raise BackendOperationFailed("put", key, str(error)) from error

    def delete(self, remote_path: str) -> None:
        key = remote_path.strip().lstrip("/")
        # An empty key must never reach the store.
        if not key:
            raise BackendOperationFailed("delete", remote_path, "refusing to delete an empty key")
        logger.debug("Deleting s3://%s/%s", self.bucket, key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as error:
            raise BackendOperationFailed("delete", key, str(error)) from error

    def _key(self, remote_suffix: str) -> str:
        suffix = remote_suffix.strip().lstrip("/")
        if not self.key_prefix:
            return suffix
        return f"{self.key_prefix}/{suffix}"


def build_s3_backend(settings: StorageSettings) -> S3StorageBackend:
    """Create a backend with a boto3 client from storage settings."""

    client = boto3.client(
        "s3",
        aws_access_key_id=settings.access_key_id,
        aws_secret_access_key=settings.secret_access_key,
        region_name=settings.region,
        endpoint_url=settings.endpoint_url,
    )
    return S3StorageBackend(
        client=client,
        bucket=settings.bucket,
        key_prefix=settings.key_prefix,
        acl=settings.acl,
    )
