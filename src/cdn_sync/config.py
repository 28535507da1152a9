"""Runtime configuration for CDN update passes."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from cdn_sync.errors import ConfigurationError

DEFAULT_LOCK_NAME = "cdn-update"


@dataclass(slots=True)
class StorageSettings:
    """Remote object storage credentials and placement."""

    bucket: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    region: str = "us-east-1"
    endpoint_url: str | None = None
    key_prefix: str = ""
    acl: str | None = "public-read"


@dataclass(slots=True)
class SyncSettings:
    """Update pass behaviour."""

    strict_operations: bool = True
    lock_name: str = DEFAULT_LOCK_NAME
    lock_stale_after_seconds: int = 21_600


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".cdn_sync.db")
    sqlite_busy_timeout_ms: int = 5_000
    source_dir: Path | None = None
    storage: StorageSettings = field(default_factory=StorageSettings)
    sync: SyncSettings = field(default_factory=SyncSettings)

    @classmethod
    def from_env(
        cls,
        db_path: Path | None = None,
        source_dir: Path | None = None,
    ) -> Settings:
        """Load settings from environment; explicit arguments win over env values."""

        env_source_dir = os.getenv("CDN_SYNC_SOURCE_DIR", "").strip()
        return cls(
            db_path=db_path or Path(os.getenv("CDN_SYNC_DB_PATH", ".cdn_sync.db")),
            sqlite_busy_timeout_ms=_env_int("CDN_SYNC_SQLITE_BUSY_TIMEOUT_MS", 5_000),
            source_dir=source_dir or (Path(env_source_dir) if env_source_dir else None),
            storage=StorageSettings(
                bucket=os.getenv("CDN_SYNC_STORAGE_BUCKET", "").strip(),
                access_key_id=os.getenv("CDN_SYNC_STORAGE_ACCESS_KEY", "").strip(),
                secret_access_key=os.getenv("CDN_SYNC_STORAGE_SECRET", "").strip(),
                region=os.getenv("CDN_SYNC_STORAGE_REGION", "us-east-1").strip(),
                endpoint_url=os.getenv("CDN_SYNC_STORAGE_ENDPOINT_URL", "").strip() or None,
                key_prefix=os.getenv("CDN_SYNC_STORAGE_KEY_PREFIX", "").strip().strip("/"),
                acl=os.getenv("CDN_SYNC_STORAGE_ACL", "public-read").strip() or None,
            ),
            sync=SyncSettings(
                strict_operations=_env_bool("CDN_SYNC_STRICT_OPERATIONS", default=True),
                lock_name=os.getenv("CDN_SYNC_LOCK_NAME", DEFAULT_LOCK_NAME).strip()
                or DEFAULT_LOCK_NAME,
                lock_stale_after_seconds=_env_int("CDN_SYNC_LOCK_STALE_AFTER_SECONDS", 21_600),
            ),
        )

    def validate_for_update(self) -> None:
        """Raise ConfigurationError if anything an update pass needs is missing."""

        problems: list[str] = []
        if self.source_dir is None:
            problems.append("CDN_SYNC_SOURCE_DIR (or --source-dir) is required.")
        elif not self.source_dir.is_dir():
            problems.append(f"Source directory does not exist: {self.source_dir}")
        if not self.storage.bucket:
            problems.append("CDN_SYNC_STORAGE_BUCKET is required.")
        if not self.storage.access_key_id:
            problems.append("CDN_SYNC_STORAGE_ACCESS_KEY is required.")
        if not self.storage.secret_access_key:
            problems.append("CDN_SYNC_STORAGE_SECRET is required.")
        if self.storage.endpoint_url is not None:
            parsed = urlparse(self.storage.endpoint_url)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                problems.append(
                    "Invalid CDN_SYNC_STORAGE_ENDPOINT_URL: "
                    f"{self.storage.endpoint_url!r}. Expected an absolute http(s) URL.",
                )
        if self.sync.lock_stale_after_seconds < 0:
            problems.append("CDN_SYNC_LOCK_STALE_AFTER_SECONDS must be >= 0.")
        if self.sqlite_busy_timeout_ms <= 0:
            problems.append("CDN_SYNC_SQLITE_BUSY_TIMEOUT_MS must be > 0.")

        if problems:
            raise ConfigurationError(" ".join(problems))


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as error:
        raise ConfigurationError(f"Invalid integer value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigurationError(f"Invalid boolean value for {name}: {value!r}")
