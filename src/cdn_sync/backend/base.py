"""Storage backend interface for CDN synchronization."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class StorageBackend(Protocol):
    """Protocol implemented by remote object stores.

    Implementations raise BackendOperationFailed for any remote failure.
    """

    def put(self, local_path: Path, remote_suffix: str, mime_type: str) -> None:
        """Upload one local file under the given key suffix."""

    def delete(self, remote_path: str) -> None:
        """Delete one remote object by its full key."""
