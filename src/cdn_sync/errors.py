"""Error taxonomy for CDN update passes."""

from __future__ import annotations

from datetime import datetime


class CdnSyncError(Exception):
    """Base error for the synchronizer."""


class RecoverableTaskError(CdnSyncError):
    """Per-task failure that leaves the task queued for the next pass."""


class LocalFileMissing(RecoverableTaskError):
    """Resolved local source file for a copy does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Local file not found: {path}")
        self.path = path


class BackendOperationFailed(RecoverableTaskError):
    """Remote put/delete failed (network, auth, or API-level error)."""

    def __init__(self, operation: str, key: str, message: str) -> None:
        super().__init__(f"Storage {operation} failed for {key!r}: {message}")
        self.operation = operation
        self.key = key


class LockContention(CdnSyncError):
    """Another update pass already holds the process lock."""

    def __init__(self, name: str, holder: str, acquired_at: datetime) -> None:
        super().__init__(
            "Another CDN update pass is already running "
            f"(lock={name}, holder={holder}, acquired_at={acquired_at.isoformat()}).",
        )
        self.name = name
        self.holder = holder
        self.acquired_at = acquired_at


class ConfigurationError(CdnSyncError, ValueError):
    """Missing or invalid credentials, connection target, or paths."""


class UnknownTaskOperation(CdnSyncError):
    """Queue row carries an operation kind the synchronizer does not handle."""

    def __init__(self, task_id: int, operation: str) -> None:
        super().__init__(
            f"Task {task_id} has unknown operation {operation!r}; "
            "rerun with --permissive-operations to discard such tasks.",
        )
        self.task_id = task_id
        self.operation = operation


class LockLost(CdnSyncError):
    """The process lock row no longer belongs to this pass."""

    def __init__(self, name: str, holder: str) -> None:
        super().__init__(
            f"Process lock {name!r} is no longer held by {holder}; stopping the update pass.",
        )
        self.name = name
        self.holder = holder
