"""Drain the CDN queue once, applying each task to remote storage."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from cdn_sync.backend.base import StorageBackend
from cdn_sync.catalog.locator import AssetLocator
from cdn_sync.errors import RecoverableTaskError, UnknownTaskOperation
from cdn_sync.queue.models import CdnOperation, TaskRecord
from cdn_sync.queue.repository import TaskQueueRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TaskFailure:
    """Recoverable failure recorded for one task left in the queue."""

    task_id: int
    operation: str
    error: str


@dataclass(slots=True)
class PassSummary:
    """Aggregate counters for one update pass."""

    discovered: int = 0
    copied: int = 0
    deleted: int = 0
    skipped: int = 0
    failures: list[TaskFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


class Reconciler:
    """Applies queued copy/delete tasks against a storage backend."""

    def __init__(
        self,
        *,
        queue: TaskQueueRepository,
        backend: StorageBackend,
        locator: AssetLocator,
        source_dir: Path,
        strict_operations: bool = True,
        heartbeat: Callable[[], None] | None = None,
    ) -> None:
        self.queue = queue
        self.backend = backend
        self.locator = locator
        self.source_dir = source_dir
        self.strict_operations = strict_operations
        self.heartbeat = heartbeat

    def run_pass(self) -> PassSummary:
        """Attempt every task currently in the queue exactly once.

        Tasks failing with LocalFileMissing or BackendOperationFailed stay
        queued and the pass moves on. Any other error aborts the pass.
        """

        tasks = self.queue.load_pending()
        summary = PassSummary(discovered=len(tasks))
        logger.info("Found %d CDN tasks", len(tasks))

        for task in tasks:
            if self.heartbeat is not None:
                self.heartbeat()
            logger.info(
                "Task %d: %s dimension=%s image=%s",
                task.id,
                task.operation_name,
                task.variant.shortname,
                task.asset_id if task.asset_id is not None else "-",
            )
            try:
                self._apply(task, summary)
            except RecoverableTaskError as error:
                logger.warning(
                    "Task %d (%s) failed and stays queued: %s",
                    task.id,
                    task.operation_name,
                    error,
                )
                summary.failures.append(
                    TaskFailure(task_id=task.id, operation=task.operation_name, error=str(error)),
                )
                continue

            self.queue.delete(task)
            logger.info("Task %d: done", task.id)

        logger.info(
            "All done: copied=%d deleted=%d skipped=%d failed=%d",
            summary.copied,
            summary.deleted,
            summary.skipped,
            summary.failed,
        )
        return summary

    def _apply(self, task: TaskRecord, summary: PassSummary) -> None:
        if task.operation is CdnOperation.COPY:
            if self._copy(task):
                summary.copied += 1
            else:
                summary.skipped += 1
            return
        if task.operation is CdnOperation.DELETE:
            if self._delete(task):
                summary.deleted += 1
            else:
                summary.skipped += 1
            return

        if self.strict_operations:
            raise UnknownTaskOperation(task.id, task.operation_name)
        logger.warning(
            "Task %d has unknown operation %r; discarding it.",
            task.id,
            task.operation_name,
        )
        summary.skipped += 1

    def _copy(self, task: TaskRecord) -> bool:
        if task.asset is None:
            logger.info("Task %d: image no longer exists, nothing to copy", task.id)
            return False

        resolved = self.locator.resolve_paths(task.asset, task.variant, self.source_dir)
        logger.info(
            "Copying image %d, dimension %s -> %s",
            task.asset.id,
            task.variant.shortname,
            resolved.remote_suffix,
        )
        self.backend.put(resolved.local_path, resolved.remote_suffix, resolved.mime_type)
        self.locator.set_cdn_presence(task.asset, task.variant, True)
        return True

    def _delete(self, task: TaskRecord) -> bool:
        if task.asset is not None:
            self.locator.set_cdn_presence(task.asset, task.variant, False)

        # Never hand an empty key to the backend.
        remote_path = task.remote_path.strip()
        if not remote_path:
            logger.info("Task %d: no remote path, skipping remote delete", task.id)
            return False

        logger.info("Deleting CDN object %s", remote_path)
        self.backend.delete(remote_path)
        return True
