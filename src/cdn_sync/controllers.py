"""Controllers for cdn-sync CLI commands."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from sqlalchemy.engine import Engine

from cdn_sync.backend import StorageBackend, build_s3_backend
from cdn_sync.catalog.locator import ImageAssetLocator
from cdn_sync.catalog.repository import CatalogRepository
from cdn_sync.config import Settings, StorageSettings
from cdn_sync.lock import ProcessLock
from cdn_sync.queue.models import TaskCreate, TaskRecord, parse_operation
from cdn_sync.queue.repository import TaskQueueRepository
from cdn_sync.reconciler import PassSummary, Reconciler
from cdn_sync.storage.alembic_runner import upgrade_head
from cdn_sync.storage.common import build_sqlite_engine


@dataclass(slots=True)
class UpdateCommand:
    """CLI input for one update pass."""

    db_path: Path | None
    source_dir: Path | None
    strict_operations: bool | None = None


@dataclass(slots=True)
class QueueListCommand:
    """CLI input for pending task listing."""

    db_path: Path | None
    limit: int


@dataclass(slots=True)
class QueueAddCommand:
    """CLI input for manual task enqueue."""

    db_path: Path | None
    operation: str
    dimension_id: int
    image_id: int | None
    image_path: str | None


class CdnCliController:
    """Coordinates update passes and queue inspection."""

    def __init__(
        self,
        backend_factory: Callable[[StorageSettings], StorageBackend] = build_s3_backend,
    ) -> None:
        self.backend_factory = backend_factory

    def update(self, command: UpdateCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path, source_dir=command.source_dir)
        settings.validate_for_update()
        strict_operations = (
            settings.sync.strict_operations
            if command.strict_operations is None
            else command.strict_operations
        )
        backend: StorageBackend = self.backend_factory(settings.storage)
        stale_seconds = settings.sync.lock_stale_after_seconds

        with _engine(settings) as engine:
            lock = ProcessLock(
                engine,
                name=settings.sync.lock_name,
                stale_after=timedelta(seconds=stale_seconds) if stale_seconds else None,
            )
            with lock:
                reconciler = Reconciler(
                    queue=TaskQueueRepository(engine),
                    backend=backend,
                    locator=ImageAssetLocator(CatalogRepository(engine)),
                    source_dir=settings.source_dir or Path("."),
                    strict_operations=strict_operations,
                    heartbeat=lock.heartbeat,
                )
                summary = reconciler.run_pass()

        return _render_summary(summary)

    def list_queue(self, command: QueueListCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _engine(settings) as engine:
            queue = TaskQueueRepository(engine)
            total = queue.count_pending()
            tasks = queue.load_pending(limit=command.limit)

        lines = [f"Pending tasks: {total}"]
        for task in tasks:
            lines.append(
                f"  {task.id} operation={task.operation_name} "
                f"image={task.asset_id if task.asset_id is not None else '-'} "
                f"dimension={task.variant.shortname} "
                f"path={task.remote_path or '-'} "
                f"on_cdn={_on_cdn_label(task)}",
            )
        return lines

    def add_task(self, command: QueueAddCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _engine(settings) as engine:
            task_id = TaskQueueRepository(engine).enqueue(
                TaskCreate(
                    operation=parse_operation(command.operation),
                    dimension_id=command.dimension_id,
                    image_id=command.image_id,
                    image_path=command.image_path,
                ),
            )
        return [f"Task enqueued: id={task_id} operation={command.operation}"]


def _on_cdn_label(task: TaskRecord) -> str:
    if task.asset is None:
        return "-"
    return "yes" if task.asset.is_on_cdn(task.variant) else "no"


def _render_summary(summary: PassSummary) -> list[str]:
    lines = [
        "Update pass completed: "
        f"discovered={summary.discovered} copied={summary.copied} "
        f"deleted={summary.deleted} skipped={summary.skipped} failed={summary.failed}",
    ]
    for failure in summary.failures:
        lines.append(
            f"  failed task_id={failure.task_id} operation={failure.operation} "
            f"error={failure.error}",
        )
    return lines


@contextmanager
def _engine(settings: Settings) -> Iterator[Engine]:
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    upgrade_head(settings.db_path)
    engine = build_sqlite_engine(
        db_path=settings.db_path,
        busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    try:
        yield engine
    finally:
        engine.dispose()
