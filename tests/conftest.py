"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.engine import Engine

from cdn_sync.catalog.locator import ImageAssetLocator, rendition_key
from cdn_sync.catalog.repository import CatalogRepository
from cdn_sync.errors import BackendOperationFailed
from cdn_sync.queue.models import Asset, TaskRecord, Variant
from cdn_sync.queue.repository import TaskQueueRepository
from cdn_sync.storage.alembic_runner import upgrade_head
from cdn_sync.storage.common import build_sqlite_engine


class RecordingBackend:
    """In-memory StorageBackend that records calls into a shared event log."""

    def __init__(self, events: list[tuple[object, ...]]) -> None:
        self.events = events
        self.calls: list[tuple[str, ...]] = []
        self.failing_keys: set[str] = set()
        self.crash_keys: set[str] = set()

    def put(self, local_path: Path, remote_suffix: str, mime_type: str) -> None:
        self._check(remote_suffix, "put")
        self.calls.append(("put", remote_suffix, mime_type))
        self.events.append(("put", remote_suffix))

    def delete(self, remote_path: str) -> None:
        self._check(remote_path, "delete")
        self.calls.append(("delete", remote_path))
        self.events.append(("delete", remote_path))

    def _check(self, key: str, operation: str) -> None:
        if key in self.crash_keys:
            raise RuntimeError(f"unexpected crash for {key}")
        if key in self.failing_keys:
            raise BackendOperationFailed(operation, key, "simulated outage")


class RecordingLocator(ImageAssetLocator):
    """ImageAssetLocator that logs flag writes into the shared event log."""

    def __init__(self, catalog: CatalogRepository, events: list[tuple[object, ...]]) -> None:
        super().__init__(catalog)
        self.events = events

    def set_cdn_presence(self, asset: Asset, variant: Variant, present: bool) -> None:
        super().set_cdn_presence(asset, variant, present)
        self.events.append(("flag", asset.id, variant.shortname, present))


class RecordingQueue(TaskQueueRepository):
    """TaskQueueRepository that logs deletions into the shared event log."""

    def __init__(self, engine: Engine, events: list[tuple[object, ...]]) -> None:
        super().__init__(engine)
        self.events = events

    def delete(self, task: TaskRecord) -> bool:
        removed = super().delete(task)
        self.events.append(("dequeue", task.id))
        return removed


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "cdn.db"
    upgrade_head(path)
    return path


@pytest.fixture()
def engine(db_path: Path):
    engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=5000)
    yield engine
    engine.dispose()


@pytest.fixture()
def events() -> list[tuple[object, ...]]:
    return []


@pytest.fixture()
def catalog(engine) -> CatalogRepository:
    return CatalogRepository(engine)


@pytest.fixture()
def queue(engine, events) -> RecordingQueue:
    return RecordingQueue(engine, events)


@pytest.fixture()
def backend(events) -> RecordingBackend:
    return RecordingBackend(events)


@pytest.fixture()
def locator(catalog, events) -> RecordingLocator:
    return RecordingLocator(catalog, events)


@pytest.fixture()
def source_dir(tmp_path: Path) -> Path:
    path = tmp_path / "images"
    path.mkdir()
    return path


@pytest.fixture()
def write_rendition(source_dir: Path):
    """Create the local file a copy task for (asset, variant) will upload."""

    def _write(asset: Asset, variant: Variant, content: bytes = b"\xff\xd8fake") -> Path:
        path = source_dir / rendition_key(asset=asset, variant=variant)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _write
