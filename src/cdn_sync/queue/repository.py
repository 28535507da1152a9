"""Persistent queue repository for CDN tasks."""

from __future__ import annotations

from sqlalchemy import delete as sa_delete
from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from cdn_sync.catalog.repository import load_assets, load_variants
from cdn_sync.queue.models import CdnOperation, TaskCreate, TaskRecord, parse_operation
from cdn_sync.storage.common import to_db_datetime, to_utc_aware_datetime, utc_now
from cdn_sync.storage.sqlmodel_models import ImageCdnTask


class TaskQueueRepository:
    """Queue persistence facade backed by SQLModel + SQLite."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def enqueue(self, payload: TaskCreate) -> int:
        """Create a pending task and return its id."""

        operation = (
            payload.operation.value
            if isinstance(payload.operation, CdnOperation)
            else payload.operation
        )
        with Session(self.engine) as session:
            row = ImageCdnTask(
                operation=operation,
                image_id=payload.image_id,
                dimension_id=payload.dimension_id,
                image_path=payload.image_path,
                created_at=to_db_datetime(utc_now()),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            if row.id is None:
                raise RuntimeError("Queue insert did not assign an id.")
            return row.id

    def load_pending(self, *, limit: int | None = None) -> list[TaskRecord]:
        """Load outstanding tasks with their images and dimensions attached.

        Runs one statement for the queue rows, one for all referenced images
        (bindings joined in), and one for all referenced dimensions.
        """

        with Session(self.engine) as session:
            statement = select(ImageCdnTask).order_by(col(ImageCdnTask.id).asc())
            if limit is not None:
                statement = statement.limit(limit)
            rows = session.exec(statement).all()
            if not rows:
                return []

            assets = load_assets(
                session,
                (row.image_id for row in rows if row.image_id is not None),
            )
            variants = load_variants(session, (row.dimension_id for row in rows))

            tasks: list[TaskRecord] = []
            for row in rows:
                if row.id is None:
                    continue
                variant = variants.get(row.dimension_id)
                if variant is None:
                    raise RuntimeError(
                        f"Task {row.id} references missing image dimension {row.dimension_id}.",
                    )
                tasks.append(
                    TaskRecord(
                        id=row.id,
                        operation=parse_operation(row.operation),
                        asset_id=row.image_id,
                        variant_id=row.dimension_id,
                        variant=variant,
                        asset=assets.get(row.image_id) if row.image_id is not None else None,
                        remote_path=row.image_path or "",
                        created_at=to_utc_aware_datetime(row.created_at),
                    ),
                )
        return tasks

    def delete(self, task: TaskRecord) -> bool:
        """Remove one task by id; returns False if it was already gone."""

        with Session(self.engine) as session:
            result = session.exec(
                sa_delete(ImageCdnTask).where(col(ImageCdnTask.id) == task.id),
            )
            session.commit()
            return result.rowcount == 1

    def count_pending(self) -> int:
        with Session(self.engine) as session:
            return int(session.exec(select(func.count()).select_from(ImageCdnTask)).one())
