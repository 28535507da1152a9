"""Single-holder advisory lock around one update pass."""

from __future__ import annotations

import logging
import os
import socket
from datetime import datetime, timedelta
from types import TracebackType

from sqlalchemy import delete as sa_delete
from sqlalchemy import update as sa_update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from cdn_sync.config import DEFAULT_LOCK_NAME
from cdn_sync.errors import LockContention, LockLost
from cdn_sync.storage.common import to_db_datetime, to_utc_aware_datetime, utc_now
from cdn_sync.storage.sqlmodel_models import ProcessLockRow

logger = logging.getLogger(__name__)


def default_holder() -> str:
    return f"{socket.gethostname()}:{os.getpid()}"


class ProcessLock:
    """Database-row lock; acquisition fails fast instead of waiting.

    The holder refreshes ``heartbeat_at`` while it works. A row whose last
    heartbeat is older than ``stale_after`` is assumed to belong to a killed
    process and is reclaimed. ``stale_after=None`` disables reclaiming.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        name: str = DEFAULT_LOCK_NAME,
        holder: str | None = None,
        stale_after: timedelta | None = timedelta(hours=6),
    ) -> None:
        if stale_after is not None and stale_after.total_seconds() <= 0:
            raise ValueError("stale_after must be > 0 or None")
        self.engine = engine
        self.name = name
        self.holder = holder or default_holder()
        self.stale_after = stale_after
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Take the lock or raise LockContention."""

        if self._held:
            raise RuntimeError(f"Lock {self.name!r} is already held by this instance.")

        while True:
            with Session(self.engine) as session:
                now = utc_now()
                session.add(
                    ProcessLockRow(
                        name=self.name,
                        holder=self.holder,
                        acquired_at=to_db_datetime(now),
                        heartbeat_at=to_db_datetime(now),
                    ),
                )
                try:
                    session.commit()
                except IntegrityError as error:
                    session.rollback()
                    current = session.exec(
                        select(ProcessLockRow).where(ProcessLockRow.name == self.name),
                    ).one_or_none()
                    if current is None:
                        # Released between our insert and this read.
                        continue

                    acquired_at = to_utc_aware_datetime(current.acquired_at)
                    heartbeat_at = to_utc_aware_datetime(
                        current.heartbeat_at or current.acquired_at,
                    )
                    if self._is_stale(heartbeat_at=heartbeat_at, now=now):
                        session.exec(
                            sa_delete(ProcessLockRow).where(
                                col(ProcessLockRow.name) == self.name,
                                col(ProcessLockRow.holder) == current.holder,
                            ),
                        )
                        session.commit()
                        logger.warning(
                            "Reclaimed stale process lock (lock=%s holder=%s heartbeat_at=%s).",
                            self.name,
                            current.holder,
                            heartbeat_at.isoformat(),
                        )
                        continue

                    raise LockContention(self.name, current.holder, acquired_at) from error

            self._held = True
            logger.debug("Acquired process lock %s as %s", self.name, self.holder)
            return

    def heartbeat(self) -> None:
        """Refresh ``heartbeat_at``; raise LockLost if the row was taken over."""

        if not self._held:
            raise RuntimeError(f"Lock {self.name!r} is not held by this instance.")
        with Session(self.engine) as session:
            result = session.exec(
                sa_update(ProcessLockRow)
                .where(
                    col(ProcessLockRow.name) == self.name,
                    col(ProcessLockRow.holder) == self.holder,
                )
                .values(heartbeat_at=to_db_datetime(utc_now())),
            )
            session.commit()
        if result.rowcount != 1:
            self._held = False
            raise LockLost(self.name, self.holder)

    def release(self) -> None:
        if not self._held:
            return
        with Session(self.engine) as session:
            result = session.exec(
                sa_delete(ProcessLockRow).where(
                    col(ProcessLockRow.name) == self.name,
                    col(ProcessLockRow.holder) == self.holder,
                ),
            )
            session.commit()
        self._held = False
        if result.rowcount != 1:
            logger.warning(
                "Process lock %s was no longer held by %s at release.",
                self.name,
                self.holder,
            )

    def __enter__(self) -> ProcessLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release()

    def _is_stale(self, *, heartbeat_at: datetime, now: datetime) -> bool:
        if self.stale_after is None:
            return False
        return now - heartbeat_at > self.stale_after
