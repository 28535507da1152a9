from __future__ import annotations

from datetime import timedelta

import allure
import pytest
from sqlalchemy import update as sa_update
from sqlmodel import Session, select

from cdn_sync.errors import LockContention, LockLost
from cdn_sync.lock import ProcessLock
from cdn_sync.storage.common import to_db_datetime, utc_now
from cdn_sync.storage.sqlmodel_models import ProcessLockRow

pytestmark = [
    allure.epic("CDN Sync"),
    allure.feature("Process Lock"),
]


def _lock_rows(engine) -> list[ProcessLockRow]:
    with Session(engine) as session:
        return list(session.exec(select(ProcessLockRow)).all())


def test_second_holder_fails_fast_while_lock_is_held(engine) -> None:
    first = ProcessLock(engine, holder="host-a:1")
    second = ProcessLock(engine, holder="host-b:2")

    with first:
        with pytest.raises(LockContention, match="already running") as raised:
            second.acquire()
        assert raised.value.holder == "host-a:1"
        assert not second.held

    assert _lock_rows(engine) == []
    with second:
        assert second.held


def test_lock_is_released_when_the_body_raises(engine) -> None:
    lock = ProcessLock(engine, holder="host-a:1")

    with pytest.raises(RuntimeError, match="boom"):
        with lock:
            raise RuntimeError("boom")

    assert not lock.held
    assert _lock_rows(engine) == []


def test_locks_with_different_names_do_not_conflict(engine) -> None:
    with ProcessLock(engine, name="cdn-update", holder="a"):
        with ProcessLock(engine, name="other-job", holder="b") as other:
            assert other.held


def test_stale_lock_is_reclaimed(engine) -> None:
    with Session(engine) as session:
        session.add(
            ProcessLockRow(
                name="cdn-update",
                holder="dead-host:99",
                acquired_at=to_db_datetime(utc_now() - timedelta(hours=7)),
            ),
        )
        session.commit()

    with ProcessLock(engine, holder="host-a:1", stale_after=timedelta(hours=6)) as lock:
        rows = _lock_rows(engine)
        assert [row.holder for row in rows] == ["host-a:1"]
        assert lock.held


def test_stale_reclaim_can_be_disabled(engine) -> None:
    with Session(engine) as session:
        session.add(
            ProcessLockRow(
                name="cdn-update",
                holder="dead-host:99",
                acquired_at=to_db_datetime(utc_now() - timedelta(days=30)),
            ),
        )
        session.commit()

    with pytest.raises(LockContention):
        ProcessLock(engine, holder="host-a:1", stale_after=None).acquire()


def test_release_without_acquire_is_a_noop(engine) -> None:
    lock = ProcessLock(engine, holder="host-a:1")
    lock.release()
    assert not lock.held


def test_rejects_non_positive_stale_after(engine) -> None:
    with pytest.raises(ValueError, match="stale_after"):
        ProcessLock(engine, stale_after=timedelta(0))


def test_heartbeating_lock_is_not_reclaimed_even_when_old(engine) -> None:
    first = ProcessLock(engine, holder="host-a:1", stale_after=timedelta(hours=6))
    first.acquire()
    long_ago = to_db_datetime(utc_now() - timedelta(hours=7))
    with Session(engine) as session:
        session.exec(
            sa_update(ProcessLockRow).values(acquired_at=long_ago, heartbeat_at=long_ago),
        )
        session.commit()

    first.heartbeat()

    second = ProcessLock(engine, holder="host-b:2", stale_after=timedelta(hours=6))
    with pytest.raises(LockContention):
        second.acquire()
    assert first.held
    assert [row.holder for row in _lock_rows(engine)] == ["host-a:1"]
    first.release()


def test_lock_with_stale_heartbeat_is_reclaimed(engine) -> None:
    first = ProcessLock(engine, holder="host-a:1", stale_after=timedelta(hours=6))
    first.acquire()
    with Session(engine) as session:
        session.exec(
            sa_update(ProcessLockRow).values(
                heartbeat_at=to_db_datetime(utc_now() - timedelta(hours=7)),
            ),
        )
        session.commit()

    with ProcessLock(engine, holder="host-b:2", stale_after=timedelta(hours=6)) as second:
        assert second.held
        with pytest.raises(LockLost):
            first.heartbeat()
    assert not first.held


def test_heartbeat_requires_a_held_lock(engine) -> None:
    with pytest.raises(RuntimeError, match="not held"):
        ProcessLock(engine, holder="host-a:1").heartbeat()
