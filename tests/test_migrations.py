from pathlib import Path

import allure
from sqlalchemy import text

from cdn_sync.storage.alembic_runner import upgrade_head
from cdn_sync.storage.common import build_sqlite_engine

pytestmark = [
    allure.epic("CDN Sync"),
    allure.feature("Schema"),
]


def test_alembic_schema_is_initialized_to_head(tmp_path: Path) -> None:
    db_path = tmp_path / "migrations.db"
    upgrade_head(db_path)
    engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=5000)

    with engine.connect() as connection:
        version = connection.execute(
            text("SELECT version_num FROM alembic_version LIMIT 1")
        ).scalar_one()
        tables = connection.execute(
            text(
                """
                SELECT name
                FROM sqlite_master
                WHERE type = 'table'
                  AND name IN ('images', 'image_dimensions', 'image_dimension_bindings',
                               'image_cdn_queue', 'process_locks')
                ORDER BY name
                """
            )
        ).scalars()
        table_names = list(tables)
    engine.dispose()

    assert version == "20261019_0003"
    assert table_names == [
        "image_cdn_queue",
        "image_dimension_bindings",
        "image_dimensions",
        "images",
        "process_locks",
    ]


def test_upgrade_head_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "twice.db"
    upgrade_head(db_path)
    upgrade_head(db_path)

    engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=5000)
    with engine.connect() as connection:
        rows = connection.execute(text("SELECT version_num FROM alembic_version")).all()
    engine.dispose()

    assert [row[0] for row in rows] == ["20261019_0003"]
