"""Add process lock heartbeat for stale-lock recovery."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261019_0003"
down_revision = "20261019_0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "process_locks",
        sa.Column(
            "heartbeat_at",
            sa.DateTime(timezone=True),
            nullable=True,
        ),
    )
    op.execute(
        sa.text(
            """
            UPDATE process_locks
            SET heartbeat_at = COALESCE(heartbeat_at, acquired_at)
            """,
        ),
    )


def downgrade() -> None:
    with op.batch_alter_table("process_locks") as batch_op:
        batch_op.drop_column("heartbeat_at")
