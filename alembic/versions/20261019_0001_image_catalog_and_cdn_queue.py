"""Image catalog tables and the CDN task queue."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "images",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("image_set", sa.String(), nullable=False),
        sa.Column("filename", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_images_image_set", "images", ["image_set"])

    op.create_table(
        "image_dimensions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("image_set", sa.String(), nullable=False),
        sa.Column("shortname", sa.String(), nullable=False),
        sa.Column("mime_type", sa.String(), nullable=False, server_default="image/jpeg"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "image_set",
            "shortname",
            name="uq_image_dimensions_set_shortname",
        ),
    )
    op.create_index("ix_image_dimensions_image_set", "image_dimensions", ["image_set"])

    op.create_table(
        "image_dimension_bindings",
        sa.Column("image_id", sa.Integer(), nullable=False),
        sa.Column("dimension_id", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(), nullable=True),
        sa.Column("on_cdn", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["image_id"], ["images.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["dimension_id"], ["image_dimensions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("image_id", "dimension_id"),
    )

    op.create_table(
        "image_cdn_queue",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("operation", sa.String(), nullable=False),
        sa.Column("image_id", sa.Integer(), nullable=True),
        sa.Column("dimension_id", sa.Integer(), nullable=False),
        sa.Column("image_path", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["image_id"], ["images.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["dimension_id"], ["image_dimensions.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_image_cdn_queue_image_id", "image_cdn_queue", ["image_id"])


def downgrade() -> None:
    op.drop_index("ix_image_cdn_queue_image_id", table_name="image_cdn_queue")
    op.drop_table("image_cdn_queue")
    op.drop_table("image_dimension_bindings")
    op.drop_index("ix_image_dimensions_image_set", table_name="image_dimensions")
    op.drop_table("image_dimensions")
    op.drop_index("ix_images_image_set", table_name="images")
    op.drop_table("images")
