"""SQLModel ORM tables for the catalog, CDN queue, and process locks."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, text
from sqlmodel import Field, SQLModel


class Image(SQLModel, table=True):
    __tablename__ = "images"  # type: ignore[bad-override]

    id: int | None = Field(default=None, primary_key=True)
    image_set: str = Field(index=True)
    filename: str | None = None
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class ImageDimension(SQLModel, table=True):
    __tablename__ = "image_dimensions"  # type: ignore[bad-override]
    __table_args__ = (
        UniqueConstraint(
            "image_set",
            "shortname",
            name="uq_image_dimensions_set_shortname",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    image_set: str = Field(index=True)
    shortname: str
    mime_type: str = "image/jpeg"


class ImageDimensionBinding(SQLModel, table=True):
    __tablename__ = "image_dimension_bindings"  # type: ignore[bad-override]

    image_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("images.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    dimension_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("image_dimensions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    mime_type: str | None = None
    on_cdn: bool = Field(default=False, sa_column_kwargs={"server_default": text("0")})


class ImageCdnTask(SQLModel, table=True):
    __tablename__ = "image_cdn_queue"  # type: ignore[bad-override]

    id: int | None = Field(default=None, primary_key=True)
    operation: str
    image_id: int | None = Field(
        default=None,
        sa_column=Column(
            Integer,
            ForeignKey("images.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
    )
    dimension_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("image_dimensions.id", ondelete="RESTRICT"),
            nullable=False,
        ),
    )
    image_path: str | None = None
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class ProcessLockRow(SQLModel, table=True):
    __tablename__ = "process_locks"  # type: ignore[bad-override]

    name: str = Field(primary_key=True)
    holder: str
    acquired_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    heartbeat_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
