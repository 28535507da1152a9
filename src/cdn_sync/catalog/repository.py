"""Catalog persistence: images, dimensions, and per-rendition CDN flags."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from cdn_sync.queue.models import Asset, Variant
from cdn_sync.storage.common import to_db_datetime, utc_now
from cdn_sync.storage.sqlmodel_models import Image, ImageDimension, ImageDimensionBinding


class CatalogRepository:
    """Read access to catalog entities plus the on-CDN flag write path."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def add_image(self, *, image_set: str, filename: str | None = None) -> Asset:
        with Session(self.engine) as session:
            row = Image(
                image_set=image_set,
                filename=filename,
                created_at=to_db_datetime(utc_now()),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_asset(row)

    def add_dimension(
        self,
        *,
        image_set: str,
        shortname: str,
        mime_type: str = "image/jpeg",
    ) -> Variant:
        with Session(self.engine) as session:
            row = ImageDimension(
                image_set=image_set,
                shortname=str(shortname).strip(),
                mime_type=mime_type,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_variant(row)

    def bind(self, *, image_id: int, dimension_id: int, mime_type: str | None = None) -> None:
        """Register that an image has a rendition for the dimension."""

        with Session(self.engine) as session:
            row = session.exec(
                select(ImageDimensionBinding).where(
                    ImageDimensionBinding.image_id == image_id,
                    ImageDimensionBinding.dimension_id == dimension_id,
                ),
            ).one_or_none()
            if row is None:
                row = ImageDimensionBinding(image_id=image_id, dimension_id=dimension_id)
            row.mime_type = mime_type
            session.add(row)
            session.commit()

    def get_asset(self, image_id: int) -> Asset | None:
        with Session(self.engine) as session:
            return load_assets(session, [image_id]).get(image_id)

    def set_cdn_presence(self, asset: Asset, variant: Variant, present: bool) -> None:
        """Persist the on-CDN flag for one rendition and mirror it on the asset."""

        with Session(self.engine) as session:
            row = session.exec(
                select(ImageDimensionBinding).where(
                    ImageDimensionBinding.image_id == asset.id,
                    ImageDimensionBinding.dimension_id == variant.id,
                ),
            ).one_or_none()
            if row is None:
                row = ImageDimensionBinding(image_id=asset.id, dimension_id=variant.id)
            row.on_cdn = present
            session.add(row)
            session.commit()
        asset.on_cdn[variant.shortname] = present


def load_assets(session: Session, image_ids: Iterable[int]) -> dict[int, Asset]:
    """Bulk-load images with their bindings in one statement, keyed by id."""

    ids = sorted(set(image_ids))
    if not ids:
        return {}

    rows = session.exec(
        select(Image, ImageDimensionBinding, ImageDimension)
        .join(
            ImageDimensionBinding,
            col(ImageDimensionBinding.image_id) == col(Image.id),
            isouter=True,
        )
        .join(
            ImageDimension,
            col(ImageDimension.id) == col(ImageDimensionBinding.dimension_id),
            isouter=True,
        )
        .where(col(Image.id).in_(ids)),
    ).all()

    assets: dict[int, Asset] = {}
    for image, binding, dimension in rows:
        asset = assets.get(image.id)
        if asset is None:
            asset = _to_asset(image)
            assets[asset.id] = asset
        if binding is None or dimension is None:
            continue
        asset.on_cdn[dimension.shortname] = bool(binding.on_cdn)
        if binding.mime_type:
            asset.mime_overrides[dimension.shortname] = binding.mime_type
    return assets


def load_variants(session: Session, dimension_ids: Iterable[int]) -> dict[int, Variant]:
    """Bulk-load image dimensions in one statement, keyed by id."""

    ids = sorted(set(dimension_ids))
    if not ids:
        return {}

    rows = session.exec(select(ImageDimension).where(col(ImageDimension.id).in_(ids))).all()
    return {row.id: _to_variant(row) for row in rows if row.id is not None}


def _to_asset(row: Image) -> Asset:
    if row.id is None:
        raise RuntimeError("Image row has no id; was it flushed?")
    return Asset(
        id=row.id,
        image_set=row.image_set,
        filename=row.filename or str(row.id),
    )


def _to_variant(row: ImageDimension) -> Variant:
    if row.id is None:
        raise RuntimeError("Image dimension row has no id; was it flushed?")
    return Variant(
        id=row.id,
        image_set=row.image_set,
        shortname=str(row.shortname),
        mime_type=row.mime_type,
    )
