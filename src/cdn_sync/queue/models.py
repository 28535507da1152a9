"""Domain models for CDN queue tasks and the catalog entities they reference."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class CdnOperation(str, Enum):
    """Operation kinds understood by the update pass."""

    COPY = "copy"
    DELETE = "delete"


def parse_operation(raw: str) -> CdnOperation | str:
    """Map a stored operation string to CdnOperation, keeping unknown values verbatim."""

    try:
        return CdnOperation(raw.strip().lower())
    except ValueError:
        return raw


@dataclass(slots=True, frozen=True)
class Variant:
    """Named rendition of an image (an ImageDimension row).

    Instances loaded separately compare equal by value. ``shortname`` is always
    text, even when it looks numeric.
    """

    id: int
    image_set: str
    shortname: str
    mime_type: str = "image/jpeg"


@dataclass(slots=True)
class Asset:
    """Catalog image with per-variant on-CDN state."""

    id: int
    image_set: str
    filename: str
    on_cdn: dict[str, bool] = field(default_factory=dict)
    mime_overrides: dict[str, str] = field(default_factory=dict)

    def is_on_cdn(self, variant: Variant) -> bool:
        return self.on_cdn.get(variant.shortname, False)

    def mime_type_for(self, variant: Variant) -> str:
        return self.mime_overrides.get(variant.shortname, variant.mime_type)


@dataclass(slots=True, frozen=True)
class TaskRecord:
    """One pending queue row with its referenced entities attached."""

    id: int
    operation: CdnOperation | str
    asset_id: int | None
    variant_id: int
    variant: Variant
    asset: Asset | None = None
    remote_path: str = ""
    created_at: datetime | None = None

    @property
    def operation_name(self) -> str:
        if isinstance(self.operation, CdnOperation):
            return self.operation.value
        return self.operation


@dataclass(slots=True)
class TaskCreate:
    """Input payload for enqueuing a CDN task."""

    operation: CdnOperation | str
    dimension_id: int
    image_id: int | None = None
    image_path: str | None = None
