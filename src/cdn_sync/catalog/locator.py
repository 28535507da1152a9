"""Resolve image renditions to local files and remote object keys."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cdn_sync.catalog.repository import CatalogRepository
from cdn_sync.errors import LocalFileMissing
from cdn_sync.queue.models import Asset, Variant

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}


@dataclass(slots=True, frozen=True)
class ResolvedPaths:
    """Where a rendition lives locally and where it goes remotely."""

    local_path: Path
    remote_suffix: str
    mime_type: str


class AssetLocator(Protocol):
    """Interface used by the reconciler to locate renditions and record CDN state."""

    def resolve_paths(self, asset: Asset, variant: Variant, source_dir: Path) -> ResolvedPaths:
        """Return local path, remote suffix, and MIME type; raise LocalFileMissing if absent."""
        raise NotImplementedError

    def set_cdn_presence(self, asset: Asset, variant: Variant, present: bool) -> None:
        """Persist whether the rendition is currently on the CDN."""
        raise NotImplementedError


class ImageAssetLocator:
    """Locator for the `<image_set>/<shortname>/<filename>.<ext>` file layout."""

    def __init__(self, catalog: CatalogRepository) -> None:
        self.catalog = catalog

    def resolve_paths(self, asset: Asset, variant: Variant, source_dir: Path) -> ResolvedPaths:
        mime_type = asset.mime_type_for(variant)
        remote_suffix = rendition_key(asset=asset, variant=variant, mime_type=mime_type)
        local_path = source_dir / remote_suffix
        if not local_path.is_file():
            raise LocalFileMissing(str(local_path))
        return ResolvedPaths(
            local_path=local_path,
            remote_suffix=remote_suffix,
            mime_type=mime_type,
        )

    def set_cdn_presence(self, asset: Asset, variant: Variant, present: bool) -> None:
        self.catalog.set_cdn_presence(asset, variant, present)


def rendition_key(*, asset: Asset, variant: Variant, mime_type: str | None = None) -> str:
    """Relative key shared by the local file layout and the remote object."""

    extension = file_extension(mime_type or asset.mime_type_for(variant))
    return f"{asset.image_set}/{variant.shortname}/{asset.filename}.{extension}"


def file_extension(mime_type: str) -> str:
    normalized = mime_type.split(";", 1)[0].strip().lower()
    extension = MIME_EXTENSIONS.get(normalized)
    if extension is None:
        _, _, subtype = normalized.partition("/")
        extension = subtype or "bin"
    return extension
