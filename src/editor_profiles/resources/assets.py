"""File-system asset database.

Every asset under the project root owns a sidecar ``<file>.meta`` YAML
document holding its identifier (``guid``). The identifier survives
renames and moves as long as the sidecar travels with the asset, which is
what lets profiles reference assets by identifier instead of by path.
"""

from contextlib import contextmanager
from pathlib import Path
import logging
import uuid

import yaml


logger = logging.getLogger(__name__)

META_SUFFIX = ".meta"


def meta_path_for(path: Path) -> Path:
    return path.with_name(path.name + META_SUFFIX)


class AssetDatabase:
    """Maps asset identifiers to files below a project root."""

    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()
        self._paths: dict[str, Path] | None = None
        self._scan_once = False
        self._scanned = False

    def refresh(self) -> None:
        """Rescan the project for sidecar files."""
        paths: dict[str, Path] = {}
        for meta in sorted(self.root.rglob(f"*{META_SUFFIX}")):
            asset_id = self._read_meta(meta)
            if not asset_id:
                continue
            asset = meta.with_name(meta.name[: -len(META_SUFFIX)])
            if asset_id in paths:
                logger.warning(
                    "Asset id %s is claimed by both %s and %s",
                    asset_id, self.relative(paths[asset_id]), self.relative(asset),
                )
                continue
            paths[asset_id] = asset
        self._paths = paths
        self._scanned = True
        logger.debug("Indexed %d assets under %s", len(paths), self.root)

    def path_for_id(self, asset_id: str | None) -> Path | None:
        """Get the path of an existing asset.

        Args:
            asset_id: Asset identifier

        Returns:
            Absolute path of the asset, or None if no existing asset has it
        """
        if not asset_id:
            return None

        if self._paths is None:
            self.refresh()
        path = self._paths.get(asset_id)
        if (path is None or not path.exists()) and not (self._scan_once and self._scanned):
            # The asset may have been created, moved or renamed since the last scan.
            self.refresh()
            path = self._paths.get(asset_id)

        if path is None or not path.exists():
            return None
        return path

    @contextmanager
    def scanning_once(self):
        """Rescan at most once for the lookups made inside the block.

        Outside such a block every miss rescans the project.
        """
        if self._scan_once:
            yield self
            return
        self._scan_once, self._scanned = True, False
        try:
            yield self
        finally:
            self._scan_once = False

    def id_for_path(self, path: Path | str, create: bool = True) -> str | None:
        """Get the identifier of the asset at a path.

        Args:
            path: Absolute or project-relative path of the asset
            create: Write a new sidecar if the asset has none

        Returns:
            The identifier, or None if the asset does not exist or has none
        """
        path = self.absolute(path)
        if not path.exists():
            return None

        meta = meta_path_for(path)
        asset_id = self._read_meta(meta) if meta.exists() else None
        if asset_id is None and create:
            asset_id = uuid.uuid4().hex
            meta.write_text(yaml.dump({"guid": asset_id}, default_flow_style=False), encoding="utf-8")
            logger.debug("Created asset id %s for %s", asset_id, self.relative(path))

        if asset_id is not None and self._paths is not None:
            self._paths[asset_id] = path
        return asset_id

    def absolute(self, path: Path | str) -> Path:
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        return path

    def relative(self, path: Path | str) -> str:
        """Project-relative POSIX path, or the path itself outside the project."""
        path = self.absolute(path)
        try:
            return path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def _read_meta(self, meta: Path) -> str | None:
        try:
            data = yaml.safe_load(meta.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.warning("Unreadable asset sidecar %s: %s", meta, e)
            return None
        if not isinstance(data, dict) or not data.get("guid"):
            return None
        return str(data["guid"])
