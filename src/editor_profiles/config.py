"""Synchronizer configuration.

Where the pointer document, the default settings document and the build
list live is passed explicitly to the synchronizer. ``SyncConfig.for_kind``
provides the defaults:

- pointer document: ``.editor_profiles/<kind>.config.json``
- default settings document: ``Settings/EditorProfiles.<Kind>.Settings.json``
- build list: ``ProjectSettings/build_settings.yaml``

All paths are relative to ``project_root`` unless absolute.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


DEFAULT_POINTER_DIR = ".editor_profiles"
DEFAULT_SETTINGS_DIR = "Settings"
DEFAULT_BUILD_SETTINGS_PATH = "ProjectSettings/build_settings.yaml"


class SyncConfig(BaseModel):
    """Configuration for one profile kind in one project."""

    kind: str = Field(default="import", description="Profile kind name")
    project_root: Path = Field(default=Path("."), description="Root of the editor project")
    pointer_path: Path = Field(
        default=Path(DEFAULT_POINTER_DIR) / "import.config.json",
        description="Pointer document holding the settings document id"
    )
    default_settings_path: Path = Field(
        default=Path(DEFAULT_SETTINGS_DIR) / "EditorProfiles.Import.Settings.json",
        description="Where a fresh settings document is created"
    )
    build_settings_path: Path = Field(
        default=Path(DEFAULT_BUILD_SETTINGS_PATH),
        description="Build list backing the default scene profile"
    )
    fetch_timeout: float = Field(default=30.0, gt=0, description="Remote fetch timeout in seconds")

    @classmethod
    def for_kind(cls, kind: str, project_root: Path | str = ".", **overrides: Any) -> "SyncConfig":
        """Build the default configuration for a kind."""
        values: dict[str, Any] = {
            "kind": kind,
            "project_root": Path(project_root),
            "pointer_path": Path(DEFAULT_POINTER_DIR) / f"{kind}.config.json",
            "default_settings_path": (
                Path(DEFAULT_SETTINGS_DIR) / f"EditorProfiles.{kind.capitalize()}.Settings.json"
            ),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def resolve(self, path: Path | str) -> Path:
        """Make a configured path absolute against the project root."""
        path = Path(path)
        if path.is_absolute():
            return path
        return Path(self.project_root) / path

    @property
    def pointer_file(self) -> Path:
        return self.resolve(self.pointer_path)

    @property
    def default_settings_file(self) -> Path:
        return self.resolve(self.default_settings_path)

    @property
    def build_settings_file(self) -> Path:
        return self.resolve(self.build_settings_path)


def load_sync_config(
    path: Path | str,
    kind: str | None = None,
    project_root: Path | str | None = None,
) -> SyncConfig:
    """Load a configuration from a YAML file.

    The file may hold one mapping, or a mapping of kind name to mapping.
    Values missing from the file fall back to ``SyncConfig.for_kind``.

    Args:
        path: Path to the YAML file
        kind: Kind to load (defaults to the file's ``kind`` or ``import``)
        project_root: Overrides the file's ``project_root``

    Returns:
        Loaded SyncConfig instance
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    if kind and isinstance(data.get(kind), dict):
        data = data[kind]
    kind = kind or data.get("kind", "import")

    root = project_root if project_root is not None else data.get("project_root", path.parent)
    overrides = {k: v for k, v in data.items() if k not in ("kind", "project_root")}
    return SyncConfig.for_kind(kind, root, **overrides)
