"""Data model for persisted profiles.

Profiles are named, identifier-keyed configuration entries that own an
ordered list of resource references. The documents they live in are
shared with the editor, so field aliases follow the on-disk names.
"""

from enum import IntEnum
from typing import Any, ClassVar
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


logger = logging.getLogger(__name__)


DEFAULT_PROFILE_NAME = "New Profile"

PROTECTED_FIELDS = frozenset({"profile_id", "references"})


class ImportMode(IntEnum):
    """How an import profile pulls data from its spreadsheet."""

    NONE = 0
    IMPORT_MAIN = 1
    IMPORT_BATCH = 2

    @classmethod
    def parse(cls, value: Any) -> "ImportMode":
        """Accept enum members, integers and the editor's mode names."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().replace("_", "").replace("-", "").lower()
            if key.isdigit():
                return cls(int(key))
            if key in _MODE_NAMES:
                return _MODE_NAMES[key]
            raise ValueError(f"Unknown import mode: {value!r}")
        return cls(value)


_MODE_NAMES = {
    "none": ImportMode.NONE,
    "importmain": ImportMode.IMPORT_MAIN,
    "main": ImportMode.IMPORT_MAIN,
    "importbatch": ImportMode.IMPORT_BATCH,
    "batch": ImportMode.IMPORT_BATCH,
}


def _as_text(value: Any) -> Any:
    """Blank for None, text for plain scalars, anything else unchanged."""
    if value is None:
        return ""
    if isinstance(value, (bool, int, float)):
        return str(value)
    return value


def _as_text_list(value: Any) -> Any:
    """Drop null entries from a list and turn scalar entries into text."""
    if value is None:
        return []
    if isinstance(value, list):
        return [_as_text(item) for item in value if item is not None]
    return value


class ResourceDescriptor(BaseModel):
    """Resolved, read-only projection of a resource reference."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name of the resource")
    path: str = Field(default="", description="Location of the resource")


class Profile(BaseModel):
    """A persisted profile.

    Only ``profile_id`` is a key; names may collide between profiles.
    Fields this model does not know about are kept as extras so that a
    load/save cycle never drops them.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )

    profile_id: str = Field(
        default="",
        alias="profileGUID",
        description="Unique identifier of the profile"
    )
    name: str = Field(
        default=DEFAULT_PROFILE_NAME,
        alias="profileName",
        description="Display name"
    )
    references: list[str] = Field(
        default_factory=list,
        description="Ordered resource references"
    )

    @field_validator("profile_id", "name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("references", mode="before")
    @classmethod
    def _coerce_references(cls, value: Any) -> Any:
        return _as_text_list(value)

    @classmethod
    def editable_fields(cls) -> list[str]:
        """Fields that may be edited through a field-level command."""
        return [name for name in cls.model_fields if name not in PROTECTED_FIELDS]

    def add_reference(self, reference: str) -> bool:
        """Append a reference unless it is already present."""
        if reference in self.references:
            return False
        self.references = [*self.references, reference]
        return True

    def remove_reference_at(self, index: int) -> str:
        """Remove a reference by position.

        Raises:
            IndexError: If the index is outside the reference list
        """
        if not 0 <= index < len(self.references):
            raise IndexError(
                f"Reference index {index} out of range for profile "
                f"'{self.profile_id}' with {len(self.references)} references"
            )
        references = list(self.references)
        removed = references.pop(index)
        self.references = references
        return removed

    def to_document(self) -> dict[str, Any]:
        """Serialize using the on-disk field names."""
        return self.model_dump(mode="json", by_alias=True)


class ImportProfile(Profile):
    """Spreadsheet import target."""

    references: list[str] = Field(
        default_factory=list,
        alias="sheets",
        description="Sheet names imported in batch mode"
    )
    google_sheets_id: str = Field(
        default="",
        alias="googleSheetsID",
        description="Identifier of the remote spreadsheet document"
    )
    asset_path: str = Field(
        default="",
        alias="assetPath",
        description="Directory the downloaded sheets are written to"
    )
    asset_prefix: str = Field(
        default="",
        alias="assetPrefix",
        description="Prefix prepended to every written artifact"
    )
    import_mode: ImportMode = Field(
        default=ImportMode.NONE,
        alias="importMode",
        description="Single-sheet or batch import"
    )

    @field_validator("google_sheets_id", "asset_path", "asset_prefix", mode="before")
    @classmethod
    def _coerce_blank(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("import_mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> ImportMode:
        if value is None:
            return ImportMode.NONE
        return ImportMode.parse(value)


class SceneProfile(Profile):
    """Named list of scene assets."""

    references: list[str] = Field(
        default_factory=list,
        alias="sceneGUIDs",
        description="Asset identifiers of the scenes in this profile"
    )


class ProfileSettings(BaseModel):
    """The persisted settings document holding every profile."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    profile_model: ClassVar[type[Profile]] = Profile

    profiles: list[Profile] = Field(default_factory=list, description="Profiles in display order")

    @field_validator("profiles", mode="before")
    @classmethod
    def _repair_profiles(cls, value: Any) -> Any:
        """Validate profile entries one at a time."""
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning("Settings 'profiles' is a %s, not a list; reading it as empty", type(value).__name__)
            return []
        return [cls._repair_entry(entry, position) for position, entry in enumerate(value)]

    @classmethod
    def _repair_entry(cls, entry: Any, position: int) -> Any:
        """Validate one profile entry, resetting the fields that fail.

        Invalid fields fall back to their defaults. An entry that still
        fails, or is not a mapping, becomes a placeholder that keeps the
        entry's identifier when it has one.
        """
        model = cls.profile_model
        if isinstance(entry, BaseModel):
            return entry
        if not isinstance(entry, dict):
            logger.warning("Profile entry %d is not a mapping; replaced with a placeholder", position)
            return model()

        try:
            return model.model_validate(entry)
        except ValidationError as e:
            invalid = {err["loc"][0] for err in e.errors() if err["loc"]}

        logger.warning(
            "Profile entry %d has invalid fields %s; resetting them to defaults",
            position, ", ".join(sorted(str(name) for name in invalid)),
        )
        try:
            return model.model_validate({k: v for k, v in entry.items() if k not in invalid})
        except ValidationError:
            profile_id = _as_text(entry.get("profileGUID", entry.get("profile_id")))
            logger.warning("Profile entry %d could not be repaired; replaced with a placeholder", position)
            return model(profile_id=profile_id if isinstance(profile_id, str) else "")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ImportSettings(ProfileSettings):
    profile_model: ClassVar[type[Profile]] = ImportProfile

    profiles: list[ImportProfile] = Field(default_factory=list)


class SceneSettings(ProfileSettings):
    profile_model: ClassVar[type[Profile]] = SceneProfile

    profiles: list[SceneProfile] = Field(default_factory=list)


class SettingsPointer(BaseModel):
    """Small config document pointing at the settings document."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    settings_id: str = Field(
        default="",
        alias="settingsGUID",
        description="Asset identifier of the settings document"
    )

    @field_validator("settings_id", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class BuildScene(BaseModel):
    """One entry of the build configuration scene list."""

    path: str = Field(..., description="Project-relative path of the scene file")
    enabled: bool = Field(default=True, description="Whether the scene is part of the build")


class BuildSettings(BaseModel):
    """Build configuration list that backs the default scene profile."""

    model_config = ConfigDict(extra="allow")

    scenes: list[BuildScene] = Field(default_factory=list)

    @field_validator("scenes", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value
