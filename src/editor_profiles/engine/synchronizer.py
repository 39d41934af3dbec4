"""Synchronizer - moves profiles between the settings document and a runtime index.

Loading reads the settings document, repairs it and builds a fresh
:class:`RuntimeIndex`. Saving validates the index, re-reads the settings
document from disk (so fields this session does not own survive), projects
the index onto it, validates again and writes the whole document.

The settings document is located through a small pointer document holding
its asset id. A missing pointer, an unresolvable id or an unreadable
settings document are repaired by creating an empty settings document at
the configured default path and pointing the pointer at it, so the first
run always succeeds with no profiles.
"""

from dataclasses import dataclass
from pathlib import Path
import logging

from editor_profiles.config import SyncConfig
from editor_profiles.engine.identifiers import is_valid_unique_id
from editor_profiles.engine.runtime_index import RuntimeIndex
from editor_profiles.engine.validation_engine import ValidationEngine, ValidationResult
from editor_profiles.profiles.base import ProfileSettings, SettingsPointer
from editor_profiles.profiles.kinds import ProfileKind
from editor_profiles.profiles.loader import DocumentStore, get_document_store
from editor_profiles.resources.assets import AssetDatabase


logger = logging.getLogger(__name__)


@dataclass
class LoadedSettings:
    """A settings document together with where it was read from."""

    settings: ProfileSettings
    path: Path
    created: bool = False


class Synchronizer:
    """Translates between the settings document and a runtime index."""

    def __init__(
        self,
        kind: ProfileKind,
        config: SyncConfig,
        assets: AssetDatabase | None = None,
        documents: DocumentStore | None = None,
        validator: ValidationEngine | None = None,
    ):
        self.kind = kind
        self.config = config
        self.assets = assets or AssetDatabase(config.project_root)
        self.documents = documents or get_document_store()
        self.validator = validator or ValidationEngine(kind)
        self.last_validation: ValidationResult | None = None

    # -- documents -----------------------------------------------------------

    def import_config(self) -> SettingsPointer:
        """Read the pointer document, creating an empty one if missing."""
        pointer = self.documents.read(self.config.pointer_file, SettingsPointer)
        if pointer is None:
            pointer = SettingsPointer(settings_id="")
            self.documents.write(pointer, self.config.pointer_file)
            logger.info("Created settings pointer at %s", self.config.pointer_file)
        return pointer

    def settings_path(self) -> Path | None:
        """Current location of the settings document, if the pointer resolves."""
        pointer = self.import_config()
        return self.assets.path_for_id(pointer.settings_id)

    def import_settings(self) -> LoadedSettings:
        """Read the settings document through the pointer.

        A missing or unreadable document is replaced by an empty one at the
        default path and the pointer is updated to match.
        """
        pointer = self.import_config()
        path = self.assets.path_for_id(pointer.settings_id)
        settings = self.documents.read(path, self.kind.settings_model) if path else None
        if settings is not None:
            return LoadedSettings(settings=settings, path=path)

        if path is not None:
            logger.warning("Settings document %s is unreadable; recreating it empty", path)
        settings = self.kind.empty_settings()
        path = self.config.default_settings_file
        self.documents.write(settings, path)

        pointer.settings_id = self.assets.id_for_path(path) or ""
        self.documents.write(pointer, self.config.pointer_file)
        logger.info("Created empty %s settings at %s", self.kind.name, path)
        return LoadedSettings(settings=settings, path=path, created=True)

    def export_settings(self, settings: ProfileSettings) -> bool:
        """Write the settings document to where the pointer points."""
        path = self.settings_path()
        if path is None:
            logger.error("Failed to export %s settings: pointer does not resolve", self.kind.name)
            return False

        exported = self.documents.write(settings, path)
        if not exported:
            logger.error("Failed to export %s settings to %s", self.kind.name, path)
        return exported

    # -- load / save ---------------------------------------------------------

    def load(self, index: RuntimeIndex | None = None) -> RuntimeIndex:
        """Build a runtime index from the settings document.

        Args:
            index: Existing index to load into; profiles already present
                in it are kept as they are

        Returns:
            The loaded index
        """
        settings = self.import_settings().settings
        result = self.validator.validate_settings(settings)

        if index is None:
            index = RuntimeIndex(self.kind)
        index.selection = self.kind.default_selection

        for profile in settings.profiles:
            index.ordered_ids.append(profile.profile_id)

        for profile in settings.profiles:
            if not is_valid_unique_id(profile.profile_id) or profile.profile_id in index.profiles:
                continue
            index.profiles[profile.profile_id] = profile.model_copy(deep=True)

        if self.kind.has_default_source:
            index.default_profile = self.kind.load_default_profile()

        self.last_validation = result.merge(self.validator.validate_index(index))
        logger.debug(
            "Loaded %d %s profiles (%d repairs)",
            len(index), self.kind.name, len(self.last_validation.issues),
        )
        return index

    def project(self, index: RuntimeIndex, settings: ProfileSettings) -> ProfileSettings:
        """Rebuild the settings' profiles from the index, in index order."""
        profiles = []
        for profile_id in index.ordered_ids:
            profile = index.profiles.get(profile_id)
            if profile is not None:
                profiles.append(profile.model_copy(deep=True))
            else:
                profiles.append(self.kind.new_profile(profile_id))
        settings.profiles = profiles
        return settings

    def save(self, index: RuntimeIndex) -> bool:
        """Validate the index and write it over a fresh read of the settings.

        Returns:
            True if the settings document was written
        """
        result = self.validator.validate_index(index)

        settings = self.import_settings().settings
        self.project(index, settings)
        result = result.merge(self.validator.validate_settings(settings))
        self.last_validation = result

        saved = self.export_settings(settings)
        if saved:
            logger.debug("Saved %d %s profiles", len(settings.profiles), self.kind.name)
        return saved
