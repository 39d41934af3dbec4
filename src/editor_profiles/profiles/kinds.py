"""Profile kinds - what the generic sync engine is parameterized over.

A kind names the profile and settings models, the resolver used for its
references, its selection policy and, optionally, an external default
profile that is rebuilt from its source on every load.
"""

from abc import ABC
from typing import Callable

from editor_profiles.profiles.base import (
    DEFAULT_PROFILE_NAME,
    BuildSettings,
    ImportProfile,
    ImportSettings,
    Profile,
    ProfileSettings,
    SceneProfile,
    SceneSettings,
)
from editor_profiles.resources.resolver import ResourceResolver, SheetResolver


# Selection value addressing the externally sourced default profile.
DEFAULT_SOURCE_SELECTION = -1

BUILD_SETTINGS_PROFILE_NAME = "Build Settings"
SCENE_SUFFIX = ".unity"

BuildSettingsSource = BuildSettings | Callable[[], BuildSettings | None] | None


class ProfileKind(ABC):
    """Base class for profile kinds."""

    name: str
    profile_model: type[Profile]
    settings_model: type[ProfileSettings]

    default_selection: int = 0
    selection_floor: int = 0
    unique_references: bool = False

    def __init__(self, resolver: ResourceResolver):
        self.resolver = resolver

    @property
    def has_default_source(self) -> bool:
        return False

    def new_profile(self, profile_id: str) -> Profile:
        """Create a placeholder profile with default values."""
        return self.profile_model(profile_id=profile_id, name=DEFAULT_PROFILE_NAME)

    def empty_settings(self) -> ProfileSettings:
        return self.settings_model(profiles=[])

    def load_default_profile(self) -> Profile | None:
        """Build the externally sourced default profile, if the kind has one."""
        return None


class ImportProfileKind(ProfileKind):
    """Spreadsheet import profiles."""

    name = "import"
    profile_model = ImportProfile
    settings_model = ImportSettings

    def __init__(self, resolver: ResourceResolver | None = None):
        super().__init__(resolver or SheetResolver())


class SceneProfileKind(ProfileKind):
    """Scene list profiles, with the build settings as default profile."""

    name = "scene"
    profile_model = SceneProfile
    settings_model = SceneSettings

    default_selection = DEFAULT_SOURCE_SELECTION
    selection_floor = DEFAULT_SOURCE_SELECTION
    unique_references = True

    def __init__(
        self,
        resolver: ResourceResolver,
        build_settings: BuildSettingsSource = None,
    ):
        """Initialize the kind.

        Args:
            resolver: Resolver for scene asset identifiers
            build_settings: Build list, or a callable returning the current one
        """
        super().__init__(resolver)
        self._build_settings = build_settings

    @property
    def has_default_source(self) -> bool:
        return True

    def current_build_settings(self) -> BuildSettings:
        source = self._build_settings
        if callable(source):
            source = source()
        return source if source is not None else BuildSettings()

    def load_default_profile(self) -> Profile:
        """Rebuild the build settings profile from the build list."""
        return SceneProfile(
            profile_id="",
            name=BUILD_SETTINGS_PROFILE_NAME,
            references=self.resolver.resolve_all(self.current_build_settings()),
        )
