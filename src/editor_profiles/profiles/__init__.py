"""Profiles module - the persisted data model.

Profiles are named, identifier-keyed entries owning an ordered list of
resource references. This module holds:
- The profile and settings document models
- Document persistence
- Profile kinds and their registry
"""

from editor_profiles.profiles.base import (
    Profile,
    ImportProfile,
    SceneProfile,
    ImportMode,
    ProfileSettings,
    ImportSettings,
    SceneSettings,
    SettingsPointer,
    ResourceDescriptor,
    BuildSettings,
    BuildScene,
)
from editor_profiles.profiles.loader import DocumentStore
from editor_profiles.profiles.kinds import ProfileKind, ImportProfileKind, SceneProfileKind
from editor_profiles.profiles.registry import ProfileKindRegistry

__all__ = [
    "Profile",
    "ImportProfile",
    "SceneProfile",
    "ImportMode",
    "ProfileSettings",
    "ImportSettings",
    "SceneSettings",
    "SettingsPointer",
    "ResourceDescriptor",
    "BuildSettings",
    "BuildScene",
    "DocumentStore",
    "ProfileKind",
    "ImportProfileKind",
    "SceneProfileKind",
    "ProfileKindRegistry",
]
