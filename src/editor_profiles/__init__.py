"""
Editor Profiles - GUID-indexed profile synchronization for editor tooling.

Keeps named profiles of resource references consistent between the
settings document on disk, an in-memory runtime index and the live
resources they point at.
"""

__version__ = "0.1.0"

from editor_profiles.profiles.base import Profile, ImportProfile, SceneProfile, ImportMode
from editor_profiles.profiles.kinds import ProfileKind, ImportProfileKind, SceneProfileKind
from editor_profiles.engine.runtime_index import RuntimeIndex
from editor_profiles.engine.synchronizer import Synchronizer
from editor_profiles.engine.validation_engine import ValidationEngine
from editor_profiles.config import SyncConfig

__all__ = [
    "Profile",
    "ImportProfile",
    "SceneProfile",
    "ImportMode",
    "ProfileKind",
    "ImportProfileKind",
    "SceneProfileKind",
    "RuntimeIndex",
    "Synchronizer",
    "ValidationEngine",
    "SyncConfig",
]
