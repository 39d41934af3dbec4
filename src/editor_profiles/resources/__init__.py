"""Resources module - resolving references to live resources."""

from editor_profiles.resources.assets import AssetDatabase
from editor_profiles.resources.resolver import ResourceResolver, SheetResolver, AssetResolver

__all__ = [
    "AssetDatabase",
    "ResourceResolver",
    "SheetResolver",
    "AssetResolver",
]
