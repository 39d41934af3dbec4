"""Resource resolvers - map resource references to live descriptors.

A profile only stores opaque references. Whether the backing resource
still exists is answered here, every time the engine validates.
"""

from abc import ABC, abstractmethod
from contextlib import nullcontext
from typing import Any, ContextManager

from editor_profiles.profiles.base import BuildSettings, ResourceDescriptor
from editor_profiles.resources.assets import AssetDatabase


class ResourceResolver(ABC):
    """Strategy for resolving one kind of resource reference."""

    @abstractmethod
    def resolve(self, reference: str) -> ResourceDescriptor | None:
        """Resolve a reference.

        Args:
            reference: The opaque reference stored in a profile

        Returns:
            The descriptor, or None if the resource does not exist
        """
        pass

    def lookup_pass(self) -> ContextManager:
        """Scope grouping the lookups of one validation pass."""
        return nullcontext()

    def resolve_all(self, source: Any) -> list[str]:
        """List the references an external default source provides.

        Resolvers without a default source provide nothing.
        """
        return []

    def resolve_many(self, references: list[str]) -> dict[str, ResourceDescriptor | None]:
        """Resolve each distinct reference once."""
        resolved: dict[str, ResourceDescriptor | None] = {}
        for reference in references:
            if reference not in resolved:
                resolved[reference] = self.resolve(reference)
        return resolved


class SheetResolver(ResourceResolver):
    """Resolver for spreadsheet tab names.

    Sheet names are only checked remotely at import time, so any non-blank
    name resolves to itself.
    """

    def resolve(self, reference: str) -> ResourceDescriptor | None:
        if not isinstance(reference, str) or not reference.strip():
            return None
        return ResourceDescriptor(name=reference, path=reference)


class AssetResolver(ResourceResolver):
    """Resolver for asset identifiers backed by an :class:`AssetDatabase`."""

    def __init__(self, assets: AssetDatabase, suffix: str | None = None):
        """Initialize the resolver.

        Args:
            assets: Asset database to look identifiers up in
            suffix: Only resolve assets with this file suffix (e.g. ``.unity``)
        """
        self.assets = assets
        self.suffix = suffix.lower() if suffix else None

    def resolve(self, reference: str) -> ResourceDescriptor | None:
        path = self.assets.path_for_id(reference)
        if path is None or not path.is_file():
            return None
        if self.suffix and path.suffix.lower() != self.suffix:
            return None
        return ResourceDescriptor(name=path.stem, path=self.assets.relative(path))

    def lookup_pass(self) -> ContextManager:
        return self.assets.scanning_once()

    def resolve_all(self, source: Any) -> list[str]:
        """Identifiers of the existing scenes of a build list.

        Disabled scenes are listed too. Missing scenes are skipped and
        repeated scenes listed once, in build order.
        """
        if not isinstance(source, BuildSettings):
            return []

        ids: list[str] = []
        for scene in source.scenes:
            asset_id = self.assets.id_for_path(scene.path)
            if asset_id and asset_id not in ids and self.resolve(asset_id) is not None:
                ids.append(asset_id)
        return ids
