"""Profile Kind Registry for looking up the available profile kinds."""

from typing import Any, Type

from editor_profiles.profiles.kinds import ProfileKind


class ProfileKindRegistry:
    """Registry for profile kinds.

    Manages the available kinds and provides a factory method for
    creating kind instances.
    """

    def __init__(self):
        self._kinds: dict[str, Type[ProfileKind]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register the default kinds."""
        from editor_profiles.profiles.kinds import ImportProfileKind, SceneProfileKind

        self.register(ImportProfileKind)
        self.register(SceneProfileKind)

    def register(self, kind_class: Type[ProfileKind]) -> None:
        """Register a kind under its name."""
        self._kinds[kind_class.name] = kind_class

    def get(self, name: str) -> Type[ProfileKind] | None:
        return self._kinds.get(name)

    def create(self, name: str, **kwargs: Any) -> ProfileKind | None:
        """Create a kind instance.

        Args:
            name: Registered kind name
            **kwargs: Arguments for the kind's constructor

        Returns:
            A kind instance or None if the name is unknown
        """
        kind_class = self.get(name)
        if kind_class is None:
            return None
        return kind_class(**kwargs)

    def list_names(self) -> list[str]:
        return list(self._kinds.keys())

    def unregister(self, name: str) -> bool:
        if name in self._kinds:
            del self._kinds[name]
            return True
        return False

    def __contains__(self, name: str) -> bool:
        return name in self._kinds


_global_registry: ProfileKindRegistry | None = None


def get_global_kind_registry() -> ProfileKindRegistry:
    """Get the global profile kind registry singleton."""
    global _global_registry
    if _global_registry is None:
        _global_registry = ProfileKindRegistry()
    return _global_registry
