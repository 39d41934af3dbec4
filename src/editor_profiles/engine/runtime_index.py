"""Runtime Index - the session-local working copy of a profile store.

The index keeps profiles keyed by identifier next to an ordered identifier
list that defines display order and selection indexing, plus a cache of
resolved resource descriptors. All mutators are total: an invalid
selection turns them into no-ops. The one exception is removing a
reference by an out-of-range position, which signals that the caller and
the index are out of sync.
"""

from typing import Any
import logging

from editor_profiles.engine.identifiers import new_unique_id
from editor_profiles.profiles.base import Profile, ResourceDescriptor
from editor_profiles.profiles.kinds import ProfileKind


logger = logging.getLogger(__name__)


class RuntimeIndex:
    """In-memory index over the profiles of one editing session."""

    def __init__(self, kind: ProfileKind):
        self.kind = kind
        self.selection: int = kind.default_selection
        self.ordered_ids: list[str] = []
        self.profiles: dict[str, Profile | None] = {}
        self.descriptors: dict[str, ResourceDescriptor | None] = {}
        self.default_profile: Profile | None = None

    def __len__(self) -> int:
        return len(self.ordered_ids)

    # -- selection -----------------------------------------------------------

    def set_selection(self, index: int) -> int:
        """Select a profile by position.

        The value is clamped to ``[selection_floor, len(ordered_ids)]``.
        A selection equal to the profile count is legal and selects nothing.
        """
        self.selection = max(self.kind.selection_floor, min(index, len(self.ordered_ids)))
        return self.selection

    def select_last(self) -> int:
        return self.set_selection(len(self.ordered_ids) - 1)

    def reset_selection(self) -> int:
        return self.set_selection(self.kind.default_selection)

    def is_default_selected(self) -> bool:
        """Whether the selection addresses the external default profile."""
        return self.kind.has_default_source and self.selection < 0

    def has_profiles(self) -> bool:
        return bool(self.ordered_ids)

    def selected_id(self) -> str:
        """Identifier at the current selection, or an empty string."""
        return self._id_at(self.selection)

    # -- reads ---------------------------------------------------------------

    def selected_profile(self) -> Profile | None:
        """Copy of the selected profile.

        Returns the default profile when it is selected, None when nothing
        is selected.
        """
        if self.is_default_selected():
            if self.default_profile is None:
                return None
            return self.default_profile.model_copy(deep=True)
        return self.get_profile(self.selected_id())

    def get_profile(self, profile_id: str) -> Profile | None:
        profile = self.profiles.get(profile_id)
        if profile is None:
            return None
        return profile.model_copy(deep=True)

    def references_at_selection(self) -> list[str]:
        profile = self._selected_or_default()
        return list(profile.references) if profile is not None else []

    def descriptors_at_selection(self) -> list[tuple[str, ResourceDescriptor | None]]:
        """References of the selected profile paired with their descriptors."""
        return [(ref, self.descriptors.get(ref)) for ref in self.references_at_selection()]

    def indexed_profile_names(self) -> list[str]:
        names = []
        for i, profile_id in enumerate(self.ordered_ids):
            profile = self.profiles.get(profile_id)
            name = profile.name if profile is not None else ""
            names.append(f"[{i}] {name}")
        return names

    def used_references(self) -> list[str]:
        """Distinct references of every profile, default profile included."""
        seen: dict[str, None] = {}
        if self.default_profile is not None:
            seen.update(dict.fromkeys(self.default_profile.references))
        for profile_id in self.ordered_ids:
            profile = self.profiles.get(profile_id)
            if profile is not None:
                seen.update(dict.fromkeys(profile.references))
        return list(seen)

    # -- mutators ------------------------------------------------------------

    def add_profile(self) -> str:
        """Append a new default-valued profile without selecting it."""
        profile_id = new_unique_id([*self.ordered_ids, *self.profiles])
        self.ordered_ids.append(profile_id)
        self.profiles[profile_id] = self.kind.new_profile(profile_id)
        logger.debug("Added %s profile %s", self.kind.name, profile_id)
        return profile_id

    def remove_profile_at_selection(self) -> bool:
        profile_id = self.selected_id()
        if not profile_id:
            return False

        self.ordered_ids = [x for x in self.ordered_ids if x != profile_id]
        self.profiles.pop(profile_id, None)
        logger.debug("Removed %s profile %s", self.kind.name, profile_id)
        return True

    def rename_selected_profile(self, name: str) -> bool:
        profile = self._selected()
        if profile is None:
            return False
        profile.name = name
        return True

    def set_field_at_selection(self, field: str, value: Any) -> bool:
        """Set a kind-specific field on the selected profile.

        Identity and reference fields are not editable here.

        Raises:
            pydantic.ValidationError: If the value does not fit the field
        """
        profile = self._selected()
        if profile is None:
            return False
        if field not in profile.editable_fields():
            logger.warning("Field '%s' is not editable on %s profiles", field, self.kind.name)
            return False
        setattr(profile, field, value)
        return True

    def set_references_at_selection(self, references: list[str]) -> bool:
        profile = self._selected()
        if profile is None:
            return False
        profile.references = list(references)
        for reference in profile.references:
            self._cache_descriptor(reference)
        return True

    def add_reference_to_selected_profile(self, reference: str) -> bool:
        """Append a reference to the selected profile and cache its descriptor."""
        profile = self._selected()
        if profile is None:
            return False
        added = profile.add_reference(reference)
        self._cache_descriptor(reference)
        return added

    def remove_reference_at_index(self, ref_index: int, selection: int | None = None) -> str | None:
        """Remove a reference from a profile by position.

        Args:
            ref_index: Position in the profile's reference list
            selection: Profile position (defaults to the current selection)

        Returns:
            The removed reference, or None if no profile is selected

        Raises:
            IndexError: If ``ref_index`` is out of range
        """
        position = self.selection if selection is None else selection
        profile = self.profiles.get(self._id_at(position))
        if profile is None:
            return None
        return profile.remove_reference_at(ref_index)

    # -- internals -----------------------------------------------------------

    def _id_at(self, position: int) -> str:
        if 0 <= position < len(self.ordered_ids):
            return self.ordered_ids[position]
        return ""

    def _selected(self) -> Profile | None:
        """The live selected profile; never handed out to callers."""
        return self.profiles.get(self.selected_id())

    def _selected_or_default(self) -> Profile | None:
        if self.is_default_selected():
            return self.default_profile
        return self._selected()

    def _cache_descriptor(self, reference: str) -> None:
        if self.descriptors.get(reference) is None:
            self.descriptors[reference] = self.kind.resolver.resolve(reference)
