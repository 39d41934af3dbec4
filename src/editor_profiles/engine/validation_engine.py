"""Validation Engine - repairs profile stores and runtime indexes.

Malformed persisted state is never surfaced as an error: invalid or
duplicated identifiers are re-keyed and dangling references pruned. Every
repair is recorded as an issue so callers can report what changed.

Passes are idempotent and run in a fixed order: identifiers first (later
passes key off identifier equality), then reference pruning, then the
descriptor cache (which assumes the reference set is already clean).
"""

from typing import Any
from enum import Enum
from dataclasses import dataclass, field

from editor_profiles.engine.identifiers import (
    deduplicate_ids,
    distinct_ids,
    repair_invalid_ids,
)
from editor_profiles.engine.runtime_index import RuntimeIndex
from editor_profiles.profiles.base import (
    ImportMode,
    ImportProfile,
    Profile,
    ProfileSettings,
    ResourceDescriptor,
)
from editor_profiles.profiles.kinds import ProfileKind


class ValidationSeverity(str, Enum):
    """Severity levels for validation issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationIssue:
    """A single validation issue."""

    severity: ValidationSeverity
    message: str
    path: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "path": self.path,
            "context": self.context,
        }


@dataclass
class ValidationResult:
    """Result of a validation operation."""

    valid: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    validated_count: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == ValidationSeverity.WARNING)

    @property
    def repaired(self) -> bool:
        """Whether any pass changed the validated data."""
        return bool(self.issues)

    def add_issue(
        self,
        severity: ValidationSeverity,
        message: str,
        path: str = "",
        **context: Any,
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=severity,
                message=message,
                path=path,
                context=context,
            )
        )
        if severity == ValidationSeverity.ERROR:
            self.valid = False

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        return ValidationResult(
            valid=self.valid and other.valid,
            issues=self.issues + other.issues,
            validated_count=self.validated_count + other.validated_count,
            metadata={**self.metadata, **other.metadata},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "validated_count": self.validated_count,
            "issues": [i.to_dict() for i in self.issues],
            "metadata": self.metadata,
        }


class ValidationEngine:
    """Engine for validating and repairing profile data of one kind."""

    def __init__(self, kind: ProfileKind):
        self.kind = kind

    def validate_settings(self, settings: ProfileSettings) -> ValidationResult:
        """Repair a settings document in place.

        Re-keys invalid and duplicated profile identifiers and prunes
        references to resources that no longer exist.
        """
        result = ValidationResult(valid=True, validated_count=len(settings.profiles))
        result = result.merge(self.validate_profile_ids(settings.profiles))

        lookups: dict[str, ResourceDescriptor | None] = {}
        with self.kind.resolver.lookup_pass():
            for i, profile in enumerate(settings.profiles):
                self._prune_references(profile, lookups, result, path=f"profiles[{i}]")

        return result

    def validate_profile_ids(self, profiles: list[Profile]) -> ValidationResult:
        """Give every profile a valid identifier that is unique in the list."""
        result = ValidationResult(valid=True, validated_count=len(profiles))

        before = [p.profile_id for p in profiles]
        repair_invalid_ids(profiles)
        for i, profile in enumerate(profiles):
            if profile.profile_id != before[i]:
                result.add_issue(
                    ValidationSeverity.INFO,
                    f"Replaced invalid profile id {before[i]!r}",
                    path=f"profiles[{i}].profile_id",
                    old=before[i],
                    new=profile.profile_id,
                )

        before = [p.profile_id for p in profiles]
        deduplicate_ids(profiles)
        for i, profile in enumerate(profiles):
            if profile.profile_id != before[i]:
                result.add_issue(
                    ValidationSeverity.INFO,
                    f"Re-keyed duplicate profile id {before[i]}",
                    path=f"profiles[{i}].profile_id",
                    old=before[i],
                    new=profile.profile_id,
                )

        return result

    def validate_index(self, index: RuntimeIndex) -> ValidationResult:
        """Repair a runtime index in place.

        Cleans the ordered identifier list, fills placeholder profiles for
        empty map entries, rebuilds the default profile from its source,
        prunes dangling references and rebuilds the descriptor cache.
        """
        result = ValidationResult(valid=True, validated_count=len(index.ordered_ids))

        cleaned = distinct_ids(index.ordered_ids)
        if cleaned != index.ordered_ids:
            result.add_issue(
                ValidationSeverity.INFO,
                "Removed empty or repeated profile ids from the profile order",
                path="ordered_ids",
                removed=len(index.ordered_ids) - len(cleaned),
            )
            index.ordered_ids = cleaned

        for profile_id, profile in list(index.profiles.items()):
            if profile is None:
                index.profiles[profile_id] = self.kind.new_profile(profile_id)
                result.add_issue(
                    ValidationSeverity.INFO,
                    "Replaced missing profile with a placeholder",
                    path=f"profiles[{profile_id}]",
                )

        lookups: dict[str, ResourceDescriptor | None] = {}
        with self.kind.resolver.lookup_pass():
            if self.kind.has_default_source:
                index.default_profile = self.kind.load_default_profile()

            for profile_id, profile in index.profiles.items():
                self._prune_references(profile, lookups, result, path=f"profiles[{profile_id}]")

            descriptors = self.repair_descriptors(index, lookups)

        return result.merge(descriptors)

    def repair_descriptors(
        self,
        index: RuntimeIndex,
        lookups: dict[str, ResourceDescriptor | None] | None = None,
    ) -> ValidationResult:
        """Rebuild the descriptor cache from the references in use.

        Entries for unused references are dropped; every used reference is
        resolved once and shared between the profiles referencing it.
        """
        lookups = {} if lookups is None else lookups
        result = ValidationResult(valid=True)

        used = index.used_references()
        descriptors: dict[str, ResourceDescriptor | None] = {}
        for reference in used:
            descriptor = self._lookup(reference, lookups)
            if descriptor is None:
                continue
            descriptors[reference] = descriptor
            if index.descriptors.get(reference) != descriptor:
                result.add_issue(
                    ValidationSeverity.INFO,
                    f"Refreshed descriptor for {reference}",
                    path=f"descriptors[{reference}]",
                )

        stale = [ref for ref in index.descriptors if ref not in descriptors]
        for reference in stale:
            result.add_issue(
                ValidationSeverity.INFO,
                f"Dropped descriptor for unused or missing reference {reference}",
                path=f"descriptors[{reference}]",
            )

        index.descriptors = descriptors
        result.validated_count = len(used)
        return result

    def check_import_profile(self, profile: ImportProfile) -> ValidationResult:
        """Check that an import profile has what an import run needs."""
        result = ValidationResult(valid=True, validated_count=1)

        if profile.import_mode == ImportMode.NONE:
            result.add_issue(
                ValidationSeverity.WARNING,
                "Import mode is None; nothing will be downloaded",
                path="import_mode",
            )
            return result

        if not profile.google_sheets_id:
            result.add_issue(
                ValidationSeverity.ERROR,
                "Profile has no spreadsheet document id",
                path="google_sheets_id",
            )

        if not profile.asset_path:
            result.add_issue(
                ValidationSeverity.ERROR,
                "Profile has no asset path to write sheets to",
                path="asset_path",
            )

        if profile.import_mode == ImportMode.IMPORT_BATCH and not profile.references:
            result.add_issue(
                ValidationSeverity.WARNING,
                "Batch import has no sheets listed",
                path="references",
            )

        return result

    def _prune_references(
        self,
        profile: Profile,
        lookups: dict[str, ResourceDescriptor | None],
        result: ValidationResult,
        path: str,
    ) -> None:
        kept: list[str] = []
        for i, reference in enumerate(profile.references):
            if self._lookup(reference, lookups) is None:
                result.add_issue(
                    ValidationSeverity.WARNING,
                    f"Pruned dangling reference {reference!r}",
                    path=f"{path}.references[{i}]",
                    reference=reference,
                )
                continue
            if self.kind.unique_references and reference in kept:
                result.add_issue(
                    ValidationSeverity.INFO,
                    f"Removed repeated reference {reference!r}",
                    path=f"{path}.references[{i}]",
                    reference=reference,
                )
                continue
            kept.append(reference)

        if kept != profile.references:
            profile.references = kept

    def _lookup(
        self,
        reference: str,
        lookups: dict[str, ResourceDescriptor | None],
    ) -> ResourceDescriptor | None:
        if reference not in lookups:
            lookups[reference] = self.kind.resolver.resolve(reference)
        return lookups[reference]
