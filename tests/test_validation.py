"""Tests for the Validation Engine."""

import pytest

from editor_profiles.engine.identifiers import is_valid_unique_id
from editor_profiles.engine.runtime_index import RuntimeIndex
from editor_profiles.engine.validation_engine import (
    ValidationEngine,
    ValidationResult,
    ValidationSeverity,
)
from editor_profiles.profiles.base import (
    BuildScene,
    BuildSettings,
    ImportMode,
    ImportProfile,
    ImportSettings,
    ResourceDescriptor,
    SceneProfile,
    SceneSettings,
)
from editor_profiles.profiles.kinds import ImportProfileKind, SceneProfileKind
from editor_profiles.resources.resolver import ResourceResolver


ID_A = "0f8fad5b-d9cb-469f-a165-70867728950e"
ID_B = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


class StaticResolver(ResourceResolver):
    """Resolves a fixed set of references and counts lookups."""

    def __init__(self, known: set[str]):
        self.known = known
        self.calls: list[str] = []

    def resolve(self, reference):
        self.calls.append(reference)
        if reference not in self.known:
            return None
        return ResourceDescriptor(name=reference.upper(), path=reference)

    def resolve_all(self, source):
        return [s.path for s in source.scenes if s.path in self.known]


@pytest.fixture
def scene_kind():
    return SceneProfileKind(
        StaticResolver({"A", "B"}),
        build_settings=BuildSettings(scenes=[BuildScene(path="B"), BuildScene(path="gone")]),
    )


@pytest.fixture
def scene_engine(scene_kind):
    return ValidationEngine(scene_kind)


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_add_issue(self):
        result = ValidationResult(valid=True)

        result.add_issue(ValidationSeverity.WARNING, "warn")
        assert result.valid
        assert result.repaired

        result.add_issue(ValidationSeverity.ERROR, "err", path="x", detail=1)
        assert not result.valid
        assert result.error_count == 1
        assert result.warning_count == 1
        assert result.issues[1].context == {"detail": 1}

    def test_merge(self):
        first = ValidationResult(valid=True, validated_count=2)
        second = ValidationResult(valid=False, validated_count=3)
        second.add_issue(ValidationSeverity.ERROR, "err")

        merged = first.merge(second)

        assert not merged.valid
        assert merged.validated_count == 5
        assert len(merged.issues) == 1

    def test_to_dict(self):
        result = ValidationResult(valid=True)
        result.add_issue(ValidationSeverity.INFO, "fixed", path="profiles[0]")

        data = result.to_dict()

        assert data["valid"]
        assert data["issues"][0]["severity"] == "info"


class TestValidateSettings:
    """Tests for repairing settings documents."""

    def test_duplicate_ids_rekeyed(self):
        engine = ValidationEngine(ImportProfileKind())
        settings = ImportSettings(profiles=[
            ImportProfile(profile_id=ID_A, name="first"),
            ImportProfile(profile_id=ID_A, name="second"),
            ImportProfile(profile_id="", name="third"),
        ])

        result = engine.validate_settings(settings)

        ids = [p.profile_id for p in settings.profiles]
        assert ids[0] == ID_A
        assert len(set(ids)) == 3
        assert all(is_valid_unique_id(i) for i in ids)
        assert [p.name for p in settings.profiles] == ["first", "second", "third"]
        assert len(result.issues) == 2
        assert result.valid

    def test_idempotent(self, scene_engine):
        settings = SceneSettings(profiles=[
            SceneProfile(profile_id=ID_A, references=["A", "C", "A"]),
            SceneProfile(profile_id=ID_A, references=["B"]),
        ])
        scene_engine.validate_settings(settings)
        snapshot = settings.model_dump()

        result = scene_engine.validate_settings(settings)

        assert not result.repaired
        assert settings.model_dump() == snapshot

    def test_dangling_references_pruned(self, scene_engine):
        settings = SceneSettings(profiles=[
            SceneProfile(profile_id=ID_A, references=["A", "B", "C"]),
        ])

        result = scene_engine.validate_settings(settings)

        assert settings.profiles[0].references == ["A", "B"]
        assert [i.severity for i in result.issues] == [ValidationSeverity.WARNING]
        assert result.issues[0].context["reference"] == "C"

    def test_scene_references_deduplicated(self, scene_engine):
        settings = SceneSettings(profiles=[
            SceneProfile(profile_id=ID_A, references=["A", "B", "A"]),
        ])

        scene_engine.validate_settings(settings)

        assert settings.profiles[0].references == ["A", "B"]

    def test_blank_sheet_names_pruned(self):
        engine = ValidationEngine(ImportProfileKind())
        settings = ImportSettings(profiles=[
            ImportProfile(profile_id=ID_A, references=["Intro", "", "Combat", "Intro"]),
        ])

        engine.validate_settings(settings)

        assert settings.profiles[0].references == ["Intro", "Combat", "Intro"]

    def test_each_reference_resolved_once(self, scene_kind, scene_engine):
        settings = SceneSettings(profiles=[
            SceneProfile(profile_id=ID_A, references=["A", "C"]),
            SceneProfile(profile_id=ID_B, references=["A", "C"]),
        ])

        scene_engine.validate_settings(settings)

        assert sorted(scene_kind.resolver.calls) == ["A", "C"]


class TestValidateIndex:
    """Tests for repairing runtime indexes."""

    def test_ordered_ids_cleaned(self):
        engine = ValidationEngine(ImportProfileKind())
        index = RuntimeIndex(ImportProfileKind())
        index.ordered_ids = [ID_A, "", ID_B, ID_A]
        index.profiles = {
            ID_A: ImportProfile(profile_id=ID_A),
            ID_B: ImportProfile(profile_id=ID_B),
        }

        result = engine.validate_index(index)

        assert index.ordered_ids == [ID_A, ID_B]
        assert result.repaired

    def test_missing_profile_replaced_with_placeholder(self):
        kind = ImportProfileKind()
        index = RuntimeIndex(kind)
        index.ordered_ids = [ID_A]
        index.profiles = {ID_A: None}

        ValidationEngine(kind).validate_index(index)

        placeholder = index.get_profile(ID_A)
        assert placeholder.profile_id == ID_A
        assert placeholder.name == "New Profile"

    def test_default_profile_rebuilt(self, scene_kind, scene_engine):
        index = RuntimeIndex(scene_kind)

        scene_engine.validate_index(index)

        assert index.default_profile.references == ["B"]

    def test_descriptors_rebuilt(self, scene_kind, scene_engine):
        index = RuntimeIndex(scene_kind)
        index.ordered_ids = [ID_A]
        index.profiles = {ID_A: SceneProfile(profile_id=ID_A, references=["A", "C"])}
        index.descriptors = {"C": None, "stale": ResourceDescriptor(name="old")}

        scene_engine.validate_index(index)

        assert index.get_profile(ID_A).references == ["A"]
        assert set(index.descriptors) == {"A", "B"}
        assert index.descriptors["A"].name == "A"

    def test_idempotent(self, scene_kind, scene_engine):
        index = RuntimeIndex(scene_kind)
        index.ordered_ids = [ID_A, ID_A]
        index.profiles = {ID_A: SceneProfile(profile_id=ID_A, references=["A", "gone"])}
        scene_engine.validate_index(index)

        result = scene_engine.validate_index(index)

        assert not result.repaired
        assert index.ordered_ids == [ID_A]

    def test_scene_references_deduplicated(self, scene_kind, scene_engine):
        index = RuntimeIndex(scene_kind)
        index.add_profile()
        index.set_selection(0)
        index.set_references_at_selection(["A", "B", "A"])

        scene_engine.validate_index(index)

        assert index.references_at_selection() == ["A", "B"]

    def test_sheet_repeats_kept(self):
        kind = ImportProfileKind()
        index = RuntimeIndex(kind)
        index.ordered_ids = [ID_A]
        index.profiles = {ID_A: ImportProfile(profile_id=ID_A, references=["Intro", "Intro"])}

        ValidationEngine(kind).validate_index(index)

        assert index.get_profile(ID_A).references == ["Intro", "Intro"]


class TestCheckImportProfile:
    """Tests for the pre-import check."""

    def test_mode_none_warns(self):
        engine = ValidationEngine(ImportProfileKind())

        result = engine.check_import_profile(ImportProfile(profile_id=ID_A))

        assert result.valid
        assert result.warning_count == 1

    def test_missing_document_and_path(self):
        engine = ValidationEngine(ImportProfileKind())
        profile = ImportProfile(profile_id=ID_A, import_mode=ImportMode.IMPORT_MAIN)

        result = engine.check_import_profile(profile)

        assert not result.valid
        assert result.error_count == 2

    def test_batch_without_sheets(self):
        engine = ValidationEngine(ImportProfileKind())
        profile = ImportProfile(
            profile_id=ID_A,
            google_sheets_id="DOC",
            asset_path="Assets/Data",
            import_mode=ImportMode.IMPORT_BATCH,
        )

        result = engine.check_import_profile(profile)

        assert result.valid
        assert result.warning_count == 1

    def test_ready_profile(self):
        engine = ValidationEngine(ImportProfileKind())
        profile = ImportProfile(
            profile_id=ID_A,
            google_sheets_id="DOC",
            asset_path="Assets/Data",
            import_mode=ImportMode.IMPORT_BATCH,
            references=["Intro"],
        )

        assert not engine.check_import_profile(profile).issues
