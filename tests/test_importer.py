"""Tests for the sheet importer."""

import io
import tempfile
import urllib.error
import urllib.parse
import urllib.request
from email.message import Message
from pathlib import Path

import pytest

from editor_profiles.importer.executor import (
    CancellationToken,
    ImportExecutor,
    ImportState,
)
from editor_profiles.importer.sheets import (
    FetchError,
    HttpTextFetcher,
    TextFetcher,
    main_sheet_url,
    sheet_url,
)
from editor_profiles.profiles.base import ImportMode, ImportProfile


ID_A = "0f8fad5b-d9cb-469f-a165-70867728950e"


class FakeFetcher(TextFetcher):
    """Serves canned text per URL and records what was requested."""

    def __init__(self, responses: dict[str, str] | None = None, failing: set[str] | None = None):
        self.responses = responses or {}
        self.failing = failing or set()
        self.requested: list[str] = []

    def fetch_text(self, url: str) -> str:
        self.requested.append(url)
        if url in self.failing or url not in self.responses:
            raise FetchError(url, "HTTP 404")
        return self.responses[url]


@pytest.fixture
def project():
    """Create temporary project root."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def batch_profile():
    return ImportProfile(
        profile_id=ID_A,
        name="Localization",
        google_sheets_id="DOC",
        asset_path="Assets/Data",
        asset_prefix="loc_",
        import_mode=ImportMode.IMPORT_BATCH,
        references=["Intro", "Combat"],
    )


class TestSheetUrls:
    """Tests for the spreadsheet locators."""

    def test_main_sheet_url(self):
        assert main_sheet_url("DOC") == "https://docs.google.com/spreadsheets/d/DOC/export?format=csv"

    def test_named_sheet_url(self):
        assert (
            sheet_url("DOC", "Intro")
            == "https://docs.google.com/spreadsheets/d/DOC/gviz/tq?tqx=out:csv&sheet=Intro"
        )

    @pytest.mark.parametrize("name,encoded", [
        ("Main Menu", "Main%20Menu"),
        ("R&D", "R%26D"),
        ("100%", "100%25"),
        ("a=b", "a%3Db"),
    ])
    def test_sheet_name_encoded_as_one_value(self, name, encoded):
        url = sheet_url("DOC", name)

        assert url == f"https://docs.google.com/spreadsheets/d/DOC/gviz/tq?tqx=out:csv&sheet={encoded}"
        assert urllib.parse.parse_qs(urllib.parse.urlsplit(url).query)["sheet"] == [name]


class TestImportPlan:
    """Tests for planning downloads."""

    def test_main_plan(self, project):
        profile = ImportProfile(
            profile_id=ID_A,
            google_sheets_id="DOC",
            asset_path="Assets/Data",
            asset_prefix="loc_",
            import_mode=ImportMode.IMPORT_MAIN,
            references=["Ignored"],
        )

        plan = ImportExecutor(FakeFetcher(), project_root=project).plan(profile)

        assert len(plan) == 1
        assert plan[0].label == "Main"
        assert plan[0].url == main_sheet_url("DOC")
        assert plan[0].target == project / "Assets" / "Data" / "loc_DOC-Main.txt"

    def test_batch_plan_keeps_order(self, project, batch_profile):
        plan = ImportExecutor(FakeFetcher(), project_root=project).plan(batch_profile)

        assert [d.label for d in plan] == ["Intro", "Combat"]
        assert [d.target.name for d in plan] == ["loc_Intro.txt", "loc_Combat.txt"]

    def test_mode_none_plans_nothing(self, project):
        profile = ImportProfile(profile_id=ID_A, google_sheets_id="DOC", references=["Intro"])

        assert ImportExecutor(FakeFetcher(), project_root=project).plan(profile) == []

    def test_absolute_asset_path(self, project, batch_profile):
        batch_profile.asset_path = str(project / "out")

        plan = ImportExecutor(FakeFetcher(), project_root="/elsewhere").plan(batch_profile)

        assert plan[0].target == project / "out" / "loc_Intro.txt"


class TestImportExecutor:
    """Tests for running imports."""

    def test_batch_import(self, project, batch_profile):
        fetcher = FakeFetcher({
            sheet_url("DOC", "Intro"): "key,text\nhello,Hello\n",
            sheet_url("DOC", "Combat"): "key,text\nattack,Attack\n",
        })
        executor = ImportExecutor(fetcher, project_root=project)

        result = executor.run(batch_profile)

        data_dir = project / "Assets" / "Data"
        assert (data_dir / "loc_Intro.txt").read_text() == "key,text\nhello,Hello\n"
        assert (data_dir / "loc_Combat.txt").read_text() == "key,text\nattack,Attack\n"
        assert fetcher.requested == [sheet_url("DOC", "Intro"), sheet_url("DOC", "Combat")]
        assert result.state == ImportState.COMPLETED
        assert result.completed
        assert executor.state == ImportState.COMPLETED
        assert len(result.written) == 2

    def test_main_import(self, project):
        profile = ImportProfile(
            profile_id=ID_A,
            google_sheets_id="DOC",
            asset_path="Data",
            import_mode=ImportMode.IMPORT_MAIN,
        )
        fetcher = FakeFetcher({main_sheet_url("DOC"): "a,b\n"})

        result = ImportExecutor(fetcher, project_root=project).run(profile)

        assert (project / "Data" / "DOC-Main.txt").read_text() == "a,b\n"
        assert result.completed

    def test_text_written_verbatim(self, project, batch_profile):
        batch_profile.references = ["Intro"]
        fetcher = FakeFetcher({sheet_url("DOC", "Intro"): "a,b\r\nc,d\r\n"})

        ImportExecutor(fetcher, project_root=project).run(batch_profile)

        assert (project / "Assets" / "Data" / "loc_Intro.txt").read_bytes() == b"a,b\r\nc,d\r\n"

    def test_failed_sheet_skipped(self, project, batch_profile, caplog):
        fetcher = FakeFetcher({sheet_url("DOC", "Intro"): "ok"})

        result = ImportExecutor(fetcher, project_root=project).run(batch_profile)

        data_dir = project / "Assets" / "Data"
        assert (data_dir / "loc_Intro.txt").read_text() == "ok"
        assert not (data_dir / "loc_Combat.txt").exists()
        assert result.failed == {"Combat": "HTTP 404"}
        assert result.completed
        assert "Failed to download sheet Combat" in caplog.text

    def test_failed_main_sheet_writes_nothing(self, project):
        profile = ImportProfile(
            profile_id=ID_A,
            google_sheets_id="DOC",
            asset_path="Data",
            import_mode=ImportMode.IMPORT_MAIN,
        )

        result = ImportExecutor(FakeFetcher(), project_root=project).run(profile)

        assert not (project / "Data").exists()
        assert result.written == []
        assert "Main" in result.failed

    def test_cancel_before_start(self, project, batch_profile):
        fetcher = FakeFetcher({sheet_url("DOC", "Intro"): "x", sheet_url("DOC", "Combat"): "y"})
        token = CancellationToken()
        token.cancel()

        result = ImportExecutor(fetcher, project_root=project).run(batch_profile, token=token)

        assert result.state == ImportState.CANCELLED
        assert result.skipped == ["Intro", "Combat"]
        assert fetcher.requested == []

    def test_cancel_between_sheets(self, project, batch_profile):
        fetcher = FakeFetcher({sheet_url("DOC", "Intro"): "x", sheet_url("DOC", "Combat"): "y"})
        token = CancellationToken()
        progress = []

        def on_progress(done, total, label):
            progress.append((done, total, label))
            token.cancel()

        result = ImportExecutor(fetcher, project_root=project).run(
            batch_profile, token=token, on_progress=on_progress
        )

        assert progress == [(1, 2, "Intro")]
        assert result.state == ImportState.CANCELLED
        assert (project / "Assets" / "Data" / "loc_Intro.txt").exists()
        assert not (project / "Assets" / "Data" / "loc_Combat.txt").exists()
        assert result.skipped == ["Combat"]

    def test_mode_none_completes_immediately(self, project):
        profile = ImportProfile(profile_id=ID_A, google_sheets_id="DOC")
        fetcher = FakeFetcher()

        result = ImportExecutor(fetcher, project_root=project).run(profile)

        assert result.completed
        assert fetcher.requested == []

    def test_executor_runs_once(self, project, batch_profile):
        fetcher = FakeFetcher({sheet_url("DOC", "Intro"): "x", sheet_url("DOC", "Combat"): "y"})
        executor = ImportExecutor(fetcher, project_root=project)
        executor.run(batch_profile)

        with pytest.raises(RuntimeError):
            executor.run(batch_profile)

    def test_summary(self, project, batch_profile):
        fetcher = FakeFetcher({sheet_url("DOC", "Intro"): "x"})

        summary = ImportExecutor(fetcher, project_root=project).run(batch_profile).summary()

        assert summary["state"] == "completed"
        assert summary["profile_id"] == ID_A
        assert summary["failed"] == {"Combat": "HTTP 404"}
        assert len(summary["written"]) == 1
        assert summary["duration_seconds"] >= 0


class _FakeResponse(io.BytesIO):
    def __init__(self, body: bytes, charset: str = "utf-8"):
        super().__init__(body)
        self.headers = Message()
        self.headers["Content-Type"] = f"text/csv; charset={charset}"


class TestHttpTextFetcher:
    """Tests for HttpTextFetcher."""

    def test_fetch_text(self, monkeypatch):
        seen = {}

        def fake_urlopen(request, timeout):
            seen["url"] = request.full_url
            seen["timeout"] = timeout
            seen["agent"] = request.get_header("User-agent")
            return _FakeResponse("key,text\nhi,Hé\n".encode("utf-8"))

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

        text = HttpTextFetcher(timeout=5).fetch_text(sheet_url("DOC", "Main Menu"))

        assert text == "key,text\nhi,Hé\n"
        assert seen["url"] == (
            "https://docs.google.com/spreadsheets/d/DOC/gviz/tq?tqx=out:csv&sheet=Main%20Menu"
        )
        assert seen["timeout"] == 5
        assert seen["agent"].startswith("editor-profiles")

    def test_http_error(self, monkeypatch):
        def fake_urlopen(request, timeout):
            raise urllib.error.HTTPError(request.full_url, 404, "Not Found", Message(), None)

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

        with pytest.raises(FetchError) as exc_info:
            HttpTextFetcher().fetch_text(main_sheet_url("DOC"))

        assert exc_info.value.reason == "HTTP 404"
        assert exc_info.value.url == main_sheet_url("DOC")

    def test_sheet_name_with_ampersand_requested_whole(self, monkeypatch):
        seen = {}

        def fake_urlopen(request, timeout):
            seen["url"] = request.full_url
            return _FakeResponse(b"a,b\n")

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

        HttpTextFetcher().fetch_text(sheet_url("DOC", "R&D"))

        assert seen["url"].endswith("&sheet=R%26D")

    def test_network_error(self, monkeypatch):
        def fake_urlopen(request, timeout):
            raise urllib.error.URLError("no route to host")

        monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

        with pytest.raises(FetchError) as exc_info:
            HttpTextFetcher().fetch_text(main_sheet_url("DOC"))

        assert "no route to host" in exc_info.value.reason
