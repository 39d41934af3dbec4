"""Import Executor - downloads the sheets of an import profile.

A run moves ``IDLE -> DOWNLOADING -> COMPLETED`` or ``CANCELLED``. Sheets
are fetched one after another in profile order. A sheet that fails to
download or write is logged and skipped; the run still completes.
Cancellation is checked before each sheet, and files written before it
are kept.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable
import logging
import threading

from editor_profiles.importer.sheets import (
    FetchError,
    HttpTextFetcher,
    TextFetcher,
    main_sheet_url,
    sheet_url,
)
from editor_profiles.profiles.base import ImportMode, ImportProfile


logger = logging.getLogger(__name__)

MAIN_SHEET_LABEL = "Main"
ARTIFACT_SUFFIX = ".txt"


class ImportState(str, Enum):
    """Lifecycle of an import run."""

    IDLE = "idle"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CancellationToken:
    """Cooperative cancellation flag shared with a running import."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class SheetDownload:
    """One planned download: what to fetch and where to write it."""

    label: str
    url: str
    target: Path


class ImportResult:
    """Result of an import run."""

    def __init__(
        self,
        profile: ImportProfile,
        state: ImportState,
        written: list[Path],
        failed: dict[str, str],
        skipped: list[str],
        start_time: datetime,
        end_time: datetime,
    ):
        self.profile = profile
        self.state = state
        self.written = written
        self.failed = failed
        self.skipped = skipped
        self.start_time = start_time
        self.end_time = end_time

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def completed(self) -> bool:
        return self.state == ImportState.COMPLETED

    def summary(self) -> dict[str, Any]:
        return {
            "profile": self.profile.name,
            "profile_id": self.profile.profile_id,
            "state": self.state.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_seconds": self.duration_seconds,
            "written": [str(p) for p in self.written],
            "failed": dict(self.failed),
            "skipped": list(self.skipped),
        }


class ImportExecutor:
    """Runs one import of one profile."""

    def __init__(
        self,
        fetcher: TextFetcher | None = None,
        project_root: Path | str | None = None,
    ):
        """Initialize the executor.

        Args:
            fetcher: Source of remote text (HTTP by default)
            project_root: Base for relative asset paths (working directory if None)
        """
        self.fetcher = fetcher or HttpTextFetcher()
        self.project_root = Path(project_root) if project_root is not None else None
        self.state = ImportState.IDLE

    def plan(self, profile: ImportProfile) -> list[SheetDownload]:
        """List the downloads a run of this profile performs, in order."""
        directory = self._output_directory(profile)
        doc_id = profile.google_sheets_id

        if profile.import_mode == ImportMode.IMPORT_MAIN:
            name = f"{profile.asset_prefix}{doc_id}-{MAIN_SHEET_LABEL}{ARTIFACT_SUFFIX}"
            return [SheetDownload(MAIN_SHEET_LABEL, main_sheet_url(doc_id), directory / name)]

        if profile.import_mode == ImportMode.IMPORT_BATCH:
            return [
                SheetDownload(
                    sheet,
                    sheet_url(doc_id, sheet),
                    directory / f"{profile.asset_prefix}{sheet}{ARTIFACT_SUFFIX}",
                )
                for sheet in profile.references
            ]

        return []

    def run(
        self,
        profile: ImportProfile,
        token: CancellationToken | None = None,
        on_progress: Callable[[int, int, str], None] | None = None,
    ) -> ImportResult:
        """Download every sheet of a profile.

        Args:
            profile: The profile to import
            token: Cancellation token checked before each sheet
            on_progress: Called with (done, total, label) after each sheet

        Returns:
            ImportResult describing what was written

        Raises:
            RuntimeError: If this executor has already run
        """
        if self.state != ImportState.IDLE:
            raise RuntimeError(f"Import executor already used (state: {self.state.value})")

        token = token or CancellationToken()
        start_time = datetime.now(timezone.utc)
        downloads = self.plan(profile)
        written: list[Path] = []
        failed: dict[str, str] = {}
        skipped: list[str] = []

        self.state = ImportState.DOWNLOADING
        logger.info(
            "Importing %d sheet(s) for profile '%s'", len(downloads), profile.name
        )

        for i, download in enumerate(downloads):
            if token.cancelled:
                skipped = [d.label for d in downloads[i:]]
                self.state = ImportState.CANCELLED
                logger.info("Import of '%s' cancelled before sheet %s", profile.name, download.label)
                break

            try:
                text = self.fetcher.fetch_text(download.url)
            except FetchError as e:
                failed[download.label] = e.reason
                logger.error("Failed to download sheet %s from %s: %s", download.label, e.url, e.reason)
            else:
                if self._write(download, text):
                    written.append(download.target)
                else:
                    failed[download.label] = "write failed"

            if on_progress is not None:
                on_progress(i + 1, len(downloads), download.label)

        if self.state == ImportState.DOWNLOADING:
            self.state = ImportState.COMPLETED
            logger.info("Finished importing profile '%s'", profile.name)

        return ImportResult(
            profile=profile,
            state=self.state,
            written=written,
            failed=failed,
            skipped=skipped,
            start_time=start_time,
            end_time=datetime.now(timezone.utc),
        )

    def _output_directory(self, profile: ImportProfile) -> Path:
        directory = Path(profile.asset_path)
        if self.project_root is not None and not directory.is_absolute():
            directory = self.project_root / directory
        return directory

    def _write(self, download: SheetDownload, text: str) -> bool:
        try:
            download.target.parent.mkdir(parents=True, exist_ok=True)
            with open(download.target, "w", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            logger.error("Failed to write sheet %s to %s: %s", download.label, download.target, e)
            return False
        logger.debug("Wrote sheet %s to %s", download.label, download.target)
        return True
