"""Importer module - downloads spreadsheet sheets for import profiles."""

from editor_profiles.importer.sheets import FetchError, TextFetcher, HttpTextFetcher
from editor_profiles.importer.executor import (
    ImportExecutor,
    ImportResult,
    ImportState,
    CancellationToken,
)

__all__ = [
    "FetchError",
    "TextFetcher",
    "HttpTextFetcher",
    "ImportExecutor",
    "ImportResult",
    "ImportState",
    "CancellationToken",
]
