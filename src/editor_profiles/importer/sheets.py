"""Spreadsheet download helpers.

Sheets are read from public Google Sheets documents as CSV text. The
locator formats below are what the existing documents are shared for and
must stay as they are.
"""

from abc import ABC, abstractmethod
import logging
import urllib.error
import urllib.parse
import urllib.request


logger = logging.getLogger(__name__)

MAIN_SHEET_URL = "https://docs.google.com/spreadsheets/d/{doc_id}/export?format=csv"
NAMED_SHEET_URL = "https://docs.google.com/spreadsheets/d/{doc_id}/gviz/tq?tqx=out:csv&sheet={sheet_name}"

USER_AGENT = "editor-profiles/0.1"


class FetchError(Exception):
    """Raised when remote content could not be downloaded."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
        self.reason = reason


def main_sheet_url(doc_id: str) -> str:
    """URL of the first sheet of a spreadsheet document."""
    return MAIN_SHEET_URL.format(doc_id=doc_id)


def sheet_url(doc_id: str, sheet_name: str) -> str:
    """URL of a named sheet of a spreadsheet document.

    The sheet name is percent-encoded as a whole query value, so names
    holding `&`, `=`, `%` or spaces select the right sheet.
    """
    return NAMED_SHEET_URL.format(
        doc_id=doc_id, sheet_name=urllib.parse.quote(sheet_name, safe="")
    )


class TextFetcher(ABC):
    """Collaborator returning the raw text behind a URL."""

    @abstractmethod
    def fetch_text(self, url: str) -> str:
        """Download text.

        Raises:
            FetchError: If the content could not be downloaded
        """
        pass


class HttpTextFetcher(TextFetcher):
    """Fetches text over HTTP(S) with ``urllib``."""

    def __init__(self, timeout: float = 30.0, user_agent: str = USER_AGENT):
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch_text(self, url: str) -> str:
        req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                charset = resp.headers.get_content_charset() or "utf-8"
                text = resp.read().decode(charset, errors="replace")
        except urllib.error.HTTPError as exc:
            raise FetchError(url, f"HTTP {exc.code}") from exc
        except urllib.error.URLError as exc:
            raise FetchError(url, str(exc.reason)) from exc
        except (TimeoutError, OSError) as exc:
            raise FetchError(url, str(exc)) from exc

        logger.info("Downloaded sheet from %s", url)
        return text
