"""delegate_registry.sheets

Tabular sources for bulk import: a CSV file on disk or a Google Sheet that
is shared / published to the web.  Both produce a list of string-keyed rows
for reconcile(); no field interpretation happens here.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path

import requests

from delegate_registry.urls import sheet_export_url

log = logging.getLogger(__name__)

USER_AGENT = "delegate-registry/1.0 (sheet import)"


class SheetFetchError(Exception):
    """Raised when a remote sheet cannot be downloaded as CSV."""


# ---------------------------------------------------------------------------
# Header normalization
# ---------------------------------------------------------------------------

def normalize_headers(raw: dict[str | None, str | None]) -> dict[str, str]:
    """Return a new dict with header keys whitespace-stripped.

    Cells past the last header (DictReader's None key) and blank headers are
    discarded; missing cells become "".
    """
    return {
        k.strip(): (v or "")
        for k, v in raw.items()
        if isinstance(k, str) and k.strip()
    }


def _is_blank(row: dict[str, str]) -> bool:
    return not any(v.strip() for v in row.values())


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_csv_text(text: str) -> list[dict[str, str]]:
    """Parse CSV text with a header row into a list of rows."""
    if text.startswith("\U0000FEFF"):
        text = text[1:]
    reader = csv.DictReader(io.StringIO(text))
    rows: list[dict[str, str]] = []
    for raw_row in reader:
        row = normalize_headers(raw_row)
        if row and not _is_blank(row):
            rows.append(row)
    return rows


def read_csv_rows(csv_path: Path) -> list[dict[str, str]]:
    """Read an uploaded CSV export from disk."""
    with csv_path.open(encoding="utf-8-sig", newline="") as fh:
        return parse_csv_text(fh.read())


# ---------------------------------------------------------------------------
# Remote sheets
# ---------------------------------------------------------------------------

def fetch_sheet_rows(
    sheet_url: str,
    session: requests.Session | None = None,
    timeout: int = 30,
) -> list[dict[str, str]]:
    """Download a shared or published Google Sheet as CSV and parse it.

    Raises SheetFetchError on network failure or a non-200 response.
    """
    url = sheet_export_url(sheet_url)
    if not url:
        raise SheetFetchError("sheet URL is empty")

    if session is None:
        session = requests.Session()
        session.headers.update({"User-Agent": USER_AGENT})

    try:
        resp = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise SheetFetchError(f"sheet fetch failed for {url}: {exc}") from exc

    if resp.status_code != 200:
        raise SheetFetchError(
            f"sheet fetch returned status {resp.status_code} for {url}; "
            "make sure the sheet is published to the web as CSV or shared "
            "as 'anyone with the link can view'"
        )

    # Sheets serves CSV without a charset, which requests would read as Latin-1
    resp.encoding = "utf-8"
    rows = parse_csv_text(resp.text)
    log.info("fetched %d rows from %s", len(rows), url)
    return rows
