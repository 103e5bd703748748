"""URL helpers for participant photos and published Google Sheets.

All functions accept str | None and fall back to returning the input when a
URL cannot be parsed.
"""

from __future__ import annotations

import re
import urllib.parse

from delegate_registry.normalize import trim

DRIVE_HOSTS = frozenset({"drive.google.com", "www.drive.google.com"})
SHEETS_HOST = "docs.google.com"

# lh3 serves public Drive files as plain images; the suffix asks for a
# large rendition instead of the default thumbnail.
PHOTO_CDN_TEMPLATE = "https://lh3.googleusercontent.com/d/{file_id}=w1000"
SHEET_EXPORT_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv"

_DRIVE_PATH_ID_RE = re.compile(r"/d/([^/=?#]+)")
_SHEET_PATH_ID_RE = re.compile(r"/spreadsheets/d/([^/?#]+)")
_GID_RE = re.compile(r"(?:^|[#&?])gid=(\d+)")


# ---------------------------------------------------------------------------
# Drive share links
# ---------------------------------------------------------------------------

def _drive_file_id(parsed: urllib.parse.ParseResult) -> str | None:
    """Return the file id from ?id=, then /d/<id>; folder links have none."""
    qs = urllib.parse.parse_qs(parsed.query)
    file_id = trim(qs.get("id", [None])[0])
    if file_id:
        return file_id
    m = _DRIVE_PATH_ID_RE.search(parsed.path)
    if m:
        return m.group(1)
    # /drive/folders/<id> names a folder, not an image
    return None


def rewrite_photo_url(url: str | None) -> str:
    """Turn a Google Drive share link into a directly embeddable image URL.

    Handles /file/d/<id>/view, open?id=<id> and uc?id=<id> forms.  Data URLs,
    non-Drive URLs, folder links, and links without a file id come back
    unchanged.
    """
    if not url:
        return ""
    v = url.strip()
    if v.startswith("data:"):
        return url
    try:
        parsed = urllib.parse.urlparse(v)
        if (parsed.hostname or "").lower() not in DRIVE_HOSTS:
            return url
        file_id = _drive_file_id(parsed)
    except ValueError:
        return url
    if not file_id:
        return url
    return PHOTO_CDN_TEMPLATE.format(file_id=file_id)


# ---------------------------------------------------------------------------
# Published sheets
# ---------------------------------------------------------------------------

def sheet_export_url(url: str | None) -> str | None:
    """Return the CSV export URL for a Google Sheets link.

    A sheet edit/share link becomes .../export?format=csv (keeping the
    gid so the same tab is exported).  Other URLs, including links that are
    already "publish to web" CSV URLs, are returned trimmed.
    """
    v = trim(url)
    if v is None:
        return None
    try:
        parsed = urllib.parse.urlparse(v)
    except ValueError:
        return v
    if (parsed.hostname or "").lower() != SHEETS_HOST:
        return v
    m = _SHEET_PATH_ID_RE.search(parsed.path)
    if not m or m.group(1) == "e":
        # /spreadsheets/d/e/<token>/pub?output=csv is a published URL already
        return v
    export = SHEET_EXPORT_TEMPLATE.format(sheet_id=m.group(1))
    gid = _GID_RE.search(f"?{parsed.query}#{parsed.fragment}")
    if gid:
        export += f"&gid={gid.group(1)}"
    return export
