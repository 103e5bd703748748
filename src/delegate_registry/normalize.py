"""Normalization functions for participant records.

Text repair for mis-encoded spreadsheet exports, emoji stripping, and the
uppercase ASCII search key used for sorting and matching.

None of these functions raise on malformed input; the worst case is that the
value comes back unchanged.
"""

from __future__ import annotations

import re
import unicodedata


# ---------------------------------------------------------------------------
# Rule 1: trim
# ---------------------------------------------------------------------------

def trim(value: str | None) -> str | None:
    """Strip leading/trailing whitespace; treat empty string as None."""
    if value is None:
        return None
    v = value.strip()
    return v if v else None


# ---------------------------------------------------------------------------
# Rule 2: normalize_space
# ---------------------------------------------------------------------------

def normalize_space(value: str | None) -> str | None:
    """Collapse internal runs of whitespace to single spaces, then trim."""
    v = trim(value)
    if v is None:
        return None
    return re.sub(r"\s+", " ", v)


# ---------------------------------------------------------------------------
# Rule 3: normalize_email
# ---------------------------------------------------------------------------

def normalize_email(value: str | None) -> str | None:
    """Lowercase and trim an email address."""
    v = trim(value)
    if v is None:
        return None
    return v.lower()


# ---------------------------------------------------------------------------
# Rule 4: repair_text  (UTF-8 bytes that were read as Latin-1)
# ---------------------------------------------------------------------------

def _is_lead_byte(code: int) -> bool:
    # 0xC2-0xDF open 2-byte sequences, 0xE0-0xEF open 3-byte sequences
    return 0xC2 <= code <= 0xEF


def repair_text(text: str | None) -> str:
    """Undo UTF-8 text that was decoded as Latin-1 ("MÃ¼ller" -> "Müller").

    Only attempted when every code point fits in a single byte and at least
    one of them looks like a UTF-8 lead byte.  Text that does not decode as
    strict UTF-8 is returned untouched.
    """
    if not text:
        return ""
    suspicious = 0
    for ch in text:
        code = ord(ch)
        if code > 0xFF:
            return text
        if _is_lead_byte(code):
            suspicious += 1
    if suspicious == 0:
        return text
    try:
        return text.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return text


# ---------------------------------------------------------------------------
# Rule 5: strip_emojis
# ---------------------------------------------------------------------------

_EMOJI_RE = re.compile(
    "["
    "\U0001F1E6-\U0001F1FF"  # regional indicators (flag halves)
    "\U0001F300-\U0001FAFF"  # pictographs, emoticons, transport, symbols
    "\U00002600-\U000026FF"  # misc symbols
    "\U00002700-\U000027BF"  # dingbats
    "\U0000FE0E\U0000FE0F"   # variation selectors
    "\U0000200D"             # zero-width joiner inside emoji sequences
    "\U000E0020-\U000E007F"  # tag characters (subdivision flags)
    "]"
)


def strip_emojis(text: str | None) -> str:
    """Remove emoji and dingbat code points, then collapse whitespace."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", _EMOJI_RE.sub("", text)).strip()


# ---------------------------------------------------------------------------
# Rule 6: search_key  (A-Z sort / search matching)
# ---------------------------------------------------------------------------

CYRILLIC_TO_LATIN: dict[str, str] = {
    "А": "A", "Б": "B", "В": "V", "Г": "G", "Д": "D", "Е": "E", "Ё": "E",
    "Ж": "ZH", "З": "Z", "И": "I", "Й": "Y", "К": "K", "Л": "L", "М": "M",
    "Н": "N", "О": "O", "П": "P", "Р": "R", "С": "S", "Т": "T", "У": "U",
    "Ф": "F", "Х": "KH", "Ц": "TS", "Ч": "CH", "Ш": "SH", "Щ": "SHCH",
    "Ъ": "", "Ы": "Y", "Ь": "", "Э": "E", "Ю": "YU", "Я": "YA",
    "Є": "YE", "І": "I", "Ї": "YI", "Ґ": "G", "Ў": "U",
}
CYRILLIC_TO_LATIN.update({
    upper.lower(): latin.lower() for upper, latin in list(CYRILLIC_TO_LATIN.items())
})

_SPECIAL_LETTERS: dict[str, str] = {
    "ß": "ss", "ẞ": "SS",
    "Ø": "O", "ø": "o",
    "Ł": "L", "ł": "l",
    "Æ": "AE", "æ": "ae",
    "Œ": "OE", "œ": "oe",
    "Đ": "D", "đ": "d",
    "Þ": "TH", "þ": "th",
}

# Zero-width and invisible formatting characters
_INVISIBLE = (
    "\U000000AD", "\U0000200B", "\U0000200C", "\U0000200D", "\U0000200E",
    "\U0000200F", "\U00002060", "\U00002061", "\U00002062", "\U00002063",
    "\U0000FEFF",
)

_TRANSLATE = str.maketrans({
    **CYRILLIC_TO_LATIN,
    **_SPECIAL_LETTERS,
    **{ch: "" for ch in _INVISIBLE},
})

_NON_KEY_RE = re.compile(r"[^A-Za-z0-9\s-]", re.ASCII)


def search_key(text: str | None) -> str:
    """Return the uppercase ASCII key for a display string.

    "Müller" -> "MULLER", "Straße" -> "STRASSE", "Дмитрий" -> "DMITRIY".
    Idempotent: search_key(search_key(x)) == search_key(x).
    """
    if not text:
        return ""
    v = text.translate(_TRANSLATE)
    v = unicodedata.normalize("NFD", v)
    v = "".join(c for c in v if not unicodedata.combining(c))
    # NBSP and friends become plain spaces before the ASCII filter drops them
    v = re.sub(r"\s", " ", v)
    v = _NON_KEY_RE.sub("", v)
    v = re.sub(r"\s+", " ", v, flags=re.ASCII).strip()
    return v.upper()
