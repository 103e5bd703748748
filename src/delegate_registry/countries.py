"""delegate_registry.countries

Country reference data and free-text country resolution.

resolve_country() accepts whatever a registration form or spreadsheet cell
holds ("Germany", "de", "🇩🇪 Germany", "USA", "Brasil") and returns a
Country from COUNTRY_LIST, or a synthesized placeholder with code "??" when
nothing matches.  It never raises.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from delegate_registry.normalize import search_key, strip_emojis

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

UNRESOLVED_CODE = "??"
GLOBE_FLAG = "\U0001F310"
UNKNOWN_COUNTRY_NAME = "Unknown"

_REGIONAL_INDICATOR_A = 0x1F1E6
_FLAG_RE = re.compile("[\U0001F1E6-\U0001F1FF]{2}")


@dataclass(frozen=True)
class Country:
    name: str
    flag: str
    code: str

    @property
    def is_resolved(self) -> bool:
        return self.code != UNRESOLVED_CODE

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "flag": self.flag, "code": self.code}


def flag_emoji(code: str | None) -> str:
    """Return the regional-indicator flag for a 2-letter ISO code, or ''."""
    if not code or len(code) != 2 or not code.isascii() or not code.isalpha():
        return ""
    return "".join(chr(_REGIONAL_INDICATOR_A + ord(c) - ord("A")) for c in code.upper())


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

_COUNTRY_NAMES: tuple[tuple[str, str], ...] = (
    ("Afghanistan", "AF"),
    ("Albania", "AL"),
    ("Algeria", "DZ"),
    ("Andorra", "AD"),
    ("Angola", "AO"),
    ("Antigua and Barbuda", "AG"),
    ("Argentina", "AR"),
    ("Armenia", "AM"),
    ("Australia", "AU"),
    ("Austria", "AT"),
    ("Azerbaijan", "AZ"),
    ("Bahamas", "BS"),
    ("Bahrain", "BH"),
    ("Bangladesh", "BD"),
    ("Barbados", "BB"),
    ("Belarus", "BY"),
    ("Belgium", "BE"),
    ("Belize", "BZ"),
    ("Benin", "BJ"),
    ("Bhutan", "BT"),
    ("Bolivia", "BO"),
    ("Bosnia and Herzegovina", "BA"),
    ("Botswana", "BW"),
    ("Brazil", "BR"),
    ("Brunei", "BN"),
    ("Bulgaria", "BG"),
    ("Burkina Faso", "BF"),
    ("Burundi", "BI"),
    ("Cabo Verde", "CV"),
    ("Cambodia", "KH"),
    ("Cameroon", "CM"),
    ("Canada", "CA"),
    ("Central African Republic", "CF"),
    ("Chad", "TD"),
    ("Chile", "CL"),
    ("China", "CN"),
    ("Colombia", "CO"),
    ("Comoros", "KM"),
    ("Congo", "CG"),
    ("Costa Rica", "CR"),
    ("Côte d'Ivoire", "CI"),
    ("Croatia", "HR"),
    ("Cuba", "CU"),
    ("Cyprus", "CY"),
    ("Czech Republic", "CZ"),
    ("Democratic Republic of the Congo", "CD"),
    ("Denmark", "DK"),
    ("Djibouti", "DJ"),
    ("Dominica", "DM"),
    ("Dominican Republic", "DO"),
    ("Ecuador", "EC"),
    ("Egypt", "EG"),
    ("El Salvador", "SV"),
    ("Equatorial Guinea", "GQ"),
    ("Eritrea", "ER"),
    ("Estonia", "EE"),
    ("Eswatini", "SZ"),
    ("Ethiopia", "ET"),
    ("Fiji", "FJ"),
    ("Finland", "FI"),
    ("France", "FR"),
    ("Gabon", "GA"),
    ("Gambia", "GM"),
    ("Georgia", "GE"),
    ("Germany", "DE"),
    ("Ghana", "GH"),
    ("Greece", "GR"),
    ("Grenada", "GD"),
    ("Guatemala", "GT"),
    ("Guinea", "GN"),
    ("Guinea-Bissau", "GW"),
    ("Guyana", "GY"),
    ("Haiti", "HT"),
    ("Honduras", "HN"),
    ("Hungary", "HU"),
    ("Iceland", "IS"),
    ("India", "IN"),
    ("Indonesia", "ID"),
    ("Iran", "IR"),
    ("Iraq", "IQ"),
    ("Ireland", "IE"),
    ("Israel", "IL"),
    ("Italy", "IT"),
    ("Jamaica", "JM"),
    ("Japan", "JP"),
    ("Jordan", "JO"),
    ("Kazakhstan", "KZ"),
    ("Kenya", "KE"),
    ("Kiribati", "KI"),
    ("Korea (North)", "KP"),
    ("Korea (South)", "KR"),
    ("Kuwait", "KW"),
    ("Kyrgyzstan", "KG"),
    ("Laos", "LA"),
    ("Latvia", "LV"),
    ("Lebanon", "LB"),
    ("Lesotho", "LS"),
    ("Liberia", "LR"),
    ("Libya", "LY"),
    ("Liechtenstein", "LI"),
    ("Lithuania", "LT"),
    ("Luxembourg", "LU"),
    ("Madagascar", "MG"),
    ("Malawi", "MW"),
    ("Malaysia", "MY"),
    ("Maldives", "MV"),
    ("Mali", "ML"),
    ("Malta", "MT"),
    ("Marshall Islands", "MH"),
    ("Mauritania", "MR"),
    ("Mauritius", "MU"),
    ("Mexico", "MX"),
    ("Micronesia", "FM"),
    ("Moldova", "MD"),
    ("Monaco", "MC"),
    ("Mongolia", "MN"),
    ("Montenegro", "ME"),
    ("Morocco", "MA"),
    ("Mozambique", "MZ"),
    ("Myanmar", "MM"),
    ("Namibia", "NA"),
    ("Nauru", "NR"),
    ("Nepal", "NP"),
    ("Netherlands", "NL"),
    ("New Zealand", "NZ"),
    ("Nicaragua", "NI"),
    ("Niger", "NE"),
    ("Nigeria", "NG"),
    ("North Macedonia", "MK"),
    ("Norway", "NO"),
    ("Oman", "OM"),
    ("Pakistan", "PK"),
    ("Palau", "PW"),
    ("Palestine", "PS"),
    ("Panama", "PA"),
    ("Papua New Guinea", "PG"),
    ("Paraguay", "PY"),
    ("Peru", "PE"),
    ("Philippines", "PH"),
    ("Poland", "PL"),
    ("Portugal", "PT"),
    ("Qatar", "QA"),
    ("Romania", "RO"),
    ("Russia", "RU"),
    ("Rwanda", "RW"),
    ("Saint Kitts and Nevis", "KN"),
    ("Saint Lucia", "LC"),
    ("Saint Vincent", "VC"),
    ("Samoa", "WS"),
    ("San Marino", "SM"),
    ("Sao Tome and Principe", "ST"),
    ("Saudi Arabia", "SA"),
    ("Senegal", "SN"),
    ("Serbia", "RS"),
    ("Seychelles", "SC"),
    ("Sierra Leone", "SL"),
    ("Singapore", "SG"),
    ("Slovakia", "SK"),
    ("Slovenia", "SI"),
    ("Solomon Islands", "SB"),
    ("Somalia", "SO"),
    ("South Africa", "ZA"),
    ("South Sudan", "SS"),
    ("Spain", "ES"),
    ("Sri Lanka", "LK"),
    ("Sudan", "SD"),
    ("Suriname", "SR"),
    ("Sweden", "SE"),
    ("Switzerland", "CH"),
    ("Syria", "SY"),
    ("Taiwan", "TW"),
    ("Tajikistan", "TJ"),
    ("Tanzania", "TZ"),
    ("Thailand", "TH"),
    ("Timor-Leste", "TL"),
    ("Togo", "TG"),
    ("Tonga", "TO"),
    ("Trinidad and Tobago", "TT"),
    ("Tunisia", "TN"),
    ("Turkey", "TR"),
    ("Turkmenistan", "TM"),
    ("Tuvalu", "TV"),
    ("Uganda", "UG"),
    ("Ukraine", "UA"),
    ("United Arab Emirates", "AE"),
    ("United Kingdom", "GB"),
    ("United States", "US"),
    ("Uruguay", "UY"),
    ("Uzbekistan", "UZ"),
    ("Vanuatu", "VU"),
    ("Vatican City", "VA"),
    ("Venezuela", "VE"),
    ("Vietnam", "VN"),
    ("Yemen", "YE"),
    ("Zambia", "ZM"),
    ("Zimbabwe", "ZW"),
)

COUNTRY_LIST: tuple[Country, ...] = tuple(
    Country(name=name, flag=flag_emoji(code), code=code)
    for name, code in _COUNTRY_NAMES
)

# Informal names -> ISO code.  Keys are casefolded.
COUNTRY_SYNONYMS: dict[str, str] = {
    "great britain": "GB",
    "britain": "GB",
    "uk": "GB",
    "england": "GB",
    "usa": "US",
    "us": "US",
    "america": "US",
    "united states of america": "US",
    "uae": "AE",
    "emirates": "AE",
    "holland": "NL",
    "the netherlands": "NL",
    "brasil": "BR",
    "czechia": "CZ",
    "latvija": "LV",
    "deutschland": "DE",
    "españa": "ES",
    "schweiz": "CH",
    "suisse": "CH",
    "österreich": "AT",
    "ivory coast": "CI",
    "drc": "CD",
    "south korea": "KR",
    "north korea": "KP",
    "russian federation": "RU",
    "türkiye": "TR",
}

_BY_CODE: dict[str, Country] = {c.code: c for c in COUNTRY_LIST}
_BY_NAME: dict[str, Country] = {c.name.casefold(): c for c in COUNTRY_LIST}
_BY_SEARCH_KEY: dict[str, Country] = {search_key(c.name): c for c in COUNTRY_LIST}


def country_by_code(code: str | None) -> Country | None:
    if not code:
        return None
    return _BY_CODE.get(code.strip().upper())


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def _lookup(cleaned: str) -> Country | None:
    key = cleaned.casefold()
    if not key:
        return None
    synonym = COUNTRY_SYNONYMS.get(key)
    if synonym:
        return _BY_CODE[synonym]
    match = _BY_NAME.get(key) or _BY_CODE.get(key.upper())
    if match:
        return match
    folded = search_key(cleaned)
    return _BY_SEARCH_KEY.get(folded) if folded else None


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _resolve_text(text: str) -> Country:
    flag_match = _FLAG_RE.search(text)
    input_flag = flag_match.group(0) if flag_match else None
    cleaned = strip_emojis(text)

    match = _lookup(cleaned)
    if match is not None:
        # A flag typed by the registrant wins over the table
        return replace(match, flag=input_flag) if input_flag else match

    name = _capitalize(cleaned) or UNKNOWN_COUNTRY_NAME
    return Country(name=name, flag=input_flag or GLOBE_FLAG, code=UNRESOLVED_CODE)


def _resolve_stored(name: Any, flag: Any, code: Any) -> Country:
    """Re-resolve a {name, flag, code} value that was resolved once already."""
    flag = str(flag or "").strip()
    ref = country_by_code(str(code or ""))
    if ref is not None:
        return replace(ref, flag=flag) if _FLAG_RE.fullmatch(flag) else ref
    return _resolve_text(f"{flag} {name or ''}")


def resolve_country(value: Any) -> Country:
    """Resolve a country name, ISO code, or flag-bearing text to a Country.

    Also accepts a Country or a stored {name, flag, code} mapping so that
    normalizing an already-canonical record returns the same Country.
    """
    if isinstance(value, Country):
        return _resolve_stored(value.name, value.flag, value.code)
    if isinstance(value, Mapping):
        return _resolve_stored(value.get("name"), value.get("flag"), value.get("code"))
    text = "" if value is None else str(value).strip()
    return _resolve_text(text)
