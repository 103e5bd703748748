"""delegate_registry.records

Canonical participant record and the normalizer that produces it.

normalize_record() is the only way a Participant is built: it accepts an
admin form payload, a registration payload, a spreadsheet row with
human-authored headers, or a row read back from the participant table, and
returns a frozen Participant with repaired text, resolved countries,
embeddable photo URLs, a lower-cased email, and freshly derived search keys.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from delegate_registry.countries import Country, resolve_country
from delegate_registry.normalize import (
    normalize_email,
    normalize_space,
    repair_text,
    search_key,
)
from delegate_registry.urls import rewrite_photo_url

PLACEHOLDER_NAME = "Unnamed Delegate"

# ---------------------------------------------------------------------------
# Field aliases
# ---------------------------------------------------------------------------

# Ordered alias list per canonical field; the first alias holding a non-blank
# value wins.  Matching ignores case, spacing and punctuation, so
# "Photo URL", "photo_url" and "photoUrl" are the same header.
#
# Spreadsheet headers come first, in the order the sheet import has always
# preferred them; admin and registration form keys follow.  A form never
# sends two aliases of the same field, so the order only matters for sheets.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("Full Name", "Name"),
    "title": ("Role(s) in the organization", "Role", "Title", "Position", "roles"),
    "organization": (
        "Name of Ministry/Church/Organization/Business",
        "Church / Organization",
        "Organization",
        "Ministry",
        "Church",
        "ministryName",
    ),
    "orgDescription": (
        "Description of your organization",
        "Description",
        "Org Description",
        "ministryDescription",
    ),
    "testimony": ("Short biography", "Bio", "Testimony"),
    "shortBio": ("shortBio",),
    "otherInfo": ("Other", "Other Information", "otherInfo", "otherContact"),
    "phone": ("Phone Number", "Phone"),
    "email": ("Email Address", "Email", "E-mail"),
    "contactEmail": ("contactEmail",),
    "website": ("Website",),
    "upcomingEvents": ("upcomingEvents",),
    "dietaryRestrictions": ("dietaryRestrictions", "diet"),
    "photoUrl": ("Profile Picture of You", "Profile picture", "Photo URL", "Photo"),
    "promoPhotoUrl": (
        "Promotional Picture", "Promo picture", "Promo Photo", "Promo", "promoPhotoUrl",
    ),
    "country": ("Country", "Location", "Residency", "residentCountry"),
    # Sheets without a nationality column fall back to the residency columns
    "nationality": ("Nationality", "Country", "Location", "residentCountry"),
}

# Single-line fields get internal whitespace collapsed as well as trimmed.
_SINGLE_LINE_FIELDS = frozenset({"name", "title", "organization", "phone", "website"})

_FOLD_RE = re.compile(r"[^0-9a-z]")


def fold_header(key: str) -> str:
    """Return the comparison form of a header: casefolded alphanumerics only."""
    return _FOLD_RE.sub("", key.casefold())


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def fold_row(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Index a raw row by folded header, keeping the first non-blank value."""
    folded: dict[str, Any] = {}
    for key, value in raw.items():
        fk = fold_header(str(key))
        if not fk:
            continue
        if fk not in folded or not _present(folded[fk]):
            folded[fk] = value
    return folded


def lookup_alias(folded: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for alias in aliases:
        value = folded.get(fold_header(alias))
        if _present(value):
            return value
    return None


# ---------------------------------------------------------------------------
# Record types
# ---------------------------------------------------------------------------

def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class Participant:
    """Canonical participant record.  Build with normalize_record()."""

    name: str
    title: str
    organization: str
    org_description: str
    testimony: str
    short_bio: str
    other_info: str
    phone: str
    email: str
    contact_email: str
    website: str
    upcoming_events: str
    dietary_restrictions: str
    country: Country
    nationality: Country
    photo_url: str
    promo_photo_url: str
    search_name: str
    search_org: str

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase row shape used by the participant table."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[_camel(f.name)] = value.to_dict() if isinstance(value, Country) else value
        return out


@dataclass(frozen=True)
class StoredParticipant(Participant):
    """A canonical record plus the id the participant table assigned to it."""

    id: str


def with_id(record: Participant, participant_id: str) -> StoredParticipant:
    values = {f.name: getattr(record, f.name) for f in fields(Participant)}
    return StoredParticipant(id=str(participant_id), **values)


def from_row(row: Mapping[str, Any]) -> StoredParticipant:
    """Re-normalize a persisted row and attach its id."""
    return with_id(normalize_record(row), str(row["id"]))


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

def _clean(value: Any) -> str:
    if value is None:
        return ""
    return repair_text(str(value)).strip()


def _country(value: Any) -> Country:
    if isinstance(value, str):
        value = repair_text(value)
    return resolve_country(value)


def normalize_record(raw: Mapping[str, Any]) -> Participant:
    """Return the canonical Participant for a loosely-typed input mapping.

    searchName/searchOrg in the input are ignored; they are always derived
    from the cleaned name and organization.  Pure: raw is not modified.
    """
    folded = fold_row(raw)
    text: dict[str, str] = {}
    for key in (
        "name", "title", "organization", "orgDescription", "testimony",
        "shortBio", "otherInfo", "phone", "website", "upcomingEvents",
        "dietaryRestrictions", "contactEmail",
    ):
        value = _clean(lookup_alias(folded, FIELD_ALIASES[key]))
        if key in _SINGLE_LINE_FIELDS:
            value = normalize_space(value) or ""
        text[key] = value

    name = text["name"] or PLACEHOLDER_NAME
    organization = text["organization"]

    return Participant(
        name=name,
        title=text["title"],
        organization=organization,
        org_description=text["orgDescription"],
        testimony=text["testimony"],
        short_bio=text["shortBio"],
        other_info=text["otherInfo"],
        phone=text["phone"],
        email=normalize_email(_clean(lookup_alias(folded, FIELD_ALIASES["email"]))) or "",
        contact_email=normalize_email(text["contactEmail"]) or "",
        website=text["website"],
        upcoming_events=text["upcomingEvents"],
        dietary_restrictions=text["dietaryRestrictions"],
        country=_country(lookup_alias(folded, FIELD_ALIASES["country"])),
        nationality=_country(lookup_alias(folded, FIELD_ALIASES["nationality"])),
        photo_url=rewrite_photo_url(_clean(lookup_alias(folded, FIELD_ALIASES["photoUrl"]))),
        promo_photo_url=rewrite_photo_url(
            _clean(lookup_alias(folded, FIELD_ALIASES["promoPhotoUrl"]))
        ),
        search_name=search_key(name),
        search_org=search_key(organization),
    )
