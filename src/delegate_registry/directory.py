"""Ordering, filtering and facet helpers for the participant directory."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

from delegate_registry.countries import COUNTRY_LIST, Country
from delegate_registry.normalize import search_key
from delegate_registry.records import Participant

ALL = "ALL"

P = TypeVar("P", bound=Participant)


def sort_participants(records: Iterable[P]) -> list[P]:
    """Return a new list ordered by search key (stable for equal keys)."""
    return sorted(records, key=lambda p: p.search_name or "")


def _wanted(value: str | None) -> bool:
    return value is not None and value != ALL


def filter_participants(
    records: Iterable[P],
    query: str | None = None,
    country_code: str | None = ALL,
    organization: str | None = ALL,
    title: str | None = ALL,
    letter: str | None = ALL,
) -> list[P]:
    """Apply the directory filters and return the matches sorted.

    The query is normalized the same way as the stored keys, so "muller"
    finds "Müller" by name or by organization.  ALL (or None) disables a
    filter.
    """
    q = search_key(query)
    out: list[P] = []
    for p in records:
        if q and q not in p.search_name and q not in p.search_org:
            continue
        if _wanted(country_code) and p.country.code != country_code:
            continue
        if _wanted(organization) and p.organization != organization:
            continue
        if _wanted(title) and p.title != title:
            continue
        if _wanted(letter) and p.search_name[:1] != letter.upper():
            continue
        out.append(p)
    return sort_participants(out)


# ---------------------------------------------------------------------------
# Facets
# ---------------------------------------------------------------------------

def available_letters(records: Iterable[Participant]) -> list[str]:
    """A-Z letters that at least one search name starts with."""
    return sorted({p.search_name[:1] for p in records if p.search_name[:1].isalpha()})


def countries_in_use(records: Iterable[Participant]) -> list[Country]:
    """Reference countries used as residency, in reference-list order."""
    codes = {p.country.code for p in records}
    return [c for c in COUNTRY_LIST if c.code in codes]


def unique_organizations(records: Iterable[Participant]) -> list[str]:
    return sorted({p.organization for p in records if p.organization})


def unique_titles(records: Iterable[Participant]) -> list[str]:
    return sorted({p.title for p in records if p.title})
