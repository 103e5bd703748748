"""Unit tests for delegate_registry.records (the record normalizer)."""

from __future__ import annotations

import dataclasses

import pytest

from delegate_registry.countries import GLOBE_FLAG, UNRESOLVED_CODE
from delegate_registry.records import (
    PLACEHOLDER_NAME,
    Participant,
    StoredParticipant,
    fold_header,
    fold_row,
    from_row,
    lookup_alias,
    normalize_record,
    with_id,
)


def _form(**kwargs) -> dict:
    data = {
        "name": "Matthias Greve",
        "title": "CEO",
        "organization": "Alpha & Omega Stiftung",
        "country": "🇩🇪 Germany",
        "nationality": "Germany",
        "testimony": "Forty-one years of innovation.",
        "phone": "+49 123 456789",
        "email": "Matthias@Example.org ",
        "website": "https://alpha-omega.org",
        "photoUrl": "https://drive.google.com/file/d/PHOTO1/view",
    }
    data.update(kwargs)
    return data


# ---------------------------------------------------------------------------
# Header folding / alias lookup
# ---------------------------------------------------------------------------

class TestAliasLookup:
    @pytest.mark.parametrize("header", ["Photo URL", "photo_url", "photoUrl", " PHOTO-url "])
    def test_fold_header_variants(self, header):
        assert fold_header(header) == "photourl"

    def test_first_present_alias_wins(self):
        folded = fold_row({"Full Name": "Second", "Name": "First"})
        assert lookup_alias(folded, ("name", "fullName")) == "First"

    def test_blank_alias_is_skipped(self):
        folded = fold_row({"Name": "   ", "Full Name": "Fallback"})
        assert lookup_alias(folded, ("name", "fullName")) == "Fallback"

    def test_blank_duplicate_header_does_not_shadow(self):
        folded = fold_row({"Email": "", "email": "a@x.com"})
        assert folded["email"] == "a@x.com"

    def test_missing_returns_none(self):
        assert lookup_alias(fold_row({"Other": "x"}), ("name",)) is None


# ---------------------------------------------------------------------------
# normalize_record
# ---------------------------------------------------------------------------

class TestNormalizeRecord:
    def test_admin_form(self):
        p = normalize_record(_form())
        assert p.name == "Matthias Greve"
        assert p.email == "matthias@example.org"
        assert p.country.code == "DE"
        assert p.country.flag == "🇩🇪"
        assert p.nationality.code == "DE"
        assert p.search_name == "MATTHIAS GREVE"
        assert p.search_org == "ALPHA OMEGA STIFTUNG"
        assert "PHOTO1" in p.photo_url
        assert "drive.google.com" not in p.photo_url

    def test_empty_name_gets_placeholder(self):
        p = normalize_record({"name": "", "organization": "Acme"})
        assert p.name == PLACEHOLDER_NAME
        assert p.search_name == "UNNAMED DELEGATE"
        assert p.search_org == "ACME"

    def test_search_fields_cannot_be_overridden(self):
        p = normalize_record({
            "name": "Müller", "organization": "Straße e.V.",
            "searchName": "HACKED", "searchOrg": "HACKED", "search_name": "HACKED",
        })
        assert p.search_name == "MULLER"
        assert p.search_org == "STRASSE EV"

    def test_mojibake_repaired_in_text_fields(self):
        p = normalize_record({"name": "JÃ¼rgen", "testimony": "Ã©glise", "organization": "CafÃ©"})
        assert p.name == "Jürgen"
        assert p.testimony == "église"
        assert p.organization == "Café"
        assert p.search_org == "CAFE"

    def test_legacy_form_aliases(self):
        p = normalize_record({
            "name": "A", "church": "Grace Church", "role": "Pastor",
            "bio": "Story", "description": "About us", "other": "Extra",
        })
        assert p.organization == "Grace Church"
        assert p.title == "Pastor"
        assert p.testimony == "Story"
        assert p.org_description == "About us"
        assert p.other_info == "Extra"

    def test_spreadsheet_headers(self):
        p = normalize_record({
            "Full Name": "Jane Doe",
            "Email Address": "JANE@X.COM",
            "Name of Ministry/Church/Organization/Business": "Hope Ministry",
            "Role(s) in the organization": "Director",
            "Short biography": "Bio text",
            "Description of your organization": "Org text",
            "Profile Picture of You": "https://drive.google.com/open?id=IMG9",
            "Promotional Picture": "https://example.com/promo.png",
            "Phone Number": "555-0100",
            "Country": "UK",
            "Nationality": "Brasil",
            "Other Information": "n/a",
        })
        assert p.name == "Jane Doe"
        assert p.email == "jane@x.com"
        assert p.organization == "Hope Ministry"
        assert p.title == "Director"
        assert p.testimony == "Bio text"
        assert p.org_description == "Org text"
        assert "IMG9" in p.photo_url
        assert p.promo_photo_url == "https://example.com/promo.png"
        assert p.phone == "555-0100"
        assert p.country.code == "GB"
        assert p.nationality.code == "BR"
        assert p.other_info == "n/a"

    def test_promo_photo_header(self):
        p = normalize_record({
            "Name": "A", "Email": "a@x.com", "Promo Photo": "https://example.com/p.png",
        })
        assert p.promo_photo_url == "https://example.com/p.png"

    @pytest.mark.parametrize("row,field,expected", [
        ({"Full Name": "Jane Doe", "Name": "Jane"}, "name", "Jane Doe"),
        ({"Short biography": "long form", "Bio": "short"}, "testimony", "long form"),
        ({"Bio": "short", "Testimony": "older"}, "testimony", "short"),
        ({"Role(s) in the organization": "Director", "Title": "Dr"}, "title", "Director"),
        ({"Role": "Elder", "Title": "Dr"}, "title", "Elder"),
        (
            {"Church / Organization": "Hope", "Organization": "Other", "Church": "Grace"},
            "organization", "Hope",
        ),
        (
            {"Name of Ministry/Church/Organization/Business": "Bethel", "Church / Organization": "Hope"},
            "organization", "Bethel",
        ),
        (
            {"Description of your organization": "long", "Description": "short"},
            "org_description", "long",
        ),
        ({"Email Address": "primary@x.com", "Email": "other@x.com"}, "email", "primary@x.com"),
        (
            {"Promotional Picture": "https://example.com/a.png", "Promo Photo": "https://example.com/b.png"},
            "promo_photo_url", "https://example.com/a.png",
        ),
        ({"Other": "first", "Other Information": "second"}, "other_info", "first"),
    ])
    def test_sheet_header_priority(self, row, field, expected):
        assert getattr(normalize_record(row), field) == expected

    def test_nationality_falls_back_to_residency(self):
        p = normalize_record({"name": "A", "Location": "France"})
        assert p.country.code == "FR"
        assert p.nationality.code == "FR"

    def test_residency_and_nationality_independent(self):
        p = normalize_record({"name": "A", "country": "Germany", "nationality": "Narnia"})
        assert p.country.code == "DE"
        assert p.nationality.code == UNRESOLVED_CODE

    def test_missing_country_is_unresolved(self):
        p = normalize_record({"name": "A"})
        assert p.country.code == UNRESOLVED_CODE
        assert p.country.flag == GLOBE_FLAG

    def test_registration_only_fields(self):
        p = normalize_record({
            "name": "A", "shortBio": "Short", "contactEmail": " Office@X.com ",
            "upcomingEvents": "Berlin, May", "dietaryRestrictions": "Vegan",
        })
        assert p.short_bio == "Short"
        assert p.contact_email == "office@x.com"
        assert p.upcoming_events == "Berlin, May"
        assert p.dietary_restrictions == "Vegan"

    def test_single_line_fields_collapsed(self):
        p = normalize_record({"name": "  Anne   Marie ", "testimony": "Line one\n\nLine two "})
        assert p.name == "Anne Marie"
        assert p.testimony == "Line one\n\nLine two"

    def test_non_string_values(self):
        p = normalize_record({"name": "A", "phone": 4912345678})
        assert p.phone == "4912345678"

    def test_input_not_mutated(self):
        raw = _form()
        before = dict(raw)
        normalize_record(raw)
        assert raw == before

    def test_record_is_frozen(self):
        p = normalize_record(_form())
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.name = "Other"  # type: ignore[misc]

    def test_normalizing_canonical_record_is_fixed_point(self):
        p = normalize_record(_form(nationality="Narnia", promoPhotoUrl="data:image/png;base64,AA"))
        assert normalize_record(p.to_dict()) == p


# ---------------------------------------------------------------------------
# to_dict / stored records
# ---------------------------------------------------------------------------

class TestStoredRecords:
    def test_to_dict_uses_camel_case(self):
        d = normalize_record(_form()).to_dict()
        assert d["searchName"] == "MATTHIAS GREVE"
        assert d["orgDescription"] == ""
        assert d["promoPhotoUrl"] == ""
        assert d["country"] == {"name": "Germany", "flag": "🇩🇪", "code": "DE"}

    def test_with_id(self):
        p = normalize_record(_form())
        stored = with_id(p, "abc")
        assert isinstance(stored, StoredParticipant)
        assert isinstance(stored, Participant)
        assert stored.id == "abc"
        assert stored.email == p.email
        assert stored.to_dict()["id"] == "abc"

    def test_from_snake_case_row(self):
        p = normalize_record(_form(shortBio="Short", dietaryRestrictions="None"))
        row = {f.name: getattr(p, f.name) for f in dataclasses.fields(Participant)}
        row["country"] = p.country.to_dict()
        row["nationality"] = p.nationality.to_dict()
        row["id"] = "row-1"
        stored = from_row(row)
        assert stored.id == "row-1"
        assert with_id(p, "row-1") == stored
