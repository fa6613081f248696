# tests/test_filter.py
import pytest

from flatwatch.domain.filtering import FilterEngine, postal_code_matches
from flatwatch.domain.types import ListingCandidate, SearchProfile

engine = FilterEngine()


def _c(**kw):
    kw.setdefault("external_id", "x1")
    return ListingCandidate(**kw)


def test_berlin_price_too_high_scenario():
    profile = SearchProfile(name="berlin", city="Berlin", max_price=1500, min_rooms=2)
    cand = _c(city="Berlin", price=1600, rooms=2)

    v = engine.evaluate(cand, profile)
    assert v.passed is False
    assert v.reasons == ("price_too_high",)


def test_empty_profile_passes_everything():
    cand = _c(
        city="Hamburg",
        district="Altona",
        postal_code="22765",
        price=99999,
        rooms=12,
        area=5,
        has_balcony=False,
        has_ebk=False,
        build_year=1850,
        title="WG-Zimmer",
    )
    assert engine.evaluate(cand, SearchProfile(name="empty")).passed is True


def test_zero_bounds_are_unset():
    profile = SearchProfile(name="p", min_price=0, max_price=0, min_rooms=0, max_area=0)
    assert engine.evaluate(_c(price=5000, rooms=1, area=200), profile).passed is True


def test_missing_candidate_values_pass():
    profile = SearchProfile(name="p", max_price=1000, min_rooms=3, min_area=60, min_build_year=1990)
    v = engine.evaluate(_c(price=None, rooms=0, area=None, build_year=None), profile)
    assert v.passed is True


def test_all_violations_reported_in_order():
    profile = SearchProfile(
        name="p",
        city="Berlin",
        max_price=1000,
        min_rooms=3,
        min_area=70,
        has_balcony=True,
        exclude_keywords=("tausch",),
    )
    cand = _c(city="Potsdam", price=1200, rooms=2, area=50, has_balcony=False, title="Wohnungstausch")
    v = engine.evaluate(cand, profile)
    assert v.reasons == (
        "price_too_high",
        "too_few_rooms",
        "area_too_small",
        "wrong_city",
        "no_balcony",
        "excluded_keyword:tausch",
    )


@pytest.mark.parametrize(
    "code,prefix,ok",
    [
        ("10115", "10115", True),
        ("10115", "101", True),
        ("10115", "1", True),
        ("10437", "101", False),
        ("1011", "10115", False),
    ],
)
def test_postal_prefix(code, prefix, ok):
    assert postal_code_matches(code, prefix) is ok
    profile = SearchProfile(name="p", postal_codes=(prefix,))
    v = engine.evaluate(_c(postal_code=code), profile)
    assert v.passed is ok
    assert ("wrong_postal_code" in v.reasons) is (not ok)


def test_district_match_is_case_insensitive_and_substring():
    profile = SearchProfile(name="p", districts=("Neukölln", "mitte"))
    assert engine.evaluate(_c(district="Mitte"), profile).passed
    assert engine.evaluate(_c(district="Neukölln (Reuterkiez)"), profile).passed
    assert engine.evaluate(_c(district="Pankow"), profile).reasons == ("wrong_district",)


def test_city_match_is_case_insensitive():
    profile = SearchProfile(name="p", city="berlin")
    assert engine.evaluate(_c(city="Berlin"), profile).passed


def test_amenities_are_requirements_only():
    required = SearchProfile(name="p", has_ebk=True, has_elevator=True, pets_allowed=True)
    v = engine.evaluate(_c(has_ebk=False, has_elevator=None, pets_allowed=False), required)
    # unknown elevator is not a rejection
    assert v.reasons == ("no_ebk", "no_pets")

    # False on the profile never forbids an amenity
    not_required = SearchProfile(name="p", has_balcony=False, pets_allowed=False)
    assert engine.evaluate(_c(has_balcony=True, pets_allowed=True), not_required).passed


def test_build_year_bounds():
    profile = SearchProfile(name="p", min_build_year=1950, max_build_year=2000)
    assert engine.evaluate(_c(build_year=1900), profile).reasons == ("building_too_old",)
    assert engine.evaluate(_c(build_year=2020), profile).reasons == ("building_too_new",)
    assert engine.evaluate(_c(build_year=1975), profile).passed


def test_keywords_match_title_or_description_first_hit_only():
    profile = SearchProfile(name="p", exclude_keywords=("Tausch", "befristet"))
    v = engine.evaluate(_c(title="Schöne Wohnung", description="Nur befristet, kein Tausch"), profile)
    assert v.reasons == ("excluded_keyword:Tausch",)


def test_evaluate_is_deterministic():
    profile = SearchProfile(name="p", city="Berlin", max_price=1000, postal_codes=("120",))
    cand = _c(city="Berlin", price=1100, postal_code="10115")
    verdicts = {engine.evaluate(cand, profile) for _ in range(5)}
    assert len(verdicts) == 1


def test_filter_candidates_keeps_order():
    profile = SearchProfile(name="p", max_price=1000)
    cands = [_c(external_id="a", price=900), _c(external_id="b", price=1100), _c(external_id="c")]
    assert [c.external_id for c in engine.filter_candidates(cands, profile)] == ["a", "c"]


def test_blank_location_entries_are_unset():
    profile = SearchProfile(name="p", districts=(" ",), postal_codes=("",))
    v = engine.evaluate(_c(district="Mitte", postal_code="10115"), profile)
    assert v.passed is True
    assert v.reasons == ()

    # blanks mixed with real entries still constrain on the real ones
    mixed = SearchProfile(name="p", districts=("", "Pankow"), postal_codes=(" ", "104"))
    v = engine.evaluate(_c(district="Mitte", postal_code="10115"), mixed)
    assert v.reasons == ("wrong_district", "wrong_postal_code")
