# flatwatch/domain/filtering.py
from __future__ import annotations

from typing import Callable, Iterable

from .types import FilterVerdict, ListingCandidate, SearchProfile

Matcher = Callable[[ListingCandidate, SearchProfile], list[str]]


def _unset(v: float | int | None) -> bool:
    # 0 is how sources and old profiles spell "unknown"
    return v is None or v == 0


def _range_reasons(
    value: float | int | None,
    lo: float | int | None,
    hi: float | int | None,
    too_low: str,
    too_high: str,
) -> list[str]:
    """
    Missing candidate value => pass (permissive on missing data).
    """
    if _unset(value):
        return []
    out: list[str] = []
    if not _unset(lo) and value < lo:
        out.append(too_low)
    if not _unset(hi) and value > hi:
        out.append(too_high)
    return out


def match_price(c: ListingCandidate, p: SearchProfile) -> list[str]:
    return _range_reasons(c.price, p.min_price, p.max_price, "price_too_low", "price_too_high")


def match_rooms(c: ListingCandidate, p: SearchProfile) -> list[str]:
    return _range_reasons(c.rooms, p.min_rooms, p.max_rooms, "too_few_rooms", "too_many_rooms")


def match_area(c: ListingCandidate, p: SearchProfile) -> list[str]:
    return _range_reasons(c.area, p.min_area, p.max_area, "area_too_small", "area_too_large")


def postal_code_matches(code: str, prefix: str) -> bool:
    return code == prefix or code.startswith(prefix)


def match_location(c: ListingCandidate, p: SearchProfile) -> list[str]:
    out: list[str] = []

    city = (c.city or "").strip()
    if p.city and city and city.lower() != p.city.strip().lower():
        out.append("wrong_city")

    # blank entries don't count as a constraint
    districts = [d.strip().lower() for d in p.districts if d.strip()]
    district = (c.district or "").strip().lower()
    if districts and district:
        if not any(d == district or d in district for d in districts):
            out.append("wrong_district")

    prefixes = [pc.strip() for pc in p.postal_codes if pc.strip()]
    code = (c.postal_code or "").strip()
    if prefixes and code:
        if not any(postal_code_matches(code, pc) for pc in prefixes):
            out.append("wrong_postal_code")

    return out


def match_amenities(c: ListingCandidate, p: SearchProfile) -> list[str]:
    """
    Requirements only: a profile can demand an amenity, never forbid one.
    A candidate fails only when it explicitly lacks the amenity.
    """
    out: list[str] = []
    if p.has_balcony and c.has_balcony is False:
        out.append("no_balcony")
    if p.has_ebk and c.has_ebk is False:
        out.append("no_ebk")
    if p.has_elevator and c.has_elevator is False:
        out.append("no_elevator")
    if p.pets_allowed and c.pets_allowed is False:
        out.append("no_pets")
    return out


def match_build_year(c: ListingCandidate, p: SearchProfile) -> list[str]:
    return _range_reasons(c.build_year, p.min_build_year, p.max_build_year, "building_too_old", "building_too_new")


def match_keywords(c: ListingCandidate, p: SearchProfile) -> list[str]:
    if not p.exclude_keywords:
        return []
    text = f"{c.title or ''} {c.description or ''}".lower()
    for kw in p.exclude_keywords:
        k = kw.strip()
        if k and k.lower() in text:
            return [f"excluded_keyword:{kw}"]
    return []


MATCHERS: tuple[Matcher, ...] = (
    match_price,
    match_rooms,
    match_area,
    match_location,
    match_amenities,
    match_build_year,
    match_keywords,
)


class FilterEngine:
    """
    Stateless evaluator. Every matcher runs, so reasons lists each violated
    criterion in matcher order.
    """

    def __init__(self, matchers: tuple[Matcher, ...] = MATCHERS) -> None:
        self.matchers = matchers

    def evaluate(self, candidate: ListingCandidate, profile: SearchProfile) -> FilterVerdict:
        reasons: list[str] = []
        for matcher in self.matchers:
            reasons.extend(matcher(candidate, profile))
        return FilterVerdict(passed=not reasons, reasons=tuple(reasons))

    def filter_candidates(
        self,
        candidates: Iterable[ListingCandidate],
        profile: SearchProfile,
    ) -> list[ListingCandidate]:
        return [c for c in candidates if self.evaluate(c, profile).passed]
