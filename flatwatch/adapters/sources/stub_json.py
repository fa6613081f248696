# flatwatch/adapters/sources/stub_json.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ...config import settings
from ...domain.errors import SourceError
from ...domain.types import ListingCandidate, SearchProfile

log = logging.getLogger(__name__)


def _as_list_of_dicts(payload: Any) -> list[dict[str, Any]]:
    """
    Accept either:
      - list[dict]
      - {"value": list[dict]}
    """
    if isinstance(payload, list):
        return [x for x in payload if isinstance(x, dict)]
    if isinstance(payload, dict):
        v = payload.get("value")
        if isinstance(v, list):
            return [x for x in v if isinstance(x, dict)]
    return []


def _coerce_str(x: Any) -> str:
    if x is None:
        return ""
    return str(x).strip()


def _coerce_float(x: Any) -> float | None:
    if x is None or x == "":
        return None
    if isinstance(x, str):
        # "1.250,50" and "1250.5" both show up in fixtures
        x = x.replace("€", "").replace("m²", "").strip()
        if "," in x:
            x = x.replace(".", "").replace(",", ".")
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def _coerce_int(x: Any) -> int | None:
    f = _coerce_float(x)
    return int(f) if f is not None else None


def _coerce_bool(x: Any) -> bool | None:
    if x is None:
        return None
    if isinstance(x, bool):
        return x
    s = str(x).strip().lower()
    if s in ("1", "true", "yes", "ja", "y"):
        return True
    if s in ("0", "false", "no", "nein", "n"):
        return False
    return None


def _first(it: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = it.get(k)
        if v is not None and v != "":
            return v
    return None


def canonicalize(it: dict[str, Any]) -> ListingCandidate | None:
    """
    Fixture/portal-ish dict -> ListingCandidate. Returns None when no id can be found.
    """
    external_id = _coerce_str(_first(it, "external_id", "externalId", "id", "listingId"))
    if not external_id:
        return None

    return ListingCandidate(
        external_id=external_id,
        title=_coerce_str(_first(it, "title", "Title")),
        url=_coerce_str(_first(it, "url", "URL", "link")),
        address=_coerce_str(_first(it, "address", "addressLine", "street")),
        city=_coerce_str(_first(it, "city", "City")),
        district=_coerce_str(_first(it, "district", "quarter")),
        postal_code=_coerce_str(_first(it, "postal_code", "postalCode", "zip", "zipCode")),
        price=_coerce_float(_first(it, "price", "coldRent", "cold_rent", "rent")),
        rooms=_coerce_float(_first(it, "rooms", "numberOfRooms")),
        area=_coerce_float(_first(it, "area", "livingSpace", "living_space", "sqm")),
        has_balcony=_coerce_bool(_first(it, "has_balcony", "balcony")),
        has_ebk=_coerce_bool(_first(it, "has_ebk", "builtInKitchen", "ebk")),
        has_elevator=_coerce_bool(_first(it, "has_elevator", "lift", "elevator")),
        pets_allowed=_coerce_bool(_first(it, "pets_allowed", "petsAllowed", "pets")),
        build_year=_coerce_int(_first(it, "build_year", "constructionYear", "yearBuilt")),
        available_from=_coerce_str(_first(it, "available_from", "freeFrom")),
        description=_coerce_str(_first(it, "description", "descriptionNote")),
        landlord_name=_coerce_str(_first(it, "landlord_name", "contactName")),
        landlord_type=_coerce_str(_first(it, "landlord_type", "realtorType")),
        contact_form_url=_coerce_str(_first(it, "contact_form_url", "contactUrl")) or None,
    )


@dataclass
class StubJsonSource:
    """
    Offline listing source for development/testing.

    Reads fixtures:
      <fixtures_dir>/<city lowercased>.json          search results
      <fixtures_dir>/details/<external_id>.json      one listing detail

    A fixture can be a list of dicts or {"value": [dict, ...]}.
    """

    fixtures_dir: Path

    @classmethod
    def from_settings(cls) -> "StubJsonSource":
        return cls(fixtures_dir=Path(settings.SOURCE_FIXTURES_DIR))

    def _read(self, path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SourceError(f"unreadable fixture {path}: {e}") from e

    async def search(self, profile: SearchProfile) -> list[ListingCandidate]:
        city = (profile.city or "").strip().lower()
        if not city:
            log.info("profile %r has no city; stub source returns nothing", profile.name)
            return []

        path = self.fixtures_dir / f"{city}.json"
        if not path.exists():
            # missing fixture means "no listings"
            return []

        out: list[ListingCandidate] = []
        for it in _as_list_of_dicts(self._read(path)):
            c = canonicalize(it)
            if c is None:
                log.debug("fixture item without id skipped path=%s", path)
                continue
            out.append(c)
        return out

    async def fetch_detail(self, external_id: str) -> ListingCandidate:
        path = self.fixtures_dir / "details" / f"{external_id}.json"
        if not path.exists():
            raise SourceError(f"no detail fixture for {external_id}")

        raw = self._read(path)
        items = [raw] if isinstance(raw, dict) and "value" not in raw else _as_list_of_dicts(raw)
        for it in items:
            c = canonicalize(it)
            if c is not None and c.external_id == external_id:
                return c
        raise SourceError(f"detail fixture for {external_id} has no matching listing")
