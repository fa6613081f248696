# flatwatch/domain/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ActionMode(str, Enum):
    off = "off"
    preview = "preview"
    on = "on"


class AttemptStatus(str, Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


@dataclass(frozen=True)
class SearchProfile:
    """
    Operator-owned acceptance criteria.

    Numeric bounds use None (or 0) for "no constraint".
    Amenity requirements are tri-state: None = don't care, True = required.
    False never forbids an amenity.
    """

    name: str
    city: str = ""
    districts: tuple[str, ...] = ()
    postal_codes: tuple[str, ...] = ()

    min_price: float | None = None
    max_price: float | None = None
    min_rooms: float | None = None
    max_rooms: float | None = None
    min_area: float | None = None
    max_area: float | None = None

    has_balcony: bool | None = None
    has_ebk: bool | None = None
    has_elevator: bool | None = None
    pets_allowed: bool | None = None

    min_build_year: int | None = None
    max_build_year: int | None = None

    exclude_keywords: tuple[str, ...] = ()
    search_url: str | None = None
    active: bool = True
    id: int | None = None


@dataclass(frozen=True)
class ListingCandidate:
    external_id: str
    title: str = ""
    url: str = ""

    address: str = ""
    city: str = ""
    district: str = ""
    postal_code: str = ""

    price: float | None = None
    rooms: float | None = None
    area: float | None = None

    # None = the listing didn't say
    has_balcony: bool | None = None
    has_ebk: bool | None = None
    has_elevator: bool | None = None
    pets_allowed: bool | None = None

    build_year: int | None = None
    available_from: str = ""
    description: str = ""
    landlord_name: str = ""
    landlord_type: str = ""
    contact_form_url: str | None = None

    search_profile_id: int | None = None

    # persisted state (set by the store)
    id: int | None = None
    notified: bool = False
    contacted: bool = False


@dataclass(frozen=True)
class FilterVerdict:
    passed: bool
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContactAttempt:
    listing_external_id: str
    message: str
    status: AttemptStatus = AttemptStatus.pending
    error: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    sent_at: datetime | None = None
    id: int | None = None


@dataclass
class PollCycleResult:
    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: datetime | None = None
    skipped_quiet_hours: bool = False

    profiles_processed: int = 0
    found: int = 0
    new: int = 0
    notified: int = 0
    contacted: int = 0
    previewed: int = 0
    contact_failed: int = 0

    errors: list[str] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "skipped_quiet_hours": self.skipped_quiet_hours,
            "profiles_processed": self.profiles_processed,
            "found": self.found,
            "new": self.new,
            "notified": self.notified,
            "contacted": self.contacted,
            "previewed": self.previewed,
            "contact_failed": self.contact_failed,
            "errors": list(self.errors),
        }
