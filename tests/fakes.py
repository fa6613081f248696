# tests/fakes.py
from __future__ import annotations

from dataclasses import replace
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from flatwatch.domain.errors import EnhancementError, SourceError, SubmissionError
from flatwatch.domain.types import AttemptStatus, ContactAttempt, ListingCandidate, SearchProfile
from flatwatch.services.rate_limiter import RateLimiter


class FakeStore:
    def __init__(self, profiles: list[SearchProfile] | None = None) -> None:
        self.profiles = list(profiles or [])
        self.listings: dict[str, ListingCandidate] = {}
        self.attempts: dict[int, ContactAttempt] = {}
        self.fail_profiles = False
        self.fail_create: set[str] = set()

    async def active_profiles(self) -> list[SearchProfile]:
        if self.fail_profiles:
            raise RuntimeError("db down")
        return [p for p in self.profiles if p.active]

    async def exists(self, external_id: str) -> bool:
        return external_id in self.listings

    async def create(self, candidate: ListingCandidate) -> None:
        if candidate.external_id in self.fail_create:
            raise RuntimeError("insert failed")
        self.listings.setdefault(candidate.external_id, candidate)

    async def unnotified(self) -> list[ListingCandidate]:
        return [l for l in self.listings.values() if not l.notified]

    async def uncontacted(self) -> list[ListingCandidate]:
        return [l for l in self.listings.values() if l.notified and not l.contacted]

    async def mark_notified(self, external_id: str) -> None:
        self.listings[external_id] = replace(self.listings[external_id], notified=True)

    async def mark_contacted(self, external_id: str) -> None:
        self.listings[external_id] = replace(self.listings[external_id], contacted=True)

    async def record_attempt(self, attempt: ContactAttempt) -> ContactAttempt:
        saved = replace(attempt, id=len(self.attempts) + 1)
        self.attempts[saved.id] = saved
        return saved

    async def update_attempt_status(self, attempt_id: int, status: AttemptStatus, error: str | None = None) -> None:
        self.attempts[attempt_id] = replace(self.attempts[attempt_id], status=status, error=error)

    async def stats(self) -> dict[str, Any]:
        return {
            "listings_total": len(self.listings),
            "listings_notified": sum(1 for l in self.listings.values() if l.notified),
            "listings_contacted": sum(1 for l in self.listings.values() if l.contacted),
        }


class FakeSource:
    def __init__(
        self,
        results: dict[str, list[ListingCandidate]] | None = None,
        details: dict[str, ListingCandidate] | None = None,
    ) -> None:
        # keyed by profile name
        self.results = results or {}
        self.details = details or {}
        self.failing_profiles: set[str] = set()
        self.search_calls: list[str] = []
        self.detail_calls: list[str] = []

    async def search(self, profile: SearchProfile) -> list[ListingCandidate]:
        self.search_calls.append(profile.name)
        if profile.name in self.failing_profiles:
            raise SourceError(f"search blocked for {profile.name}")
        return list(self.results.get(profile.name, []))

    async def fetch_detail(self, external_id: str) -> ListingCandidate:
        self.detail_calls.append(external_id)
        if external_id not in self.details:
            raise SourceError(f"no detail for {external_id}")
        return self.details[external_id]


class FakeNotifier:
    def __init__(self) -> None:
        self.new: list[str] = []
        self.sent: list[str] = []
        self.failed: list[tuple[str, str]] = []
        self.previews: list[tuple[str, str]] = []
        self.errors: list[str] = []
        self.fail_new: set[str] = set()

    async def notify_new(self, listing: ListingCandidate) -> None:
        if listing.external_id in self.fail_new:
            raise RuntimeError("chat unreachable")
        self.new.append(listing.external_id)

    async def notify_contact_sent(self, listing: ListingCandidate) -> None:
        self.sent.append(listing.external_id)

    async def notify_contact_failed(self, listing: ListingCandidate, error: str) -> None:
        self.failed.append((listing.external_id, error))

    async def notify_preview(self, listing: ListingCandidate, message: str) -> None:
        self.previews.append((listing.external_id, message))

    async def notify_error(self, text: str) -> None:
        self.errors.append(text)


class FakeComposer:
    def compose(self, listing: ListingCandidate) -> str:
        return f"Hello, I am interested in {listing.title}."


class FakeEnhancer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = 0

    async def enhance(self, message: str, listing: ListingCandidate) -> str:
        self.calls += 1
        if self.fail:
            raise EnhancementError("model unavailable")
        return message + " (personalized)"


class FakeSubmitter:
    def __init__(self, fail: set[str] | None = None) -> None:
        self.fail = set(fail or ())
        self.calls: list[tuple[str, str]] = []

    async def submit(self, listing: ListingCandidate, message: str) -> None:
        self.calls.append((listing.external_id, message))
        if listing.external_id in self.fail:
            raise SubmissionError("form rejected")


def make_memory_engine() -> AsyncEngine:
    return create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def no_wait_limiter() -> RateLimiter:
    async def _sleep(_s: float) -> None:
        return None

    return RateLimiter(1000, 0, 0, sleep=_sleep)
