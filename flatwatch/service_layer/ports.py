# flatwatch/service_layer/ports.py
from __future__ import annotations

from typing import Any, Protocol

from ..domain.types import AttemptStatus, ContactAttempt, ListingCandidate, SearchProfile


class Source(Protocol):
    async def search(self, profile: SearchProfile) -> list[ListingCandidate]:
        ...

    async def fetch_detail(self, external_id: str) -> ListingCandidate:
        ...


class Store(Protocol):
    async def active_profiles(self) -> list[SearchProfile]: ...

    async def exists(self, external_id: str) -> bool: ...

    async def create(self, candidate: ListingCandidate) -> None:
        """Duplicate external_id is a silent no-op."""
        ...

    async def unnotified(self) -> list[ListingCandidate]: ...

    async def uncontacted(self) -> list[ListingCandidate]:
        """Notified and not yet contacted."""
        ...

    async def mark_notified(self, external_id: str) -> None: ...

    async def mark_contacted(self, external_id: str) -> None: ...

    async def record_attempt(self, attempt: ContactAttempt) -> ContactAttempt: ...

    async def update_attempt_status(self, attempt_id: int, status: AttemptStatus, error: str | None = None) -> None: ...

    async def stats(self) -> dict[str, Any]: ...


class Notifier(Protocol):
    async def notify_new(self, listing: ListingCandidate) -> None: ...

    async def notify_contact_sent(self, listing: ListingCandidate) -> None: ...

    async def notify_contact_failed(self, listing: ListingCandidate, error: str) -> None: ...

    async def notify_preview(self, listing: ListingCandidate, message: str) -> None: ...

    async def notify_error(self, text: str) -> None: ...


class Composer(Protocol):
    def compose(self, listing: ListingCandidate) -> str: ...


class Enhancer(Protocol):
    async def enhance(self, message: str, listing: ListingCandidate) -> str: ...


class Submitter(Protocol):
    async def submit(self, listing: ListingCandidate, message: str) -> None:
        """Raises on failure."""
        ...
