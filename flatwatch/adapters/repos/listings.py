# flatwatch/adapters/repos/listings.py
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...domain.types import AttemptStatus, ContactAttempt, ListingCandidate, SearchProfile
from ...models import AttemptStatus as AttemptStatusColumn
from ...models import Listing, Profile, SentMessage

log = logging.getLogger(__name__)

_LISTING_FIELDS = (
    "external_id",
    "title",
    "url",
    "address",
    "city",
    "district",
    "postal_code",
    "price",
    "rooms",
    "area",
    "has_balcony",
    "has_ebk",
    "has_elevator",
    "pets_allowed",
    "build_year",
    "available_from",
    "description",
    "landlord_name",
    "landlord_type",
    "contact_form_url",
    "search_profile_id",
)


def _json_list(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    try:
        v = json.loads(raw)
    except ValueError:
        return ()
    if not isinstance(v, list):
        return ()
    return tuple(str(x) for x in v if x is not None)


def profile_from_row(row: Profile) -> SearchProfile:
    return SearchProfile(
        id=row.id,
        name=row.name,
        city=row.city or "",
        districts=_json_list(row.districts_json),
        postal_codes=_json_list(row.postal_codes_json),
        min_price=row.min_price,
        max_price=row.max_price,
        min_rooms=row.min_rooms,
        max_rooms=row.max_rooms,
        min_area=row.min_area,
        max_area=row.max_area,
        has_balcony=row.has_balcony,
        has_ebk=row.has_ebk,
        has_elevator=row.has_elevator,
        pets_allowed=row.pets_allowed,
        min_build_year=row.min_build_year,
        max_build_year=row.max_build_year,
        exclude_keywords=_json_list(row.exclude_keywords_json),
        search_url=row.search_url,
        active=bool(row.active),
    )


def listing_from_row(row: Listing) -> ListingCandidate:
    kw = {f: getattr(row, f) for f in _LISTING_FIELDS}
    return ListingCandidate(id=row.id, notified=bool(row.notified), contacted=bool(row.contacted), **kw)


def attempt_from_row(row: SentMessage) -> ContactAttempt:
    return ContactAttempt(
        id=row.id,
        listing_external_id=row.listing_external_id,
        message=row.message,
        status=AttemptStatus(row.status.value),
        error=row.error,
        created_at=row.created_at,
        sent_at=row.sent_at,
    )


class SqlAlchemyStore:
    """Store contract on the async ORM. One short session per operation."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def active_profiles(self) -> list[SearchProfile]:
        async with self.session_maker() as session:
            q = select(Profile).where(Profile.active == True).order_by(Profile.id.asc())  # noqa: E712
            rows = (await session.execute(q)).scalars().all()
            return [profile_from_row(r) for r in rows]

    async def exists(self, external_id: str) -> bool:
        async with self.session_maker() as session:
            q = select(Listing.id).where(Listing.external_id == external_id)
            return (await session.execute(q)).first() is not None

    async def create(self, candidate: ListingCandidate) -> None:
        async with self.session_maker() as session:
            q = select(Listing.id).where(Listing.external_id == candidate.external_id)
            if (await session.execute(q)).first() is not None:
                return

            row = Listing(**{f: getattr(candidate, f) for f in _LISTING_FIELDS})
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                # lost a race on uq_listing_external_id: same outcome as a duplicate
                await session.rollback()
                log.debug("duplicate listing insert ignored external_id=%s", candidate.external_id)

    async def get(self, external_id: str) -> ListingCandidate | None:
        async with self.session_maker() as session:
            q = select(Listing).where(Listing.external_id == external_id)
            row = (await session.execute(q)).scalars().first()
            return listing_from_row(row) if row else None

    async def unnotified(self) -> list[ListingCandidate]:
        async with self.session_maker() as session:
            q = select(Listing).where(Listing.notified == False).order_by(Listing.id.asc())  # noqa: E712
            rows = (await session.execute(q)).scalars().all()
            return [listing_from_row(r) for r in rows]

    async def uncontacted(self) -> list[ListingCandidate]:
        async with self.session_maker() as session:
            q = (
                select(Listing)
                .where(Listing.notified == True)  # noqa: E712
                .where(Listing.contacted == False)  # noqa: E712
                .order_by(Listing.id.asc())
            )
            rows = (await session.execute(q)).scalars().all()
            return [listing_from_row(r) for r in rows]

    async def _set_flag(self, external_id: str, **values: Any) -> None:
        async with self.session_maker() as session:
            stmt = (
                update(Listing)
                .where(Listing.external_id == external_id)
                .values(updated_at=datetime.utcnow(), **values)
            )
            await session.execute(stmt)
            await session.commit()

    async def mark_notified(self, external_id: str) -> None:
        await self._set_flag(external_id, notified=True)

    async def mark_contacted(self, external_id: str) -> None:
        await self._set_flag(external_id, contacted=True)

    async def record_attempt(self, attempt: ContactAttempt) -> ContactAttempt:
        async with self.session_maker() as session:
            row = SentMessage(
                listing_external_id=attempt.listing_external_id,
                message=attempt.message,
                status=AttemptStatusColumn(attempt.status.value),
                error=attempt.error,
                created_at=attempt.created_at,
            )
            session.add(row)
            await session.commit()
            return attempt_from_row(row)

    async def update_attempt_status(self, attempt_id: int, status: AttemptStatus, error: str | None = None) -> None:
        async with self.session_maker() as session:
            row = await session.get(SentMessage, attempt_id)
            if row is None:
                log.warning("unknown contact attempt id=%s", attempt_id)
                return
            row.status = AttemptStatusColumn(AttemptStatus(status).value)
            row.error = error
            if row.status == AttemptStatusColumn.sent:
                row.sent_at = datetime.utcnow()
            await session.commit()

    async def attempts_for(self, external_id: str) -> list[ContactAttempt]:
        async with self.session_maker() as session:
            q = (
                select(SentMessage)
                .where(SentMessage.listing_external_id == external_id)
                .order_by(SentMessage.id.asc())
            )
            rows = (await session.execute(q)).scalars().all()
            return [attempt_from_row(r) for r in rows]

    async def stats(self) -> dict[str, Any]:
        async with self.session_maker() as session:
            total = (await session.execute(select(func.count()).select_from(Listing))).scalar_one()
            notified = (
                await session.execute(select(func.count()).select_from(Listing).where(Listing.notified == True))  # noqa: E712
            ).scalar_one()
            contacted = (
                await session.execute(select(func.count()).select_from(Listing).where(Listing.contacted == True))  # noqa: E712
            ).scalar_one()
            profiles = (
                await session.execute(select(func.count()).select_from(Profile).where(Profile.active == True))  # noqa: E712
            ).scalar_one()

            rows = (
                await session.execute(select(SentMessage.status, func.count()).group_by(SentMessage.status))
            ).all()
            attempts = {status.value: int(n) for status, n in rows}

        return {
            "listings_total": int(total),
            "listings_notified": int(notified),
            "listings_contacted": int(contacted),
            "active_profiles": int(profiles),
            "attempts": attempts,
        }
