# flatwatch/adapters/repos/profiles.py
from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.types import SearchProfile
from ...models import Profile
from .listings import profile_from_row

_LIST_KEYS = {
    "districts": "districts_json",
    "postal_codes": "postal_codes_json",
    "exclude_keywords": "exclude_keywords_json",
}

_SCALAR_KEYS = (
    "name",
    "city",
    "min_price",
    "max_price",
    "min_rooms",
    "max_rooms",
    "min_area",
    "max_area",
    "has_balcony",
    "has_ebk",
    "has_elevator",
    "pets_allowed",
    "min_build_year",
    "max_build_year",
    "search_url",
    "active",
)


class ProfileRepository:
    """Operator-side profile management (the scheduler only reads)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payload: dict[str, Any]) -> SearchProfile:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValueError("profile name is required")

        row = Profile(name=name)
        for k in _SCALAR_KEYS:
            if k in payload and k != "name":
                setattr(row, k, payload[k])
        for k, col in _LIST_KEYS.items():
            values = [str(v).strip() for v in (payload.get(k) or []) if str(v).strip()]
            setattr(row, col, json.dumps(values))

        self.session.add(row)
        await self.session.flush()
        return profile_from_row(row)

    async def list(self, *, only_active: bool = False) -> list[SearchProfile]:
        q = select(Profile).order_by(Profile.id.asc())
        if only_active:
            q = q.where(Profile.active == True)  # noqa: E712
        rows = (await self.session.execute(q)).scalars().all()
        return [profile_from_row(r) for r in rows]

    async def set_active(self, profile_id: int, active: bool) -> SearchProfile | None:
        row = await self.session.get(Profile, profile_id)
        if row is None:
            return None
        row.active = active
        row.updated_at = datetime.utcnow()
        await self.session.flush()
        return profile_from_row(row)
