# flatwatch/entrypoints/api/routers/profiles.py
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session, require_api_key
from ....adapters.repos.profiles import ProfileRepository
from ....domain.types import SearchProfile
from ....schemas import ProfileActiveUpdate, ProfileCreate, ProfileOut

router = APIRouter(tags=["profiles"], dependencies=[Depends(require_api_key)])


def _out(p: SearchProfile) -> ProfileOut:
    d = asdict(p)
    for k in ("districts", "postal_codes", "exclude_keywords"):
        d[k] = list(d[k])
    return ProfileOut(**d)


@router.get("/profiles", response_model=list[ProfileOut])
async def list_profiles(
    only_active: bool = Query(False),
    session: AsyncSession = Depends(get_session),
) -> list[ProfileOut]:
    rows = await ProfileRepository(session).list(only_active=only_active)
    return [_out(p) for p in rows]


@router.post("/profiles", response_model=ProfileOut)
async def create_profile(body: ProfileCreate, session: AsyncSession = Depends(get_session)) -> ProfileOut:
    p = await ProfileRepository(session).create(body.model_dump())
    await session.commit()
    return _out(p)


@router.post("/profiles/{profile_id}/active", response_model=ProfileOut)
async def set_profile_active(
    profile_id: int,
    body: ProfileActiveUpdate,
    session: AsyncSession = Depends(get_session),
) -> ProfileOut:
    p = await ProfileRepository(session).set_active(profile_id, body.active)
    if p is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    await session.commit()
    return _out(p)
