from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Literal

Mode = Literal["off", "preview", "on"]


class ProfileCreate(BaseModel):
    name: str = Field(..., min_length=1)
    city: str = ""
    districts: list[str] = []
    postal_codes: list[str] = []

    min_price: float | None = Field(None, ge=0)
    max_price: float | None = Field(None, ge=0)
    min_rooms: float | None = Field(None, ge=0)
    max_rooms: float | None = Field(None, ge=0)
    min_area: float | None = Field(None, ge=0)
    max_area: float | None = Field(None, ge=0)

    has_balcony: bool | None = None
    has_ebk: bool | None = None
    has_elevator: bool | None = None
    pets_allowed: bool | None = None

    min_build_year: int | None = None
    max_build_year: int | None = None

    exclude_keywords: list[str] = []
    search_url: str | None = None
    active: bool = True


class ProfileOut(ProfileCreate):
    id: int


class ProfileActiveUpdate(BaseModel):
    active: bool


class ModeOut(BaseModel):
    mode: Mode


class ModeUpdate(BaseModel):
    mode: Mode


class ModeChange(BaseModel):
    mode: Mode
    previous: Mode


class PollResult(BaseModel):
    started_at: datetime
    finished_at: datetime | None = None
    skipped_quiet_hours: bool = False

    profiles_processed: int = Field(..., ge=0)
    found: int = Field(..., ge=0)
    new: int = Field(..., ge=0)
    notified: int = Field(..., ge=0)
    contacted: int = Field(..., ge=0)
    previewed: int = Field(..., ge=0)
    contact_failed: int = Field(..., ge=0)
    errors: list[str] = []


class JobStatus(BaseModel):
    state: Literal["idle", "running"]
    mode: Mode
    poll_interval_s: float
    last_result: PollResult | None = None


class StatsOut(BaseModel):
    listings: dict[str, Any]
    last_result: PollResult | None = None
