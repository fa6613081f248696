# flatwatch/entrypoints/api/routers/stats.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_runtime, require_api_key
from ....bootstrap import Runtime
from ....schemas import PollResult, StatsOut

router = APIRouter(tags=["stats"], dependencies=[Depends(require_api_key)])


@router.get("/stats", response_model=StatsOut)
async def stats(runtime: Runtime = Depends(get_runtime)) -> StatsOut:
    last = runtime.scheduler.last_result
    return StatsOut(
        listings=await runtime.store.stats(),
        last_result=PollResult(**last.summary()) if last else None,
    )
