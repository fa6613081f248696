# flatwatch/entrypoints/api/routers/mode.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_runtime, require_api_key
from ....bootstrap import Runtime
from ....schemas import ModeChange, ModeOut, ModeUpdate

router = APIRouter(tags=["mode"], dependencies=[Depends(require_api_key)])


@router.get("/mode", response_model=ModeOut)
def get_mode(runtime: Runtime = Depends(get_runtime)) -> ModeOut:
    return ModeOut(mode=runtime.mode.current().value)


@router.put("/mode", response_model=ModeChange)
def put_mode(body: ModeUpdate, runtime: Runtime = Depends(get_runtime)) -> ModeChange:
    prev = runtime.mode.set(body.mode)
    return ModeChange(mode=runtime.mode.current().value, previous=prev.value)
