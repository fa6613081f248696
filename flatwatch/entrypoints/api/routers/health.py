# flatwatch/entrypoints/api/routers/health.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..deps import get_runtime, require_api_key
from ....bootstrap import Runtime
from ....config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/debug/config", dependencies=[Depends(require_api_key)])
def debug_config(runtime: Runtime = Depends(get_runtime)) -> dict[str, Any]:
    return {
        "ENV": settings.ENV,
        "POLL_INTERVAL_SECONDS": settings.POLL_INTERVAL_SECONDS,
        "CONTACT_ENABLED": settings.CONTACT_ENABLED,
        "QUIET_HOURS_ENABLED": settings.QUIET_HOURS_ENABLED,
        "SOURCE_FIXTURES_DIR": settings.SOURCE_FIXTURES_DIR,
        "notifier": type(runtime.scheduler.notifier).__name__,
        "enhancer": type(runtime.scheduler.enhancer).__name__ if runtime.scheduler.enhancer else None,
        "TELEGRAM_BOT_TOKEN_SET": bool(settings.TELEGRAM_BOT_TOKEN),
        "OPENAI_API_KEY_SET": bool(settings.OPENAI_API_KEY),
    }
