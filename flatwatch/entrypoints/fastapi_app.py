# flatwatch/entrypoints/fastapi_app.py
from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI

from ..bootstrap import Runtime, build_runtime
from .api.routers import health, jobs, mode, profiles, stats

log = logging.getLogger(__name__)


def create_app(runtime: Runtime | None = None) -> FastAPI:
    app = FastAPI(title="flatwatch - listing watcher")
    app.state.runtime = runtime or build_runtime()
    app.state.listener_task = None

    @app.on_event("startup")
    async def _startup() -> None:
        # Single place where DB tables are created in dev.
        rt: Runtime = app.state.runtime
        await rt.create_schema()
        if rt.listener is not None:
            app.state.listener_task = asyncio.create_task(rt.listener.run())

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        rt: Runtime = app.state.runtime
        await rt.scheduler.stop()
        task = app.state.listener_task
        if task is not None:
            rt.listener.stop()
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await rt.engine.dispose()

    # Routers
    app.include_router(health.router)
    app.include_router(jobs.router)
    app.include_router(mode.router)
    app.include_router(profiles.router)
    app.include_router(stats.router)

    return app
