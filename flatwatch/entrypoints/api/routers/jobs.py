# flatwatch/entrypoints/api/routers/jobs.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_runtime, get_session, require_api_key
from ....bootstrap import Runtime
from ....schemas import JobStatus, PollResult
from ....service_layer.jobruns import finish_job_fail, finish_job_success, start_job

router = APIRouter(tags=["jobs"], dependencies=[Depends(require_api_key)])


def _status(runtime: Runtime) -> JobStatus:
    sched = runtime.scheduler
    last = sched.last_result
    return JobStatus(
        state=sched.state,
        mode=runtime.mode.current().value,
        poll_interval_s=sched.poll_interval_s,
        last_result=PollResult(**last.summary()) if last else None,
    )


@router.post("/jobs/poll", response_model=PollResult)
async def jobs_poll(
    runtime: Runtime = Depends(get_runtime),
    session: AsyncSession = Depends(get_session),
) -> PollResult:
    jr = await start_job(session, "poll_api")
    await session.commit()
    try:
        res = await runtime.scheduler.poll()
        summary = res.summary()
        await finish_job_success(session, jr, summary)
        await session.commit()
        return PollResult(**summary)
    except Exception as e:
        await finish_job_fail(session, jr, e)
        await session.commit()
        raise


@router.post("/jobs/start", response_model=JobStatus)
async def jobs_start(runtime: Runtime = Depends(get_runtime)) -> JobStatus:
    runtime.scheduler.start()
    return _status(runtime)


@router.post("/jobs/stop", response_model=JobStatus)
async def jobs_stop(runtime: Runtime = Depends(get_runtime)) -> JobStatus:
    await runtime.scheduler.stop()
    return _status(runtime)


@router.get("/jobs/status", response_model=JobStatus)
async def jobs_status(runtime: Runtime = Depends(get_runtime)) -> JobStatus:
    return _status(runtime)
