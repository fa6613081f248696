from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from flatwatch.bootstrap import build_runtime
from flatwatch.config import settings

log = logging.getLogger("run_scheduler")


def _quiet_logging() -> None:
    # Root defaults
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(levelname)s:%(name)s:%(message)s",
    )

    # Quiet the usual offenders
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


async def run_once() -> int:
    rt = build_runtime()
    await rt.create_schema()
    try:
        result = await rt.scheduler.poll()
    except Exception:
        log.exception("poll cycle failed")
        return 1
    finally:
        await rt.engine.dispose()
    log.info("summary %s", result.summary())
    return 0


async def run_forever() -> int:
    rt = build_runtime()
    await rt.create_schema()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            pass

    listener_task = None
    if rt.listener is not None:
        listener_task = asyncio.create_task(rt.listener.run())

    rt.scheduler.start()
    log.info("Scheduler started mode=%s", rt.mode.current().value)

    try:
        await stop.wait()
    finally:
        await rt.scheduler.stop()
        if listener_task is not None:
            rt.listener.stop()
            listener_task.cancel()
            try:
                await listener_task
            except asyncio.CancelledError:
                pass
        await rt.engine.dispose()
        log.info("Scheduler stopped")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--once", action="store_true", help="Run a single poll cycle and exit")
    args = parser.parse_args()

    _quiet_logging()
    code = asyncio.run(run_once() if args.once else run_forever())
    sys.exit(code)


if __name__ == "__main__":
    main()
