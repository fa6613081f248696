# flatwatch/jobs/scheduler.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..domain.filtering import FilterEngine
from ..domain.quiet_hours import QuietHours
from ..domain.types import (
    ActionMode,
    AttemptStatus,
    ContactAttempt,
    ListingCandidate,
    PollCycleResult,
    SearchProfile,
)
from ..service_layer.ports import Composer, Enhancer, Notifier, Source, Store, Submitter
from ..services.action_mode import ActionModeController
from ..services.rate_limiter import RateLimiter

log = logging.getLogger(__name__)


class Scheduler:
    """
    Coordinates search -> filter -> persist -> notify -> act.

    Exactly one cycle runs at a time. poll() is the run-once trigger;
    start() runs a cycle immediately and then on a fixed interval until stop().
    """

    def __init__(
        self,
        *,
        store: Store,
        source: Source,
        notifier: Notifier,
        composer: Composer,
        rate_limiter: RateLimiter,
        mode: ActionModeController,
        enhancer: Enhancer | None = None,
        submitter: Submitter | None = None,
        filter_engine: FilterEngine | None = None,
        quiet_hours: QuietHours | None = None,
        poll_interval_s: float = 300,
        contact_enabled: bool = True,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.source = source
        self.notifier = notifier
        self.composer = composer
        self.enhancer = enhancer
        self.submitter = submitter
        self.rate_limiter = rate_limiter
        self.mode = mode
        self.filter = filter_engine or FilterEngine()
        self.quiet_hours = quiet_hours
        self.poll_interval_s = float(poll_interval_s)
        self.contact_enabled = contact_enabled
        self._now = now

        self._cycle_lock = asyncio.Lock()
        self._running = False
        self._sched: AsyncIOScheduler | None = None

        self.last_result: PollCycleResult | None = None

    # -----------------------------
    # Loop control
    # -----------------------------
    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> str:
        return "running" if self._running else "idle"

    def start(self) -> None:
        """Must be called from inside the running event loop."""
        if self._running:
            return
        self._running = True

        sched = AsyncIOScheduler(timezone="UTC")
        # max_instances=2: a tick that fires mid-cycle waits on the cycle lock
        # and runs right after; coalesce folds any further backlog into it.
        sched.add_job(
            self._tick,
            "interval",
            seconds=self.poll_interval_s,
            next_run_time=datetime.now(timezone.utc),
            id="poll_cycle",
            max_instances=2,
            coalesce=True,
            misfire_grace_time=None,
        )
        sched.start()
        self._sched = sched
        log.info("scheduler started interval=%ss", self.poll_interval_s)

    async def stop(self) -> None:
        """Stops the timer and waits for an in-flight cycle to finish."""
        if not self._running:
            return
        self._running = False

        sched, self._sched = self._sched, None
        if sched is not None:
            # executor shutdown cancels running jobs: drain the cycle first
            sched.pause()

        async with self._cycle_lock:
            pass

        if sched is not None:
            sched.shutdown(wait=False)
        log.info("scheduler stopped")

    async def _tick(self) -> None:
        async with self._cycle_lock:
            if not self._running:
                return
            try:
                await self._run_cycle()
            except Exception as e:
                log.exception("poll cycle failed")
                await self._best_effort("notify_error", self.notifier.notify_error, f"Poll cycle failed: {e}")

    async def poll(self) -> PollCycleResult:
        """
        Run exactly one cycle. Fatal errors (active profiles can't be loaded)
        propagate to the caller.
        """
        async with self._cycle_lock:
            return await self._run_cycle()

    # -----------------------------
    # One cycle
    # -----------------------------
    async def _run_cycle(self) -> PollCycleResult:
        result = PollCycleResult()
        log.info("starting poll cycle")

        if self.quiet_hours is not None and self.quiet_hours.is_quiet(self._now() if self._now else None):
            log.info(
                "quiet hours active, skipping poll cycle start=%s end=%s",
                self.quiet_hours.start.strftime("%H:%M"),
                self.quiet_hours.end.strftime("%H:%M"),
            )
            result.skipped_quiet_hours = True
            result.finished_at = datetime.utcnow()
            self.last_result = result
            return result

        profiles = await self.store.active_profiles()
        log.info("processing profiles count=%d", len(profiles))

        for profile in profiles:
            try:
                await self._process_profile(profile, result)
                result.profiles_processed += 1
            except Exception as e:
                log.exception("profile processing failed profile=%s", profile.name)
                result.errors.append(f"profile:{profile.name}: {type(e).__name__}: {e}")

        try:
            await self._send_notifications(result)
        except Exception as e:
            log.exception("notification pass failed")
            result.errors.append(f"notify_pass: {type(e).__name__}: {e}")

        if not self.contact_enabled:
            log.debug("contact disabled by configuration, no action pass")
        elif self.mode.current() is ActionMode.off:
            log.debug("action mode off, no action pass")
        else:
            try:
                await self._action_pass(result)
            except Exception as e:
                log.exception("action pass failed")
                result.errors.append(f"action_pass: {type(e).__name__}: {e}")

        result.finished_at = datetime.utcnow()
        self.last_result = result
        log.info(
            "poll cycle complete found=%d new=%d notified=%d contacted=%d previewed=%d errors=%d",
            result.found,
            result.new,
            result.notified,
            result.contacted,
            result.previewed,
            len(result.errors),
        )
        return result

    async def _process_profile(self, profile: SearchProfile, result: PollCycleResult) -> None:
        log.info("searching profile=%s city=%s", profile.name, profile.city)

        await self.rate_limiter.wait()
        listings = await self.source.search(profile)
        result.found += len(listings)
        log.info("found listings count=%d profile=%s", len(listings), profile.name)

        passed: list[ListingCandidate] = []
        for c in listings:
            verdict = self.filter.evaluate(c, profile)
            if verdict.passed:
                passed.append(c)
            else:
                log.debug(
                    "listing filtered external_id=%s title=%r price=%s rooms=%s reasons=%s",
                    c.external_id,
                    c.title,
                    c.price,
                    c.rooms,
                    list(verdict.reasons),
                )
        log.info("after filtering count=%d profile=%s", len(passed), profile.name)

        new_count = 0
        for c in passed:
            try:
                if await self.store.exists(c.external_id):
                    continue
            except Exception as e:
                log.error("existence check failed external_id=%s error=%s", c.external_id, e)
                continue

            detailed = await self._fetch_detail(c)
            detailed = replace(detailed, search_profile_id=profile.id)

            # detail pages can surface fields the search page didn't have
            verdict = self.filter.evaluate(detailed, profile)
            if not verdict.passed:
                log.debug(
                    "listing filtered after detail fetch external_id=%s reasons=%s",
                    c.external_id,
                    list(verdict.reasons),
                )
                continue

            try:
                await self.store.create(detailed)
            except Exception as e:
                log.error("listing save failed external_id=%s error=%s", detailed.external_id, e)
                continue

            new_count += 1
            log.info("new listing saved external_id=%s title=%r", detailed.external_id, detailed.title)

        result.new += new_count
        log.info("new listings saved count=%d profile=%s", new_count, profile.name)

    async def _fetch_detail(self, c: ListingCandidate) -> ListingCandidate:
        try:
            await self.rate_limiter.wait()
            return await self.source.fetch_detail(c.external_id)
        except Exception as e:
            log.warning("detail fetch failed external_id=%s error=%s, using basic listing", c.external_id, e)
            return c

    # -----------------------------
    # Notify pass (always runs)
    # -----------------------------
    async def _send_notifications(self, result: PollCycleResult) -> None:
        listings = await self.store.unnotified()
        for listing in listings:
            try:
                await self.notifier.notify_new(listing)
            except Exception as e:
                log.error("notification failed external_id=%s error=%s", listing.external_id, e)
                result.errors.append(f"notify:{listing.external_id}: {e}")
                continue

            try:
                await self.store.mark_notified(listing.external_id)
            except Exception as e:
                log.error("mark notified failed external_id=%s error=%s", listing.external_id, e)
                continue
            result.notified += 1

    # -----------------------------
    # Action pass (mode-gated)
    # -----------------------------
    async def _action_pass(self, result: PollCycleResult) -> None:
        listings = await self.store.uncontacted()
        warned_no_submitter = False

        for listing in listings:
            # read per listing: a mode change affects the rest of this pass
            mode = self.mode.current()
            if mode is ActionMode.off:
                continue
            if mode is ActionMode.on and self.submitter is None:
                if not warned_no_submitter:
                    log.warning("action mode on but no submitter configured, leaving listings uncontacted")
                    warned_no_submitter = True
                continue

            message = await self._compose(listing, result)
            if message is None:
                continue

            if mode is ActionMode.on:
                await self._contact(listing, message, result)
            else:
                await self._preview(listing, message, result)

    async def _compose(self, listing: ListingCandidate, result: PollCycleResult) -> str | None:
        try:
            message = self.composer.compose(listing)
        except Exception as e:
            log.error("message generation failed external_id=%s error=%s", listing.external_id, e)
            result.errors.append(f"compose:{listing.external_id}: {e}")
            return None

        if self.enhancer is not None:
            try:
                message = await self.enhancer.enhance(message, listing)
            except Exception as e:
                log.warning("message enhancement failed, using base message external_id=%s error=%s", listing.external_id, e)
        return message

    async def _contact(self, listing: ListingCandidate, message: str, result: PollCycleResult) -> None:
        assert self.submitter is not None

        attempt: ContactAttempt | None = None
        try:
            attempt = await self.store.record_attempt(
                ContactAttempt(listing_external_id=listing.external_id, message=message)
            )
        except Exception as e:
            log.error("attempt record failed external_id=%s error=%s", listing.external_id, e)

        try:
            await self.submitter.submit(listing, message)
        except Exception as e:
            err = str(e) or type(e).__name__
            log.error("contact submission failed external_id=%s error=%s", listing.external_id, err)
            result.contact_failed += 1
            await self._update_attempt(attempt, AttemptStatus.failed, err)
            await self._best_effort("notify_contact_failed", self.notifier.notify_contact_failed, listing, err)
            return

        try:
            await self.store.mark_contacted(listing.external_id)
            result.contacted += 1
        except Exception as e:
            log.error("mark contacted failed external_id=%s error=%s", listing.external_id, e)

        await self._update_attempt(attempt, AttemptStatus.sent, None)
        await self._best_effort("notify_contact_sent", self.notifier.notify_contact_sent, listing)
        log.info("contact sent external_id=%s", listing.external_id)

    async def _preview(self, listing: ListingCandidate, message: str, result: PollCycleResult) -> None:
        try:
            await self.notifier.notify_preview(listing, message)
        except Exception as e:
            log.error("message preview notification failed external_id=%s error=%s", listing.external_id, e)
            result.errors.append(f"preview:{listing.external_id}: {e}")
            return

        # marked contacted so the same preview isn't repeated
        try:
            await self.store.mark_contacted(listing.external_id)
            result.previewed += 1
        except Exception as e:
            log.error("mark contacted failed external_id=%s error=%s", listing.external_id, e)
            return
        log.info("preview sent external_id=%s", listing.external_id)

    async def _update_attempt(self, attempt: ContactAttempt | None, status: AttemptStatus, error: str | None) -> None:
        if attempt is None or attempt.id is None:
            return
        try:
            await self.store.update_attempt_status(attempt.id, status, error)
        except Exception as e:
            log.error("attempt status update failed attempt_id=%s error=%s", attempt.id, e)

    async def _best_effort(self, what: str, fn: Callable[..., Awaitable[Any]], *args: Any) -> None:
        try:
            await fn(*args)
        except Exception as e:
            log.warning("%s failed error=%s", what, e)
