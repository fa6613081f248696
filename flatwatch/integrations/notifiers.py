# flatwatch/integrations/notifiers.py
from __future__ import annotations

import logging
from typing import Sequence

from ..domain.types import ListingCandidate
from ..service_layer.ports import Notifier

log = logging.getLogger(__name__)


class LogNotifier:
    """Used when no real channel is configured."""

    async def notify_new(self, listing: ListingCandidate) -> None:
        log.info("NEW %s %s price=%s rooms=%s %s", listing.external_id, listing.title, listing.price, listing.rooms, listing.url)

    async def notify_contact_sent(self, listing: ListingCandidate) -> None:
        log.info("CONTACTED %s %s", listing.external_id, listing.url)

    async def notify_contact_failed(self, listing: ListingCandidate, error: str) -> None:
        log.warning("CONTACT FAILED %s: %s", listing.external_id, error)

    async def notify_preview(self, listing: ListingCandidate, message: str) -> None:
        log.info("PREVIEW %s\n%s", listing.external_id, message)

    async def notify_error(self, text: str) -> None:
        log.error("ERROR %s", text)


class FanoutNotifier:
    """
    Delivers to every channel. A failing channel does not stop the others,
    but the call raises afterwards so the listing is retried next cycle.
    """

    def __init__(self, notifiers: Sequence[Notifier]) -> None:
        self.notifiers = list(notifiers)

    async def _each(self, method: str, *args) -> None:
        errors: list[str] = []
        for n in self.notifiers:
            try:
                await getattr(n, method)(*args)
            except Exception as e:
                log.warning("%s.%s failed: %s", type(n).__name__, method, e)
                errors.append(f"{type(n).__name__}: {e}")
        if errors:
            raise RuntimeError("; ".join(errors))

    async def notify_new(self, listing: ListingCandidate) -> None:
        await self._each("notify_new", listing)

    async def notify_contact_sent(self, listing: ListingCandidate) -> None:
        await self._each("notify_contact_sent", listing)

    async def notify_contact_failed(self, listing: ListingCandidate, error: str) -> None:
        await self._each("notify_contact_failed", listing, error)

    async def notify_preview(self, listing: ListingCandidate, message: str) -> None:
        await self._each("notify_preview", listing, message)

    async def notify_error(self, text: str) -> None:
        await self._each("notify_error", text)
