from __future__ import annotations

import hmac
import hashlib
import json
from dataclasses import asdict
from typing import Any

import httpx

from ..config import settings
from ..domain.types import ListingCandidate


class WebhookNotifier:
    def __init__(
        self,
        url: str,
        secret: str | None = None,
        timeout_s: int = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.secret = secret
        self.timeout_s = timeout_s
        self.transport = transport

    @classmethod
    def from_settings(cls) -> "WebhookNotifier":
        return cls(settings.WEBHOOK_URL or "", settings.WEBHOOK_SECRET)

    def _sign(self, body: bytes) -> str | None:
        if not self.secret:
            return None
        return hmac.new(self.secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    async def deliver(self, event_type: str, payload: dict[str, Any]) -> None:
        body = json.dumps({"type": event_type, "data": payload}, default=str).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        sig = self._sign(body)
        if sig:
            headers["X-Flatwatch-Signature"] = sig

        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
            r = await client.post(self.url, content=body, headers=headers)
        if not (200 <= r.status_code < 300):
            raise RuntimeError(f"webhook HTTP {r.status_code}: {r.text[:500]}")

    async def notify_new(self, listing: ListingCandidate) -> None:
        await self.deliver("listing.new", asdict(listing))

    async def notify_contact_sent(self, listing: ListingCandidate) -> None:
        await self.deliver("contact.sent", {"external_id": listing.external_id, "url": listing.url})

    async def notify_contact_failed(self, listing: ListingCandidate, error: str) -> None:
        await self.deliver("contact.failed", {"external_id": listing.external_id, "url": listing.url, "error": error})

    async def notify_preview(self, listing: ListingCandidate, message: str) -> None:
        await self.deliver("contact.preview", {"external_id": listing.external_id, "message": message})

    async def notify_error(self, text: str) -> None:
        await self.deliver("error", {"text": text})
