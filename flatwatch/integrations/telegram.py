# flatwatch/integrations/telegram.py
from __future__ import annotations

import html
import logging
from typing import Any

import httpx

from ..config import settings
from ..domain.types import ListingCandidate

log = logging.getLogger(__name__)


def _fmt_num(v: float | None, fmt: str) -> str | None:
    if not v:
        return None
    return fmt.format(v)


def format_listing(l: ListingCandidate) -> str:
    esc = html.escape
    lines = ["🏠 <b>New flat found</b>", "", f"<b>{esc(l.title or l.external_id)}</b>", ""]

    if l.address:
        lines.append(f"📍 {esc(l.address)}")
    elif l.district and l.city:
        lines.append(f"📍 {esc(l.district)}, {esc(l.city)}")
    elif l.city:
        lines.append(f"📍 {esc(l.city)}")

    price = _fmt_num(l.price, "💰 <b>{:.0f} €</b> cold rent")
    rooms = _fmt_num(l.rooms, "🚪 {:g} rooms")
    area = _fmt_num(l.area, "📐 {:.0f} m²")
    lines += [x for x in (price, rooms, area) if x]

    features = [
        name
        for name, flag in (("balcony", l.has_balcony), ("fitted kitchen", l.has_ebk), ("elevator", l.has_elevator))
        if flag
    ]
    if features:
        lines.append("✨ " + ", ".join(features))
    if l.available_from:
        lines.append(f"📅 from {esc(l.available_from)}")
    if l.landlord_name:
        who = esc(l.landlord_name)
        if l.landlord_type:
            who += f" ({esc(l.landlord_type)})"
        lines += ["", f"👤 {who}"]
    if l.url:
        lines += ["", esc(l.url)]

    return "\n".join(lines)


class TelegramNotifier:
    """
    Bot API sendMessage over httpx, HTML parse mode.
    Raises on delivery failure; the caller decides what that means.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: int,
        *,
        api_base: str = "https://api.telegram.org",
        timeout_s: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_base = api_base.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    @classmethod
    def from_settings(cls) -> "TelegramNotifier":
        return cls(
            settings.TELEGRAM_BOT_TOKEN or "",
            int(settings.TELEGRAM_CHAT_ID or 0),
            api_base=settings.TELEGRAM_API_BASE,
        )

    def _url(self, method: str) -> str:
        return f"{self.api_base}/bot{self.bot_token}/{method}"

    async def call(self, method: str, payload: dict[str, Any], *, timeout_s: float | None = None) -> Any:
        async with httpx.AsyncClient(timeout=timeout_s or self.timeout_s, transport=self.transport) as client:
            r = await client.post(self._url(method), json=payload)
        r.raise_for_status()
        body = r.json()
        if not body.get("ok"):
            raise RuntimeError(f"telegram {method} failed: {body.get('description')}")
        return body.get("result")

    async def send(self, text: str, *, chat_id: int | None = None, **extra: Any) -> None:
        payload: dict[str, Any] = {
            "chat_id": chat_id if chat_id is not None else self.chat_id,
            "text": text,
            "parse_mode": "HTML",
        }
        payload.update(extra)
        await self.call("sendMessage", payload)

    async def notify_new(self, listing: ListingCandidate) -> None:
        extra: dict[str, Any] = {}
        if listing.url:
            extra["reply_markup"] = {"inline_keyboard": [[{"text": "🔗 Open listing", "url": listing.url}]]}
        await self.send(format_listing(listing), **extra)

    async def notify_contact_sent(self, listing: ListingCandidate) -> None:
        text = (
            "✅ <b>Contact request sent</b>\n\n"
            f"<b>{html.escape(listing.title)}</b>\n"
            f"📍 {html.escape(listing.address or listing.city)}\n"
            f"🔗 {html.escape(listing.url)}"
        )
        await self.send(text)

    async def notify_contact_failed(self, listing: ListingCandidate, error: str) -> None:
        text = (
            "❌ <b>Contact request failed</b>\n\n"
            f"<b>{html.escape(listing.title)}</b>\n"
            f"🔗 {html.escape(listing.url)}\n\n"
            f"<b>Error:</b> {html.escape(error)}"
        )
        await self.send(text)

    async def notify_preview(self, listing: ListingCandidate, message: str) -> None:
        text = (
            "🧪 <b>Preview: message that would be sent</b>\n\n"
            f"<b>Listing:</b> {html.escape(listing.title)}\n"
            f"🔗 {html.escape(listing.url)}\n\n"
            f"<pre>{html.escape(message)}</pre>"
        )
        await self.send(text)

    async def notify_error(self, text: str) -> None:
        await self.send(f"⚠️ <b>flatwatch error</b>\n\n{html.escape(text)}")
