# flatwatch/messaging/openai_enhancer.py
from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import settings
from ..domain.errors import EnhancementError
from ..domain.types import ListingCandidate
from .composer import generic_details

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You write personalized sentences for rental applications. "
    "Write 1-2 authentic, enthusiastic sentences about why this particular flat is appealing, "
    "naming concrete details from the listing. Write naturally, not generically. "
    "Do not mention a viewing and do not add a greeting or sign-off."
)


def _truncate(s: str, n: int) -> str:
    return s if len(s) <= n else s[:n] + "..."


def build_prompt(listing: ListingCandidate) -> str:
    features: list[str] = []
    if listing.has_balcony:
        features.append("balcony")
    if listing.has_ebk:
        features.append("fitted kitchen")
    if listing.has_elevator:
        features.append("elevator")
    if listing.rooms:
        features.append(f"{listing.rooms:g} rooms")
    if listing.area:
        features.append(f"{listing.area:.0f} m²")

    return (
        "Listing:\n"
        f"- Title: {listing.title}\n"
        f"- Location: {listing.district} {listing.city}\n"
        f"- Features: {', '.join(features)}\n"
        f"- Description: {_truncate(listing.description, 500)}\n\n"
        "Return ONLY the 1-2 sentences, no quotes, no explanation."
    )


class OpenAIEnhancer:
    """
    Replaces the generic personalized paragraph with one written by a chat model.
    Raises EnhancementError on any failure; the caller keeps the base message.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    @classmethod
    def from_settings(cls) -> "OpenAIEnhancer":
        return cls(
            settings.OPENAI_API_KEY or "",
            model=settings.OPENAI_MODEL,
            base_url=settings.OPENAI_BASE_URL,
        )

    async def _generate(self, listing: ListingCandidate) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(listing)},
            ],
            "max_tokens": 150,
            "temperature": 0.7,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise EnhancementError(f"openai request failed: {e}") from e

        if r.status_code != 200:
            raise EnhancementError(f"openai HTTP {r.status_code}: {r.text[:300]}")

        try:
            text = r.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise EnhancementError(f"unexpected openai response: {e}") from e

        text = (text or "").strip()
        if not text:
            raise EnhancementError("openai returned an empty completion")
        return text

    async def enhance(self, message: str, listing: ListingCandidate) -> str:
        if not self.api_key:
            raise EnhancementError("OPENAI_API_KEY not set")

        generic = generic_details(listing)
        if generic not in message:
            log.debug("no personalized paragraph in message external_id=%s", listing.external_id)
            return message

        personal = await self._generate(listing)
        return message.replace(generic, personal, 1)
