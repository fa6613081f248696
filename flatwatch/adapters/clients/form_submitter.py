# flatwatch/adapters/clients/form_submitter.py
from __future__ import annotations

import logging

import httpx

from ...config import settings
from ...domain.errors import SubmissionError
from ...domain.types import ListingCandidate
from .http_resilience import ResilientHttp

log = logging.getLogger(__name__)


class HttpFormSubmitter:
    """
    Posts the contact message to the listing's contact form endpoint.
    No browser automation: portals that need a real browser are out of scope.
    """

    def __init__(
        self,
        http: ResilientHttp,
        *,
        sender_name: str = "",
        sender_email: str = "",
        sender_phone: str = "",
    ) -> None:
        self.http = http
        self.sender_name = sender_name
        self.sender_email = sender_email
        self.sender_phone = sender_phone

    @classmethod
    def from_settings(cls) -> "HttpFormSubmitter":
        return cls(
            ResilientHttp.from_settings(),
            sender_name=settings.SENDER_NAME or "",
            sender_email=settings.SENDER_EMAIL or "",
            sender_phone=settings.SENDER_PHONE or "",
        )

    def _form(self, listing: ListingCandidate, message: str) -> dict[str, str]:
        return {
            "listing_id": listing.external_id,
            "message": message,
            "name": self.sender_name,
            "email": self.sender_email,
            "phone": self.sender_phone,
        }

    async def submit(self, listing: ListingCandidate, message: str) -> None:
        url = (listing.contact_form_url or "").strip()
        if not url:
            raise SubmissionError(f"listing {listing.external_id} has no contact form")

        try:
            resp = await self.http.request("POST", url, data=self._form(listing, message))
        except httpx.HTTPError as e:
            raise SubmissionError(f"contact form POST failed for {listing.external_id}: {e}") from e

        log.info("contact form accepted external_id=%s status=%s", listing.external_id, resp.status_code)
