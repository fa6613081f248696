# flatwatch/messaging/composer.py
from __future__ import annotations

import logging
from pathlib import Path
from string import Template

from ..config import settings
from ..domain.types import ListingCandidate

log = logging.getLogger(__name__)

DEFAULT_TEMPLATE = """Dear Sir or Madam,

my name is $sender_name and I am very interested in the flat you are offering in $location.

$details

I am looking for a flat where I can settle in for the long term. My tenant self-disclosure and proof of income are ready and I can send them right away.

I would be very happy to be invited to a viewing. You can also reach me at $sender_phone or $sender_email.

Thank you for your time.

Kind regards
$sender_name
"""


def generic_details(listing: ListingCandidate) -> str:
    """
    The personalized paragraph used when no model-written one is available.
    Deterministic for a given listing.
    """
    details: list[str] = []
    if listing.has_balcony:
        details.append("the balcony")
    if listing.has_ebk:
        details.append("the fitted kitchen")
    if listing.area:
        details.append(f"the generous living space of {listing.area:.0f} m²")
    if listing.district:
        details.append(f"the location in {listing.district}")

    if len(details) >= 2:
        return f"The photos appealed to me right away, especially {details[0]} and {details[1]}."
    if len(details) == 1:
        return f"The photos appealed to me right away, especially {details[0]}."
    return "The photos appealed to me right away and the flat matches exactly what I am looking for."


def _num(v: float | None, fmt: str) -> str:
    return fmt.format(v) if v else ""


class TemplateComposer:
    """
    Renders the contact message with string.Template ($placeholders).
    Unknown placeholders are left as-is.
    """

    def __init__(
        self,
        template: str = DEFAULT_TEMPLATE,
        *,
        sender_name: str = "",
        sender_email: str = "",
        sender_phone: str = "",
    ) -> None:
        self.template = Template(template)
        self.sender = {"sender_name": sender_name, "sender_email": sender_email, "sender_phone": sender_phone}

    @classmethod
    def from_settings(cls) -> "TemplateComposer":
        text = DEFAULT_TEMPLATE
        path = settings.MESSAGE_TEMPLATE_PATH
        if path:
            try:
                text = Path(path).read_text(encoding="utf-8")
            except OSError as e:
                log.warning("message template %s unreadable (%s), using built-in template", path, e)
        return cls(
            text,
            sender_name=settings.SENDER_NAME,
            sender_email=settings.SENDER_EMAIL,
            sender_phone=settings.SENDER_PHONE,
        )

    def compose(self, listing: ListingCandidate) -> str:
        fields = {
            "title": listing.title,
            "address": listing.address,
            "city": listing.city,
            "district": listing.district,
            "postal_code": listing.postal_code,
            "location": listing.district or listing.city or "your area",
            "price": _num(listing.price, "{:.0f}"),
            "rooms": _num(listing.rooms, "{:g}"),
            "area": _num(listing.area, "{:.0f}"),
            "description": listing.description,
            "landlord_name": listing.landlord_name,
            "url": listing.url,
            "details": generic_details(listing),
            **self.sender,
        }
        return self.template.safe_substitute(fields)
