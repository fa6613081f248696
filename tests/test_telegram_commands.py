# tests/test_telegram_commands.py
import json

import httpx
import pytest

from flatwatch.domain.types import ActionMode, ListingCandidate, SearchProfile
from flatwatch.integrations.telegram import TelegramNotifier, format_listing
from flatwatch.integrations.telegram_commands import TelegramCommandListener, parse_command
from flatwatch.jobs.scheduler import Scheduler
from flatwatch.services.action_mode import ActionModeController

from fakes import FakeComposer, FakeNotifier, FakeSource, FakeStore, no_wait_limiter


class BotRecorder:
    """httpx MockTransport handler that records Bot API calls."""

    def __init__(self, updates=None):
        self.calls = []
        self.updates = list(updates or [])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content or b"{}")
        self.calls.append((method, body))
        if method == "getUpdates":
            out, self.updates = self.updates, []
            return httpx.Response(200, json={"ok": True, "result": out})
        return httpx.Response(200, json={"ok": True, "result": {"message_id": len(self.calls)}})


def _bot(recorder, chat_id=42):
    return TelegramNotifier("TOKEN", chat_id, transport=httpx.MockTransport(recorder))


def test_parse_command():
    assert parse_command("/on") == "on"
    assert parse_command("/Preview@flat_bot now") == "preview"
    assert parse_command("hello") is None
    assert parse_command("") is None


@pytest.mark.asyncio
async def test_mode_commands_and_aliases():
    mode = ActionModeController()
    listener = TelegramCommandListener(_bot(BotRecorder()), mode)

    for text, expected in [
        ("/on", ActionMode.on),
        ("/off", ActionMode.off),
        ("/preview", ActionMode.preview),
        ("/contact_on", ActionMode.on),
        ("/test_mode", ActionMode.preview),
        ("/contact_off", ActionMode.off),
    ]:
        reply = await listener.handle_command(text)
        assert mode.current() is expected
        assert "Mode" in reply


@pytest.mark.asyncio
async def test_help_status_unknown():
    mode = ActionModeController("preview")
    listener = TelegramCommandListener(_bot(BotRecorder()), mode)

    assert "/preview" in await listener.handle_command("/help")
    assert "preview" in await listener.handle_command("/status")
    assert "Unknown command" in await listener.handle_command("/dance")
    assert await listener.handle_command("just chatting") is None


@pytest.mark.asyncio
async def test_run_and_stats_use_scheduler():
    store = FakeStore([SearchProfile(id=1, name="p", city="Berlin")])
    source = FakeSource({"p": [ListingCandidate(external_id="a", city="Berlin")]})
    mode = ActionModeController()
    sched = Scheduler(
        store=store,
        source=source,
        notifier=FakeNotifier(),
        composer=FakeComposer(),
        rate_limiter=no_wait_limiter(),
        mode=mode,
    )
    listener = TelegramCommandListener(_bot(BotRecorder()), mode, scheduler=sched)

    reply = await listener.handle_command("/run")
    assert "new 1" in reply

    stats = await listener.handle_command("/stats")
    assert "listings_total: 1" in stats

    status = await listener.handle_command("/status")
    assert "Last cycle" in status


@pytest.mark.asyncio
async def test_updates_from_other_chats_are_ignored():
    rec = BotRecorder(
        updates=[
            {"update_id": 10, "message": {"chat": {"id": 999}, "text": "/on"}},
            {"update_id": 11, "message": {"chat": {"id": 42}, "text": "/preview"}},
        ]
    )
    mode = ActionModeController()
    listener = TelegramCommandListener(_bot(rec), mode)

    n = await listener.poll_updates()

    assert n == 2
    assert mode.current() is ActionMode.preview
    sent = [b for m, b in rec.calls if m == "sendMessage"]
    assert len(sent) == 1 and sent[0]["chat_id"] == 42

    # offset advances past what we've seen
    await listener.poll_updates()
    assert rec.calls[-1][1]["offset"] == 12


@pytest.mark.asyncio
async def test_notifier_escapes_html_and_adds_button():
    rec = BotRecorder()
    bot = _bot(rec)
    listing = ListingCandidate(external_id="a", title="<b>Loft</b> & more", url="https://x.example/a", price=900)

    await bot.notify_new(listing)

    method, body = rec.calls[0]
    assert method == "sendMessage"
    assert body["parse_mode"] == "HTML"
    assert "&lt;b&gt;Loft&lt;/b&gt; &amp; more" in body["text"]
    assert body["reply_markup"]["inline_keyboard"][0][0]["url"] == "https://x.example/a"


@pytest.mark.asyncio
async def test_notifier_raises_when_api_says_no():
    def handler(request):
        return httpx.Response(200, json={"ok": False, "description": "chat not found"})

    bot = TelegramNotifier("T", 1, transport=httpx.MockTransport(handler))
    with pytest.raises(RuntimeError):
        await bot.notify_error("boom")


def test_format_listing_skips_unknown_numbers():
    text = format_listing(ListingCandidate(external_id="a", title="T", city="Berlin", rooms=2.5))
    assert "2.5 rooms" in text
    assert "cold rent" not in text
