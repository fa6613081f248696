# flatwatch/integrations/telegram_commands.py
from __future__ import annotations

import asyncio
import html
import logging
from typing import Any, TYPE_CHECKING

from ..domain.types import ActionMode
from ..services.action_mode import ActionModeController
from .telegram import TelegramNotifier

if TYPE_CHECKING:
    from ..jobs.scheduler import Scheduler

log = logging.getLogger(__name__)

MODE_COMMANDS = {
    "off": ActionMode.off,
    "contact_off": ActionMode.off,
    "preview": ActionMode.preview,
    "test_mode": ActionMode.preview,
    "on": ActionMode.on,
    "contact_on": ActionMode.on,
}

MODE_LABELS = {
    ActionMode.off: "⏸ observe only (no contact)",
    ActionMode.preview: "🧪 preview (messages shown here, not sent)",
    ActionMode.on: "✅ auto-contact active",
}

HELP_TEXT = """🏠 <b>flatwatch commands</b>

/status - current mode and last cycle
/off - observe only
/preview - show messages instead of sending
/on - contact landlords automatically
/stats - listing counters
/run - poll once now
/help - this help"""


def parse_command(text: str) -> str | None:
    """'/on@my_bot extra' -> 'on'. Non-commands -> None."""
    text = (text or "").strip()
    if not text.startswith("/"):
        return None
    head = text.split()[0][1:]
    return head.split("@", 1)[0].lower() or None


class TelegramCommandListener:
    """
    Long-polls getUpdates and answers operator commands from the configured
    chat only. Mode commands write the shared ActionModeController.
    """

    def __init__(
        self,
        bot: TelegramNotifier,
        mode: ActionModeController,
        *,
        scheduler: "Scheduler | None" = None,
        poll_timeout_s: int = 30,
    ) -> None:
        self.bot = bot
        self.mode = mode
        self.scheduler = scheduler
        self.poll_timeout_s = poll_timeout_s
        self._offset = 0
        self._stopping = False

    async def handle_command(self, text: str) -> str | None:
        cmd = parse_command(text)
        if cmd is None:
            return None

        if cmd in ("start", "help"):
            return HELP_TEXT

        if cmd in MODE_COMMANDS:
            new = MODE_COMMANDS[cmd]
            self.mode.set(new)
            return f"<b>Mode:</b> {MODE_LABELS[new]}"

        if cmd == "status":
            return self._status_text()

        if cmd == "stats":
            if self.scheduler is None:
                return "Statistics not available."
            stats = await self.scheduler.store.stats()
            lines = ["📊 <b>Statistics</b>", ""]
            for k, v in stats.items():
                lines.append(f"{html.escape(str(k))}: {html.escape(str(v))}")
            return "\n".join(lines)

        if cmd == "run":
            if self.scheduler is None:
                return "Scheduler not available."
            try:
                result = await self.scheduler.poll()
            except Exception as e:
                log.exception("run-once from chat failed")
                return f"⚠️ Poll failed: {html.escape(str(e))}"
            if result.skipped_quiet_hours:
                return "😴 Quiet hours, cycle skipped."
            return (
                f"✔️ Cycle done: found {result.found}, new {result.new}, "
                f"notified {result.notified}, contacted {result.contacted}, previewed {result.previewed}"
            )

        return "Unknown command. Use /help for an overview."

    def _status_text(self) -> str:
        lines = ["🏠 <b>flatwatch status</b>", "", f"<b>Mode:</b> {MODE_LABELS[self.mode.current()]}"]
        if self.scheduler is not None:
            lines.append(f"<b>Scheduler:</b> {self.scheduler.state}")
            last = self.scheduler.last_result
            if last is not None:
                when = (last.finished_at or last.started_at).strftime("%Y-%m-%d %H:%M UTC")
                lines.append(f"<b>Last cycle:</b> {when}, new {last.new}, errors {len(last.errors)}")
        return "\n".join(lines)

    async def handle_update(self, update: dict[str, Any]) -> None:
        msg = update.get("message") or {}
        chat_id = (msg.get("chat") or {}).get("id")
        if chat_id != self.bot.chat_id:
            return

        reply = await self.handle_command(msg.get("text") or "")
        if reply:
            await self.bot.send(reply)

    async def poll_updates(self) -> int:
        """One getUpdates round. Returns number of updates seen."""
        updates = await self.bot.call(
            "getUpdates",
            {"offset": self._offset, "timeout": self.poll_timeout_s, "allowed_updates": ["message"]},
            timeout_s=self.poll_timeout_s + 10,
        )
        for u in updates or []:
            self._offset = max(self._offset, int(u.get("update_id", 0)) + 1)
            try:
                await self.handle_update(u)
            except Exception:
                log.exception("telegram command handling failed")
        return len(updates or [])

    async def run(self) -> None:
        log.info("telegram command listener started")
        while not self._stopping:
            try:
                await self.poll_updates()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.warning("getUpdates failed error=%s", e)
                await asyncio.sleep(5)
        log.info("telegram command listener stopped")

    def stop(self) -> None:
        self._stopping = True
