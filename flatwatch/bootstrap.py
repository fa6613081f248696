# flatwatch/bootstrap.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .adapters.clients.form_submitter import HttpFormSubmitter
from .adapters.repos.listings import SqlAlchemyStore
from .adapters.sources.stub_json import StubJsonSource
from .config import settings
from .domain.quiet_hours import QuietHours
from .integrations.notifiers import FanoutNotifier, LogNotifier
from .integrations.telegram import TelegramNotifier
from .integrations.telegram_commands import TelegramCommandListener
from .integrations.webhook import WebhookNotifier
from .jobs.scheduler import Scheduler
from .messaging.composer import TemplateComposer
from .messaging.openai_enhancer import OpenAIEnhancer
from .models import Base
from .service_layer.ports import Composer, Enhancer, Notifier, Source, Submitter
from .services.action_mode import ActionModeController
from .services.rate_limiter import RateLimiter

log = logging.getLogger(__name__)


@dataclass
class Runtime:
    engine: AsyncEngine
    session_maker: async_sessionmaker[AsyncSession]
    store: SqlAlchemyStore
    mode: ActionModeController
    scheduler: Scheduler
    listener: TelegramCommandListener | None = None

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


def _telegram_configured() -> bool:
    return bool(settings.TELEGRAM_ENABLED and settings.TELEGRAM_BOT_TOKEN and settings.TELEGRAM_CHAT_ID)


def build_notifier() -> Notifier:
    channels: list[Notifier] = []
    if _telegram_configured():
        channels.append(TelegramNotifier.from_settings())
    elif settings.TELEGRAM_ENABLED:
        log.warning("TELEGRAM_ENABLED but bot token or chat id missing, telegram disabled")
    if settings.WEBHOOK_URL:
        channels.append(WebhookNotifier.from_settings())

    if not channels:
        return LogNotifier()
    if len(channels) == 1:
        return channels[0]
    return FanoutNotifier(channels)


def build_enhancer() -> Enhancer | None:
    if not settings.OPENAI_ENABLED:
        return None
    if not settings.OPENAI_API_KEY:
        log.warning("OPENAI_ENABLED but OPENAI_API_KEY missing, using template messages only")
        return None
    return OpenAIEnhancer.from_settings()


def build_runtime(
    *,
    engine: AsyncEngine | None = None,
    source: Source | None = None,
    notifier: Notifier | None = None,
    composer: Composer | None = None,
    enhancer: Enhancer | None = None,
    submitter: Submitter | None = None,
    rate_limiter: RateLimiter | None = None,
    mode: ActionModeController | None = None,
) -> Runtime:
    """
    Wire everything from settings. Every collaborator can be swapped (tests, scripts).
    """
    if engine is None:
        from .db import engine as default_engine

        engine = default_engine

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    store = SqlAlchemyStore(session_maker)
    mode = mode or ActionModeController(settings.INITIAL_ACTION_MODE)

    scheduler = Scheduler(
        store=store,
        source=source or StubJsonSource.from_settings(),
        notifier=notifier or build_notifier(),
        composer=composer or TemplateComposer.from_settings(),
        enhancer=enhancer if enhancer is not None else build_enhancer(),
        submitter=submitter or HttpFormSubmitter.from_settings(),
        rate_limiter=rate_limiter or RateLimiter.from_settings(),
        mode=mode,
        quiet_hours=QuietHours.from_settings() if settings.QUIET_HOURS_ENABLED else None,
        poll_interval_s=settings.POLL_INTERVAL_SECONDS,
        contact_enabled=settings.CONTACT_ENABLED,
    )

    listener = None
    if _telegram_configured():
        listener = TelegramCommandListener(TelegramNotifier.from_settings(), mode, scheduler=scheduler)

    return Runtime(
        engine=engine,
        session_maker=session_maker,
        store=store,
        mode=mode,
        scheduler=scheduler,
        listener=listener,
    )
