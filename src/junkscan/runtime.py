"""Process-wide wiring of the scanner's collaborators."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.exc import ArgumentError

from junkscan.config import ScanConfig, Settings
from junkscan.db import create_store_engine, make_session_factory, resolve_database_url
from junkscan.errors import ConfigError
from junkscan.feed.client import FeedClient
from junkscan.outbound.alerts import SignalNotifier
from junkscan.outbound.telegram_client import TelegramClient
from junkscan.scan.orchestrator import ScanOrchestrator
from junkscan.scan.ticker import IntervalTicker
from junkscan.storage.signal_store import SqlSignalStore, UnavailableSignalStore

logger = structlog.get_logger()


@dataclass
class Runtime:
    settings: Settings
    store: SqlSignalStore | UnavailableSignalStore
    orchestrator: ScanOrchestrator
    ticker: IntervalTicker


def build_store(settings: Settings) -> SqlSignalStore | UnavailableSignalStore:
    """Open the signal store, falling back to a degraded store on bad config.

    Only configuration problems degrade the store. The backend is not contacted
    here, so an outage surfaces as StoreError on the calls made during it.
    """
    try:
        engine = create_store_engine(resolve_database_url(settings))
    except (ConfigError, ArgumentError, ImportError) as exc:
        logger.error("Signal store init failed, running degraded", error=str(exc))
        return UnavailableSignalStore(str(exc))
    return SqlSignalStore(make_session_factory(engine), engine=engine)


def build_runtime(settings: Settings) -> Runtime:
    config = ScanConfig.from_settings(settings)
    store = build_store(settings)

    token = settings.telegram_bot_token.get_secret_value() if settings.telegram_bot_token else None
    client = TelegramClient(token, timeout_seconds=settings.telegram_timeout_seconds)
    if not client.configured or not settings.telegram_chat_id:
        logger.warning("Telegram not configured, alerts will fail")
    notifier = SignalNotifier(client, settings.telegram_chat_id)

    feed = FeedClient(settings.feed_url, timeout_seconds=settings.feed_timeout_seconds)
    orchestrator = ScanOrchestrator(feed, store, notifier, config)
    ticker = IntervalTicker(orchestrator.run_cycle, config.scan_interval_seconds)
    return Runtime(settings=settings, store=store, orchestrator=orchestrator, ticker=ticker)
