"""Liveness endpoint for external uptime monitors."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from junkscan.scan.ticker import IntervalTicker

logger = structlog.get_logger()

STATUS_TEXT = "SENTINEL ACTIVE 🟢"


def create_app(ticker_factory: Callable[[], IntervalTicker] | None = None) -> FastAPI:
    """Build the app. When a ticker factory is given, scanning runs for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ticker = ticker_factory() if ticker_factory else None
        if ticker is not None:
            ticker.start()
        try:
            yield
        finally:
            if ticker is not None:
                await asyncio.to_thread(ticker.stop, 5.0)

    app = FastAPI(title="Junkscan Sentinel", lifespan=lifespan)

    @app.get("/", response_class=PlainTextResponse)
    def liveness() -> str:
        return STATUS_TEXT

    return app
