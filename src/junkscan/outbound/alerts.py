"""Alert rendering and delivery for new signals."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import structlog

from junkscan.errors import NotifyError
from junkscan.signals import Signal

logger = structlog.get_logger()


@dataclass(frozen=True)
class LookupService:
    label: str
    url_template: str  # `{q}` is replaced by the URL-encoded query

    def url_for(self, query: str) -> str:
        return self.url_template.format(q=quote(query, safe=""))


ARKHAM = LookupService("🔎 ARKHAM", "https://platform.arkhamintelligence.com/explorer/search?q={q}")
BUBBLEMAPS = LookupService("🫧 BUBBLES", "https://app.bubblemaps.io/eth/?q={q}")
DEXSCREENER = LookupService("📊 DEXSCR", "https://dexscreener.com/search?q={q}")
TWITTER = LookupService("🐦 TWITTER", "https://twitter.com/search?q={q}")

LOOKUP_SERVICES = (ARKHAM, BUBBLEMAPS, DEXSCREENER)


class MessageClient(Protocol):
    def send_message(
        self,
        chat_id: str | None,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> dict[str, str | bool | None]: ...


class Notifier(Protocol):
    def notify(self, signal: Signal) -> None: ...


def render_alert_text(signal: Signal) -> str:
    return (
        "🚨 <b>JUNKSCAN SIGNAL</b>\n"
        f"\n<b>{html.escape(signal.title)}</b>"
        f"\nSource: {html.escape(signal.source)}"
        f"\n{html.escape(signal.description)}"
    )


def build_keyboard(signal: Signal) -> dict[str, Any]:
    """Inline keyboard: source link, then lookup services two per row."""
    buttons = [{"text": service.label, "url": service.url_for(signal.query)} for service in (*LOOKUP_SERVICES, TWITTER)]
    rows: list[list[dict[str, str]]] = []
    if signal.link:
        rows.append([{"text": "🔗 OPEN SOURCE", "url": signal.link}])
    rows.extend(buttons[i : i + 2] for i in range(0, len(buttons), 2))
    return {"inline_keyboard": rows}


class SignalNotifier:
    """Sends one alert per new signal to a single configured chat."""

    def __init__(self, client: MessageClient, chat_id: str | None) -> None:
        self._client = client
        self._chat_id = chat_id

    def notify(self, signal: Signal) -> None:
        result = self._client.send_message(
            self._chat_id,
            render_alert_text(signal),
            reply_markup=build_keyboard(signal),
        )
        if not result.get("ok"):
            raise NotifyError(f"Alert for {signal.id!r} not delivered: {result.get('error')}")
        logger.info("Alert sent", signal_id=signal.id, message_id=result.get("message_id"))
