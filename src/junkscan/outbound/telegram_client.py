"""Telegram Bot API client."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

logger = structlog.get_logger()

API_BASE = "https://api.telegram.org"


class TelegramClient:
    """Thin sendMessage wrapper shared by every scan cycle."""

    def __init__(
        self,
        token: str | None,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token = token
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._token)

    def send_message(
        self,
        chat_id: str | None,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> dict[str, str | bool | None]:
        """Send an HTML message to a chat and return a structured result."""
        if not self._token or not chat_id:
            return {"ok": False, "error": "telegram_config_missing", "message_id": None}

        url = f"{API_BASE}/bot{self._token}/sendMessage"
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup

        try:
            with httpx.Client(timeout=self._timeout_seconds, transport=self._transport) as client:
                response = client.post(url, json=payload)
            if response.status_code != 200:
                return {
                    "ok": False,
                    "error": f"telegram_http_{response.status_code}",
                    "message_id": None,
                }
            data = response.json()
            if not data.get("ok"):
                return {
                    "ok": False,
                    "error": str(data.get("description") or "telegram_error"),
                    "message_id": None,
                }
            return {
                "ok": True,
                "error": None,
                "message_id": str((data.get("result") or {}).get("message_id")),
            }
        except Exception as exc:
            logger.warning("Telegram send failed", error=str(exc))
            return {"ok": False, "error": str(exc), "message_id": None}
