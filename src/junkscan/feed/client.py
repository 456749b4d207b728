"""HTTP client for the protocol statistics feed."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from junkscan.errors import FetchError

logger = structlog.get_logger()

USER_AGENT = "JunkscanBot/0.1 (+https://github.com/junkscan/junkscan)"


@dataclass(frozen=True)
class RawRecord:
    """One protocol entry from the feed, reduced to the fields the scanner uses."""

    name: str
    chain: str
    tvl: float
    listed_at: float  # unix seconds
    url: str


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def parse_record(item: Any) -> RawRecord | None:
    """Build a RawRecord from one JSON element, or None if it lacks usable fields."""
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    tvl = _as_number(item.get("tvl"))
    listed_at = _as_number(item.get("listedAt"))
    if not isinstance(name, str) or not name or tvl is None or listed_at is None:
        return None
    return RawRecord(
        name=name,
        chain=str(item.get("chain") or "Unknown"),
        tvl=tvl,
        listed_at=listed_at,
        url=str(item.get("url") or ""),
    )


class FeedClient:
    """Fetches the current protocol list. One attempt per call, no retries."""

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    def fetch_records(self) -> list[RawRecord]:
        try:
            with httpx.Client(
                timeout=self._timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self._transport,
            ) as client:
                response = client.get(self._url)
        except httpx.HTTPError as exc:
            raise FetchError(f"Request to {self._url} failed: {exc}") from exc

        if not response.is_success:
            raise FetchError(f"HTTP {response.status_code} from {self._url}")

        try:
            data = response.json()
        except ValueError as exc:
            raise FetchError(f"Invalid JSON from {self._url}: {exc}") from exc
        if not isinstance(data, list):
            raise FetchError(f"Expected a JSON array from {self._url}, got {type(data).__name__}")

        records: list[RawRecord] = []
        dropped = 0
        for item in data:
            record = parse_record(item)
            if record is None:
                dropped += 1
                continue
            records.append(record)

        if dropped:
            logger.debug("Dropped incomplete feed entries", dropped=dropped)
        logger.info("Feed fetched", url=self._url, records=len(records))
        return records
