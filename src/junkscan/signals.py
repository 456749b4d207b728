"""Signal contract and helpers for building signals from feed records."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from junkscan.feed.client import RawRecord

SIGNAL_TAG = "PROTO"
SIGNAL_SOURCE = "DEFILLAMA"


@dataclass(frozen=True)
class Signal:
    id: str
    tag: str
    source: str
    title: str
    description: str
    link: str
    timestamp: int  # epoch ms
    query: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def signal_id(name: str) -> str:
    """Store key for a record name. Slashes would read as path separators."""
    return name.replace("/", "-")


def format_tvl(value: float) -> str:
    if value > 1e6:
        return f"{value / 1e6:.1f}M"
    if value > 1e3:
        return f"{value / 1e3:.1f}K"
    return f"{value:.0f}"


def build_signal(record: RawRecord, *, now_ms: int) -> Signal:
    return Signal(
        id=signal_id(record.name),
        tag=SIGNAL_TAG,
        source=SIGNAL_SOURCE,
        title=record.name,
        description=f"Chain: {record.chain} • TVL: ${format_tvl(record.tvl)}",
        link=record.url,
        timestamp=now_ms,
        query=record.name,
    )
