"""Candidate selection by TVL band and listing recency."""

from __future__ import annotations

from collections.abc import Iterable

from junkscan.config import ScanConfig
from junkscan.feed.client import RawRecord


def is_candidate(record: RawRecord, config: ScanConfig, now: float) -> bool:
    # Future listedAt gives a negative age and always passes.
    age = now - record.listed_at
    return config.min_tvl <= record.tvl <= config.max_tvl and age < config.max_listing_age_seconds


def filter_candidates(records: Iterable[RawRecord], config: ScanConfig, now: float) -> list[RawRecord]:
    """Records inside the TVL band and listed within the age window, in feed order."""
    return [record for record in records if is_candidate(record, config, now)]
