# utils.py
# Helpers: ISO dates, canonical cache keys, rounding, simple in-memory TTL cache

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable
from datetime import date, datetime, timedelta
import json
import math
import re
import time

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str) -> date:
    """Strict YYYY-MM-DD parse. Raises ValueError on anything else."""
    if not ISO_DATE_RE.match(value):
        raise ValueError(f"{value!r} must be in YYYY-MM-DD format")
    return datetime.strptime(value, "%Y-%m-%d").date()


def add_days(start: str, offset: int) -> str:
    return (parse_iso_date(start) + timedelta(days=offset)).isoformat()


def round_half_up(value: float) -> int:
    # builtin round() is banker's rounding; prices round .5 upwards
    return int(math.floor(value + 0.5))


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_drop_none(v) for v in value]
    return value


def cache_key(namespace: str, params: dict) -> str:
    """
    Canonical, order independent key for a parameter dict.
    None fields are dropped so adding an optional field does not change
    keys for callers that never set it.
    Example: cache_key("weather", {"lat": 1, "days": 3}) -> 'weather:{"days":3,"lat":1}'
    """
    payload = json.dumps(_drop_none(params), sort_keys=True, separators=(",", ":"), default=str)
    return f"{namespace}:{payload}"


@dataclass
class CacheEntry:
    expires: float
    data: Any


class TTLCache:
    """Simple in-memory TTL cache (per-process). Expired entries are evicted on read."""

    def __init__(self, ttl_seconds: float = 6 * 60 * 60, clock: Callable[[], float] = time.time):
        self.ttl = ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires:
            self._store.pop(key, None)
            return None
        return entry.data

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Save value under key, using the default TTL unless one is given."""
        ttl = self.ttl if ttl is None else ttl
        self._store[key] = CacheEntry(expires=self._clock() + ttl, data=value)

    def __len__(self) -> int:
        return len(self._store)
