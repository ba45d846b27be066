# context.py
# per-request provider context: borrowed cache + provenance tags

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from models import ToolMeta
from utils import TTLCache

CACHE_PREFIX = "cache:"
MOCK_SENTINEL = "mock-data"

# human readable names for the tags providers record
DISPLAY_NAMES = {
    "amadeus": "Amadeus",
    "opentripmap": "OpenTripMap",
    "open-meteo": "Open-Meteo",
    "flights:mock": "Mock flights",
    "stays:mock": "Mock stays",
    "weather:mock": "Weather (mock)",
    "places:mock": "Places (mock)",
    "destination:mock": "Destination (mock)",
}


@dataclass
class ProviderContext:
    """
    Lives for exactly one planning (or tool) call. The cache is shared
    across requests; the provenance tags are not.
    """
    cache: TTLCache
    # dict keeps first-seen order, values unused
    _tags: dict[str, None] = field(default_factory=dict)

    def record(self, tag: str) -> None:
        self._tags.setdefault(tag, None)

    @property
    def tags(self) -> List[str]:
        return list(self._tags)

    def meta(self) -> ToolMeta:
        return summarize_provenance(self.tags)


def display_name(tag: str) -> str:
    return DISPLAY_NAMES.get(tag, tag)


def summarize_provenance(tags: List[str], now: datetime | None = None) -> ToolMeta:
    """
    Reduce raw tags to the metadata block: cache tags only drive the cached
    flag, everything else is shown by display name (deduped, first-seen order).
    """
    providers: List[str] = []
    for tag in tags:
        if tag.startswith(CACHE_PREFIX):
            continue
        name = display_name(tag)
        if name not in providers:
            providers.append(name)
    cached = any(tag.startswith(CACHE_PREFIX) for tag in tags)
    generated = (now or datetime.now(timezone.utc)).isoformat()
    return ToolMeta(generatedAt=generated, providers=providers or [MOCK_SENTINEL], cached=cached)
