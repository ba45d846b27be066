# providers/fallback.py
# cache -> live -> mock resolution shared by every capability provider

import logging
from typing import Awaitable, Callable, TypeVar
from context import CACHE_PREFIX, ProviderContext

log = logging.getLogger("trip-designer.providers")

T = TypeVar("T")

# why the live tier did not answer; mock builders pick their note from this
UNCONFIGURED = "unconfigured"
FAILED = "failed"      # non-success status
EMPTY = "empty"        # success status but nothing usable
ERRORED = "errored"    # transport/decoding error


class LiveUnavailable(Exception):
    """Raised by a live fetcher when the upstream cannot be used."""

    def __init__(self, reason: str, detail: str = ""):
        super().__init__(detail or reason)
        self.reason = reason
        self.detail = detail


async def resolve(
    context: ProviderContext,
    capability: str,
    key: str,
    source: str,
    live: Callable[[], Awaitable[T]],
    mock: Callable[[str], T],
) -> T:
    """
    1. cache hit  -> tag "cache:<capability>", return as is
    2. live fetch -> tag <source>, cache, return
    3. otherwise  -> tag "<capability>:mock", cache the mock, return

    Never raises for upstream reasons: live() signals with LiveUnavailable.
    """
    cached = context.cache.get(key)
    if cached is not None:
        context.record(f"{CACHE_PREFIX}{capability}")
        return cached

    try:
        result = await live()
        context.record(source)
    except LiveUnavailable as e:
        if e.reason == UNCONFIGURED:
            log.debug("%s: %s not configured, using mock data", capability, source)
        else:
            log.warning("%s: %s %s (%s), using mock data", capability, source, e.reason, e.detail)
        result = mock(e.reason)
        context.record(f"{capability}:mock")

    context.cache.set(key, result)
    return result
