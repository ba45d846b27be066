from typing import Callable

import httpx
import pytest

from config import AmadeusConfig, BookingConfig, OpenMeteoConfig, OpenTripMapConfig, ProviderConfig
from context import ProviderContext
from utils import TTLCache


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock) -> TTLCache:
    return TTLCache(ttl_seconds=60, clock=clock)


@pytest.fixture()
def ctx(cache) -> ProviderContext:
    return ProviderContext(cache=cache)


@pytest.fixture()
def empty_config() -> ProviderConfig:
    return ProviderConfig()


@pytest.fixture()
def live_config() -> Callable[[Callable[[httpx.Request], httpx.Response]], ProviderConfig]:
    """Every bundle configured, all traffic answered by `handler`."""

    def build(handler):
        return ProviderConfig(
            amadeus=AmadeusConfig(client_id="id", client_secret="secret"),
            opentripmap=OpenTripMapConfig(api_key="otm-key"),
            booking=BookingConfig(rapid_api_key="rapid"),
            open_meteo=OpenMeteoConfig(),
            transport=httpx.MockTransport(handler),
        )

    return build
