# config.py
# env driven settings + per-capability credential bundles

import os
from dataclasses import dataclass
from typing import Optional

import httpx

# provider timeout (seconds), applied per httpx client
DEFAULT_TIMEOUT_S = 20.0

# default cache TTL (6 hours)
DEFAULT_CACHE_TTL_S = 6 * 60 * 60


@dataclass(frozen=True)
class AmadeusConfig:
    client_id: str
    client_secret: str
    base_url: str = "https://test.api.amadeus.com"


@dataclass(frozen=True)
class OpenTripMapConfig:
    api_key: str
    base_url: str = "https://api.opentripmap.com/0.1/en/places"


@dataclass(frozen=True)
class BookingConfig:
    rapid_api_key: str


@dataclass(frozen=True)
class OpenMeteoConfig:
    base_url: str = "https://api.open-meteo.com/v1/forecast"


@dataclass
class ProviderConfig:
    """
    Optional credential bundles per capability. A missing bundle is not an
    error: that capability goes straight to its mock tier.
    """
    amadeus: Optional[AmadeusConfig] = None
    opentripmap: Optional[OpenTripMapConfig] = None
    booking: Optional[BookingConfig] = None
    open_meteo: Optional[OpenMeteoConfig] = None
    timeout_s: float = DEFAULT_TIMEOUT_S
    # tests swap this for httpx.MockTransport
    transport: Optional[httpx.AsyncBaseTransport] = None

    def client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport, **kwargs)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() not in ["0", "false", "no"]


def load_provider_config() -> ProviderConfig:
    """Build the provider config from the process environment."""
    config = ProviderConfig(timeout_s=float(os.getenv("PROVIDER_TIMEOUT_S", str(DEFAULT_TIMEOUT_S))))

    client_id = os.getenv("AMADEUS_CLIENT_ID", "")
    client_secret = os.getenv("AMADEUS_CLIENT_SECRET", "")
    if client_id and client_secret:
        config.amadeus = AmadeusConfig(client_id=client_id, client_secret=client_secret)

    otm_key = os.getenv("OPENTRIPMAP_API_KEY", "")
    if otm_key:
        config.opentripmap = OpenTripMapConfig(api_key=otm_key)

    booking_key = os.getenv("BOOKING_RAPIDAPI_KEY", "")
    if booking_key:
        config.booking = BookingConfig(rapid_api_key=booking_key)

    # open-meteo is keyless, so it is on unless explicitly disabled
    if _flag("OPEN_METEO_ENABLE", "1"):
        config.open_meteo = OpenMeteoConfig()

    return config
