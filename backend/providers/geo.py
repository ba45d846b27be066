# providers/geo.py
# OpenTripMap geoname lookup: free-text city -> name, country, coordinates

import httpx
from config import ProviderConfig
from context import ProviderContext
from models import DestinationInfo
from providers.fallback import ERRORED, FAILED, UNCONFIGURED, LiveUnavailable, resolve
from utils import cache_key

HEADERS = {
    "User-Agent": "TripDesigner/0.1",
    "Accept": "application/json",
}

MOCK_DESTINATION = DestinationInfo(name="Chiang Mai", country="Thailand", lat=18.7883, lon=98.9853)


async def fetch_geoname(city: str, config: ProviderConfig) -> DestinationInfo:
    otm = config.opentripmap
    if not otm:
        raise LiveUnavailable(UNCONFIGURED)
    params = {"name": city, "apikey": otm.api_key}
    try:
        async with config.client(headers=HEADERS) as client:
            r = await client.get(f"{otm.base_url}/geoname", params=params)
            if r.status_code != 200:
                raise LiveUnavailable(FAILED, f"status {r.status_code}")
            data = r.json()
        return DestinationInfo(
            name=data["name"],
            country=data["country"],
            lat=float(data["lat"]),
            lon=float(data["lon"]),
        )
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        raise LiveUnavailable(ERRORED, str(e)) from e


async def resolve_destination(city: str, context: ProviderContext, config: ProviderConfig) -> DestinationInfo:
    key = cache_key("destination", {"city": city.strip().lower()})
    return await resolve(
        context,
        "destination",
        key,
        "opentripmap",
        live=lambda: fetch_geoname(city, config),
        mock=lambda reason: MOCK_DESTINATION,
    )
