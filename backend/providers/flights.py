# providers/flights.py
# Amadeus flight offers (OAuth2 client credentials) with mock carriers fallback

import logging
import httpx
from typing import List, Optional
from config import AmadeusConfig, ProviderConfig
from context import ProviderContext
from models import FlightOption, FlightSearchRequest, FlightsResult
from providers.fallback import EMPTY, ERRORED, FAILED, UNCONFIGURED, LiveUnavailable, resolve
from utils import cache_key, round_half_up

log = logging.getLogger("trip-designer.flights")

MAX_OFFERS = 5

CABIN_MAP = {
    "economy": "ECONOMY",
    "premium_economy": "PREMIUM_ECONOMY",
    "business": "BUSINESS",
    "first": "FIRST",
}

# (carrier, price, link); one per departure slot below
MOCK_CARRIERS = [
    ("Mock Air", 425, "https://example.com/mock-air"),
    ("Sample Airlines", 468, "https://example.com/sample-air"),
    ("Demo Jet", 512, "https://example.com/demo-jet"),
]
# (depart hour, arrive hour) UTC, minutes fixed at :15 / :45
MOCK_SCHEDULE = [(8, 12), (13, 17), (19, 23)]

MOCK_NOTE = "Using mock flight data. Add Amadeus credentials to retrieve live fares."


def build_mock_flights(params: FlightSearchRequest) -> List[FlightOption]:
    out: List[FlightOption] = []
    for i, (carrier, price, link) in enumerate(MOCK_CARRIERS):
        dep_h, arr_h = MOCK_SCHEDULE[i]
        out.append(FlightOption(
            carrier=f"{carrier} {chr(65 + i)}",
            from_=params.origin.upper(),
            to=params.destination.upper(),
            depart=f"{params.departDate}T{dep_h:02d}:15:00Z",
            arrive=f"{params.departDate}T{arr_h:02d}:45:00Z",
            priceUSD=price,
            link=link,
        ))
    return out


async def fetch_token(client: httpx.AsyncClient, amadeus: AmadeusConfig) -> Optional[str]:
    r = await client.post(
        f"{amadeus.base_url}/v1/security/oauth2/token",
        data={
            "grant_type": "client_credentials",
            "client_id": amadeus.client_id,
            "client_secret": amadeus.client_secret,
        },
    )
    if r.status_code != 200:
        log.warning("Amadeus token request failed with status %s", r.status_code)
        return None
    return (r.json() or {}).get("access_token")


def map_offer(offer: dict, params: FlightSearchRequest) -> Optional[FlightOption]:
    """Collapse one offer's first itinerary into a FlightOption (None if unusable)."""
    itineraries = offer.get("itineraries") or []
    if not itineraries:
        return None
    segments = itineraries[0].get("segments") or []
    if not segments:
        return None
    first, last = segments[0], segments[-1]
    try:
        price = round_half_up(float((offer.get("price") or {}).get("total")))
    except (TypeError, ValueError):
        log.debug("skipping offer %s without a usable price", offer.get("id"))
        return None
    return FlightOption(
        carrier=first.get("marketingCarrierCode") or first.get("carrierCode") or "Amadeus Partner",
        from_=(first.get("departure") or {}).get("iataCode") or params.origin,
        to=(last.get("arrival") or {}).get("iataCode") or params.destination,
        depart=(first.get("departure") or {}).get("at") or "",
        arrive=(last.get("arrival") or {}).get("at") or "",
        priceUSD=price,
    )


async def fetch_amadeus_flights(params: FlightSearchRequest, config: ProviderConfig) -> FlightsResult:
    amadeus = config.amadeus
    if not amadeus:
        raise LiveUnavailable(UNCONFIGURED)

    query = {
        "originLocationCode": params.origin.upper(),
        "destinationLocationCode": params.destination.upper(),
        "departureDate": params.departDate,
        "adults": str(params.adults or 1),
        "currencyCode": "USD",
        "max": str(MAX_OFFERS),
    }
    if params.returnDate:
        query["returnDate"] = params.returnDate
    if params.cabin:
        query["travelClass"] = CABIN_MAP[params.cabin]

    try:
        async with config.client() as client:
            token = await fetch_token(client, amadeus)
            if not token:
                raise LiveUnavailable(FAILED, "no access token")
            r = await client.get(
                f"{amadeus.base_url}/v2/shopping/flight-offers",
                params=query,
                headers={"Authorization": f"Bearer {token}"},
            )
            if r.status_code != 200:
                raise LiveUnavailable(FAILED, f"status {r.status_code}")
            offers = (r.json() or {}).get("data") or []

        mapped = [map_offer(o, params) for o in offers]
        options = sorted((o for o in mapped if o is not None), key=lambda o: o.priceUSD)[:MAX_OFFERS]
        if not options:
            raise LiveUnavailable(EMPTY)
        return FlightsResult(options=options)
    except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
        raise LiveUnavailable(ERRORED, str(e)) from e


async def search_flights_provider(params: FlightSearchRequest, context: ProviderContext, config: ProviderConfig) -> FlightsResult:
    key = cache_key("flights", params.model_dump())
    return await resolve(
        context,
        "flights",
        key,
        "amadeus",
        live=lambda: fetch_amadeus_flights(params, config),
        mock=lambda reason: FlightsResult(note=MOCK_NOTE, options=build_mock_flights(params)),
    )
