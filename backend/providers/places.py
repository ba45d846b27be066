# providers/places.py
# OpenTripMap radius search + kinds -> category/duration classification

import httpx
from typing import List, Optional
from urllib.parse import quote_plus
from config import ProviderConfig
from context import ProviderContext
from models import DestinationInfo, PlaceOption, PlacesRequest, PlacesResult
from providers.fallback import EMPTY, ERRORED, FAILED, UNCONFIGURED, LiveUnavailable, resolve
from providers.geo import HEADERS, resolve_destination
from utils import cache_key

DEFAULT_LIMIT = 12
SEARCH_RADIUS_M = 8000
DEFAULT_KINDS = "interesting_places,tourist_facilities,culture,foods,restaurants,temples"

# evaluated top to bottom, first match wins
CATEGORY_RULES = [
    (("temples",), "temple"),
    (("churches", "religion"), "spiritual"),
    (("foods", "restaurants"), "food"),
    (("natural",), "nature"),
    (("cultural",), "culture"),
    (("museums",), "museum"),
    (("sport",), "adventure"),
    (("amusements",), "entertainment"),
    (("shopping",), "shopping"),
]
DEFAULT_CATEGORY = "attraction"

DURATION_RULES = [
    (("foods", "restaurants"), 90),
    (("temples", "religion"), 120),
    (("museums",), 120),
    (("natural",), 180),
]
DEFAULT_MINUTES = 90

MOCK_PLACES = [
    PlaceOption(id="mock-wat-phra-singh", name="Wat Phra Singh", category="temple",
                lat=18.788889, lon=98.981944, url="https://goo.gl/maps/VWnvaQRcWtr", estMinutes=90),
    PlaceOption(id="mock-wat-chedi-luang", name="Wat Chedi Luang", category="temple",
                lat=18.786944, lon=98.985556, url="https://goo.gl/maps/6L3pCTrGhm12", estMinutes=75),
    PlaceOption(id="mock-sunday-market", name="Sunday Walking Street", category="market",
                lat=18.7883, lon=98.9853, url="https://goo.gl/maps/KTrgU5d5gNv", estMinutes=120),
    PlaceOption(id="mock-elephant-nature-park", name="Elephant Nature Park", category="nature",
                lat=18.9364, lon=98.8576, url="https://goo.gl/maps/1pVxS6c3hHB2", estMinutes=240),
    PlaceOption(id="mock-doi-suthep", name="Doi Suthep Temple", category="temple",
                lat=18.8046, lon=98.9215, url="https://goo.gl/maps/nc7ovjGpq8K2", estMinutes=120),
    PlaceOption(id="mock-grand-canyon", name="Grand Canyon Water Park", category="adventure",
                lat=18.6466, lon=98.9807, url="https://goo.gl/maps/tT9nVWyN7Aq", estMinutes=180),
    PlaceOption(id="mock-warorot-market", name="Warorot Market", category="market",
                lat=18.791, lon=99.001, url="https://goo.gl/maps/nsTfxcb5geT2", estMinutes=90),
    PlaceOption(id="mock-nimman-coffee", name="Nimman Coffee Crawl", category="food",
                lat=18.799, lon=98.967, url="https://goo.gl/maps/owS1iEZzu1L2", estMinutes=120),
    PlaceOption(id="mock-night-safari", name="Chiang Mai Night Safari", category="wildlife",
                lat=18.7417, lon=98.9236, url="https://goo.gl/maps/tiHXF6Uq7Kt", estMinutes=150),
    PlaceOption(id="mock-cooking-class", name="Thai Farm Cooking School", category="food",
                lat=18.8105, lon=99.0288, url="https://goo.gl/maps/LpLwVB1USwq", estMinutes=240),
    PlaceOption(id="mock-artisan-village", name="Bo Sang Umbrella Village", category="culture",
                lat=18.7727, lon=99.0857, url="https://goo.gl/maps/C2LKveJSu2R2", estMinutes=120),
    PlaceOption(id="mock-night-market", name="Chiang Mai Night Bazaar", category="market",
                lat=18.7837, lon=99.0001, url="https://goo.gl/maps/hSu7dYNEsD52", estMinutes=150),
]

MOCK_NOTES = {
    UNCONFIGURED: "Using curated Chiang Mai attractions. Add an OpenTripMap key for live data.",
    FAILED: "OpenTripMap request failed, using curated Chiang Mai attractions.",
    EMPTY: "OpenTripMap returned no places, using curated Chiang Mai attractions.",
    ERRORED: "OpenTripMap request errored, using curated Chiang Mai attractions.",
}


def _first_match(kinds: str, rules, default):
    for keywords, value in rules:
        if any(k in kinds for k in keywords):
            return value
    return default


def map_kinds_to_category(kinds: str) -> str:
    return _first_match(kinds, CATEGORY_RULES, DEFAULT_CATEGORY)


def map_kinds_to_duration(kinds: str) -> int:
    return _first_match(kinds, DURATION_RULES, DEFAULT_MINUTES)


def map_url(name: str, lat: float, lon: float) -> str:
    return f"https://www.google.com/maps/search/?api=1&query={quote_plus(f'{name} {lat},{lon}')}"


def feature_to_place(feature: dict) -> Optional[PlaceOption]:
    props = feature.get("properties") or {}
    name = props.get("name")
    if not name:
        return None
    coords = (feature.get("geometry") or {}).get("coordinates") or []
    if len(coords) < 2:
        return None
    lon, lat = coords[0], coords[1]
    kinds = props.get("kinds") or ""
    return PlaceOption(
        id=str(props.get("xid") or feature.get("id")),
        name=name,
        category=map_kinds_to_category(kinds),
        lat=float(lat),
        lon=float(lon),
        url=map_url(name, lat, lon),
        estMinutes=map_kinds_to_duration(kinds),
    )


async def fetch_opentripmap_places(
    params: PlacesRequest,
    context: ProviderContext,
    config: ProviderConfig,
    destination: Optional[DestinationInfo],
) -> PlacesResult:
    otm = config.opentripmap
    if not otm:
        raise LiveUnavailable(UNCONFIGURED)
    if destination is None:
        destination = await resolve_destination(params.destination, context, config)

    limit = params.limit or DEFAULT_LIMIT
    query = {
        "radius": SEARCH_RADIUS_M,
        "lon": destination.lon,
        "lat": destination.lat,
        "limit": limit,
        "kinds": ",".join(params.tags) if params.tags else DEFAULT_KINDS,
        "format": "geojson",
        "apikey": otm.api_key,
    }
    try:
        async with config.client(headers=HEADERS) as client:
            r = await client.get(f"{otm.base_url}/radius", params=query)
            if r.status_code != 200:
                raise LiveUnavailable(FAILED, f"status {r.status_code}")
            features = (r.json() or {}).get("features") or []

        options: List[PlaceOption] = []
        for feature in features:
            place = feature_to_place(feature)
            if place is not None:
                options.append(place)
        if not options:
            raise LiveUnavailable(EMPTY)
        return PlacesResult(options=options[:limit])
    except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
        raise LiveUnavailable(ERRORED, str(e)) from e


async def nearby_attractions_provider(
    params: PlacesRequest,
    context: ProviderContext,
    config: ProviderConfig,
    destination: Optional[DestinationInfo] = None,
) -> PlacesResult:
    """
    Points of interest near the destination. Pass an already resolved
    destination to skip a second geoname lookup.
    """
    key = cache_key("places", params.model_dump())
    limit = params.limit or DEFAULT_LIMIT
    return await resolve(
        context,
        "places",
        key,
        "opentripmap",
        live=lambda: fetch_opentripmap_places(params, context, config, destination),
        mock=lambda reason: PlacesResult(note=MOCK_NOTES[reason], options=MOCK_PLACES[:limit]),
    )
