import httpx
import pytest

from context import ProviderContext
from models import (
    DestinationInfo,
    FlightSearchRequest,
    PlacesRequest,
    StaySearchRequest,
    WeatherRequest,
)
from providers.fallback import EMPTY, ERRORED, FAILED
from providers import flights as flights_mod
from providers import places as places_mod
from providers import weather as weather_mod
from providers.flights import search_flights_provider
from providers.geo import MOCK_DESTINATION, resolve_destination
from providers.places import map_kinds_to_category, map_kinds_to_duration, nearby_attractions_provider
from providers.stays import search_stays_provider
from providers.weather import weather_provider

CHIANG_MAI = DestinationInfo(name="Chiang Mai", country="Thailand", lat=18.7883, lon=98.9853)


def status(code: int):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(code, json={"error": "upstream says no"})

    return handler


def boom(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def weather_req(days: int = 3) -> WeatherRequest:
    return WeatherRequest(lat=18.7883, lon=98.9853, startDate="2025-11-20", days=days)


def flight_req() -> FlightSearchRequest:
    return FlightSearchRequest(origin="bkk", destination="cnx", departDate="2025-11-20")


# ---- no credentials: every capability lands on its mock tier ----

@pytest.mark.asyncio
async def test_unconfigured_providers_return_mock_with_notes(ctx, empty_config):
    dest = await resolve_destination("Chiang Mai", ctx, empty_config)
    weather = await weather_provider(weather_req(), ctx, empty_config)
    flights = await search_flights_provider(flight_req(), ctx, empty_config)
    stays = await search_stays_provider(
        StaySearchRequest(destination="Chiang Mai", checkIn="2025-11-20", nights=2), ctx, empty_config
    )
    places = await nearby_attractions_provider(PlacesRequest(destination="Chiang Mai"), ctx, empty_config)

    assert dest == MOCK_DESTINATION
    assert weather.note and len(weather.daily) == 3
    assert flights.note == flights_mod.MOCK_NOTE and len(flights.options) == 3
    assert stays.note and len(stays.options) == 10
    assert places.note and len(places.options) == 12
    assert ctx.tags == [
        "destination:mock",
        "weather:mock",
        "flights:mock",
        "stays:mock",
        "places:mock",
    ]


@pytest.mark.asyncio
async def test_cache_hit_returns_same_result_and_tags_cache(cache, empty_config):
    first = await weather_provider(weather_req(), ProviderContext(cache=cache), empty_config)
    second_ctx = ProviderContext(cache=cache)
    second = await weather_provider(weather_req(), second_ctx, empty_config)
    assert second is first
    assert second_ctx.tags == ["cache:weather"]


@pytest.mark.asyncio
async def test_destination_cache_key_is_case_insensitive(cache, empty_config):
    await resolve_destination("Chiang Mai", ProviderContext(cache=cache), empty_config)
    again = ProviderContext(cache=cache)
    await resolve_destination("  CHIANG MAI", again, empty_config)
    assert again.tags == ["cache:destination"]


@pytest.mark.asyncio
async def test_mock_results_are_cached_until_ttl(cache, clock, empty_config):
    await weather_provider(weather_req(), ProviderContext(cache=cache), empty_config)
    clock.advance(61)
    later = ProviderContext(cache=cache)
    await weather_provider(weather_req(), later, empty_config)
    assert later.tags == ["weather:mock"]


# ---- weather ----

@pytest.mark.asyncio
async def test_weather_upstream_failure_falls_back_to_consistent_mock(ctx, live_config):
    snapshot = await weather_provider(weather_req(3), ctx, live_config(status(500)))

    assert [d.date for d in snapshot.daily] == ["2025-11-20", "2025-11-21", "2025-11-22"]
    for day in snapshot.daily:
        assert day.hiC > day.loC
        assert day.hiC - day.loC == weather_mod.MOCK_LOW_OFFSET_C
    assert snapshot.note == weather_mod.MOCK_NOTES[FAILED]
    assert ctx.tags == ["weather:mock"]


@pytest.mark.asyncio
async def test_weather_network_error_never_raises(ctx, live_config):
    snapshot = await weather_provider(weather_req(2), ctx, live_config(boom))
    assert len(snapshot.daily) == 2
    assert ctx.tags == ["weather:mock"]


@pytest.mark.asyncio
async def test_weather_live_success(ctx, live_config):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"daily": {
            "time": ["2025-11-20", "2025-11-21"],
            "temperature_2m_max": [31.26, 30.04],
            "temperature_2m_min": [20.0, 19.5],
            "precipitation_probability_max": [10, 40],
        }})

    snapshot = await weather_provider(weather_req(2), ctx, live_config(handler))

    assert seen["start_date"] == "2025-11-20"
    assert seen["end_date"] == "2025-11-21"
    assert snapshot.note is None
    assert snapshot.daily[0].hiC == 31.3
    assert snapshot.daily[1].precipProb == 40
    assert ctx.tags == ["open-meteo"]


@pytest.mark.asyncio
async def test_weather_empty_payload_is_a_failure(ctx, live_config):
    def handler(request):
        return httpx.Response(200, json={"daily": {"time": []}})

    snapshot = await weather_provider(weather_req(2), ctx, live_config(handler))
    assert snapshot.note == weather_mod.MOCK_NOTES[EMPTY]
    assert ctx.tags == ["weather:mock"]


# ---- flights ----

def amadeus_handler(prices, token_status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/oauth2/token"):
            if token_status != 200:
                return httpx.Response(token_status, json={"error": "invalid_client"})
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 1799})
        assert request.headers["Authorization"] == "Bearer tok"
        offers = [
            {
                "price": {"total": str(p)},
                "itineraries": [{"segments": [
                    {"departure": {"iataCode": "BKK", "at": "2025-11-20T08:00:00"},
                     "arrival": {"iataCode": "DMK", "at": "2025-11-20T09:00:00"},
                     "carrierCode": "TG"},
                    {"departure": {"iataCode": "DMK", "at": "2025-11-20T10:00:00"},
                     "arrival": {"iataCode": "CNX", "at": "2025-11-20T11:10:00"},
                     "marketingCarrierCode": "FD"},
                ]}],
            }
            for p in prices
        ]
        return httpx.Response(200, json={"data": offers})

    return handler


@pytest.mark.asyncio
async def test_flights_live_maps_cheapest_offers_capped(ctx, live_config):
    prices = [610.2, 120.5, 333.0, 98.0, 450.0, 275.9]
    result = await search_flights_provider(flight_req(), ctx, live_config(amadeus_handler(prices)))

    assert [o.priceUSD for o in result.options] == [98, 121, 276, 333, 450]
    first = result.options[0]
    assert first.carrier == "TG"
    assert first.from_ == "BKK"
    assert first.to == "CNX"
    assert result.note is None
    assert ctx.tags == ["amadeus"]


@pytest.mark.asyncio
async def test_flights_token_failure_falls_back_to_mock(ctx, live_config):
    result = await search_flights_provider(
        flight_req(), ctx, live_config(amadeus_handler([100], token_status=401))
    )
    assert result.note == flights_mod.MOCK_NOTE
    assert ctx.tags == ["flights:mock"]


@pytest.mark.asyncio
async def test_flights_no_usable_offers_falls_back_to_mock(ctx, live_config):
    result = await search_flights_provider(flight_req(), ctx, live_config(amadeus_handler([])))
    assert len(result.options) == 3
    assert ctx.tags == ["flights:mock"]


@pytest.mark.asyncio
async def test_flights_offers_without_price_are_dropped(ctx, live_config):
    result = await search_flights_provider(flight_req(), ctx, live_config(amadeus_handler(["n/a", 300, 150])))
    assert [o.priceUSD for o in result.options] == [150, 300]
    assert ctx.tags == ["amadeus"]


@pytest.mark.asyncio
async def test_mock_flights_follow_requested_date_and_route(ctx, empty_config):
    result = await search_flights_provider(flight_req(), ctx, empty_config)
    departs = [o.depart for o in result.options]
    assert departs == ["2025-11-20T08:15:00Z", "2025-11-20T13:15:00Z", "2025-11-20T19:15:00Z"]
    assert {o.from_ for o in result.options} == {"BKK"}
    assert {o.to for o in result.options} == {"CNX"}
    assert [o.carrier for o in result.options] == ["Mock Air A", "Sample Airlines B", "Demo Jet C"]


# ---- stays ----

@pytest.mark.asyncio
async def test_mock_stays_price_by_tier_and_nights(ctx, live_config):
    # a booking key does not change anything yet
    result = await search_stays_provider(
        StaySearchRequest(destination="Chiang Mai", checkIn="2025-11-20", nights=3),
        ctx,
        live_config(status(200)),
    )
    by_name = {o.name: o for o in result.options}
    assert by_name["Old Town Guesthouse"].pricePerNightUSD == 35
    assert by_name["Nimman Boutique Hotel"].pricePerNightUSD == 86
    assert by_name["Ping River Retreat"].pricePerNightUSD == 204
    assert by_name["Riverside Boutique Suites"].pricePerNightUSD == 241
    assert by_name["Ping River Retreat"].totalUSD == 204 * 3
    assert {o.type for o in result.options} == {"budget", "mid", "premium"}
    assert ctx.tags == ["stays:mock"]


# ---- places ----

def test_category_rules_first_match_wins():
    assert map_kinds_to_category("temples,religion") == "temple"
    assert map_kinds_to_category("religion,foods") == "spiritual"
    assert map_kinds_to_category("restaurants,natural") == "food"
    assert map_kinds_to_category("museums,cultural") == "culture"
    assert map_kinds_to_category("sport,amusements") == "adventure"
    assert map_kinds_to_category("shops,shopping") == "shopping"
    assert map_kinds_to_category("interesting_places") == "attraction"
    assert map_kinds_to_category("") == "attraction"


def test_duration_rules():
    assert map_kinds_to_duration("foods,temples") == 90
    assert map_kinds_to_duration("religion") == 120
    assert map_kinds_to_duration("museums") == 120
    assert map_kinds_to_duration("natural") == 180
    assert map_kinds_to_duration("amusements") == 90


def otm_handler(features):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/geoname"):
            return httpx.Response(200, json={
                "name": "Chiang Mai", "country": "TH", "lat": 18.79, "lon": 98.98, "status": "OK",
            })
        assert request.url.params["radius"] == str(places_mod.SEARCH_RADIUS_M)
        return httpx.Response(200, json={"type": "FeatureCollection", "features": features})

    return handler


FEATURES = [
    {"id": "1", "geometry": {"coordinates": [98.98, 18.78]},
     "properties": {"xid": "W1", "name": "Wat Umong", "kinds": "religion,temples,interesting_places"}},
    {"id": "2", "geometry": {"coordinates": [98.97, 18.80]},
     "properties": {"xid": "N2", "name": "", "kinds": "foods"}},
    {"id": "3", "geometry": {"coordinates": [98.99, 18.79]},
     "properties": {"xid": "K3", "name": "Khao Soi Place", "kinds": "foods,restaurants"}},
]


@pytest.mark.asyncio
async def test_places_live_classifies_and_skips_unnamed(ctx, live_config):
    result = await nearby_attractions_provider(
        PlacesRequest(destination="Chiang Mai"), ctx, live_config(otm_handler(FEATURES))
    )

    assert [p.name for p in result.options] == ["Wat Umong", "Khao Soi Place"]
    assert [p.category for p in result.options] == ["temple", "food"]
    assert [p.estMinutes for p in result.options] == [120, 90]
    assert result.options[0].id == "W1"
    assert result.options[0].url.startswith("https://www.google.com/maps/search/?api=1&query=")
    # the geoname lookup happened on the way
    assert ctx.tags == ["opentripmap"]


@pytest.mark.asyncio
async def test_places_reuses_resolved_destination(ctx, live_config):
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return otm_handler(FEATURES)(request)

    await nearby_attractions_provider(
        PlacesRequest(destination="Chiang Mai"), ctx, live_config(handler), destination=CHIANG_MAI
    )
    assert all(not path.endswith("/geoname") for path in calls)


@pytest.mark.asyncio
async def test_places_zero_usable_results_falls_back_to_mock(ctx, live_config):
    result = await nearby_attractions_provider(
        PlacesRequest(destination="Chiang Mai", limit=5),
        ctx,
        live_config(otm_handler([FEATURES[1]])),
        destination=CHIANG_MAI,
    )
    assert result.note == places_mod.MOCK_NOTES[EMPTY]
    assert len(result.options) == 5
    assert ctx.tags == ["places:mock"]


@pytest.mark.asyncio
async def test_places_upstream_failure_falls_back_to_mock(ctx, live_config):
    result = await nearby_attractions_provider(
        PlacesRequest(destination="Chiang Mai"), ctx, live_config(status(503)), destination=CHIANG_MAI
    )
    assert result.note == places_mod.MOCK_NOTES[FAILED]
    assert ctx.tags == ["places:mock"]


@pytest.mark.asyncio
async def test_destination_bad_payload_falls_back_to_mock(ctx, live_config):
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    dest = await resolve_destination("Atlantis", ctx, live_config(handler))
    assert dest == MOCK_DESTINATION
    assert ctx.tags == ["destination:mock"]


@pytest.mark.asyncio
async def test_places_malformed_geometry_falls_back_to_mock(ctx, live_config):
    odd = [{"geometry": {"coordinates": {"x": 1, "y": 2}}, "properties": {"name": "Odd", "kinds": "foods"}}]
    result = await nearby_attractions_provider(
        PlacesRequest(destination="Chiang Mai"), ctx, live_config(otm_handler(odd)), destination=CHIANG_MAI
    )
    assert result.note == places_mod.MOCK_NOTES[ERRORED]
    assert result.options == places_mod.MOCK_PLACES[:places_mod.DEFAULT_LIMIT]
    assert ctx.tags == ["places:mock"]
