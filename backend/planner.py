# planner.py
# Trip planning pipeline: destination -> weather/flights/stays/places -> itinerary + costs

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type
from pydantic import BaseModel
from config import ProviderConfig
from context import ProviderContext
from costs import CostNotes, compute_cost_estimate, select_stay_tiers
from itinerary import build_itinerary
from models import (
    FlightSearchRequest,
    FlightsResponse,
    FlightsResult,
    PlacesRequest,
    PlacesResponse,
    PlanTripRequest,
    PlanTripResponse,
    StaySearchRequest,
    StaysResponse,
    TripDates,
    WeatherRequest,
    WeatherResponse,
)
from providers.flights import search_flights_provider
from providers.geo import resolve_destination
from providers.places import DEFAULT_LIMIT, nearby_attractions_provider
from providers.stays import search_stays_provider
from providers.weather import weather_provider
from utils import TTLCache, add_days

log = logging.getLogger("trip-designer")

NO_ORIGIN_NOTE = "No origin provided."


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    request_model: Type[BaseModel]
    # TripPlanner method that runs the tool
    handler: str

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.request_model.model_json_schema(),
        }


# listed by GET /tools, dispatched by name through TripPlanner.call_tool
TOOLS: Dict[str, Tool] = {
    t.name: t
    for t in [
        Tool("planTrip", "Plan a multi-day trip with itinerary and cost estimate.",
             PlanTripRequest, "plan_trip"),
        Tool("searchFlights", "Search for flight options between two cities.",
             FlightSearchRequest, "search_flights"),
        Tool("searchStays", "Search for stay options with nightly pricing.",
             StaySearchRequest, "search_stays"),
        Tool("nearbyAttractions", "Discover nearby attractions and food spots.",
             PlacesRequest, "nearby_attractions"),
        Tool("weather", "Fetch weather outlook for a location and date range.",
             WeatherRequest, "weather"),
    ]
}


class UnknownTool(LookupError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


def parse_tool_call(name: str, arguments: Optional[Dict[str, Any]]) -> Tuple[Tool, BaseModel]:
    """
    Look up a tool and validate its input. Raises UnknownTool for an
    unregistered name and pydantic.ValidationError for bad arguments.
    """
    tool = TOOLS.get(name)
    if tool is None:
        raise UnknownTool(name)
    return tool, tool.request_model.model_validate(arguments or {})


class TripPlanner:
    """
    Stateless apart from the shared cache. Every call builds its own
    ProviderContext so provenance never leaks between requests.
    """

    def __init__(self, config: ProviderConfig, cache: TTLCache):
        self.config = config
        self.cache = cache

    def _context(self) -> ProviderContext:
        return ProviderContext(cache=self.cache)

    async def plan_trip(self, req: PlanTripRequest) -> PlanTripResponse:
        ctx = self._context()
        days = req.days
        notes = CostNotes()

        # everything else needs coordinates or the resolved name
        destination = await resolve_destination(req.destination, ctx, self.config)

        dates = TripDates(start=req.startDate, end=add_days(req.startDate, days - 1), days=days)

        # internal requests skip validation: a plan may span more days than the
        # standalone weather tool accepts, and resolved names can be short
        async def flights() -> FlightsResult:
            if not req.origin:
                return FlightsResult(note=NO_ORIGIN_NOTE, options=[])
            result = await search_flights_provider(
                FlightSearchRequest.model_construct(
                    origin=req.origin,
                    destination=destination.name,
                    departDate=req.startDate,
                    returnDate=None,
                    adults=1,
                    cabin=None,
                ),
                ctx,
                self.config,
            )
            notes.flights = result.note
            return result

        weather, flight_result, stays_result, places_result = await asyncio.gather(
            weather_provider(
                WeatherRequest.model_construct(
                    lat=destination.lat, lon=destination.lon, startDate=req.startDate, days=days
                ),
                ctx,
                self.config,
            ),
            flights(),
            search_stays_provider(
                StaySearchRequest.model_construct(
                    destination=destination.name, checkIn=req.startDate, nights=days, guests=None
                ),
                ctx,
                self.config,
            ),
            nearby_attractions_provider(
                PlacesRequest.model_construct(
                    destination=destination.name,
                    tags=req.interests,
                    limit=max(DEFAULT_LIMIT, days * 3),
                ),
                ctx,
                self.config,
                destination=destination,
            ),
        )
        notes.stays = stays_result.note
        notes.places = places_result.note
        notes.weather = weather.note

        stays = select_stay_tiers(stays_result.options)
        itinerary = build_itinerary(req.startDate, days, places_result.options, req.interests)
        cost = compute_cost_estimate(days, stays, flight_result, req.budgetUSD, notes)
        meta = ctx.meta()
        log.info("planned %s (%s days) sources=%s cached=%s",
                 destination.name, days, ", ".join(meta.providers), meta.cached)

        return PlanTripResponse(
            destination=destination,
            dates=dates,
            weather=weather,
            flights=flight_result,
            stays=stays,
            places=places_result.options,
            itinerary=itinerary,
            costEstimate=cost,
            meta=meta,
        )

    async def search_flights(self, req: FlightSearchRequest) -> FlightsResponse:
        ctx = self._context()
        result = await search_flights_provider(req, ctx, self.config)
        return FlightsResponse(note=result.note, options=result.options, meta=ctx.meta())

    async def search_stays(self, req: StaySearchRequest) -> StaysResponse:
        ctx = self._context()
        result = await search_stays_provider(req, ctx, self.config)
        return StaysResponse(note=result.note, options=result.options, meta=ctx.meta())

    async def nearby_attractions(self, req: PlacesRequest) -> PlacesResponse:
        ctx = self._context()
        result = await nearby_attractions_provider(req, ctx, self.config)
        return PlacesResponse(note=result.note, options=result.options, meta=ctx.meta())

    async def weather(self, req: WeatherRequest) -> WeatherResponse:
        ctx = self._context()
        result = await weather_provider(req, ctx, self.config)
        return WeatherResponse(note=result.note, daily=result.daily, meta=ctx.meta())

    async def run_tool(self, tool: Tool, req: BaseModel) -> BaseModel:
        log.info("tool call %s", tool.name)
        return await getattr(self, tool.handler)(req)

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> BaseModel:
        tool, req = parse_tool_call(name, arguments)
        return await self.run_tool(tool, req)
