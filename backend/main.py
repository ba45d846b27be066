# main.py
# FastAPI app exposing POST /plan plus the single-capability tools

import os
import logging
from typing import Any, Dict, Optional
from dotenv import load_dotenv
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from config import DEFAULT_CACHE_TTL_S, load_provider_config
from models import (
    FlightSearchRequest,
    FlightsResponse,
    PlacesRequest,
    PlacesResponse,
    PlanTripRequest,
    PlanTripResponse,
    StaySearchRequest,
    StaysResponse,
    ToolCallRequest,
    WeatherRequest,
    WeatherResponse,
)
from planner import TOOLS, TripPlanner, UnknownTool, parse_tool_call
from utils import TTLCache

load_dotenv()

app = FastAPI(title="Trip Designer API", version="0.1.0")
# CORS origins
FRONTEND_LOCAL = "http://localhost:3000"
FRONTEND_PROD = os.getenv("FRONTEND_PROD", "")

# default cache TTL, seconds
CACHE_TTL_S = int(os.getenv("CACHE_TTL_S", str(DEFAULT_CACHE_TTL_S)))

origins = [FRONTEND_LOCAL]
if FRONTEND_PROD:
    origins.append(FRONTEND_PROD)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# logging
logging.basicConfig(level=logging.INFO)
log = logging.getLogger("trip-designer")

# per process cache + planner, shared by every request
cache = TTLCache(ttl_seconds=CACHE_TTL_S)
planner = TripPlanner(load_provider_config(), cache)


def get_planner() -> TripPlanner:
    return planner


def describe_errors(errors) -> str:
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "Invalid input")
    return f"`{field}`: {msg}" if field else msg


# global JSON error handling
# - validation error -> 400 { "error": <first problem> }
# - HTTPException -> { "error": <detail> }
# - any other exception -> { "error": "Server error" }
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    detail = describe_errors(exc.errors())
    log.info("rejected %s: %s", request.url.path, detail)
    return JSONResponse(status_code=400, content={"error": detail})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    log.warning("HTTP %s: %s", exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # log stack once. do not leak details to client
    log.exception("Unhandled exception")
    return JSONResponse(status_code=500, content={"error": "Server error"})


@app.post("/plan", response_model=PlanTripResponse)
async def plan_trip(req: PlanTripRequest, planner: TripPlanner = Depends(get_planner)):
    """
    Resolve the destination, gather weather, flights, stays and places
    (each falling back to mock data on its own), then build the
    itinerary and cost estimate.
    """
    return await planner.plan_trip(req)


@app.post("/flights", response_model=FlightsResponse)
async def search_flights(req: FlightSearchRequest, planner: TripPlanner = Depends(get_planner)):
    return await planner.search_flights(req)


@app.post("/stays", response_model=StaysResponse)
async def search_stays(req: StaySearchRequest, planner: TripPlanner = Depends(get_planner)):
    return await planner.search_stays(req)


@app.post("/places", response_model=PlacesResponse)
async def nearby_attractions(req: PlacesRequest, planner: TripPlanner = Depends(get_planner)):
    return await planner.nearby_attractions(req)


@app.post("/weather", response_model=WeatherResponse)
async def weather(req: WeatherRequest, planner: TripPlanner = Depends(get_planner)):
    return await planner.weather(req)


async def run_tool(planner: TripPlanner, name: str, arguments: Optional[Dict[str, Any]]):
    # unknown tool -> 404, bad arguments -> 400 { "error", "tool" }
    try:
        tool, req = parse_tool_call(name, arguments)
    except UnknownTool as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        detail = describe_errors(e.errors())
        log.info("rejected tool %s: %s", name, detail)
        return JSONResponse(status_code=400, content={"error": detail, "tool": name})
    return {"tool": name, "result": await planner.run_tool(tool, req)}


@app.get("/tools")
def list_tools():
    return {"tools": [t.describe() for t in TOOLS.values()]}


@app.post("/call")
async def call_tool(call: ToolCallRequest, planner: TripPlanner = Depends(get_planner)):
    return await run_tool(planner, call.tool, call.arguments)


@app.post("/tools/{tool_name}")
async def invoke_tool(
    tool_name: str,
    arguments: Optional[Dict[str, Any]] = Body(None),
    planner: TripPlanner = Depends(get_planner),
):
    return await run_tool(planner, tool_name, arguments)


@app.get("/health")
def health():
    return {"ok": True, "tools": list(TOOLS)}
