# models.py
# typed request/response models shared by providers, planner and API

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from typing import Annotated, Any, Dict, List, Literal, Optional
from utils import parse_iso_date

CabinClass = Literal["economy", "premium_economy", "business", "first"]
StayType = Literal["budget", "mid", "premium"]


def _check_date(value: str) -> str:
    value = value.strip()
    parse_iso_date(value)
    return value


def _normalize_tags(values: Optional[List[str]]) -> Optional[List[str]]:
    # trim + lowercase, drop empties; an empty result means "no preference"
    if values is None:
        return None
    cleaned = [v.strip().lower() for v in values if v and v.strip()]
    return cleaned or None


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


IsoDate = Annotated[str, AfterValidator(_check_date)]
Tags = Annotated[Optional[List[str]], AfterValidator(_normalize_tags)]
OptionalText = Annotated[Optional[str], AfterValidator(_blank_to_none)]


# ---- requests (boundary validation happens here, before any provider runs) ----

class PlanTripRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    origin: OptionalText = None
    destination: str = Field(..., min_length=2)
    startDate: IsoDate
    days: int = Field(4, ge=1, le=21)
    budgetUSD: Optional[float] = Field(None, ge=100)
    interests: Tags = None

    @field_validator("destination")
    @classmethod
    def _strip_destination(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("destination is required")
        return v


class FlightSearchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    origin: str = Field(..., min_length=3)
    destination: str = Field(..., min_length=3)
    departDate: IsoDate
    returnDate: Optional[IsoDate] = None
    adults: Optional[int] = Field(None, ge=1, le=9)
    cabin: Optional[CabinClass] = None


class StaySearchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    destination: str = Field(..., min_length=1)
    checkIn: IsoDate
    nights: int = Field(..., ge=1, le=30)
    guests: Optional[int] = Field(None, ge=1, le=6)


class PlacesRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    destination: str = Field(..., min_length=1)
    tags: Tags = None
    limit: Optional[int] = Field(None, ge=1, le=30)


class WeatherRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    startDate: IsoDate
    days: int = Field(..., ge=1, le=16)


class ToolCallRequest(BaseModel):
    """Generic dispatch body: run `tool` with `arguments` as its input."""
    tool: str = Field(..., min_length=1)
    arguments: Dict[str, Any] = Field(default_factory=dict)


# ---- provider results ----

class DestinationInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    country: str
    lat: float
    lon: float


class TripDates(BaseModel):
    start: str
    end: str
    days: int


class WeatherDay(BaseModel):
    date: str
    hiC: float
    loC: float
    precipProb: Optional[float] = None


class WeatherSnapshot(BaseModel):
    note: Optional[str] = None
    daily: List[WeatherDay]


class FlightOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    carrier: str
    # "from" is a keyword, so the python name differs from the wire name
    from_: str = Field(..., alias="from")
    to: str
    depart: str
    arrive: str
    priceUSD: float
    link: Optional[str] = None


class FlightsResult(BaseModel):
    note: Optional[str] = None
    options: List[FlightOption] = Field(default_factory=list)


class StayOption(BaseModel):
    name: str
    type: StayType
    pricePerNightUSD: float
    totalUSD: float
    rating: Optional[float] = None
    address: Optional[str] = None
    link: Optional[str] = None


class StaysResult(BaseModel):
    note: Optional[str] = None
    options: List[StayOption] = Field(default_factory=list)


class PlaceOption(BaseModel):
    id: str
    name: str
    category: str
    lat: float
    lon: float
    url: Optional[str] = None
    estMinutes: Optional[int] = None


class PlacesResult(BaseModel):
    note: Optional[str] = None
    options: List[PlaceOption] = Field(default_factory=list)


# ---- derived plan output ----

class ItineraryDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int
    date: str
    morning: List[str]
    afternoon: List[str]
    evening: List[str]
    mapUrl: Optional[str] = None


class CostBreakdown(BaseModel):
    flights: float
    stays: float
    activities: float


class CostEstimate(BaseModel):
    lowUSD: int
    midUSD: int
    highUSD: int
    notes: List[str] = Field(default_factory=list)
    breakdown: Dict[Literal["low", "mid", "high"], CostBreakdown]


class ToolMeta(BaseModel):
    generatedAt: str
    providers: List[str]
    cached: bool


class PlanTripResponse(BaseModel):
    destination: DestinationInfo
    dates: TripDates
    weather: WeatherSnapshot
    flights: Optional[FlightsResult] = None
    stays: List[StayOption]
    places: List[PlaceOption]
    itinerary: List[ItineraryDay]
    costEstimate: CostEstimate
    meta: ToolMeta


class FlightsResponse(FlightsResult):
    meta: ToolMeta


class StaysResponse(StaysResult):
    meta: ToolMeta


class PlacesResponse(PlacesResult):
    meta: ToolMeta


class WeatherResponse(WeatherSnapshot):
    meta: ToolMeta
