# costs.py
# low/mid/high trip cost bands from flights + lodging tiers + daily spend

from dataclasses import dataclass
from typing import List, Optional
from models import CostBreakdown, CostEstimate, FlightsResult, StayOption
from utils import round_half_up

STAY_TIERS = ["budget", "mid", "premium"]

# per-day activity spend, USD
DAILY_SPEND_LOW = 45
DAILY_SPEND_MID = 75
DAILY_SPEND_HIGH = 130


@dataclass
class CostNotes:
    """Advisory notes from upstream providers, appended in field order."""
    flights: Optional[str] = None
    stays: Optional[str] = None
    places: Optional[str] = None
    weather: Optional[str] = None

    def ordered(self) -> List[str]:
        return [n for n in (self.flights, self.stays, self.places, self.weather) if n]


def select_stay_tiers(options: List[StayOption]) -> List[StayOption]:
    """First listing of each tier (budget, mid, premium); absent tiers are skipped."""
    out: List[StayOption] = []
    for tier in STAY_TIERS:
        stay = next((o for o in options if o.type == tier), None)
        if stay is not None:
            out.append(stay)
    return out


def _three_bands(values: List[Optional[float]]) -> List[float]:
    # a missing band repeats the band below it; the lowest defaults to 0
    out: List[float] = []
    prev = 0.0
    for v in values:
        prev = prev if v is None else v
        out.append(prev)
    return out


def flight_bands(flights: Optional[FlightsResult]) -> List[float]:
    prices = sorted(
        o.priceUSD for o in (flights.options if flights else []) if o.priceUSD and o.priceUSD > 0
    )
    return _three_bands([prices[i] if i < len(prices) else None for i in range(3)])


def stay_bands(stays: List[StayOption]) -> List[float]:
    by_tier = {}
    for stay in stays:
        by_tier.setdefault(stay.type, stay.totalUSD)
    return _three_bands([by_tier.get(tier) for tier in STAY_TIERS])


def format_usd(value: float) -> str:
    return f"${value:,.0f}"


def compute_cost_estimate(
    days: int,
    stays: List[StayOption],
    flights: Optional[FlightsResult],
    budget: Optional[float],
    notes: Optional[CostNotes] = None,
) -> CostEstimate:
    flight_low, flight_mid, flight_high = flight_bands(flights)
    stay_low, stay_mid, stay_high = stay_bands(stays)
    act_low = DAILY_SPEND_LOW * days
    act_mid = DAILY_SPEND_MID * days
    act_high = DAILY_SPEND_HIGH * days

    low = round_half_up(flight_low + stay_low + act_low)
    mid = round_half_up(flight_mid + stay_mid + act_mid)
    high = round_half_up(flight_high + stay_high + act_high)

    out_notes = [
        f"Daily activity budgets: ${DAILY_SPEND_LOW}/{DAILY_SPEND_MID}/{DAILY_SPEND_HIGH} (low/mid/high)."
    ]
    if budget:
        out_notes.append(f"Target budget: {format_usd(budget)}.")
        out_notes.append(f"Mid-range estimate is {'within' if mid <= budget else 'above'} budget.")
    if notes:
        out_notes.extend(notes.ordered())

    return CostEstimate(
        lowUSD=low,
        midUSD=mid,
        highUSD=high,
        notes=out_notes,
        breakdown={
            "low": CostBreakdown(flights=flight_low, stays=stay_low, activities=act_low),
            "mid": CostBreakdown(flights=flight_mid, stays=stay_mid, activities=act_mid),
            "high": CostBreakdown(flights=flight_high, stays=stay_high, activities=act_high),
        },
    )
