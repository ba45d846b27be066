# itinerary.py
# interest scoring + greedy day/slot allocation of places

from typing import Iterable, List, Optional
from models import ItineraryDay, PlaceOption
from utils import add_days

CATEGORY_MATCH_POINTS = 2.0
NAME_MATCH_POINTS = 1.5
DEFAULT_MINUTES = 90

# used when the candidate queue runs dry (same text every day, on purpose)
FILLER_MORNING = "Leisurely breakfast and walking tour of the Old City"
FILLER_AFTERNOON = "Street food crawl & coffee tasting"
FILLER_EVENING = "Night market stroll & live music"
SAME_CATEGORY_SUFFIX = " with a sunset twist"


def _interest_set(interests: Optional[Iterable[str]]) -> List[str]:
    # lowercase + dedupe, keeping order
    return list(dict.fromkeys(i.lower() for i in (interests or []) if i))


def score_place(place: PlaceOption, interests: Optional[Iterable[str]]) -> float:
    """
    Base score 1. Each interest found in the category adds 2, each interest
    found in the name adds 1.5 (case-insensitive substring match).
    """
    wanted = _interest_set(interests)
    score = 1.0
    category = place.category.lower()
    name = place.name.lower()
    for interest in wanted:
        if interest in category:
            score += CATEGORY_MATCH_POINTS
        if interest in name:
            score += NAME_MATCH_POINTS
    return score


def rank_places(places: List[PlaceOption], interests: Optional[Iterable[str]]) -> List[PlaceOption]:
    # sorted() is stable, ties keep input order
    return sorted(places, key=lambda p: score_place(p, interests), reverse=True)


def build_itinerary(
    start_date: str,
    days: int,
    places: List[PlaceOption],
    interests: Optional[Iterable[str]] = None,
) -> List[ItineraryDay]:
    """
    Consume ranked places three per day (morning, afternoon, evening) for
    `days` consecutive dates. Empty slots get filler text.
    """
    queue = rank_places(places, interests)
    itinerary: List[ItineraryDay] = []
    pos = 0

    for day_index in range(days):
        slots = queue[pos:pos + 3]
        pos += 3
        morning = slots[0] if len(slots) > 0 else None
        afternoon = slots[1] if len(slots) > 1 else None
        evening = slots[2] if len(slots) > 2 else None

        morning_text = (
            f"Start at {morning.name} ({morning.category}, ~{morning.estMinutes or DEFAULT_MINUTES} mins)"
            if morning else FILLER_MORNING
        )
        afternoon_text = (
            f"Afternoon at {afternoon.name} ({afternoon.category}, ~{afternoon.estMinutes or DEFAULT_MINUTES} mins)"
            if afternoon else FILLER_AFTERNOON
        )
        evening_text = f"Evening at {evening.name} ({evening.category})" if evening else FILLER_EVENING
        if morning and evening and morning.category == evening.category:
            evening_text += SAME_CATEGORY_SUFFIX

        map_url = next((p.url for p in (morning, afternoon, evening) if p and p.url), None)

        itinerary.append(ItineraryDay(
            day=day_index + 1,
            date=add_days(start_date, day_index),
            morning=[morning_text],
            afternoon=[afternoon_text],
            evening=[evening_text],
            mapUrl=map_url,
        ))

    return itinerary
