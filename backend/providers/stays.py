# providers/stays.py
# Lodging options. No live inventory yet, so this always lands on the mock tier.

import logging
from typing import List
from config import ProviderConfig
from context import ProviderContext
from models import StayOption, StaySearchRequest, StaysResult
from providers.fallback import UNCONFIGURED, LiveUnavailable, resolve
from utils import cache_key, round_half_up

log = logging.getLogger("trip-designer.stays")

BASE_NIGHTLY_USD = {"budget": 35, "mid": 82, "premium": 185}
# each later listing is 5% pricier than the one before it
PRICE_STEP = 0.05

MOCK_STAYS = [
    {"name": "Old Town Guesthouse", "type": "budget", "rating": 4.4,
     "address": "Soi Moonmuang 8, Chiang Mai", "link": "https://example.com/old-town-guesthouse"},
    {"name": "Nimman Boutique Hotel", "type": "mid", "rating": 4.6,
     "address": "Nimmanahaeminda Rd., Chiang Mai", "link": "https://example.com/nimman-boutique"},
    {"name": "Ping River Retreat", "type": "premium", "rating": 4.8,
     "address": "Charoenrat Rd., Chiang Mai", "link": "https://example.com/ping-river-retreat"},
    {"name": "Night Bazaar Lofts", "type": "mid", "rating": 4.5,
     "address": "Chang Khlan Rd., Chiang Mai", "link": "https://example.com/night-bazaar-lofts"},
    {"name": "Doi Suthep View Villas", "type": "premium", "rating": 4.9,
     "address": "Huay Kaew Rd., Chiang Mai", "link": "https://example.com/doi-suthep-view"},
    {"name": "Backpackers Hub Hostel", "type": "budget", "rating": 4.2,
     "address": "Tha Phae Gate, Chiang Mai", "link": "https://example.com/backpackers-hub"},
    {"name": "Riverside Boutique Suites", "type": "premium", "rating": 4.7,
     "address": "Wat Ket, Chiang Mai", "link": "https://example.com/riverside-boutique"},
    {"name": "Garden Lane Homestay", "type": "budget", "rating": 4.3,
     "address": "Santitham, Chiang Mai", "link": "https://example.com/garden-lane-homestay"},
    {"name": "Craft Hotel Nimman", "type": "mid", "rating": 4.6,
     "address": "Nimmanahaeminda Soi 11, Chiang Mai", "link": "https://example.com/craft-hotel-nimman"},
    {"name": "Zen Garden Residence", "type": "premium", "rating": 4.9,
     "address": "Mae Rim, Chiang Mai", "link": "https://example.com/zen-garden-residence"},
]

MOCK_NOTE = "Using curated Chiang Mai stays. Provide a Booking/Amadeus key to enable live inventory."


def with_pricing(nights: int) -> List[StayOption]:
    out: List[StayOption] = []
    for i, stay in enumerate(MOCK_STAYS):
        nightly = round_half_up(BASE_NIGHTLY_USD[stay["type"]] * (1 + i * PRICE_STEP))
        out.append(StayOption(**stay, pricePerNightUSD=nightly, totalUSD=nightly * nights))
    return out


async def fetch_live_stays(params: StaySearchRequest, config: ProviderConfig) -> StaysResult:
    # TODO: call the Booking.com RapidAPI search and map hotels into StayOption
    if config.booking:
        log.info("Booking.com integration not yet implemented; falling back to mock data")
    raise LiveUnavailable(UNCONFIGURED)


async def search_stays_provider(params: StaySearchRequest, context: ProviderContext, config: ProviderConfig) -> StaysResult:
    key = cache_key("stays", params.model_dump())
    return await resolve(
        context,
        "stays",
        key,
        "booking",
        live=lambda: fetch_live_stays(params, config),
        mock=lambda reason: StaysResult(note=MOCK_NOTE, options=with_pricing(params.nights)),
    )
