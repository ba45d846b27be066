# providers/weather.py
# Open-Meteo daily forecast (keyless) with a deterministic mock outlook

import httpx
from typing import List
from config import ProviderConfig
from context import ProviderContext
from models import WeatherDay, WeatherRequest, WeatherSnapshot
from providers.fallback import EMPTY, ERRORED, FAILED, UNCONFIGURED, LiveUnavailable, resolve
from utils import add_days, cache_key

DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,precipitation_probability_max"

# mock highs start here and cool by a degree per day; lows trail by the offset
MOCK_BASE_HIGH_C = 30
MOCK_LOW_OFFSET_C = 6

MOCK_NOTES = {
    UNCONFIGURED: "Using mock weather. Enable Open-Meteo (OPEN_METEO_ENABLE=1) for a live forecast.",
    FAILED: "Open-Meteo request failed, using mock weather.",
    EMPTY: "Open-Meteo returned no forecast for these dates, using mock weather.",
    ERRORED: "Open-Meteo request errored, using mock weather.",
}


def build_mock_weather(params: WeatherRequest, note: str | None = None) -> WeatherSnapshot:
    daily: List[WeatherDay] = []
    for i in range(params.days):
        hi = MOCK_BASE_HIGH_C - i
        daily.append(WeatherDay(
            date=add_days(params.startDate, i),
            hiC=hi,
            loC=hi - MOCK_LOW_OFFSET_C,
            precipProb=20 + i * 5,
        ))
    return WeatherSnapshot(note=note, daily=daily)


async def fetch_open_meteo(params: WeatherRequest, config: ProviderConfig) -> WeatherSnapshot:
    meteo = config.open_meteo
    if not meteo:
        raise LiveUnavailable(UNCONFIGURED)
    query = {
        "latitude": params.lat,
        "longitude": params.lon,
        "start_date": params.startDate,
        "end_date": add_days(params.startDate, params.days - 1),
        "daily": DAILY_FIELDS,
        "timezone": "auto",
    }
    try:
        async with config.client() as client:
            r = await client.get(meteo.base_url, params=query)
            if r.status_code != 200:
                raise LiveUnavailable(FAILED, f"status {r.status_code}")
            daily = (r.json() or {}).get("daily") or {}

        times = daily.get("time") or []
        if not times:
            raise LiveUnavailable(EMPTY)
        highs = daily["temperature_2m_max"]
        lows = daily["temperature_2m_min"]
        precip = daily.get("precipitation_probability_max") or []
        out = [
            WeatherDay(
                date=day,
                hiC=round(float(highs[i]), 1),
                loC=round(float(lows[i]), 1),
                precipProb=precip[i] if i < len(precip) else None,
            )
            for i, day in enumerate(times)
        ]
        return WeatherSnapshot(daily=out)
    except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
        raise LiveUnavailable(ERRORED, str(e)) from e


async def weather_provider(params: WeatherRequest, context: ProviderContext, config: ProviderConfig) -> WeatherSnapshot:
    key = cache_key("weather", params.model_dump())
    return await resolve(
        context,
        "weather",
        key,
        "open-meteo",
        live=lambda: fetch_open_meteo(params, config),
        mock=lambda reason: build_mock_weather(params, MOCK_NOTES[reason]),
    )
