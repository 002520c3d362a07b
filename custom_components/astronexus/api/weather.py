"""
Space-weather data from NOAA SWPC.

Responsible for:
- Fetching the 1-minute planetary Kp index and the 1-day solar-wind plasma feeds concurrently
- Dropping the header row of each tabular feed
- Extracting the latest value and a filtered history of the last HISTORY_LENGTH rows
"""
from __future__ import annotations

import asyncio
import logging
import math
from typing import Callable

import aiohttp

from custom_components.astronexus.const import (
    HISTORY_LENGTH,
    KP_COLUMN,
    KP_INDEX_URL,
    KP_MAX,
    SOLAR_WIND_FALLBACK_COLUMN,
    SOLAR_WIND_SPEED_COLUMN,
    SOLAR_WIND_URL,
    WEATHER_TIMEOUT_MS,
)
from custom_components.astronexus.errors import NoDataAvailable, ParseError
from custom_components.astronexus.models import SpaceWeatherSnapshot
from custom_components.astronexus.requests import fetch_json

_LOGGER = logging.getLogger(__name__)


def _to_number(value) -> float:
    """Coerce a table cell to float; anything unparseable becomes NaN."""
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def data_rows(raw, feed: str) -> list[list]:
    """Validate a row-oriented feed and drop its header row."""
    if not isinstance(raw, list) or not all(isinstance(row, list) for row in raw):
        raise ParseError(f"{feed} feed is not a list of rows")
    rows = raw[1:]
    if not rows:
        raise NoDataAvailable(f"{feed} feed has no data rows")
    return rows


def latest_value(
    rows: list[list],
    column: int,
    fallback_column: int | None = None,
    keep: Callable[[float], bool] | None = None,
) -> float:
    """
    Value of the last row at column, falling back to fallback_column (the row's last
    column when None), finally 0 if neither is a finite number accepted by keep.
    """
    last = rows[-1]
    candidates = []
    if column < len(last):
        candidates.append(last[column])
    if fallback_column is None:
        if last:
            candidates.append(last[-1])
    elif fallback_column < len(last):
        candidates.append(last[fallback_column])

    for candidate in candidates:
        value = _to_number(candidate)
        if math.isfinite(value) and (keep is None or keep(value)):
            return value
    return 0.0


def history(
    rows: list[list],
    column: int,
    keep: Callable[[float], bool],
    length: int = HISTORY_LENGTH,
) -> tuple[float, ...]:
    """The column over the last `length` rows (oldest first), keeping finite values accepted by keep."""
    values = []
    for row in rows[-length:]:
        value = _to_number(row[column]) if column < len(row) else math.nan
        if math.isfinite(value) and keep(value):
            values.append(value)
    return tuple(values)


def _valid_kp(value: float) -> bool:
    return value >= 0


def _valid_speed(value: float) -> bool:
    return value > 0


def parse_space_weather(kp_raw, plasma_raw) -> SpaceWeatherSnapshot:
    """Combine the Kp index and solar-wind plasma tables into one snapshot."""
    kp_rows = data_rows(kp_raw, "Kp index")
    plasma_rows = data_rows(plasma_raw, "Solar wind")

    # Negative Kp values and non-positive speeds are instrument fill values
    return SpaceWeatherSnapshot(
        kp_index=min(latest_value(kp_rows, KP_COLUMN, keep=_valid_kp), KP_MAX),
        kp_history=history(kp_rows, KP_COLUMN, _valid_kp),
        solar_wind_speed_kms=latest_value(
            plasma_rows, SOLAR_WIND_SPEED_COLUMN, SOLAR_WIND_FALLBACK_COLUMN, keep=_valid_speed
        ),
        solar_wind_history=history(plasma_rows, SOLAR_WIND_SPEED_COLUMN, _valid_speed),
    )


async def fetch_space_weather(session: aiohttp.ClientSession | None = None) -> SpaceWeatherSnapshot:
    """
    Fetch both feeds concurrently. Each request carries its own timeout.
    If either feed fails the whole fetch fails; no partial snapshot is returned.

    Corresponding CURL commands:
    curl 'https://services.swpc.noaa.gov/products/noaa-planetary-k-index-1-minute.json'
    curl 'https://services.swpc.noaa.gov/products/solar-wind/plasma-1-day.json'
    """
    kp_raw, plasma_raw = await asyncio.gather(
        fetch_json(KP_INDEX_URL, timeout_ms=WEATHER_TIMEOUT_MS, session=session),
        fetch_json(SOLAR_WIND_URL, timeout_ms=WEATHER_TIMEOUT_MS, session=session),
    )
    snapshot = parse_space_weather(kp_raw, plasma_raw)
    _LOGGER.debug(
        "Kp %.2f, solar wind %.1f km/s", snapshot.kp_index, snapshot.solar_wind_speed_kms
    )
    return snapshot
