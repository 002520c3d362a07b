"""
Live position of the tracked object.

Responsible for:
- Fetching the current telemetry from the wheretheiss.at API
- Mapping the raw latitude / longitude / altitude / velocity fields to OrbitalPosition
"""
from __future__ import annotations

import logging
import math
import time

import aiohttp

from custom_components.astronexus.const import POSITION_API_URL, POSITION_TIMEOUT_MS
from custom_components.astronexus.errors import ParseError
from custom_components.astronexus.models import OrbitalPosition
from custom_components.astronexus.requests import fetch_json

_LOGGER = logging.getLogger(__name__)


def _number(raw: dict, field: str) -> float:
    try:
        value = float(raw[field])
    except (KeyError, TypeError, ValueError) as exc:
        raise ParseError(f"Position response has no numeric '{field}': {raw!r:.200}") from exc
    if not math.isfinite(value):
        raise ParseError(f"Position response has non-finite '{field}'")
    return value


def parse_position(raw: dict, received_at_ms: int | None = None) -> OrbitalPosition:
    """
    Map a wheretheiss.at satellite document to OrbitalPosition.

    Units are already km and km/h. The source timestamp is not trusted for "now",
    so observed_at_ms is the local receipt time.
    """
    if not isinstance(raw, dict):
        raise ParseError(f"Unexpected position response: {raw!r:.200}")
    if received_at_ms is None:
        received_at_ms = int(time.time() * 1000)
    return OrbitalPosition(
        latitude=_number(raw, "latitude"),
        longitude=_number(raw, "longitude"),
        altitude_km=_number(raw, "altitude"),
        velocity_kmh=_number(raw, "velocity"),
        observed_at_ms=received_at_ms,
    )


async def fetch_position(session: aiohttp.ClientSession | None = None) -> OrbitalPosition:
    """
    Fetch the current position of the ISS.

    Corresponding CURL command:
    curl 'https://api.wheretheiss.at/v1/satellites/25544'
    """
    raw = await fetch_json(POSITION_API_URL, timeout_ms=POSITION_TIMEOUT_MS, session=session)
    position = parse_position(raw)
    _LOGGER.debug(
        "ISS at (%.4f, %.4f), %.1f km", position.latitude, position.longitude, position.altitude_km
    )
    return position
