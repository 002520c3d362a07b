"""
Next-pass prediction sources.

Responsible for:
- The direct open-notify prediction service ({response: [{risetime, duration}]})
- The same service routed through pass-through proxies (identical parsing)
- An alternate service returning explicit rise / peak / set timestamps
- The local propagation fallback built on CelesTrak element sets
- Racing all of them and returning the first prediction that arrives
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from urllib.parse import quote, urlencode, urlparse

import aiohttp

from custom_components.astronexus.api.elements import fetch_element_set
from custom_components.astronexus.const import (
    ALT_PASS_API_URL,
    ALT_PASS_TIMEOUT_MS,
    CORS_PROXY_TEMPLATES,
    GENERIC_PASS_FAILURE,
    ISS_CATALOG_NUMBER,
    PASS_API_URL,
    PASS_TIMEOUT_MS,
    PROXY_TIMEOUT_MS,
)
from custom_components.astronexus.errors import NoDataAvailable, ParseError
from custom_components.astronexus.models import ObserverLocation, PassPrediction
from custom_components.astronexus.propagation import predict_next_pass
from custom_components.astronexus.race import CancelToken, first_success
from custom_components.astronexus.requests import fetch_json

_LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def parse_direct_pass(raw: dict, source: str = "open-notify") -> PassPrediction:
    """Take the first entry of an open-notify {response: [{risetime, duration}]} document."""
    if not isinstance(raw, dict):
        raise ParseError(f"Unexpected pass response: {raw!r:.200}")
    passes = raw.get("response")
    if not isinstance(passes, list):
        reason = raw.get("reason") or raw.get("message")
        raise ParseError(f"Pass response has no 'response' list{f': {reason}' if reason else ''}")
    if not passes:
        raise NoDataAvailable("No pass data returned")

    first = passes[0]
    try:
        rise = int(first["risetime"])
        duration = int(first["duration"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ParseError(f"Malformed pass entry: {first!r:.200}") from exc
    return PassPrediction(rise_epoch_s=rise, duration_s=max(0, duration), source=source)


def _parse_timestamp(value) -> datetime:
    if not isinstance(value, str):
        raise ParseError(f"Expected ISO timestamp, got {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ParseError(f"Invalid ISO timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_alternate_pass(raw: dict, source: str = "g7vrd") -> PassPrediction:
    """
    Take the first entry of a {passes: [{aos, tca, los}]} document.

    duration = round((los_ms - aos_ms) / 1000), floored at 0.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("passes"), list):
        raise ParseError(f"Unexpected pass response: {raw!r:.200}")
    passes = raw["passes"]
    if not passes:
        raise NoDataAvailable("No pass data returned")

    first = passes[0]
    if not isinstance(first, dict):
        raise ParseError(f"Malformed pass entry: {first!r:.200}")
    aos = _parse_timestamp(first.get("aos"))
    los = _parse_timestamp(first.get("los"))
    rise_ms = aos.timestamp() * 1000
    set_ms = los.timestamp() * 1000
    return PassPrediction(
        rise_epoch_s=math.floor(aos.timestamp()),
        duration_s=max(0, round((set_ms - rise_ms) / 1000)),
        source=source,
    )


# ---------------------------------------------------------------------------
# URL construction
# ---------------------------------------------------------------------------

def direct_pass_url(observer: ObserverLocation) -> str:
    query = urlencode({"lat": observer.latitude, "lon": observer.longitude, "n": 1})
    return f"{PASS_API_URL}?{query}"


def proxied_url(template: str, target_url: str) -> str:
    return template.format(url=quote(target_url, safe=""))


def alternate_pass_url(observer: ObserverLocation) -> str:
    return ALT_PASS_API_URL.format(
        catalog=ISS_CATALOG_NUMBER, lat=observer.latitude, lon=observer.longitude
    )


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

async def fetch_pass_direct(
    observer: ObserverLocation,
    session: aiohttp.ClientSession | None = None,
    token: CancelToken | None = None,
) -> PassPrediction:
    """
    Corresponding CURL command:
    curl 'https://api.open-notify.org/iss-pass.json?lat=52.52&lon=13.41&n=1'
    """
    raw = await fetch_json(direct_pass_url(observer), timeout_ms=PASS_TIMEOUT_MS, session=session)
    return parse_direct_pass(raw)


async def fetch_pass_proxied(
    observer: ObserverLocation,
    template: str,
    session: aiohttp.ClientSession | None = None,
    token: CancelToken | None = None,
) -> PassPrediction:
    """The direct service wrapped through a pass-through proxy."""
    url = proxied_url(template, direct_pass_url(observer))
    raw = await fetch_json(url, timeout_ms=PROXY_TIMEOUT_MS, session=session)
    return parse_direct_pass(raw, source=f"open-notify via {urlparse(template).hostname}")


async def fetch_pass_alternate(
    observer: ObserverLocation,
    session: aiohttp.ClientSession | None = None,
    token: CancelToken | None = None,
) -> PassPrediction:
    """
    Corresponding CURL command:
    curl 'https://api.g7vrd.co.uk/v1/satellite-passes/25544/52.52/13.41.json'
    """
    raw = await fetch_json(
        alternate_pass_url(observer), timeout_ms=ALT_PASS_TIMEOUT_MS, session=session
    )
    return parse_alternate_pass(raw)


async def fetch_pass_local(
    observer: ObserverLocation,
    session: aiohttp.ClientSession | None = None,
    token: CancelToken | None = None,
    now_s: float | None = None,
) -> PassPrediction:
    """Predict the next pass from the current CelesTrak element set."""
    element_set = await fetch_element_set(session=session)
    if token is not None and token.cancelled:
        # Another source already won; skip the CPU-bound scan
        raise NoDataAvailable("Local prediction abandoned")
    return predict_next_pass(element_set, observer, now_s)


async def fetch_next_pass(
    observer: ObserverLocation,
    session: aiohttp.ClientSession | None = None,
) -> PassPrediction:
    """
    Race every prediction source for observer and return the first success.

    Raises:
        AllSourcesFailed: no source produced a prediction
    """
    candidates = [
        ("open-notify", lambda token: fetch_pass_direct(observer, session, token)),
        *[
            (
                f"open-notify via {urlparse(template).hostname}",
                lambda token, template=template: fetch_pass_proxied(
                    observer, template, session, token
                ),
            )
            for template in CORS_PROXY_TEMPLATES
        ],
        ("g7vrd", lambda token: fetch_pass_alternate(observer, session, token)),
        ("local", lambda token: fetch_pass_local(observer, session, token)),
    ]
    prediction = await first_success(candidates, generic_message=GENERIC_PASS_FAILURE)
    _LOGGER.debug("Next pass for %s from %s", observer.cache_key(), prediction.source)
    return prediction
