"""
Upcoming launches from The Space Devs Launch Library 2.

Responsible for:
- Fetching the next N scheduled launches, ordered by NET, recent launches hidden
- Mapping optional / nested fields to LaunchEvent with fixed fallback literals
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

import aiohttp

from custom_components.astronexus.const import (
    DEFAULT_LAUNCH_COUNT,
    LAUNCHES_API_URL,
    LAUNCHES_TIMEOUT_MS,
    UNKNOWN_PAYLOAD,
    UNKNOWN_PROVIDER,
    UNKNOWN_SITE,
    UNKNOWN_STATUS,
    UNKNOWN_VEHICLE,
)
from custom_components.astronexus.errors import ParseError
from custom_components.astronexus.models import LaunchEvent
from custom_components.astronexus.requests import fetch_json

_LOGGER = logging.getLogger(__name__)


def _nested(raw: dict, *path: str):
    """Follow path through nested dicts; None as soon as a level is missing."""
    value = raw
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _first_url(urls) -> str | None:
    """First entry of a URL list; entries are plain strings or {url: ...} objects."""
    if not urls:
        return None
    first = urls[0]
    if isinstance(first, dict):
        return first.get("url")
    return first


def _parse_net(value) -> datetime:
    if not isinstance(value, str):
        raise ParseError(f"Launch has no 'net' timestamp: {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ParseError(f"Invalid launch timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_launch(raw: dict) -> LaunchEvent:
    """Normalize one Launch Library record."""
    if not isinstance(raw, dict):
        raise ParseError(f"Unexpected launch record: {raw!r:.200}")
    try:
        launch_id = str(raw["id"])
        name = str(raw["name"])
    except KeyError as exc:
        raise ParseError(f"Launch record is missing {exc}") from exc

    status = _nested(raw, "status", "name")
    return LaunchEvent(
        id=launch_id,
        name=name,
        provider=_nested(raw, "launch_service_provider", "name") or UNKNOWN_PROVIDER,
        vehicle=_nested(raw, "rocket", "configuration", "name") or UNKNOWN_VEHICLE,
        site=(
            _nested(raw, "pad", "name")
            or _nested(raw, "pad", "location", "name")
            or UNKNOWN_SITE
        ),
        launch_time=_parse_net(raw.get("net")),
        status=str(status).lower() if status else UNKNOWN_STATUS,
        payload_description=_nested(raw, "mission", "description") or UNKNOWN_PAYLOAD,
        mission_name=_nested(raw, "mission", "name"),
        info_url=_first_url(raw.get("infoURLs")) or _first_url(raw.get("vidURLs")),
    )


def parse_launches(raw: dict) -> tuple[LaunchEvent, ...]:
    """Normalize a listing; the source order is kept for equal launch times."""
    if not isinstance(raw, dict) or not isinstance(raw.get("results"), list):
        raise ParseError(f"Unexpected launch listing: {raw!r:.200}")
    launches = [parse_launch(item) for item in raw["results"]]
    return tuple(sorted(launches, key=lambda launch: launch.launch_time))


async def fetch_upcoming_launches(
    limit: int = DEFAULT_LAUNCH_COUNT,
    session: aiohttp.ClientSession | None = None,
) -> tuple[LaunchEvent, ...]:
    """
    Fetch the next `limit` launches.

    Corresponding CURL command:
    curl 'https://ll.thespacedevs.com/2.2.0/launch/upcoming/?limit=4&hide_recent_previous=true&ordering=net'
    """
    params = {"limit": limit, "hide_recent_previous": "true", "ordering": "net"}
    raw = await fetch_json(
        LAUNCHES_API_URL, params=params, timeout_ms=LAUNCHES_TIMEOUT_MS, session=session
    )
    launches = parse_launches(raw)
    _LOGGER.debug("Fetched %s upcoming launches", len(launches))
    return launches
