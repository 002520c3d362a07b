"""
Two-line element sets from CelesTrak.

Responsible for:
- Fetching the plain-text element set of one catalog object
- Parsing the most recent two non-blank lines into a TwoLineElementSet
"""
from __future__ import annotations

import logging

import aiohttp

from custom_components.astronexus.const import (
    ELEMENTS_API_URL,
    ELEMENTS_TIMEOUT_MS,
    ISS_CATALOG_NUMBER,
)
from custom_components.astronexus.errors import NoDataAvailable, ParseError
from custom_components.astronexus.models import TwoLineElementSet
from custom_components.astronexus.requests import fetch_text

_LOGGER = logging.getLogger(__name__)


def parse_element_set(text: str) -> TwoLineElementSet:
    """
    Parse the last two non-blank lines of text as an element set.

    The line preceding them, if any, is taken as the object name (three-line format).
    CelesTrak answers "No GP data found" with a 200 for unknown objects.
    """
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        if lines and "no gp data" in lines[0].lower():
            raise NoDataAvailable(lines[0])
        raise ParseError(f"Expected two element lines, got {len(lines)}")

    line1, line2 = lines[-2], lines[-1]
    if not line1.startswith("1 ") or not line2.startswith("2 "):
        raise ParseError(f"Malformed element set: {line1!r} / {line2!r}")

    name = lines[-3].strip() if len(lines) >= 3 else None
    return TwoLineElementSet(line1=line1, line2=line2, name=name)


async def fetch_element_set(
    catalog_number: int = ISS_CATALOG_NUMBER,
    session: aiohttp.ClientSession | None = None,
) -> TwoLineElementSet:
    """
    Fetch the current element set for catalog_number.

    Corresponding CURL command:
    curl 'https://celestrak.org/NORAD/elements/gp.php?CATNR=25544&FORMAT=TLE'
    """
    params = {"CATNR": catalog_number, "FORMAT": "TLE"}
    text = await fetch_text(
        ELEMENTS_API_URL, params=params, timeout_ms=ELEMENTS_TIMEOUT_MS, session=session
    )
    element_set = parse_element_set(text)
    _LOGGER.debug("Fetched element set for %s: %s", catalog_number, element_set.name)
    return element_set
