"""
Low-level HTTP request library for all AstroNexus data sources.
This module bounds every request with a timeout and translates transport
failures into the exceptions defined in errors.py. It never retries.
"""
from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from typing import Any

import aiohttp

from .const import DEFAULT_TIMEOUT_MS
from .errors import FetchTimeout, HttpError, NetworkError, ParseError

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class RawResponse:
    """Terminal (2xx) response with the body already read."""

    url: str
    status: int
    content_type: str
    text: str

    def json(self) -> Any:
        """Decode the body as JSON regardless of the advertised content type."""
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise ParseError(f"Invalid JSON from {self.url}: {exc}") from exc


async def bounded_fetch(
    url: str,
    method: str = "GET",
    headers: dict | None = None,
    body: Any = None,
    params: dict | None = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    session: aiohttp.ClientSession | None = None,
) -> RawResponse:
    """
    Make a single HTTP request bounded by timeout_ms.

    Args:
        url: Absolute target URL
        method: HTTP method (GET, POST, ...)
        headers: HTTP headers dictionary (optional)
        body: JSON-serialisable payload for POST/PUT requests (optional)
        params: URL query parameters (optional)
        timeout_ms: Upper bound for connect + headers + body read
        session: Shared aiohttp session; a private one is created and closed when omitted

    Returns:
        RawResponse with the decoded body text

    Raises:
        FetchTimeout: No terminal response within timeout_ms
        HttpError: Any non-2xx status
        NetworkError: DNS, connection refused, TLS and other transport failures
        ParseError: The 2xx body cannot be decoded as text
    """
    method = method.upper()
    timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()

    try:
        async with session.request(
            method, url, headers=headers, json=body, params=params, timeout=timeout
        ) as response:
            if not 200 <= response.status < 300:
                _LOGGER.warning(
                    "HTTP %s %s from %s %s",
                    response.status, response.reason, method, url,
                )
                raise HttpError(url, response.status, response.reason or "")
            try:
                text = await response.text()
            except UnicodeDecodeError as exc:
                _LOGGER.warning("Undecodable body from %s %s: %s", method, url, exc)
                raise ParseError(f"Undecodable body from {url}: {exc}") from exc
            return RawResponse(
                url=str(response.url),
                status=response.status,
                content_type=response.headers.get("Content-Type", ""),
                text=text,
            )
    except (asyncio.TimeoutError, TimeoutError) as exc:
        # Checked before ClientError: ServerTimeoutError derives from both
        _LOGGER.warning("Timeout on %s request to %s after %s ms", method, url, timeout_ms)
        raise FetchTimeout(url, timeout_ms) from exc
    except aiohttp.ClientError as exc:
        _LOGGER.warning("Network error on %s request to %s: %s", method, url, exc)
        raise NetworkError(url, exc) from exc
    finally:
        if owns_session:
            await session.close()


async def fetch_json(url: str, **kwargs) -> Any:
    """bounded_fetch and decode the body as JSON."""
    response = await bounded_fetch(url, **kwargs)
    return response.json()


async def fetch_text(url: str, **kwargs) -> str:
    """bounded_fetch and return the body as text."""
    response = await bounded_fetch(url, **kwargs)
    return response.text
