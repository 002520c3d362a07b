"""
Exception hierarchy shared by every data source of the integration.

Network-level exceptions (aiohttp, asyncio) are translated into these types by
requests.py so the adapters, the pass-prediction race and the polling caches
only ever deal with SpaceDataError subclasses.
"""
from __future__ import annotations


class SpaceDataError(Exception):
    """Base class for all data acquisition failures."""


class FetchTimeout(SpaceDataError):
    """No terminal response arrived within the request timeout."""

    def __init__(self, url: str, timeout_ms: int) -> None:
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"Request to {url} timed out after {timeout_ms} ms")


class HttpError(SpaceDataError):
    """The source answered with a non-2xx status."""

    def __init__(self, url: str, status: int, status_text: str = "") -> None:
        self.url = url
        self.status = status
        self.status_text = status_text
        super().__init__(f"Request failed: {status} {status_text}".rstrip())


class NetworkError(SpaceDataError):
    """DNS, connection or TLS failure before any HTTP status was received."""

    def __init__(self, url: str, cause: BaseException) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Network error for {url}: {cause}")


class ParseError(SpaceDataError):
    """The response body is malformed or lacks an expected field."""


class NoDataAvailable(SpaceDataError):
    """The source responded successfully but had no usable records."""


class AllSourcesFailed(SpaceDataError):
    """Every candidate source of a redundant capability failed."""

    def __init__(self, message: str, failures: list[tuple[str, BaseException]] | None = None) -> None:
        self.failures = list(failures or [])
        super().__init__(message)
