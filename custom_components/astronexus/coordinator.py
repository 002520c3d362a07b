"""
DataUpdateCoordinator for the AstroNexus integration.

Responsibilities:
- Own the injected PollingCache instances (one per capability) for the
  lifetime of a config entry and run their background refresh timers.
- On every tick read each capability from its cache: fresh values cost no
  network call, stale ones trigger exactly one fetch.
- Publish an immutable DashboardData snapshot to entities.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import timedelta

import aiohttp

from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api.launches import fetch_upcoming_launches
from .api.passes import fetch_next_pass
from .api.position import fetch_position
from .api.weather import fetch_space_weather
from .cache import PollingCache
from .const import (
    CONF_ENTRY_NAME,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    DEFAULT_LAUNCH_COUNT,
    DOMAIN,
    ISS_NAME,
    LAUNCHES_INTERVAL,
    PASS_INTERVAL,
    POSITION_INTERVAL,
    VERSION,
    WEATHER_INTERVAL,
)
from .coordinator_data import DashboardData
from .errors import SpaceDataError
from .models import LaunchEvent, ObserverLocation, OrbitalPosition, PassPrediction, SpaceWeatherSnapshot

__all__ = ["AstroNexusCoordinator", "DashboardCaches", "DashboardData", "build_caches"]

_LOGGER = logging.getLogger(__name__)

CAPABILITIES = ("position", "next_pass", "weather", "launches")


@dataclasses.dataclass(frozen=True)
class DashboardCaches:
    """One PollingCache per capability, constructed once at entry setup."""

    position: PollingCache[OrbitalPosition]
    passes: PollingCache[PassPrediction]
    weather: PollingCache[SpaceWeatherSnapshot]
    launches: PollingCache[tuple[LaunchEvent, ...]]

    def all(self) -> tuple[PollingCache, ...]:
        return (self.position, self.passes, self.weather, self.launches)


def build_caches(
    session: aiohttp.ClientSession | None,
    launch_count: int = DEFAULT_LAUNCH_COUNT,
) -> DashboardCaches:
    """Wire every capability's fetcher to a cache with its staleness window."""
    return DashboardCaches(
        position=PollingCache(
            "position", lambda _key: fetch_position(session), POSITION_INTERVAL
        ),
        # Keyed by rounded observer coordinates, see ObserverLocation.cache_key()
        passes=PollingCache(
            "next_pass",
            lambda key: fetch_next_pass(ObserverLocation(*key), session),
            PASS_INTERVAL,
        ),
        weather=PollingCache(
            "weather", lambda _key: fetch_space_weather(session), WEATHER_INTERVAL
        ),
        launches=PollingCache(
            "launches",
            lambda _key: fetch_upcoming_launches(launch_count, session),
            LAUNCHES_INTERVAL,
        ),
    )


class AstroNexusCoordinator(DataUpdateCoordinator[DashboardData]):
    """
    Coordinator for the AstroNexus integration.

    Ticks at the fastest capability interval; each cache decides on its own
    whether the tick needs a network call.
    """

    def __init__(self, hass: HomeAssistant, entry_data: dict, caches: DashboardCaches) -> None:
        """Initialize the coordinator from config-entry data and the caches it owns."""
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(seconds=POSITION_INTERVAL),
        )
        self._entry_data = entry_data
        self.caches = caches
        self.observer = ObserverLocation(
            float(entry_data[CONF_LATITUDE]), float(entry_data[CONF_LONGITUDE])
        )

        # Snapshot starts empty; entities must handle None gracefully until first refresh
        self.data = DashboardData()

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> DashboardData:
        """
        Called by HA on every update_interval tick.

        A capability that fails with nothing cached is reported in
        DashboardData.errors and left empty; the tick only fails as a whole
        when no capability has any data.
        """
        results = await asyncio.gather(
            self.caches.position.get(),
            self.caches.passes.get(self.observer.cache_key()),
            self.caches.weather.get(),
            self.caches.launches.get(),
            return_exceptions=True,
        )

        values: dict[str, object] = {}
        errors: dict[str, str] = {}
        for capability, result in zip(CAPABILITIES, results):
            if isinstance(result, SpaceDataError):
                _LOGGER.warning("No %s data available: %s", capability, result)
                errors[capability] = str(result)
            elif isinstance(result, BaseException):
                _LOGGER.error(
                    "Unexpected error while reading %s: %s: %s",
                    capability, type(result).__name__, result,
                )
                errors[capability] = f"{type(result).__name__}: {result}"
            else:
                values[capability] = result

        if not values:
            raise UpdateFailed(f"All AstroNexus sources failed: {errors}")

        return dataclasses.replace(self.data, **values, errors=errors)

    # ------------------------------------------------------------------
    # Entity helper: device info dict
    # ------------------------------------------------------------------

    def get_device_info(self) -> dict:
        """Return the HA DeviceInfo dict shared by every entity of this entry."""
        return {
            "identifiers": {(DOMAIN, f"{self._entry_data['guid']}_iss")},
            "name": self._entry_data.get(CONF_ENTRY_NAME) or ISS_NAME,
            "manufacturer": "AstroNexus",
            "model": ISS_NAME,
            "sw_version": VERSION,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def async_start_polling(self) -> None:
        """Start every cache's background refresh timer."""
        self.caches.passes.watch(self.observer.cache_key())
        for cache in self.caches.all():
            cache.start()

    async def async_shutdown(self) -> None:
        """Stop all cache timers and in-flight fetches owned by this coordinator."""
        await asyncio.gather(*(cache.stop() for cache in self.caches.all()))

    @property
    def entry_data(self):
        return self._entry_data
