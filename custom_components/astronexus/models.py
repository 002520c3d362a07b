"""
Domain models for the AstroNexus integration.

This module contains pure, immutable data classes.
These classes have no dependencies on HTTP, API logic, or Home Assistant internals.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime

from .const import OBSERVER_KEY_PRECISION


@dataclasses.dataclass(frozen=True)
class OrbitalPosition:
    """Sub-satellite point of the tracked object at receipt time."""

    latitude: float
    longitude: float
    altitude_km: float
    velocity_kmh: float
    observed_at_ms: int


@dataclasses.dataclass(frozen=True)
class PassPrediction:
    """Next time the tracked object rises above the observer's horizon."""

    rise_epoch_s: int
    duration_s: int
    source: str = ""

    @property
    def set_epoch_s(self) -> int:
        return self.rise_epoch_s + self.duration_s


@dataclasses.dataclass(frozen=True)
class SpaceWeatherSnapshot:
    """Latest geomagnetic and solar-wind readings with short histories (oldest first)."""

    kp_index: float
    kp_history: tuple[float, ...]
    solar_wind_speed_kms: float
    solar_wind_history: tuple[float, ...]


@dataclasses.dataclass(frozen=True)
class LaunchEvent:
    """Normalized snapshot of one scheduled launch."""

    id: str
    name: str
    provider: str
    vehicle: str
    site: str
    launch_time: datetime
    status: str
    payload_description: str
    mission_name: str | None = None
    info_url: str | None = None


@dataclasses.dataclass(frozen=True)
class TwoLineElementSet:
    """Raw two-line orbital elements of a single object."""

    line1: str
    line2: str
    name: str | None = None

    @property
    def catalog_number(self) -> int:
        return int(self.line1[2:7])


@dataclasses.dataclass(frozen=True)
class ObserverLocation:
    """Ground observer for pass predictions (sea level)."""

    latitude: float
    longitude: float

    def cache_key(self) -> tuple[float, float]:
        """Rounded coordinates; predictions are only valid for the location they were computed for."""
        return (
            round(self.latitude, OBSERVER_KEY_PRECISION),
            round(self.longitude, OBSERVER_KEY_PRECISION),
        )
