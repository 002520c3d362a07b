"""
DashboardData — immutable snapshot of all AstroNexus data shared with entities.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses

from .models import LaunchEvent, OrbitalPosition, PassPrediction, SpaceWeatherSnapshot


@dataclasses.dataclass(frozen=True)
class DashboardData:
    """
    Typed, copy-on-write snapshot of every capability.

    Always replace via dataclasses.replace() — never mutate in place.
    A capability is None until its first successful fetch.
    """

    position: OrbitalPosition | None = None

    # Next pass for the configured observer
    next_pass: PassPrediction | None = None

    weather: SpaceWeatherSnapshot | None = None

    # Ascending by launch time
    launches: tuple[LaunchEvent, ...] = ()

    # capability → message of the last cold-start failure (cleared on success)
    errors: dict[str, str] = dataclasses.field(default_factory=dict)

    @property
    def next_launch(self) -> LaunchEvent | None:
        return self.launches[0] if self.launches else None
