"""
Local next-pass prediction from two-line elements.

Used when no prediction service answers. The element set is propagated with
the sgp4 library; TEME positions are rotated into the Earth-fixed frame by
Greenwich Mean Sidereal Time (polar motion and the equation of the equinoxes
are ignored) and compared against an observer on the WGS-84 ellipsoid at sea
level.

The scan is synchronous and CPU-bound: six hours at ten-second steps is about
2 200 propagations, well under a second with the compiled sgp4 backend.
"""
from __future__ import annotations

import logging
import math
import time

from sgp4.api import Satrec

from .const import PASS_SEARCH_HORIZON, PASS_SEARCH_STEP
from .errors import NoDataAvailable, ParseError
from .models import ObserverLocation, PassPrediction, TwoLineElementSet

_LOGGER = logging.getLogger(__name__)

# WGS-84 ellipsoid
EARTH_EQUATORIAL_RADIUS_KM = 6378.137
EARTH_ECCENTRICITY_SQUARED = 6.69437999014e-3

UNIX_EPOCH_JD = 2440587.5
J2000_JD = 2451545.0
SECONDS_PER_DAY = 86400.0

SGP4_ERROR_CODES = {
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


def gmst_rad(jd: float, fraction: float = 0.0) -> float:
    """
    Greenwich Mean Sidereal Time for a UTC Julian date split as jd + fraction.

    IAU formula based on Julian centuries from J2000.0:
        GMST(deg) = 280.46061837 + 360.98564736629 * (JD - 2451545.0)
                    + 0.000387933 * T^2 - T^3 / 38710000
    """
    days = (jd - J2000_JD) + fraction
    centuries = days / 36525.0
    gmst_deg = (
        280.46061837
        + 360.98564736629 * days
        + 0.000387933 * centuries**2
        - centuries**3 / 38710000.0
    )
    return math.radians(gmst_deg % 360.0)


def teme_to_ecef(
    position: tuple[float, float, float], gmst_angle_rad: float
) -> tuple[float, float, float]:
    """Rotate a TEME position about the Z axis by GMST into the Earth-fixed frame."""
    cos_t = math.cos(gmst_angle_rad)
    sin_t = math.sin(gmst_angle_rad)
    x, y, z = position
    return (cos_t * x + sin_t * y, -sin_t * x + cos_t * y, z)


def geodetic_to_ecef(
    lat_deg: float, lon_deg: float, alt_km: float = 0.0
) -> tuple[float, float, float]:
    """Geodetic coordinates on the WGS-84 ellipsoid to an Earth-fixed position in km."""
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    n = EARTH_EQUATORIAL_RADIUS_KM / math.sqrt(1.0 - EARTH_ECCENTRICITY_SQUARED * sin_lat**2)
    return (
        (n + alt_km) * cos_lat * math.cos(lon),
        (n + alt_km) * cos_lat * math.sin(lon),
        (n * (1.0 - EARTH_ECCENTRICITY_SQUARED) + alt_km) * sin_lat,
    )


def elevation_deg(
    observer: ObserverLocation,
    observer_ecef: tuple[float, float, float],
    target_ecef: tuple[float, float, float],
) -> float:
    """Elevation of target above the observer's local horizon plane."""
    dx = target_ecef[0] - observer_ecef[0]
    dy = target_ecef[1] - observer_ecef[1]
    dz = target_ecef[2] - observer_ecef[2]
    slant_range = math.sqrt(dx**2 + dy**2 + dz**2)
    if slant_range == 0.0:
        return 90.0

    lat = math.radians(observer.latitude)
    lon = math.radians(observer.longitude)
    # "Up" component of the East-North-Up frame
    up = (
        math.cos(lat) * math.cos(lon) * dx
        + math.cos(lat) * math.sin(lon) * dy
        + math.sin(lat) * dz
    )
    return math.degrees(math.asin(max(-1.0, min(1.0, up / slant_range))))


class PassPredictor:
    """
    Propagates one element set and finds horizon crossings for an observer.
    """

    def __init__(self, element_set: TwoLineElementSet) -> None:
        try:
            self._satrec = Satrec.twoline2rv(element_set.line1, element_set.line2)
        except (ValueError, IndexError) as exc:
            raise ParseError(f"Invalid element set: {exc}") from exc
        self.element_set = element_set

    def position_ecef(self, epoch_s: float) -> tuple[float, float, float]:
        """Earth-fixed position (km) at a Unix time."""
        fraction = epoch_s / SECONDS_PER_DAY
        error, position, _velocity = self._satrec.sgp4(UNIX_EPOCH_JD, fraction)
        if error != 0:
            message = SGP4_ERROR_CODES.get(error, f"Unknown error code {error}")
            raise NoDataAvailable(f"SGP4 propagation failed: {message}")
        return teme_to_ecef(position, gmst_rad(UNIX_EPOCH_JD, fraction))

    def elevation_at(self, observer: ObserverLocation, epoch_s: float) -> float:
        observer_ecef = geodetic_to_ecef(observer.latitude, observer.longitude)
        return elevation_deg(observer, observer_ecef, self.position_ecef(epoch_s))

    def next_pass(
        self,
        observer: ObserverLocation,
        start_s: float | None = None,
        horizon_s: int = PASS_SEARCH_HORIZON,
        step_s: int = PASS_SEARCH_STEP,
    ) -> PassPrediction:
        """
        Scan forward from start_s for the next rise/set pair.

        Rise is the first sample where elevation goes from <= 0 to > 0; set is the
        first later sample back at <= 0. An object already above the horizon at
        start_s is ignored until its next rise.

        Raises:
            NoDataAvailable: No complete pass within horizon_s, or sgp4 failed
        """
        if start_s is None:
            start_s = time.time()
        start = int(start_s)
        observer_ecef = geodetic_to_ecef(observer.latitude, observer.longitude)

        previous: float | None = None
        rise: int | None = None
        for offset in range(0, horizon_s + 1, step_s):
            now = start + offset
            elevation = elevation_deg(observer, observer_ecef, self.position_ecef(now))
            if rise is None:
                if previous is not None and previous <= 0.0 < elevation:
                    rise = now
            elif elevation <= 0.0:
                return PassPrediction(
                    rise_epoch_s=rise,
                    duration_s=max(0, round(now - rise)),
                    source="local",
                )
            previous = elevation

        raise NoDataAvailable("No upcoming pass predictable in range")


def predict_next_pass(
    element_set: TwoLineElementSet,
    observer: ObserverLocation,
    start_s: float | None = None,
) -> PassPrediction:
    """Convenience wrapper: next pass for observer with the default horizon and step."""
    prediction = PassPredictor(element_set).next_pass(observer, start_s)
    _LOGGER.debug(
        "Local prediction for %s at %s: rise %s, %s s",
        element_set.catalog_number, observer.cache_key(),
        prediction.rise_epoch_s, prediction.duration_s,
    )
    return prediction
