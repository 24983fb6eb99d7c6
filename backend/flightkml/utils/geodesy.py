"""
Geodetic helper functions.

Spherical-Earth approximations used to frame and offset a flight path:
meter offsets to WGS84 degrees, great-circle spans and viewing range.
Functions accept scalars or numpy arrays wherever that makes sense.
"""

import math
from typing import Union

import numpy as np
from numpy.typing import NDArray

EARTH_RADIUS_M = 6378137.0       # Equatorial radius (meters)
METERS_PER_DEG_LON = 111320.0    # At the equator, scaled by cos(lat)
METERS_PER_DEG_LAT = 110540.0
MIN_RANGE_M = 10.0               # Floor for viewpoint range

Number = Union[float, NDArray[np.float64]]


def shift_by_meters(
    lon: Number,
    lat: Number,
    alt: Number,
    dx: float,
    dy: float,
    dz: float,
) -> tuple[Number, Number, Number]:
    """
    Shift WGS84 coordinates by a local East/North/Up offset.

    Args:
        lon, lat: Origin coordinates in degrees
        alt: Origin altitude in meters
        dx: Offset towards east in meters
        dy: Offset towards north in meters
        dz: Offset upwards in meters

    Returns:
        Tuple of (lon, lat, alt); no clamping is applied
    """
    lat_rad = np.radians(lat)
    delta_lon = dx / (METERS_PER_DEG_LON * np.cos(lat_rad))
    delta_lat = dy / METERS_PER_DEG_LAT
    return lon + delta_lon, lat + delta_lat, alt + dz


def angular_great_circle_span(min_deg: float, max_deg: float) -> float:
    """
    Great-circle distance covered by an angular extent.

    Uses the haversine half-angle formula on a sphere of radius
    EARTH_RADIUS_M.

    Args:
        min_deg: Lower end of the extent in degrees
        max_deg: Upper end of the extent in degrees

    Returns:
        Distance in meters
    """
    angular_dist = math.radians(max_deg) - math.radians(min_deg)
    a = math.sin(angular_dist / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def derive_range(span_lon_m: float, span_lat_m: float) -> float:
    """Viewing range covering both spans, never below MIN_RANGE_M."""
    return max(max(span_lon_m, span_lat_m), MIN_RANGE_M)


def unwrap_extent(min_deg: float, max_deg: float) -> tuple[float, float]:
    """
    Re-express an extent straddling zero as one across the 180 meridian.

    When min < 0 < max the samples are assumed to lie on both sides of the
    antimeridian, so the negative end is moved past +180 and the two ends
    swap roles.

    Returns:
        (min_deg, max_deg), unchanged when no wrap applies
    """
    if min_deg < 0 < max_deg:
        return max_deg, 360.0 + min_deg
    return min_deg, max_deg


def reflect_extent(min_deg: float, max_deg: float) -> tuple[float, float]:
    """
    Legacy wrap rule applied to latitude by older exporters.

    When min < 0 < max the extent becomes (max, 180 - min). Kept only to
    reproduce their viewpoints; latitude has no wrap discontinuity.
    """
    if min_deg < 0 < max_deg:
        return max_deg, 180.0 - min_deg
    return min_deg, max_deg


def normalize_longitude(lon: float) -> float:
    """Fold a longitude into the [-180, 180] range."""
    if -180.0 <= lon <= 180.0:
        return lon
    return (lon + 180.0) % 360.0 - 180.0


def path_length(
    lon: NDArray[np.float64],
    lat: NDArray[np.float64],
) -> float:
    """
    Total great-circle length of a polyline.

    Args:
        lon: Longitude array in degrees
        lat: Latitude array in degrees

    Returns:
        Length in meters (0.0 for fewer than two points)
    """
    if len(lon) < 2:
        return 0.0
    lat_rad = np.radians(lat)
    dlat = np.diff(lat_rad)
    dlon = np.radians(np.diff(lon))
    a = np.sin(dlat / 2) ** 2 + np.cos(lat_rad[:-1]) * np.cos(lat_rad[1:]) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return float(np.sum(EARTH_RADIUS_M * c))
