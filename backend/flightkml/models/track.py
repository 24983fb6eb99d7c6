"""
Reconstruction and track data model.

Bounds and Viewpoint come out of the reconstruction pass; EntitySpec,
TrackSample and Track describe what the track builder produces for a
document emitter.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from flightkml.utils.geodesy import MIN_RANGE_M


@dataclass
class Bounds:
    """Running min/max of measured positions."""

    min_lon: float = math.inf
    min_lat: float = math.inf
    min_alt: float = math.inf
    max_lon: float = -math.inf
    max_lat: float = -math.inf
    max_alt: float = -math.inf
    sample_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.sample_count == 0

    def update(self, lon: float, lat: float, alt: float) -> None:
        self.min_lon = min(self.min_lon, lon)
        self.min_lat = min(self.min_lat, lat)
        self.min_alt = min(self.min_alt, alt)
        self.max_lon = max(self.max_lon, lon)
        self.max_lat = max(self.max_lat, lat)
        self.max_alt = max(self.max_alt, alt)
        self.sample_count += 1

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (self.min_lon, self.min_lat, self.min_alt, self.max_lon, self.max_lat, self.max_alt)


@dataclass
class Viewpoint:
    """
    Camera framing for a flight path.

    heading/tilt are presentation defaults handed to emitters.
    """

    center_lon: float = 0.0
    center_lat: float = 0.0
    center_alt: float = 0.0
    range_meters: float = MIN_RANGE_M
    heading: float = -45.0
    tilt: float = 45.0

    @property
    def is_unset(self) -> bool:
        return self.center_lon == 0.0 and self.center_lat == 0.0


def is_override(viewpoint: Optional[Viewpoint]) -> bool:
    """A viewpoint pins the camera unless it is missing or at (0, 0)."""
    return viewpoint is not None and not viewpoint.is_unset


@dataclass
class ReconstructionResult:
    """Outcome of one finalize pass."""

    bounds: Bounds
    viewpoint: Viewpoint
    viewpoint_overridden: bool
    interpolated_count: int  # filled during this pass
    unresolved_count: int    # unset samples left without a fix


@dataclass
class ModelStyle:
    """3D model presentation of an entity (emitter-only)."""

    href: str
    heading: float = 0.0
    tilt: float = -90.0
    roll: float = 0.0
    scale: float = 0.005
    line_style: str = "noLineNoPoly"


@dataclass
class EntitySpec:
    """
    A rigid body following the aircraft position series.

    offset is an East/North/Up displacement in meters. ground_altitude,
    when left as None, falls back to the builder's default.
    """

    name: str
    offset: tuple[float, float, float] = (0.0, 0.0, 0.0)
    ground_altitude: Optional[float] = None
    model: Optional[ModelStyle] = None


@dataclass
class PathPoint:
    """Static polyline vertex."""

    longitude: float
    latitude: float
    altitude: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.longitude, self.latitude, self.altitude)


@dataclass
class TrackSample:
    """Time-tagged position of an entity; orientation is a placeholder."""

    timestamp: datetime
    longitude: float
    latitude: float
    altitude: float
    heading: float = 0.0
    tilt: float = 0.0
    roll: float = 0.0


@dataclass
class DynamicTrack:
    """Samples of one entity in sequence order."""

    entity: EntitySpec
    samples: list[TrackSample] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.entity.name

    def __len__(self) -> int:
        return len(self.samples)


@dataclass
class Track:
    """Renderable artifacts for a reconstructed capture."""

    static_path: list[PathPoint]
    dynamic_paths: dict[str, DynamicTrack] = field(default_factory=dict)
