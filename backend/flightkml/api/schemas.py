"""
API schemas (Pydantic models) for request/response validation.
"""

from typing import Optional
from pydantic import BaseModel, Field


# ============================================================================
# Capture Schemas
# ============================================================================

class CaptureSummaryResponse(BaseModel):
    """Summary of a capture for listing."""
    id: str
    name: str
    source_file: str
    record_count: int
    position_count: int
    interpolated_count: int
    path_length_m: float


class BoundsResponse(BaseModel):
    """Extent of measured positions (null when nothing was measured)."""
    min_lon: Optional[float] = None
    min_lat: Optional[float] = None
    min_alt: Optional[float] = None
    max_lon: Optional[float] = None
    max_lat: Optional[float] = None
    max_alt: Optional[float] = None
    sample_count: int


class ViewpointResponse(BaseModel):
    """Camera framing for the path."""
    lon: float
    lat: float
    alt: float
    range_m: float
    heading: float
    tilt: float
    overridden: bool


class CaptureMetadataResponse(BaseModel):
    """Full metadata for a finalized capture."""
    id: str
    name: str
    source_file: str
    record_counts: dict[str, int]  # record kind -> count
    interpolated_count: int
    unresolved_count: int
    dropped_count: int
    path_length_m: float
    ground_altitude: float
    path_style: str
    bounds: BoundsResponse
    viewpoint: ViewpointResponse


class CaptureReloadRequest(BaseModel):
    """Request to re-finalize a capture with other settings."""
    ground_altitude: Optional[float] = None
    lookat_lon: Optional[float] = Field(default=None, ge=-360.0, le=360.0)
    lookat_lat: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    wrap_latitude: Optional[bool] = None
    path_style: Optional[str] = None


# ============================================================================
# Path Schemas
# ============================================================================

class StaticPathResponse(BaseModel):
    """Whole flight path as a polyline."""
    capture_id: str
    point_count: int
    coordinates: list[tuple[float, float, float]]  # (lon, lat, alt)


class TrackSampleResponse(BaseModel):
    """Single timed sample of an entity."""
    when: str
    lon: float
    lat: float
    alt: float
    heading: float
    tilt: float
    roll: float


class DynamicPathResponse(BaseModel):
    """Time-tagged path of one entity."""
    capture_id: str
    entity: str
    offset: tuple[float, float, float]
    samples: list[TrackSampleResponse]


class EntityResponse(BaseModel):
    """Entity that can be placed along the path."""
    name: str
    offset: tuple[float, float, float]
    model: Optional[str] = None


# ============================================================================
# Folder Management Schemas
# ============================================================================

class SetFolderRequest(BaseModel):
    """Request to set the data folder."""
    path: str


class FolderInfoResponse(BaseModel):
    """Information about the current data folder."""
    path: Optional[str]
    capture_count: int


# ============================================================================
# Error Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    code: Optional[str] = None
