"""
API routes for flight captures.
"""

import math
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from flightkml.api.schemas import (
    BoundsResponse,
    CaptureMetadataResponse,
    CaptureReloadRequest,
    CaptureSummaryResponse,
    DynamicPathResponse,
    EntityResponse,
    ErrorResponse,
    FolderInfoResponse,
    SetFolderRequest,
    StaticPathResponse,
    TrackSampleResponse,
    ViewpointResponse,
)
from flightkml.models.aircraft import PHANTOM3_ENTITIES, find_entity
from flightkml.models.errors import ConfigurationError
from flightkml.models.settings import CaptureSettings, parse_path_style
from flightkml.models.track import Bounds
from flightkml.services.kml_writer import KML_MEDIA_TYPE, KmlWriter, format_when
from flightkml.services.repository import get_repository
from flightkml.services.session import CaptureSession


router = APIRouter(prefix="/captures", tags=["captures"])


def _inf_to_none(value: float) -> Optional[float]:
    """Convert the infinite sentinels of empty bounds to None."""
    if math.isinf(value):
        return None
    return value


def _build_bounds_response(bounds: Bounds) -> BoundsResponse:
    return BoundsResponse(
        min_lon=_inf_to_none(bounds.min_lon),
        min_lat=_inf_to_none(bounds.min_lat),
        min_alt=_inf_to_none(bounds.min_alt),
        max_lon=_inf_to_none(bounds.max_lon),
        max_lat=_inf_to_none(bounds.max_lat),
        max_alt=_inf_to_none(bounds.max_alt),
        sample_count=bounds.sample_count,
    )


def _build_metadata_response(capture_id: str, session: CaptureSession) -> CaptureMetadataResponse:
    """Build metadata response from a finalized session."""
    repo = get_repository()
    summary = repo.get_summary(capture_id)
    result = session.result
    viewpoint = result.viewpoint

    return CaptureMetadataResponse(
        id=capture_id,
        name=session.name,
        source_file=summary.source_file if summary else "",
        record_counts={kind.name.lower(): n for kind, n in session.store.count_by_kind().items()},
        interpolated_count=summary.interpolated_count if summary else result.interpolated_count,
        unresolved_count=result.unresolved_count,
        dropped_count=session.dropped_records,
        path_length_m=session.path_length_m(),
        ground_altitude=session.settings.ground_altitude,
        path_style=session.settings.path_style.value,
        bounds=_build_bounds_response(result.bounds),
        viewpoint=ViewpointResponse(
            lon=viewpoint.center_lon,
            lat=viewpoint.center_lat,
            alt=viewpoint.center_alt,
            range_m=viewpoint.range_meters,
            heading=viewpoint.heading,
            tilt=viewpoint.tilt,
            overridden=result.viewpoint_overridden,
        ),
    )


def _get_session_or_404(capture_id: str) -> CaptureSession:
    session = get_repository().get_capture(capture_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Capture not found: {capture_id}")
    return session


@router.get("", response_model=list[CaptureSummaryResponse])
async def list_captures():
    """
    List all available captures, sorted by name.
    """
    repo = get_repository()
    return [
        CaptureSummaryResponse(
            id=s.id,
            name=s.name,
            source_file=s.source_file,
            record_count=s.record_count,
            position_count=s.position_count,
            interpolated_count=s.interpolated_count,
            path_length_m=s.path_length_m,
        )
        for s in repo.list_captures()
    ]


@router.get("/entities", response_model=list[EntityResponse])
async def list_entities():
    """Entities available for dynamic paths."""
    return [
        EntityResponse(
            name=e.name,
            offset=e.offset,
            model=e.model.href if e.model else None,
        )
        for e in PHANTOM3_ENTITIES
    ]


@router.get(
    "/{capture_id}",
    response_model=CaptureMetadataResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_capture_metadata(capture_id: str):
    """
    Get reconstruction metadata for a capture.
    """
    session = _get_session_or_404(capture_id)
    return _build_metadata_response(capture_id, session)


@router.post(
    "/{capture_id}/reload",
    response_model=CaptureMetadataResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def reload_capture(capture_id: str, request: CaptureReloadRequest):
    """
    Re-finalize a capture with other settings.

    Use this to set the take-off ground altitude or pin the viewpoint.
    """
    repo = get_repository()

    if not repo.has_capture(capture_id):
        raise HTTPException(status_code=404, detail=f"Capture not found: {capture_id}")

    try:
        settings = CaptureSettings.from_options(
            ground_alt=None if request.ground_altitude is None else str(request.ground_altitude),
            path_style=request.path_style,
            lookat_lon=request.lookat_lon,
            lookat_lat=request.lookat_lat,
            wrap_latitude=request.wrap_latitude,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session = repo.reload_capture(capture_id, settings)
    if session is None:
        raise HTTPException(status_code=500, detail="Failed to reload capture")

    return _build_metadata_response(capture_id, session)


@router.get("/{capture_id}/static-path", response_model=StaticPathResponse)
async def get_static_path(capture_id: str):
    """
    Get the whole reconstructed path as (lon, lat, alt) triples.
    """
    session = _get_session_or_404(capture_id)
    points = session.static_path()
    return StaticPathResponse(
        capture_id=capture_id,
        point_count=len(points),
        coordinates=[p.as_tuple() for p in points],
    )


@router.get("/{capture_id}/dynamic-path", response_model=DynamicPathResponse)
async def get_dynamic_path(
    capture_id: str,
    entity: str = Query("Body", description="Entity name, e.g. Body or Prop1"),
):
    """
    Get the time-tagged path of one aircraft entity.
    """
    spec = find_entity(entity)
    if spec is None:
        raise HTTPException(status_code=404, detail=f"Unknown entity: {entity}")

    session = _get_session_or_404(capture_id)
    track = session.dynamic_path(spec)

    return DynamicPathResponse(
        capture_id=capture_id,
        entity=spec.name,
        offset=spec.offset,
        samples=[
            TrackSampleResponse(
                when=format_when(s.timestamp),
                lon=s.longitude,
                lat=s.latitude,
                alt=s.altitude,
                heading=s.heading,
                tilt=s.tilt,
                roll=s.roll,
            )
            for s in track.samples
        ],
    )


@router.get("/{capture_id}/kml")
async def get_kml(
    capture_id: str,
    path_style: Optional[str] = Query(None, description="flat, line or wall"),
):
    """
    Download the capture as a KML document.
    """
    style = None
    if path_style:
        try:
            style = parse_path_style(path_style)
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))

    session = _get_session_or_404(capture_id)
    content = KmlWriter(path_style=style).render(session)

    return Response(
        content=content,
        media_type=KML_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{session.name}.kml"'},
    )


# ============================================================================
# Folder Management Routes
# ============================================================================

folder_router = APIRouter(prefix="/folder", tags=["folder"])


@folder_router.get("", response_model=FolderInfoResponse)
async def get_folder_info():
    """Get information about the current data folder."""
    repo = get_repository()

    return FolderInfoResponse(
        path=str(repo.data_folder) if repo.data_folder else None,
        capture_count=repo.capture_count,
    )


@folder_router.post("", response_model=FolderInfoResponse)
async def set_folder(request: SetFolderRequest):
    """
    Set the data folder to scan for capture CSV files.

    This will clear the current cache and re-scan.
    """
    repo = get_repository()

    path = Path(request.path)
    if not path.exists():
        raise HTTPException(status_code=400, detail=f"Folder does not exist: {request.path}")
    if not path.is_dir():
        raise HTTPException(status_code=400, detail=f"Path is not a directory: {request.path}")

    count = repo.set_data_folder(path)

    return FolderInfoResponse(
        path=str(path),
        capture_count=count,
    )


@folder_router.post("/rescan", response_model=FolderInfoResponse)
async def rescan_folder():
    """
    Rescan the current data folder for new CSV files.
    """
    repo = get_repository()

    if repo.data_folder is None:
        raise HTTPException(status_code=400, detail="No data folder set")

    repo.clear_cache()
    count = repo.scan_folder(repo.data_folder)

    return FolderInfoResponse(
        path=str(repo.data_folder),
        capture_count=count,
    )
