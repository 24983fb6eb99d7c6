"""
Path reconstruction.

A single forward pass over a sealed RecordStore that fills unset
AirPosition samples by linear interpolation between neighbouring fixes,
accumulates the bounds of measured samples and derives a viewpoint
framing the whole flight.
"""

import logging
from dataclasses import replace
from typing import Optional

from flightkml.models.records import AirPosition, TelemetryRecord
from flightkml.models.track import Bounds, ReconstructionResult, Viewpoint, is_override
from flightkml.services.record_store import RecordStore
from flightkml.utils.geodesy import (
    angular_great_circle_span,
    derive_range,
    reflect_extent,
    unwrap_extent,
)


logger = logging.getLogger(__name__)


class PathReconstructor:
    """
    Fills gaps in the position series and frames the result.

    Interpolation is linear in record index, not in time: every record in
    the store counts as one step, whatever its type.
    """

    def __init__(
        self,
        ground_altitude: float = 0.0,
        viewpoint_override: Optional[Viewpoint] = None,
        wrap_latitude: bool = False,
    ):
        """
        Args:
            ground_altitude: Added to the viewpoint altitude (meters)
            viewpoint_override: Fixed viewpoint; None or lon=lat=0 derives one
            wrap_latitude: Apply the legacy reflect rule to latitude
        """
        self.ground_altitude = ground_altitude
        self.viewpoint_override = viewpoint_override
        self.wrap_latitude = wrap_latitude

    def finalize(self, store: RecordStore) -> ReconstructionResult:
        """
        Run the reconstruction pass.

        Seals the store. Safe to call again: measured and already
        interpolated samples are never rewritten.
        """
        store.seal()
        records = list(store.iterate())

        bounds = Bounds()
        last_known = -1
        filled = 0

        for record in records:
            if not isinstance(record, AirPosition) or not record.is_measured:
                continue

            pos = record.sequence
            bounds.update(record.longitude, record.latitude, record.altitude)

            if pos - last_known > 1:
                if last_known >= 0:
                    anchor = records[last_known - 1]
                else:
                    # Nothing earlier to interpolate from: hold the first fix
                    anchor = record
                    last_known = 0
                filled += _fill_gap(records, anchor, record, last_known, pos)

            last_known = pos
            record.processed = True

        unresolved = sum(
            1 for r in records
            if isinstance(r, AirPosition) and r.is_unset and not r.interpolated
        )

        overridden = is_override(self.viewpoint_override)
        if overridden:
            viewpoint = replace(self.viewpoint_override)
        else:
            viewpoint = derive_viewpoint(bounds, self.ground_altitude, self.wrap_latitude)

        logger.debug(
            f"Reconstructed {len(records)} records: {bounds.sample_count} measured, "
            f"{filled} interpolated, {unresolved} unresolved"
        )

        return ReconstructionResult(
            bounds=bounds,
            viewpoint=viewpoint,
            viewpoint_overridden=overridden,
            interpolated_count=filled,
            unresolved_count=unresolved,
        )


def _fill_gap(
    records: list[TelemetryRecord],
    anchor: AirPosition,
    target: AirPosition,
    start: int,
    end: int,
) -> int:
    """
    Interpolate unset positions strictly between sequences start and end.

    Altitude is left as received.
    """
    count = 0
    span = end - start
    for cpos in range(start + 1, end):
        record = records[cpos - 1]
        if not isinstance(record, AirPosition) or not record.is_unset or record.interpolated:
            continue
        record.longitude = anchor.longitude + (target.longitude - anchor.longitude) * (cpos - start) / span
        record.latitude = anchor.latitude + (target.latitude - anchor.latitude) * (cpos - start) / span
        record.interpolated = True
        record.processed = True
        count += 1
    return count


def derive_viewpoint(
    bounds: Bounds,
    ground_altitude: float = 0.0,
    wrap_latitude: bool = False,
) -> Viewpoint:
    """
    Center and range framing the given bounds.

    Args:
        bounds: Bounds of measured samples
        ground_altitude: Added to the center altitude (meters)
        wrap_latitude: Apply the legacy reflect rule to latitude

    Returns:
        Viewpoint; the default (0, 0, 0, minimum range) for empty bounds
    """
    if bounds.is_empty:
        return Viewpoint()

    min_lon, max_lon = unwrap_extent(bounds.min_lon, bounds.max_lon)
    min_lat, max_lat = bounds.min_lat, bounds.max_lat
    if wrap_latitude:
        min_lat, max_lat = reflect_extent(min_lat, max_lat)

    center_lon = min_lon + (max_lon - min_lon) / 2
    center_lat = min_lat + (max_lat - min_lat) / 2
    center_alt = bounds.min_alt + (bounds.max_alt - bounds.min_alt) / 2 + ground_altitude

    range_m = derive_range(
        angular_great_circle_span(min_lon, max_lon),
        angular_great_circle_span(min_lat, max_lat),
    )

    return Viewpoint(
        center_lon=center_lon,
        center_lat=center_lat,
        center_alt=center_alt,
        range_meters=range_m,
    )
