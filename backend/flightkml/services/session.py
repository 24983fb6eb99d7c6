"""
Capture session.

Owns the settings and RecordStore of one capture from open to close.
The decoder feeds it one call per record; after finalize() the emitter
reads the viewpoint and track artifacts back.
"""

import logging
import math
from typing import Iterable, Optional

import numpy as np

from flightkml.models.aircraft import PHANTOM3_ENTITIES
from flightkml.models.errors import CaptureNotFinalizedError, InvalidRecordError
from flightkml.models.records import AirPosition, MotorStatus, RcStatus, TelemetryRecord
from flightkml.models.settings import CaptureSettings
from flightkml.models.track import (
    Bounds,
    DynamicTrack,
    EntitySpec,
    PathPoint,
    ReconstructionResult,
    Track,
    Viewpoint,
)
from flightkml.services.reconstructor import PathReconstructor
from flightkml.services.record_store import RecordStore
from flightkml.services.track_builder import TrackBuilder
from flightkml.utils.geodesy import path_length


logger = logging.getLogger(__name__)


class CaptureSession:
    """Ingestion and finalize state for a single capture."""

    def __init__(self, settings: Optional[CaptureSettings] = None, name: str = "capture"):
        self.settings = settings if settings is not None else CaptureSettings()
        self.name = name
        self.store = RecordStore()
        self.dropped_records = 0
        self._result: Optional[ReconstructionResult] = None
        self._builder = TrackBuilder(ground_altitude=self.settings.ground_altitude)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def on_air_position(
        self,
        longitude_rad: float,
        latitude_rad: float,
        relative_height_decimeters: int,
    ) -> Optional[AirPosition]:
        """Store a position fix given in radians and decimeters."""
        try:
            lon_rad = _finite(longitude_rad, "longitude")
            lat_rad = _finite(latitude_rad, "latitude")
            height_dm = _finite(relative_height_decimeters, "relative height")
        except InvalidRecordError as e:
            return self._drop("air position", e)

        record = AirPosition(
            longitude=math.degrees(lon_rad),
            latitude=math.degrees(lat_rad),
            altitude=height_dm * 0.1,
        )
        return self.store.append(record)

    def on_rc_status(
        self,
        aileron: int,
        elevator: int,
        throttle: int,
        rudder: int,
        input_mode: int,
        real_mode: int,
        ioc_mode: int,
        rc_state: int,
    ) -> Optional[RcStatus]:
        """Store a remote-control input snapshot."""
        try:
            values = [
                _integer(v, name)
                for v, name in (
                    (aileron, "aileron"),
                    (elevator, "elevator"),
                    (throttle, "throttle"),
                    (rudder, "rudder"),
                    (input_mode, "input_mode"),
                    (real_mode, "real_mode"),
                    (ioc_mode, "ioc_mode"),
                    (rc_state, "rc_state"),
                )
            ]
        except InvalidRecordError as e:
            return self._drop("rc status", e)

        return self.store.append(RcStatus(
            aileron=values[0],
            elevator=values[1],
            throttle=values[2],
            rudder=values[3],
            input_mode=values[4],
            real_mode=values[5],
            ioc_mode=values[6],
            rc_state=values[7],
        ))

    def on_motor_status(self, status: int, battery_voltage: Optional[float] = None) -> Optional[MotorStatus]:
        """Store a motor status word."""
        try:
            status = _integer(status, "motor status")
            if battery_voltage is not None:
                battery_voltage = _finite(battery_voltage, "battery voltage")
        except InvalidRecordError as e:
            return self._drop("motor status", e)
        return self.store.append(MotorStatus(status=status, battery_voltage=battery_voltage))

    def on_controller_record(
        self,
        motor_status: int,
        aileron: int,
        elevator: int,
        throttle: int,
        rudder: int,
        input_mode: int,
        real_mode: int,
        ioc_mode: int,
        rc_state: int,
        battery_voltage: Optional[float] = None,
    ) -> None:
        """A flight controller record carries motor status followed by RC input."""
        self.on_motor_status(motor_status, battery_voltage)
        self.on_rc_status(aileron, elevator, throttle, rudder, input_mode, real_mode, ioc_mode, rc_state)

    def append(self, record: TelemetryRecord) -> TelemetryRecord:
        """Store an already-typed record."""
        return self.store.append(record)

    def _drop(self, what: str, error: InvalidRecordError) -> None:
        self.dropped_records += 1
        logger.warning(f"Dropping {what} record #{len(self.store) + self.dropped_records}: {error}")
        return None

    # ------------------------------------------------------------------
    # Finalize and outputs
    # ------------------------------------------------------------------

    def finalize(self) -> ReconstructionResult:
        """Seal the capture and reconstruct the flight path."""
        reconstructor = PathReconstructor(
            ground_altitude=self.settings.ground_altitude,
            viewpoint_override=self.settings.viewpoint_override,
            wrap_latitude=self.settings.wrap_latitude,
        )
        self._result = reconstructor.finalize(self.store)
        logger.info(
            f"Finalized capture '{self.name}': {len(self.store)} records, "
            f"{self._result.bounds.sample_count} fixes, {self._result.interpolated_count} interpolated"
        )
        return self._result

    @property
    def finalized(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> ReconstructionResult:
        return self._require_finalized()

    def _require_finalized(self) -> ReconstructionResult:
        if self._result is None:
            raise CaptureNotFinalizedError(f"Capture '{self.name}' has not been finalized")
        return self._result

    def records(self) -> list[TelemetryRecord]:
        """Raw records, usable even without finalize()."""
        return list(self.store.iterate())

    def viewpoint(self) -> Viewpoint:
        return self.result.viewpoint

    def bounds(self) -> Bounds:
        return self.result.bounds

    def static_path(self) -> list[PathPoint]:
        self._require_finalized()
        return self._builder.build_static_path(self.store)

    def dynamic_path(self, entity: EntitySpec) -> DynamicTrack:
        self._require_finalized()
        return self._builder.build_dynamic_path(self.store, entity)

    def track(self, entities: Optional[Iterable[EntitySpec]] = None) -> Track:
        """All artifacts; defaults to the Phantom 3 entity set."""
        self._require_finalized()
        return self._builder.build(self.store, PHANTOM3_ENTITIES if entities is None else entities)

    def path_length_m(self) -> float:
        """Great-circle length of the fixes-only path."""
        fixes = [r for r in self.store.air_positions() if not r.is_unset and r.is_finite]
        return path_length(
            np.array([r.longitude for r in fixes], dtype=np.float64),
            np.array([r.latitude for r in fixes], dtype=np.float64),
        )


def _finite(value, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"{name} is not numeric: {value!r}") from None
    if not math.isfinite(number):
        raise InvalidRecordError(f"{name} is not finite: {value!r}")
    return number


def _integer(value, name: str) -> int:
    number = _finite(value, name)
    if number != int(number):
        raise InvalidRecordError(f"{name} is not an integer: {value!r}")
    return int(number)
