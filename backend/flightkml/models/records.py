"""
Decoded telemetry records.

One dataclass per record type; the base class doubles as the empty
(NULL) kind. Records are created by the decoder side and handed to a
RecordStore, which assigns their sequence number.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional


class RecordKind(Enum):
    """Record type tag."""

    NULL = 0
    AIR_POSITION = 1
    RC_STATUS = 2
    MOTOR_STATUS = 3


@dataclass
class TelemetryRecord:
    """Base record; carries only its position in capture order."""

    kind: ClassVar[RecordKind] = RecordKind.NULL

    sequence: int = 0  # 1-based, assigned on append


@dataclass
class AirPosition(TelemetryRecord):
    """
    Aircraft position sample.

    (0.0, 0.0) is the "no measurement" sentinel. Only the reconstruction
    pass may rewrite coordinates, and only for unset samples.
    """

    kind: ClassVar[RecordKind] = RecordKind.AIR_POSITION

    longitude: float = 0.0  # degrees
    latitude: float = 0.0   # degrees
    altitude: float = 0.0   # meters, relative to ground
    processed: bool = False
    interpolated: bool = False

    @property
    def is_unset(self) -> bool:
        return self.longitude == 0.0 and self.latitude == 0.0

    @property
    def is_finite(self) -> bool:
        return (
            math.isfinite(self.longitude)
            and math.isfinite(self.latitude)
            and math.isfinite(self.altitude)
        )

    @property
    def is_measured(self) -> bool:
        """True for a genuine, usable position fix."""
        return not self.is_unset and not self.interpolated and self.is_finite

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.longitude, self.latitude, self.altitude)


@dataclass
class RcStatus(TelemetryRecord):
    """Remote-control input snapshot."""

    kind: ClassVar[RecordKind] = RecordKind.RC_STATUS

    aileron: int = 0
    elevator: int = 0
    throttle: int = 0
    rudder: int = 0
    input_mode: int = 0
    real_mode: int = 0
    ioc_mode: int = 0
    rc_state: int = 0


@dataclass
class MotorStatus(TelemetryRecord):
    """Motor status word, optionally with main battery voltage."""

    kind: ClassVar[RecordKind] = RecordKind.MOTOR_STATUS

    status: int = 0
    battery_voltage: Optional[float] = None
