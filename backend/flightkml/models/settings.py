"""
Per-capture settings.

A CaptureSettings instance is built once when a capture is opened and
travels with the CaptureSession through ingestion and finalize.
"""

import math
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from flightkml.models.errors import ConfigurationError
from flightkml.models.track import Viewpoint, is_override


DEFAULT_GROUND_ALTITUDE = 500.0  # meters
GROUND_ALTITUDE_ENV = "FLIGHTKML_GROUND_ALTITUDE"
WRAP_LATITUDE_ENV = "FLIGHTKML_WRAP_LATITUDE"


class PathStyle(Enum):
    """How the static path is draped in the document."""

    FLAT = "flat"  # clamped to ground
    LINE = "line"  # floating line, relative to ground
    WALL = "wall"  # line extruded down to the ground


def _env_ground_altitude() -> float:
    value = os.getenv(GROUND_ALTITUDE_ENV)
    if value is None or value.strip() == "":
        return DEFAULT_GROUND_ALTITUDE
    return _parse_altitude(value)


def _env_wrap_latitude() -> bool:
    return os.getenv(WRAP_LATITUDE_ENV, "0") not in ("0", "false", "False", "")


def _parse_altitude(value) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"Ground altitude must be numeric, got {value!r}")
    try:
        altitude = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Ground altitude must be numeric, got {value!r}") from None
    if not math.isfinite(altitude):
        raise ConfigurationError(f"Ground altitude must be finite, got {value!r}")
    return altitude


@dataclass
class CaptureSettings:
    """
    Settings for converting one capture.

    Altitudes in the output are absolute: relative heights are lifted by
    ground_altitude, the altitude of the take-off point.
    """

    ground_altitude: float = field(default_factory=_env_ground_altitude)
    viewpoint_override: Optional[Viewpoint] = None
    wrap_latitude: bool = field(default_factory=_env_wrap_latitude)
    path_style: PathStyle = PathStyle.FLAT

    def __post_init__(self):
        self.ground_altitude = _parse_altitude(self.ground_altitude)
        if isinstance(self.path_style, str):
            self.path_style = parse_path_style(self.path_style)
        if self.viewpoint_override is not None and not isinstance(self.viewpoint_override, Viewpoint):
            raise ConfigurationError("viewpoint_override must be a Viewpoint")

    @property
    def has_viewpoint_override(self) -> bool:
        return is_override(self.viewpoint_override)

    @classmethod
    def from_options(
        cls,
        ground_alt: Optional[str] = None,
        path_style: Optional[str] = None,
        lookat_lon: Optional[float] = None,
        lookat_lat: Optional[float] = None,
        wrap_latitude: Optional[bool] = None,
    ) -> "CaptureSettings":
        """
        Build settings from free-form user options.

        Empty values fall back to defaults; anything unparsable raises
        ConfigurationError.
        """
        kwargs = {}
        if ground_alt is not None and str(ground_alt).strip() != "":
            kwargs["ground_altitude"] = _parse_altitude(str(ground_alt).strip())
        if path_style is not None and path_style.strip() != "":
            kwargs["path_style"] = parse_path_style(path_style)
        if lookat_lon is not None or lookat_lat is not None:
            kwargs["viewpoint_override"] = Viewpoint(
                center_lon=float(lookat_lon or 0.0),
                center_lat=float(lookat_lat or 0.0),
            )
        if wrap_latitude is not None:
            kwargs["wrap_latitude"] = bool(wrap_latitude)
        return cls(**kwargs)


def parse_path_style(value: str) -> PathStyle:
    try:
        return PathStyle(value.strip().lower())
    except ValueError:
        choices = ", ".join(s.value for s in PathStyle)
        raise ConfigurationError(f"Unknown path style {value!r} (expected one of: {choices})") from None
