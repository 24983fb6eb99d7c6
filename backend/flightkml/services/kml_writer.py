"""
KML document emitter.

Serializes a finalized CaptureSession into a KML 2.2 document with the
Google `gx` extension: a framing LookAt, the whole path as a static
LineString and one animated gx:Track per aircraft entity.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

import simplekml

from flightkml.models.aircraft import PHANTOM3_ENTITIES
from flightkml.models.settings import PathStyle
from flightkml.models.track import DynamicTrack, EntitySpec, ModelStyle, Viewpoint
from flightkml.services.session import CaptureSession
from flightkml.utils.geodesy import normalize_longitude


logger = logging.getLogger(__name__)


KML_MEDIA_TYPE = "application/vnd.google-earth.kml+xml"
TRANSPARENT_ICON = "onepx_trans.png"

# name -> (line color, line width, poly color, filled)
LINE_STYLES = {
    "purpleLineGreenPoly": ("7fff00ff", 4, "7f00ff00", True),
    "yellowLineGreenPoly": ("7f00ffff", 4, "7f00ff00", True),
    "noLineNoPoly": ("00ffffff", 0, "00ffffff", False),
}
STATIC_PATH_STYLE = "purpleLineGreenPoly"

PATH_STYLE_MODES = {
    PathStyle.FLAT: (simplekml.AltitudeMode.clamptoground, 0),
    PathStyle.LINE: (simplekml.AltitudeMode.relativetoground, 0),
    PathStyle.WALL: (simplekml.AltitudeMode.relativetoground, 1),
}


def format_when(ts) -> str:
    """ISO 8601 UTC with milliseconds, as gx:Track expects."""
    return ts.strftime("%Y-%m-%dT%H:%M:%S") + f".{ts.microsecond // 1000:03d}Z"


class KmlWriter:
    """Renders capture sessions to KML text or files."""

    def __init__(
        self,
        entities: Optional[Iterable[EntitySpec]] = None,
        path_style: Optional[PathStyle] = None,
    ):
        """
        Args:
            entities: Entities to animate; defaults to the Phantom 3 preset
            path_style: Overrides the session's static path style
        """
        self.entities = list(PHANTOM3_ENTITIES if entities is None else entities)
        self.path_style = path_style

    def render(self, session: CaptureSession) -> str:
        """Build the KML document for a finalized session."""
        kml = self._build(session)
        return kml.kml()

    def save(self, session: CaptureSession, filepath: Path) -> Path:
        filepath = Path(filepath)
        filepath.write_text(self.render(session), encoding="utf-8")
        logger.info(f"Wrote KML for '{session.name}' to {filepath}")
        return filepath

    def _build(self, session: CaptureSession) -> simplekml.Kml:
        settings = session.settings
        kml = simplekml.Kml(name=f"Dji Flight Log - {session.name}", open=1)
        kml.document.description = (
            f"Path configuration: style={self._path_style(session).value}, "
            f"ground altitude={settings.ground_altitude:g} m"
        )
        kml.document.lookat = _lookat(session.viewpoint(), simplekml.AltitudeMode.absolute)

        styles = {name: _style(*spec) for name, spec in LINE_STYLES.items()}

        self._add_static_folder(kml, session, styles)
        self._add_dynamic_folder(kml, session, styles)
        return kml

    def _path_style(self, session: CaptureSession) -> PathStyle:
        return self.path_style or session.settings.path_style

    def _add_static_folder(self, kml: simplekml.Kml, session: CaptureSession, styles: dict) -> None:
        folder = kml.newfolder(name="Static paths")
        folder.visibility = 1
        folder.description = "Flight path."

        altitude_mode, extrude = PATH_STYLE_MODES[self._path_style(session)]
        coords = [
            (normalize_longitude(p.longitude), p.latitude, p.altitude)
            for p in session.static_path()
        ]
        line = folder.newlinestring(name="Whole path", coords=coords)
        line.visibility = 1
        line.description = "Flight path line"
        line.extrude = extrude
        line.tessellate = 0
        line.altitudemode = altitude_mode
        line.style = styles[STATIC_PATH_STYLE]
        line.lookat = _lookat(session.viewpoint(), simplekml.AltitudeMode.relativetoground)

    def _add_dynamic_folder(self, kml: simplekml.Kml, session: CaptureSession, styles: dict) -> None:
        folder = kml.newfolder(name="Dynamic paths")
        folder.visibility = 1
        folder.description = "Flight path over time."

        for entity in self.entities:
            self._add_entity_track(folder, session.dynamic_path(entity), styles)

    def _add_entity_track(self, folder, track: DynamicTrack, styles: dict) -> None:
        model = track.entity.model or ModelStyle(href="")
        gx_track = folder.newgxtrack(name=f"Aircraft {track.name} path")
        gx_track.visibility = 1
        gx_track.extrude = 0
        gx_track.altitudemode = simplekml.AltitudeMode.absolute
        gx_track.style = styles.get(model.line_style, styles["noLineNoPoly"])

        gx_track.newwhen([format_when(s.timestamp) for s in track.samples])
        gx_track.newgxcoord([
            (normalize_longitude(s.longitude), s.latitude, s.altitude) for s in track.samples
        ])
        gx_track.newgxangle([(s.heading, s.tilt, s.roll) for s in track.samples])

        if model.href:
            gx_track.model = simplekml.Model(
                orientation=simplekml.Orientation(heading=model.heading, tilt=model.tilt, roll=model.roll),
                scale=simplekml.Scale(x=model.scale, y=model.scale, z=model.scale),
                link=simplekml.Link(href=model.href, refreshmode=simplekml.RefreshMode.onchange),
            )


def _lookat(viewpoint: Viewpoint, altitude_mode) -> simplekml.LookAt:
    return simplekml.LookAt(
        longitude=normalize_longitude(viewpoint.center_lon),
        latitude=viewpoint.center_lat,
        altitude=viewpoint.center_alt,
        heading=viewpoint.heading,
        tilt=viewpoint.tilt,
        range=viewpoint.range_meters,
        altitudemode=altitude_mode,
    )


def _style(line_color: str, line_width: int, poly_color: str, filled: bool) -> simplekml.Style:
    style = simplekml.Style()
    style.iconstyle.icon.href = TRANSPARENT_ICON
    style.iconstyle.scale = 0
    style.labelstyle.scale = 0
    style.linestyle.color = line_color
    style.linestyle.width = line_width
    style.polystyle.color = poly_color
    if not filled:
        style.polystyle.fill = 0
        style.polystyle.outline = 0
    return style


def export_kml(session: CaptureSession, filepath: Path, entities: Optional[Iterable[EntitySpec]] = None) -> Path:
    """Finalize the session if needed and write its KML document."""
    if not session.finalized:
        session.finalize()
    return KmlWriter(entities).save(session, filepath)
