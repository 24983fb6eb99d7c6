#!/usr/bin/env python3
"""
Export a KML flight path from a decoded DJI flight-record capture.

Usage:
    python export_kml.py capture.csv [-o flight.kml] [--ground-alt M] [--path-style flat|line|wall]

Examples:
    python export_kml.py flight.csv                       # Writes flight.kml
    python export_kml.py flight.csv --ground-alt 212.5    # Take-off point at 212.5 m
    python export_kml.py flight.csv --lookat-lon 19.93 --lookat-lat 50.06
"""

import argparse
import logging
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Export KML path of a DJI drone flight")
    parser.add_argument("input", help="Decoded flight-record CSV file")
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output KML file (default: input name with .kml extension)"
    )
    parser.add_argument(
        "--ground-alt", "-g",
        default=None,
        help="Ground level altitude at the starting point, in meters (default: 500)"
    )
    parser.add_argument(
        "--path-style", "-s",
        default=None,
        help="Static path style: flat, line or wall (default: flat)"
    )
    parser.add_argument("--lookat-lon", type=float, default=None, help="Fixed viewpoint longitude")
    parser.add_argument("--lookat-lat", type=float, default=None, help="Fixed viewpoint latitude")
    parser.add_argument(
        "--wrap-latitude",
        action="store_true",
        default=None,
        help="Apply the legacy latitude reflect rule (older exporter output parity)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger = logging.getLogger("export_kml")

    from flightkml.models.errors import ConfigurationError
    from flightkml.models.settings import CaptureSettings
    from flightkml.services.kml_writer import KmlWriter
    from flightkml.services.record_reader import load_capture

    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error(f"Input file does not exist: {input_path}")
        return 2

    try:
        settings = CaptureSettings.from_options(
            ground_alt=args.ground_alt,
            path_style=args.path_style,
            lookat_lon=args.lookat_lon,
            lookat_lat=args.lookat_lat,
            wrap_latitude=args.wrap_latitude,
        )
    except ConfigurationError as e:
        logger.error(f"Invalid options: {e}")
        return 2

    output_path = Path(args.output) if args.output else input_path.with_suffix(".kml")

    session = load_capture(input_path, settings)
    KmlWriter().save(session, output_path)

    viewpoint = session.viewpoint()
    logger.info(
        f"Exported {len(session.store)} records "
        f"(viewpoint {viewpoint.center_lon:.6f}, {viewpoint.center_lat:.6f}, range {viewpoint.range_meters:.0f} m)"
    )
    if session.dropped_records:
        logger.warning(f"{session.dropped_records} malformed records were dropped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
