#!/usr/bin/env python3
"""
Launch script for the DJI Flight KML backend.

Usage:
    python run_server.py [data_folder] [--port PORT] [--host HOST] [--ground-alt M] [--wrap-latitude]

Examples:
    python run_server.py                        # Use default ./data/captures folder
    python run_server.py /path/to/captures      # Use custom folder
    python run_server.py --ground-alt 212.5     # Take-off point at 212.5 m for every capture
    python run_server.py --sample-data          # Generate demo captures first
"""

import argparse
import os
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="DJI Flight KML Backend Server")
    parser.add_argument(
        "data_folder",
        nargs="?",
        default=None,
        help="Folder of decoded capture CSV files (default: $FLIGHTKML_DATA_FOLDER or ./data/captures)"
    )
    parser.add_argument("--port", "-p", type=int, default=8000, help="Port to run server on (default: 8000)")
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--ground-alt", "-g",
        default=None,
        help="Default take-off ground altitude in meters (default: $FLIGHTKML_GROUND_ALTITUDE or 500)"
    )
    parser.add_argument(
        "--wrap-latitude",
        action="store_true",
        default=None,
        help="Apply the legacy latitude reflect rule to every capture"
    )
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Write the demo orbit and dateline captures into the data folder first"
    )
    parser.add_argument("--debug", "-d", action="store_true", help="Reload on code changes, debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    from flightkml.main import DATA_FOLDER_ENV, DEFAULT_DATA_FOLDER
    from flightkml.models.errors import ConfigurationError
    from flightkml.models.settings import GROUND_ALTITUDE_ENV, WRAP_LATITUDE_ENV, CaptureSettings

    # Fail before binding the port rather than on the first request
    try:
        settings = CaptureSettings.from_options(ground_alt=args.ground_alt, wrap_latitude=args.wrap_latitude)
    except ConfigurationError as e:
        print(f"Invalid option: {e}", file=sys.stderr)
        return 2

    data_folder = Path(args.data_folder or os.getenv(DATA_FOLDER_ENV, str(DEFAULT_DATA_FOLDER)))
    if args.sample_data:
        from flightkml.utils.sample_data import generate_test_data_set

        written = generate_test_data_set(data_folder)
        print(f"Wrote {len(written)} sample captures to {data_folder}")

    # The app reads its defaults from the environment in its lifespan hook
    os.environ[DATA_FOLDER_ENV] = str(data_folder)
    os.environ[GROUND_ALTITUDE_ENV] = repr(settings.ground_altitude)
    os.environ[WRAP_LATITUDE_ENV] = "1" if settings.wrap_latitude else "0"

    print(f"DJI Flight KML on http://{args.host}:{args.port} (API docs at /docs)")
    print(f"  captures:        {data_folder.absolute()}")
    print(f"  ground altitude: {settings.ground_altitude:g} m")
    if not data_folder.is_dir():
        print("  folder missing, set one later with POST /folder")

    import uvicorn

    uvicorn.run(
        "flightkml.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="debug" if args.debug else "info",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
