"""
Sample capture generator for testing.

Generates decoded flight-record CSVs shaped like a dissector field export:
OSD position records interleaved with flight controller records, with
some position fixes dropped to exercise gap filling.
"""

import math
import numpy as np
from pathlib import Path


CSV_HEADER = [
    "dji_p3.rec_etype",
    "dji_p3.rec_osd_general_longtitude",
    "dji_p3.rec_osd_general_latitude",
    "dji_p3.rec_osd_general_relative_height",
    "dji_p3.rec_controller_g_real_input_channel_command_aileron",
    "dji_p3.rec_controller_g_real_input_channel_command_elevator",
    "dji_p3.rec_controller_g_real_input_channel_command_throttle",
    "dji_p3.rec_controller_g_real_input_channel_command_rudder",
    "dji_p3.rec_controller_g_real_input_channel_command_mode",
    "dji_p3.rec_controller_g_real_status_control_real_mode",
    "dji_p3.rec_controller_g_real_status_ioc_control_command_mode",
    "dji_p3.rec_controller_g_real_status_rc_state",
    "dji_p3.rec_controller_g_real_status_motor_status",
    "dji_p3.rec_controller_g_real_status_main_batery_voltage",
]


def osd_row(lon_deg: float, lat_deg: float, height_m: float) -> str:
    """One OSD general row; (0, 0) degrees encodes a missing fix."""
    return ",".join([
        "0x000c",
        f"{math.radians(lon_deg):.12f}",
        f"{math.radians(lat_deg):.12f}",
        f"{int(round(height_m * 10))}",
    ] + [""] * 10)


def controller_row(
    aileron: int = 1024,
    elevator: int = 1024,
    throttle: int = 1024,
    rudder: int = 1024,
    motor_status: int = 1,
    battery_voltage: float = 15.2,
) -> str:
    """One flight controller row."""
    return ",".join([
        "0x0000", "", "", "",
        str(aileron), str(elevator), str(throttle), str(rudder),
        "0", "1", "0", "0",
        str(motor_status),
        f"{battery_voltage:.2f}",
    ])


def write_capture(output_path: Path, rows: list[str]) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write("\n".join([",".join(CSV_HEADER)] + rows) + "\n")
    return output_path


def generate_orbit_capture(
    output_path: Path,
    n_fixes: int = 200,
    center_lat: float = 50.0614,
    center_lon: float = 19.9366,
    radius_m: float = 40.0,
    max_height_m: float = 30.0,
    drop_every: int = 7,
    controller_every: int = 5,
    seed: int = 0,
) -> Path:
    """
    Generate a climbing circular flight.

    Every drop_every-th fix is replaced by a (0, 0) sentinel and a flight
    controller record follows every controller_every-th fix.
    """
    rng = np.random.default_rng(seed)
    t = np.linspace(0, 2 * np.pi, n_fixes)

    east = radius_m * np.cos(t) + rng.normal(0, 0.3, n_fixes)
    north = radius_m * np.sin(t) + rng.normal(0, 0.3, n_fixes)
    height = np.linspace(0, max_height_m, n_fixes)

    lat = center_lat + north / 110540.0
    lon = center_lon + east / (111320.0 * np.cos(np.radians(center_lat)))
    lon = (lon + 180.0) % 360.0 - 180.0

    rows = []
    for i in range(n_fixes):
        if drop_every and i % drop_every == drop_every - 1:
            rows.append(osd_row(0.0, 0.0, height[i]))
        else:
            rows.append(osd_row(lon[i], lat[i], height[i]))
        if controller_every and i % controller_every == 0:
            rows.append(controller_row(throttle=1024 + int(height[i]), battery_voltage=15.2 - i * 0.001))

    return write_capture(output_path, rows)


def generate_test_data_set(output_folder: Path) -> list[Path]:
    """Generate a set of test capture files."""
    output_folder.mkdir(parents=True, exist_ok=True)

    return [
        generate_orbit_capture(output_folder / "capture_001_orbit.csv"),
        generate_orbit_capture(
            output_folder / "capture_002_dateline.csv",
            center_lat=-16.8,
            center_lon=179.9995,
            radius_m=80.0,
            drop_every=4,
        ),
    ]


if __name__ == "__main__":
    output = Path("./data/captures")
    files = generate_test_data_set(output)
    print(f"Generated {len(files)} sample captures in {output}")
    for f in files:
        print(f"  - {f.name}")
