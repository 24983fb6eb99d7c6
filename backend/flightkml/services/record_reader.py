"""
Decoded flight-record CSV adapter.

Reads the field export of the flight-record dissector (one row per
decoded record, e.g. `tshark -T fields -E header=y -E separator=,`)
and replays it into a CaptureSession. Protocol decoding itself happens
upstream.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from flightkml.models.settings import CaptureSettings
from flightkml.services.session import CaptureSession


logger = logging.getLogger(__name__)


ETYPE_OSD_GENERAL = 0x000C
ETYPE_CONTROLLER = 0x0000

# Column name mappings - dissector field names or short aliases
COLUMN_MAPPINGS = {
    "etype": ["dji_p3.rec_etype", "rec_etype", "etype"],
    # OSD general (0x000c)
    "longitude": [
        "dji_p3.rec_osd_general_longtitude",
        "dji_p3.rec_osd_general_longitude",
        "rec_osd_general_longtitude",
        "longitude",
    ],
    "latitude": ["dji_p3.rec_osd_general_latitude", "rec_osd_general_latitude", "latitude"],
    "relative_height": [
        "dji_p3.rec_osd_general_relative_height",
        "rec_osd_general_relative_height",
        "relative_height",
    ],
    # Flight controller (0x0000)
    "aileron": ["dji_p3.rec_controller_g_real_input_channel_command_aileron", "aileron"],
    "elevator": ["dji_p3.rec_controller_g_real_input_channel_command_elevator", "elevator"],
    "throttle": ["dji_p3.rec_controller_g_real_input_channel_command_throttle", "throttle"],
    "rudder": ["dji_p3.rec_controller_g_real_input_channel_command_rudder", "rudder"],
    "input_mode": ["dji_p3.rec_controller_g_real_input_channel_command_mode", "input_mode"],
    "real_mode": ["dji_p3.rec_controller_g_real_status_control_real_mode", "real_mode"],
    "ioc_mode": ["dji_p3.rec_controller_g_real_status_ioc_control_command_mode", "ioc_mode"],
    "rc_state": ["dji_p3.rec_controller_g_real_status_rc_state", "rc_state"],
    "motor_status": ["dji_p3.rec_controller_g_real_status_motor_status", "motor_status"],
    "battery_voltage": [
        "dji_p3.rec_controller_g_real_status_main_batery_voltage",
        "battery_voltage",
    ],
}

RC_FIELDS = ["aileron", "elevator", "throttle", "rudder", "input_mode", "real_mode", "ioc_mode", "rc_state"]


class DecodedRecordReader:
    """Replays a decoded-record CSV into a capture session."""

    def read(self, filepath: Path, session: CaptureSession) -> int:
        """
        Feed every supported row of a CSV file to the session.

        Args:
            filepath: CSV export of decoded records
            session: Open capture session

        Returns:
            Number of rows handed to the session
        """
        df = self._read_csv(filepath)
        col_map = self._map_columns(df.columns.tolist())
        if col_map["etype"] is None:
            raise ValueError(f"No record type column found in {filepath}")

        fed = 0
        skipped = 0
        for row in df.to_dict("records"):
            etype = _parse_etype(row.get(col_map["etype"]))
            if etype == ETYPE_OSD_GENERAL:
                session.on_air_position(
                    self._value(row, col_map, "longitude"),
                    self._value(row, col_map, "latitude"),
                    self._value(row, col_map, "relative_height"),
                )
                fed += 1
            elif etype == ETYPE_CONTROLLER:
                battery = self._value(row, col_map, "battery_voltage")
                session.on_controller_record(
                    self._value(row, col_map, "motor_status"),
                    *[self._value(row, col_map, name) for name in RC_FIELDS],
                    battery_voltage=None if _is_missing(battery) else battery,
                )
                fed += 1
            else:
                skipped += 1

        logger.info(f"Read {fed} records from {filepath.name} ({skipped} rows of other types skipped)")
        return fed

    def _read_csv(self, filepath: Path) -> pd.DataFrame:
        df = pd.read_csv(filepath, dtype=str, keep_default_na=True)
        df.columns = df.columns.str.strip()
        return df

    def _map_columns(self, columns: list[str]) -> dict[str, Optional[str]]:
        col_map: dict[str, Optional[str]] = {}
        for std_name, variants in COLUMN_MAPPINGS.items():
            col_map[std_name] = None
            for variant in variants:
                if variant in columns:
                    col_map[std_name] = variant
                    break
        return col_map

    def _value(self, row: dict, col_map: dict[str, Optional[str]], std_name: str):
        col = col_map.get(std_name)
        if col is None:
            return np.nan
        value = row.get(col)
        if _is_missing(value):
            return np.nan
        # tshark joins repeated fields with ','; a quoted cell keeps only the first
        text = str(value).split(",")[0].strip()
        try:
            return float(int(text, 0)) if text.lower().startswith("0x") else float(text)
        except ValueError:
            return np.nan


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def _parse_etype(value) -> Optional[int]:
    if _is_missing(value):
        return None
    text = str(value).split(",")[0].strip()
    try:
        return int(text, 0) if text.lower().startswith("0x") else int(float(text))
    except ValueError:
        return None


def load_capture(filepath: Path, settings: Optional[CaptureSettings] = None) -> CaptureSession:
    """
    Read and finalize a decoded-record CSV.
    """
    session = CaptureSession(settings, name=filepath.stem)
    DecodedRecordReader().read(filepath, session)
    session.finalize()
    return session
