"""
Track construction.

Turns a reconstructed RecordStore into a static polyline and per-entity
time-tagged tracks. The store is only read.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import numpy as np

from flightkml.models.records import AirPosition
from flightkml.models.track import DynamicTrack, EntitySpec, PathPoint, Track, TrackSample
from flightkml.services.record_store import RecordStore
from flightkml.utils.geodesy import shift_by_meters


logger = logging.getLogger(__name__)


# Placeholder clock until real timestamps reach this layer
DEFAULT_EPOCH = datetime(2018, 1, 1, tzinfo=timezone.utc)
DEFAULT_SAMPLE_RATE_HZ = 100.0


class TrackBuilder:
    """Builds renderable paths from the shared aircraft position series."""

    def __init__(
        self,
        ground_altitude: float = 0.0,
        epoch: datetime = DEFAULT_EPOCH,
        sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ,
    ):
        self.ground_altitude = ground_altitude
        self.epoch = epoch
        self.sample_rate_hz = sample_rate_hz

    def build_static_path(self, store: RecordStore) -> list[PathPoint]:
        """One vertex per AirPosition record, interpolated ones included."""
        return [
            PathPoint(longitude=r.longitude, latitude=r.latitude, altitude=r.altitude)
            for r in store.air_positions()
        ]

    def build_dynamic_path(self, store: RecordStore, entity: EntitySpec) -> DynamicTrack:
        """
        Time-tagged track of one entity.

        Each AirPosition record is shifted by the entity's rigid offset,
        lifted by the ground altitude, and stamped with
        epoch + sequence / sample_rate. The first timestamp is floored to a
        whole second.

        Args:
            store: Reconstructed record store
            entity: Entity to place along the path

        Returns:
            DynamicTrack with one sample per AirPosition record
        """
        positions = list(store.air_positions())
        track = DynamicTrack(entity=entity)
        if not positions:
            return track

        ground = self.ground_altitude if entity.ground_altitude is None else entity.ground_altitude
        dx, dy, dz = entity.offset

        lon = np.array([p.longitude for p in positions], dtype=np.float64)
        lat = np.array([p.latitude for p in positions], dtype=np.float64)
        alt = np.array([p.altitude for p in positions], dtype=np.float64)
        lon, lat, alt = shift_by_meters(lon, lat, alt, dx, dy, ground + dz)

        for i, record in enumerate(positions):
            track.samples.append(TrackSample(
                timestamp=self.timestamp_for(record, first=(i == 0)),
                longitude=float(lon[i]),
                latitude=float(lat[i]),
                altitude=float(alt[i]),
            ))
        return track

    def build(self, store: RecordStore, entities: Optional[Iterable[EntitySpec]] = None) -> Track:
        """Static path plus one dynamic track per entity."""
        track = Track(static_path=self.build_static_path(store))
        for entity in entities or []:
            track.dynamic_paths[entity.name] = self.build_dynamic_path(store, entity)
        logger.debug(
            f"Built track: {len(track.static_path)} points, {len(track.dynamic_paths)} entities"
        )
        return track

    def timestamp_for(self, record: AirPosition, first: bool = False) -> datetime:
        ts = self.epoch + timedelta(seconds=record.sequence / self.sample_rate_hz)
        if first:
            ts = ts.replace(microsecond=0)
        return ts
