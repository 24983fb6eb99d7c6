"""
Tests for static and dynamic track construction.
"""

from datetime import timedelta

import pytest
from numpy.testing import assert_allclose

from flightkml.models.aircraft import PHANTOM3_ENTITIES, PROP_ARM, PROP_HEIGHT, find_entity
from flightkml.models.records import AirPosition, MotorStatus, RcStatus
from flightkml.models.track import EntitySpec
from flightkml.services.reconstructor import PathReconstructor
from flightkml.services.record_store import RecordStore
from flightkml.services.track_builder import DEFAULT_EPOCH, TrackBuilder


@pytest.fixture
def store():
    """Reconstructed store: RC, fix, gap, motor, fix."""
    store = RecordStore()
    store.append(RcStatus())
    store.append(AirPosition(longitude=19.9, latitude=50.0, altitude=10.0))
    store.append(AirPosition(altitude=11.0))
    store.append(MotorStatus(status=1))
    store.append(AirPosition(longitude=20.0, latitude=50.1, altitude=12.0))
    PathReconstructor().finalize(store)
    return store


class TestStaticPath:
    """Tests for the whole-flight polyline."""

    def test_one_point_per_position(self, store):
        """Interpolated samples should be included."""
        path = TrackBuilder().build_static_path(store)

        assert len(path) == 3
        assert path[0].as_tuple() == (19.9, 50.0, 10.0)
        assert path[1].longitude == pytest.approx(19.9 + 0.1 * 1 / 3)
        assert path[2].as_tuple() == (20.0, 50.1, 12.0)

    def test_single_record(self):
        store = RecordStore()
        store.append(AirPosition(longitude=1.0, latitude=2.0, altitude=3.0))
        PathReconstructor().finalize(store)

        path = TrackBuilder().build_static_path(store)

        assert [p.as_tuple() for p in path] == [(1.0, 2.0, 3.0)]

    def test_empty_store(self):
        track = TrackBuilder().build(RecordStore(), PHANTOM3_ENTITIES)

        assert track.static_path == []
        assert all(len(t) == 0 for t in track.dynamic_paths.values())


class TestDynamicPath:
    """Tests for per-entity tracks."""

    def test_zero_offset_matches_static(self, store):
        """Zero offset and zero ground should reproduce the static path."""
        builder = TrackBuilder(ground_altitude=0.0)
        static = builder.build_static_path(store)

        track = builder.build_dynamic_path(store, EntitySpec(name="Center"))

        assert len(track) == len(static)
        for sample, point in zip(track.samples, static):
            assert sample.longitude == point.longitude
            assert sample.latitude == point.latitude
            assert sample.altitude == point.altitude

    def test_ground_and_up_offset(self, store):
        """Altitude should be relative height + ground + up offset."""
        builder = TrackBuilder(ground_altitude=500.0)

        track = builder.build_dynamic_path(store, EntitySpec(name="Raised", offset=(0.0, 0.0, 0.5)))

        assert [s.altitude for s in track.samples] == pytest.approx([510.5, 511.5, 512.5])

    def test_entity_ground_altitude_wins(self, store):
        builder = TrackBuilder(ground_altitude=500.0)

        track = builder.build_dynamic_path(store, EntitySpec(name="Low", ground_altitude=0.0))

        assert track.samples[0].altitude == 10.0

    def test_east_north_offset(self, store):
        """East offset should move longitude only, north offset latitude only."""
        builder = TrackBuilder()
        static = builder.build_static_path(store)

        east = builder.build_dynamic_path(store, EntitySpec(name="E", offset=(10.0, 0.0, 0.0)))
        north = builder.build_dynamic_path(store, EntitySpec(name="N", offset=(0.0, 10.0, 0.0)))

        assert east.samples[0].longitude > static[0].longitude
        assert east.samples[0].latitude == static[0].latitude
        assert_allclose(north.samples[0].latitude, static[0].latitude + 10.0 / 110540.0)
        assert north.samples[0].longitude == static[0].longitude

    def test_timestamps(self, store):
        """Timestamps follow sequence / 100 Hz; the first is floored."""
        track = TrackBuilder().build_dynamic_path(store, EntitySpec(name="Body"))

        times = [s.timestamp for s in track.samples]
        assert times[0] == DEFAULT_EPOCH
        assert times[1] == DEFAULT_EPOCH + timedelta(milliseconds=30)
        assert times[2] == DEFAULT_EPOCH + timedelta(milliseconds=50)
        assert times == sorted(times)

    def test_first_timestamp_floored_to_second(self):
        store = RecordStore()
        for _ in range(149):
            store.append(RcStatus())
        store.append(AirPosition(longitude=1.0, latitude=1.0))
        store.append(AirPosition(longitude=1.1, latitude=1.1))

        track = TrackBuilder().build_dynamic_path(store, EntitySpec(name="Body"))

        assert track.samples[0].timestamp == DEFAULT_EPOCH + timedelta(seconds=1)
        assert track.samples[1].timestamp == DEFAULT_EPOCH + timedelta(seconds=1.51)

    def test_orientation_placeholder(self, store):
        track = TrackBuilder().build_dynamic_path(store, EntitySpec(name="Body"))

        assert all((s.heading, s.tilt, s.roll) == (0.0, 0.0, 0.0) for s in track.samples)

    def test_store_not_mutated(self, store):
        """Building tracks should not alter stored positions."""
        before = [r.position for r in store.air_positions()]

        TrackBuilder(ground_altitude=500.0).build(store, PHANTOM3_ENTITIES)

        assert [r.position for r in store.air_positions()] == before


class TestBuild:
    """Tests for the combined track artifact."""

    def test_phantom3_entities(self, store):
        track = TrackBuilder().build(store, PHANTOM3_ENTITIES)

        assert list(track.dynamic_paths) == ["Body", "Prop1", "Prop2", "Prop3", "Prop4"]
        assert all(len(t) == 3 for t in track.dynamic_paths.values())

    def test_no_entities(self, store):
        track = TrackBuilder().build(store)

        assert len(track.static_path) == 3
        assert track.dynamic_paths == {}


class TestPhantom3Preset:
    """Tests for the aircraft entity preset."""

    def test_props_symmetric(self):
        props = [e for e in PHANTOM3_ENTITIES if e.name.startswith("Prop")]

        assert len(props) == 4
        assert sum(p.offset[0] for p in props) == pytest.approx(0.0)
        assert sum(p.offset[1] for p in props) == pytest.approx(0.0)
        assert all(abs(p.offset[0]) == PROP_ARM and p.offset[2] == PROP_HEIGHT for p in props)

    def test_find_entity(self):
        assert find_entity("body").name == "Body"
        assert find_entity("PROP3").offset == (-PROP_ARM, -PROP_ARM, PROP_HEIGHT)
        assert find_entity("Rotor") is None
