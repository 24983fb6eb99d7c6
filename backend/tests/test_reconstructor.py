"""
Tests for path reconstruction: gap filling, bounds and viewpoint.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from flightkml.models.errors import CaptureSealedError
from flightkml.models.records import AirPosition, MotorStatus, RcStatus
from flightkml.models.track import Bounds, Viewpoint
from flightkml.services.reconstructor import PathReconstructor, derive_viewpoint
from flightkml.services.record_store import RecordStore
from flightkml.utils.geodesy import EARTH_RADIUS_M


def make_store(*records):
    store = RecordStore()
    for record in records:
        store.append(record)
    return store


def fix(lon, lat, alt=0.0):
    return AirPosition(longitude=lon, latitude=lat, altitude=alt)


def unset(alt=0.0):
    return AirPosition(altitude=alt)


class TestGapFilling:
    """Tests for linear interpolation of unset samples."""

    def test_three_sample_gap(self):
        """Gap between 10 and 20 should be filled at quarter steps."""
        store = make_store(fix(10.0, 0.0), unset(), unset(), unset(), fix(20.0, 0.0))

        result = PathReconstructor().finalize(store)

        filled = [store.get(i) for i in (2, 3, 4)]
        assert [r.longitude for r in filled] == pytest.approx([12.5, 15.0, 17.5])
        assert [r.latitude for r in filled] == pytest.approx([0.0, 0.0, 0.0])
        assert all(r.interpolated and r.processed for r in filled)
        assert result.interpolated_count == 3
        assert result.unresolved_count == 0

    def test_fraction_counts_all_record_types(self):
        """Non-position records between fixes should count as steps."""
        store = make_store(
            fix(10.0, 50.0),
            RcStatus(throttle=1200),
            unset(),
            MotorStatus(status=1),
            fix(20.0, 52.0),
        )

        PathReconstructor().finalize(store)

        filled = store.get(3)
        assert filled.longitude == pytest.approx(15.0)
        assert filled.latitude == pytest.approx(51.0)
        assert store.get(2).throttle == 1200
        assert store.get(4).status == 1

    def test_altitude_left_as_received(self):
        """Interpolation should only touch longitude and latitude."""
        store = make_store(fix(10.0, 10.0, 5.0), unset(alt=7.0), fix(12.0, 12.0, 9.0))

        PathReconstructor().finalize(store)

        assert store.get(2).altitude == 7.0

    def test_measured_samples_untouched(self):
        """Measured samples should keep their values and be marked processed."""
        store = make_store(fix(10.0, 20.0, 1.0), unset(), fix(11.0, 21.0, 2.0))

        PathReconstructor().finalize(store)

        first, last = store.get(1), store.get(3)
        assert first.position == (10.0, 20.0, 1.0)
        assert last.position == (11.0, 21.0, 2.0)
        assert first.processed and last.processed
        assert not first.interpolated and not last.interpolated

    def test_trailing_gap_left_unset(self):
        """Unset samples after the last fix should stay unset."""
        store = make_store(fix(10.0, 10.0), unset(), unset())

        result = PathReconstructor().finalize(store)

        assert store.get(2).is_unset and not store.get(2).interpolated
        assert store.get(3).is_unset and not store.get(3).interpolated
        assert result.unresolved_count == 2

    def test_leading_gap_holds_first_fix(self):
        """Unset samples before the first fix should take its position."""
        store = make_store(unset(), unset(), fix(10.0, 20.0, 5.0))

        result = PathReconstructor().finalize(store)

        for seq in (1, 2):
            record = store.get(seq)
            assert (record.longitude, record.latitude) == (10.0, 20.0)
            assert record.interpolated
            assert record.altitude == 0.0
        assert result.interpolated_count == 2

    def test_non_finite_fix_is_not_an_anchor(self):
        """A NaN position should neither anchor nor widen the bounds."""
        store = make_store(fix(10.0, 10.0), fix(math.nan, 11.0), unset(), fix(14.0, 14.0))

        result = PathReconstructor().finalize(store)

        assert store.get(3).longitude == pytest.approx(10.0 + 4.0 * 2 / 3)
        assert result.bounds.sample_count == 2
        assert result.bounds.min_lon == 10.0
        assert result.bounds.max_lon == 14.0

    def test_only_unset_samples(self):
        """A capture with no fix at all should leave everything unset."""
        store = make_store(unset(), unset())

        result = PathReconstructor().finalize(store)

        assert result.bounds.is_empty
        assert result.unresolved_count == 2
        assert result.viewpoint == Viewpoint()


class TestBounds:
    """Tests for bounds accumulation."""

    def test_measured_only(self):
        """Bounds should cover measured samples, not interpolated ones."""
        store = make_store(fix(10.0, 20.0, 5.0), unset(alt=99.0), fix(12.0, 22.0, 15.0))

        result = PathReconstructor().finalize(store)

        assert result.bounds.as_tuple() == (10.0, 20.0, 5.0, 12.0, 22.0, 15.0)
        assert result.bounds.sample_count == 2

    def test_empty_store(self):
        result = PathReconstructor().finalize(RecordStore())

        assert result.bounds.is_empty
        assert result.viewpoint == Viewpoint()


class TestViewpoint:
    """Tests for viewpoint derivation."""

    def test_empty_default(self):
        """Empty capture should give the (0, 0, 0, 10) default."""
        viewpoint = PathReconstructor(ground_altitude=500.0).finalize(RecordStore()).viewpoint

        assert (viewpoint.center_lon, viewpoint.center_lat, viewpoint.center_alt) == (0.0, 0.0, 0.0)
        assert viewpoint.range_meters == 10.0

    def test_single_record(self):
        """One fix should give a minimum-range view centred on it."""
        store = make_store(fix(19.9, 50.0, 12.0))

        viewpoint = PathReconstructor(ground_altitude=100.0).finalize(store).viewpoint

        assert viewpoint.center_lon == 19.9
        assert viewpoint.center_lat == 50.0
        assert viewpoint.center_alt == 112.0
        assert viewpoint.range_meters == 10.0

    def test_center_and_range(self):
        """Center should be the extent midpoint, range the larger span."""
        store = make_store(fix(10.0, 20.0, 5.0), fix(12.0, 22.0, 15.0))

        viewpoint = PathReconstructor(ground_altitude=500.0).finalize(store).viewpoint

        assert viewpoint.center_lon == pytest.approx(11.0)
        assert viewpoint.center_lat == pytest.approx(21.0)
        assert viewpoint.center_alt == pytest.approx(510.0)
        assert_allclose(viewpoint.range_meters, EARTH_RADIUS_M * math.radians(2.0), rtol=1e-9)

    def test_antimeridian(self):
        """A flight across 180 degrees should be centred near 180, not 0."""
        store = make_store(fix(-170.0, 10.0), fix(170.0, 10.0))

        viewpoint = PathReconstructor().finalize(store).viewpoint

        assert 170.0 <= viewpoint.center_lon <= 190.0
        assert viewpoint.center_lon == pytest.approx(180.0)
        assert_allclose(viewpoint.range_meters, EARTH_RADIUS_M * math.radians(20.0), rtol=1e-9)

    def test_latitude_not_wrapped_by_default(self):
        """An equator crossing should be centred on the equator."""
        store = make_store(fix(10.0, -5.0), fix(12.0, 5.0))

        viewpoint = PathReconstructor().finalize(store).viewpoint

        assert viewpoint.center_lat == pytest.approx(0.0)

    def test_latitude_wrap_option(self):
        """wrap_latitude reflects a straddling latitude extent to (max, 180 - min)."""
        store = make_store(fix(10.0, -5.0), fix(12.0, 5.0))

        viewpoint = PathReconstructor(wrap_latitude=True).finalize(store).viewpoint

        assert viewpoint.center_lat == pytest.approx(95.0)
        assert viewpoint.center_lon == pytest.approx(11.0)

    def test_center_within_extent(self):
        """For a same-hemisphere flight the center lies inside the bounds."""
        rng = np.random.default_rng(3)
        lons = rng.uniform(5.0, 6.0, 50)
        lats = rng.uniform(45.0, 46.0, 50)
        alts = rng.uniform(0.0, 120.0, 50)
        store = make_store(*[fix(lon, lat, alt) for lon, lat, alt in zip(lons, lats, alts)])

        result = PathReconstructor().finalize(store)

        assert result.bounds.min_lon <= result.viewpoint.center_lon <= result.bounds.max_lon
        assert result.bounds.min_lat <= result.viewpoint.center_lat <= result.bounds.max_lat
        assert result.viewpoint.range_meters >= 10.0

    def test_override(self):
        """A non-zero override should be used verbatim."""
        override = Viewpoint(center_lon=1.5, center_lat=2.5, center_alt=30.0, range_meters=300.0)
        store = make_store(fix(10.0, 20.0), fix(12.0, 22.0))

        result = PathReconstructor(viewpoint_override=override).finalize(store)

        assert result.viewpoint == override
        assert result.viewpoint_overridden
        assert result.bounds.sample_count == 2

    def test_zero_override_falls_back(self):
        """An override at (0, 0) should be treated as absent."""
        store = make_store(fix(10.0, 20.0), fix(12.0, 22.0))

        result = PathReconstructor(viewpoint_override=Viewpoint()).finalize(store)

        assert not result.viewpoint_overridden
        assert result.viewpoint.center_lon == pytest.approx(11.0)

    def test_derive_viewpoint_empty_bounds(self):
        assert derive_viewpoint(Bounds(), ground_altitude=50.0) == Viewpoint()


class TestFinalize:
    """Tests for finalize lifecycle."""

    def test_seals_store(self):
        store = make_store(fix(1.0, 1.0))

        PathReconstructor().finalize(store)

        assert store.sealed
        with pytest.raises(CaptureSealedError):
            store.append(fix(2.0, 2.0))

    def test_idempotent(self):
        """A second pass should change nothing."""
        store = make_store(fix(10.0, 0.0, 3.0), unset(), RcStatus(), unset(), fix(20.0, 4.0, 6.0), unset())
        reconstructor = PathReconstructor(ground_altitude=500.0)

        first = reconstructor.finalize(store)
        snapshot = [r.position for r in store.air_positions()]
        second = reconstructor.finalize(store)

        assert [r.position for r in store.air_positions()] == snapshot
        assert second.bounds == first.bounds
        assert second.viewpoint == first.viewpoint
        assert second.interpolated_count == 0
        assert second.unresolved_count == first.unresolved_count

    def test_interpolated_origin_is_kept(self):
        """A sample interpolated onto (0, 0) should not be refilled or counted as unresolved."""
        store = make_store(fix(-10.0, 1.0), unset(), fix(10.0, -1.0))
        reconstructor = PathReconstructor()

        reconstructor.finalize(store)
        middle = store.get(2)
        assert middle.longitude == pytest.approx(0.0)
        assert middle.latitude == pytest.approx(0.0)
        assert middle.interpolated

        second = reconstructor.finalize(store)
        assert second.interpolated_count == 0
        assert second.unresolved_count == 0
