"""
Tests for the append-only record store.
"""

import pytest

from flightkml.models.errors import CaptureSealedError, InvalidRecordError
from flightkml.models.records import AirPosition, MotorStatus, RcStatus, RecordKind, TelemetryRecord
from flightkml.services.record_store import RecordStore


class TestAppend:
    """Tests for appending records."""

    def test_sequences_are_one_based(self):
        """Sequence numbers should follow insertion order from 1."""
        store = RecordStore()
        first = store.append(AirPosition(longitude=1.0, latitude=2.0))
        second = store.append(RcStatus())
        third = store.append(MotorStatus(status=3))

        assert [first.sequence, second.sequence, third.sequence] == [1, 2, 3]
        assert len(store) == 3

    def test_iteration_order(self):
        """Iteration should yield records in insertion order."""
        store = RecordStore()
        records = [AirPosition(), RcStatus(), AirPosition(), TelemetryRecord()]
        for record in records:
            store.append(record)

        assert list(store.iterate()) == records
        assert list(store) == records

    def test_append_after_seal(self):
        """Appending to a sealed store should fail."""
        store = RecordStore()
        store.append(AirPosition())
        store.seal()

        assert store.sealed
        with pytest.raises(CaptureSealedError):
            store.append(AirPosition())
        assert len(store) == 1

    def test_record_cannot_be_shared(self):
        """A record owned by one store should be rejected by another."""
        record = AirPosition(longitude=1.0, latitude=1.0)
        RecordStore().append(record)

        with pytest.raises(InvalidRecordError):
            RecordStore().append(record)

    def test_rejects_non_records(self):
        with pytest.raises(InvalidRecordError):
            RecordStore().append((1.0, 2.0, 3.0))

    def test_seal_is_idempotent(self):
        store = RecordStore()
        store.seal()
        store.seal()
        assert store.sealed


class TestLookup:
    """Tests for record access helpers."""

    @pytest.fixture
    def store(self):
        store = RecordStore()
        store.append(AirPosition(longitude=1.0, latitude=1.0))
        store.append(MotorStatus(status=1))
        store.append(RcStatus(throttle=1100))
        store.append(AirPosition())
        return store

    def test_get_by_sequence(self, store):
        assert isinstance(store.get(2), MotorStatus)
        assert store.get(3).throttle == 1100

    def test_get_out_of_range(self, store):
        with pytest.raises(IndexError):
            store.get(0)
        with pytest.raises(IndexError):
            store.get(5)

    def test_air_positions(self, store):
        """Only AirPosition records should be returned, in order."""
        positions = list(store.air_positions())

        assert [p.sequence for p in positions] == [1, 4]

    def test_count_by_kind(self, store):
        counts = store.count_by_kind()

        assert counts[RecordKind.AIR_POSITION] == 2
        assert counts[RecordKind.RC_STATUS] == 1
        assert counts[RecordKind.MOTOR_STATUS] == 1
        assert counts[RecordKind.NULL] == 0
