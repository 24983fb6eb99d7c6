"""
Append-only record buffer for one capture.

Records are appended while the capture is scanned, then the store is
sealed and handed to the reconstruction pass. There is no removal.
"""

import logging
from typing import Iterator, Type, TypeVar

from flightkml.models.errors import CaptureSealedError, InvalidRecordError
from flightkml.models.records import AirPosition, RecordKind, TelemetryRecord


logger = logging.getLogger(__name__)

R = TypeVar("R", bound=TelemetryRecord)


class RecordStore:
    """
    Ordered, append-only sequence of telemetry records.

    Sequence numbers are 1-based and follow insertion order. Not safe for
    concurrent appends; seal() marks the hand-off to finalize.
    """

    def __init__(self):
        self._records: list[TelemetryRecord] = []
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def append(self, record: TelemetryRecord) -> TelemetryRecord:
        """
        Add a record at the end of the store.

        Args:
            record: A record not yet owned by any store

        Returns:
            The same record, with its sequence number assigned
        """
        if self._sealed:
            raise CaptureSealedError("Cannot append to a sealed record store")
        if not isinstance(record, TelemetryRecord):
            raise InvalidRecordError(f"Not a telemetry record: {record!r}")
        if record.sequence != 0:
            raise InvalidRecordError(
                f"Record already has sequence {record.sequence}; records cannot be shared between stores"
            )
        record.sequence = len(self._records) + 1
        self._records.append(record)
        return record

    def seal(self) -> None:
        """Close the store for appends."""
        if not self._sealed:
            logger.debug(f"Sealing record store with {len(self._records)} records")
        self._sealed = True

    def iterate(self) -> Iterator[TelemetryRecord]:
        """Iterate records in insertion order."""
        return iter(self._records)

    def __iter__(self) -> Iterator[TelemetryRecord]:
        return self.iterate()

    def __len__(self) -> int:
        return len(self._records)

    def get(self, sequence: int) -> TelemetryRecord:
        """Fetch a record by its 1-based sequence number."""
        if sequence < 1 or sequence > len(self._records):
            raise IndexError(f"No record with sequence {sequence}")
        return self._records[sequence - 1]

    def of_type(self, record_type: Type[R]) -> Iterator[R]:
        """Iterate records of one type in insertion order."""
        return (r for r in self._records if isinstance(r, record_type))

    def air_positions(self) -> Iterator[AirPosition]:
        return self.of_type(AirPosition)

    def count_by_kind(self) -> dict[RecordKind, int]:
        counts = {kind: 0 for kind in RecordKind}
        for record in self._records:
            counts[record.kind] += 1
        return counts
