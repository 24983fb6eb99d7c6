"""
Capture Repository - manages loading and caching of flight captures.

Captures are decoded-record CSV files in a folder. Each one is parsed
and finalized on first access and kept in memory afterwards.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from flightkml.models.records import RecordKind
from flightkml.models.settings import CaptureSettings
from flightkml.services.record_reader import load_capture
from flightkml.services.session import CaptureSession


logger = logging.getLogger(__name__)


@dataclass
class CaptureSummary:
    """Lightweight summary of a capture for listing."""

    id: str
    name: str
    source_file: str
    record_count: int
    position_count: int
    interpolated_count: int
    path_length_m: float

    @classmethod
    def from_session(cls, capture_id: str, filepath: Path, session: CaptureSession) -> "CaptureSummary":
        counts = session.store.count_by_kind()
        return cls(
            id=capture_id,
            name=session.name,
            source_file=str(filepath),
            record_count=len(session.store),
            position_count=counts[RecordKind.AIR_POSITION],
            interpolated_count=sum(1 for r in session.store.air_positions() if r.interpolated),
            path_length_m=session.path_length_m(),
        )


class CaptureRepository:
    """
    Repository for flight captures.

    Reads decoded-record CSV files from a folder and caches finalized
    sessions in memory.
    """

    def __init__(self, data_folder: Optional[Path] = None, settings: Optional[CaptureSettings] = None):
        """
        Initialize the repository.

        Args:
            data_folder: Folder containing CSV files. If None, must be set later.
            settings: Default settings for captures loaded without overrides
        """
        self._data_folder: Optional[Path] = data_folder
        self._settings = settings
        self._cache: dict[str, CaptureSession] = {}
        self._index: dict[str, Path] = {}  # id -> filepath mapping

        if data_folder is not None:
            self.scan_folder(data_folder)

    @property
    def data_folder(self) -> Optional[Path]:
        return self._data_folder

    @property
    def settings(self) -> Optional[CaptureSettings]:
        return self._settings

    @property
    def capture_count(self) -> int:
        return len(self._index)

    def has_capture(self, capture_id: str) -> bool:
        return capture_id in self._index

    def set_data_folder(self, folder: Path) -> int:
        """
        Set the data folder and scan for CSV files.

        Returns:
            Number of CSV files found
        """
        self._data_folder = folder
        self._cache.clear()
        return self.scan_folder(folder)

    def scan_folder(self, folder: Path) -> int:
        """
        Scan a folder for CSV files and rebuild the index.

        Files that changed on disk get a new id; their old id is dropped.

        Returns:
            Number of CSV files found
        """
        self._index.clear()
        if not folder.exists():
            logger.warning(f"Data folder does not exist: {folder}")
            return 0

        count = 0
        for csv_file in sorted(folder.glob("*.csv")):
            if csv_file.is_file():
                capture_id = self._filepath_to_id(csv_file)
                self._index[capture_id] = csv_file
                count += 1
                logger.debug(f"Indexed capture: {capture_id} -> {csv_file.name}")

        for stale_id in set(self._cache) - set(self._index):
            del self._cache[stale_id]

        logger.info(f"Scanned {count} CSV files in {folder}")
        return count

    def list_captures(self) -> list[CaptureSummary]:
        """List all loadable captures, sorted by name."""
        summaries = []
        for capture_id, filepath in self._index.items():
            session = self.get_capture(capture_id)
            if session is not None:
                summaries.append(CaptureSummary.from_session(capture_id, filepath, session))
        summaries.sort(key=lambda s: s.name)
        return summaries

    def get_capture(self, capture_id: str) -> Optional[CaptureSession]:
        """
        Get a finalized capture by ID.

        Returns:
            CaptureSession if found and readable, None otherwise
        """
        if capture_id in self._cache:
            return self._cache[capture_id]

        if capture_id not in self._index:
            return None

        try:
            return self._load_capture(capture_id)
        except Exception as e:
            logger.error(f"Failed to load capture {capture_id}: {e}")
            return None

    def get_summary(self, capture_id: str) -> Optional[CaptureSummary]:
        session = self.get_capture(capture_id)
        if session is None:
            return None
        return CaptureSummary.from_session(capture_id, self._index[capture_id], session)

    def reload_capture(self, capture_id: str, settings: CaptureSettings) -> Optional[CaptureSession]:
        """
        Reload a capture with different settings.

        Returns:
            CaptureSession if found, None otherwise
        """
        if capture_id not in self._index:
            return None

        self._cache.pop(capture_id, None)

        try:
            return self._load_capture(capture_id, settings)
        except Exception as e:
            logger.error(f"Failed to reload capture {capture_id}: {e}")
            return None

    def clear_cache(self) -> None:
        """Clear the in-memory cache."""
        self._cache.clear()
        logger.info("Capture cache cleared")

    def _load_capture(self, capture_id: str, settings: Optional[CaptureSettings] = None) -> CaptureSession:
        filepath = self._index[capture_id]
        session = load_capture(filepath, settings or self._settings)
        self._cache[capture_id] = session
        logger.debug(f"Loaded and cached capture: {capture_id}")
        return session

    def _filepath_to_id(self, filepath: Path) -> str:
        """Generate a consistent ID from filename, size and mtime."""
        stat = filepath.stat()
        id_string = f"{filepath.name}_{stat.st_size}_{stat.st_mtime}"
        return hashlib.sha256(id_string.encode()).hexdigest()[:16]


# Global repository instance (set up by app initialization)
_repository: Optional[CaptureRepository] = None


def get_repository() -> CaptureRepository:
    """Get the global repository instance."""
    global _repository
    if _repository is None:
        _repository = CaptureRepository()
    return _repository


def init_repository(data_folder: Path, settings: Optional[CaptureSettings] = None) -> CaptureRepository:
    """Initialize the global repository with a data folder."""
    global _repository
    _repository = CaptureRepository(data_folder, settings)
    return _repository
