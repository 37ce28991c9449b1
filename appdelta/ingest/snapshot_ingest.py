"""
Snapshot model and persistence for installed-application inventories.

This module defines the immutable units that flow into the diff engine:
- AppRecord: one installed-application entry as reported by a snapshot source
- Snapshot: an unordered collection of AppRecords captured at one instant

It also defines the persistence boundary (SnapshotStore) used to keep the
previous snapshot between runs, with a JSON file implementation.

Key principles:
- Never mutate a captured snapshot
- Missing fields degrade to empty values rather than failing the run
- A missing baseline is a first-run signal, not an error
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from ..schema import STANDARD_HEADERS

logger = logging.getLogger(__name__)

ComparisonKey = Tuple[str, str, str, Optional[int], Optional[int], str, str]


@dataclass(frozen=True)
class AppRecord:
    """
    One installed-application entry.

    String fields that were absent at the source are stored as "" so that
    "missing" compares equal to "missing". Integer version fields stay None
    when absent.
    """
    display_name: str
    publisher: str = ""
    display_version: str = ""
    version_major: Optional[int] = None
    version_minor: Optional[int] = None
    install_date: str = ""
    install_location: str = ""

    def comparison_key(self) -> ComparisonKey:
        """Return the seven-field tuple used for exact equality across snapshots."""
        return (
            self.display_name,
            self.publisher,
            self.display_version,
            self.version_major,
            self.version_minor,
            self.install_date,
            self.install_location,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the standard record field names."""
        return dict(zip(STANDARD_HEADERS, self.comparison_key()))


@dataclass(frozen=True)
class Snapshot:
    """
    A point-in-time capture of installed-application records.

    Records are held in a tuple so the snapshot cannot be mutated once
    captured. Order carries no meaning for diffing but is preserved so that
    results are reproducible for equal inputs.
    """
    records: Tuple[AppRecord, ...] = ()
    captured_at: Optional[str] = None
    source: Optional[str] = None

    @classmethod
    def from_records(
        cls,
        records: Iterable[AppRecord],
        captured_at: Optional[str] = None,
        source: Optional[str] = None
    ) -> "Snapshot":
        """Build a snapshot, stamping the capture time when none is given."""
        if captured_at is None:
            captured_at = datetime.now(timezone.utc).isoformat()
        return cls(records=tuple(records), captured_at=captured_at, source=source)

    def __iter__(self) -> Iterator[AppRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "captured_at": self.captured_at,
            "source": self.source,
            "records": [r.to_dict() for r in self.records],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        """Rebuild a snapshot from ``to_dict`` output."""
        return cls(
            records=tuple(record_from_dict(r, strip=False) for r in data.get("records") or []),
            captured_at=data.get("captured_at"),
            source=data.get("source"),
        )


def _to_int(value: Any) -> Optional[int]:
    """Convert a version component to int, returning None when absent or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))  # Handle "14.0" -> 14
    except (ValueError, TypeError):
        return None


def _to_str(value: Any, strip: bool = True) -> str:
    if value is None:
        return ""
    text = str(value)
    return text.strip() if strip else text


def record_from_dict(record_dict: Dict[str, Any], strip: bool = True) -> AppRecord:
    """
    Convert a dictionary keyed by standard field names into an AppRecord.

    Mapping follows STANDARD_HEADERS (DisplayName, Publisher, DisplayVersion,
    VersionMajor, VersionMinor, InstallDate, InstallLocation). Absent string
    fields become "", absent or unparseable integers become None.

    Args:
        record_dict: Dictionary with standard field names (e.g. from AppNormalizer)
        strip: Trim surrounding whitespace from string fields. Stored
               snapshots are reloaded with strip=False so they compare
               exactly against what was saved.

    Returns:
        AppRecord instance
    """
    return AppRecord(
        display_name=_to_str(record_dict.get("DisplayName"), strip),
        publisher=_to_str(record_dict.get("Publisher"), strip),
        display_version=_to_str(record_dict.get("DisplayVersion"), strip),
        version_major=_to_int(record_dict.get("VersionMajor")),
        version_minor=_to_int(record_dict.get("VersionMinor")),
        install_date=_to_str(record_dict.get("InstallDate"), strip),
        install_location=_to_str(record_dict.get("InstallLocation"), strip),
    )


class SnapshotStore:
    """
    Abstract snapshot persistence interface.

    Implement this interface to keep the previous snapshot between runs
    (file system, database, object storage, ...).
    """

    def load_snapshot(self, name: str) -> Optional[Snapshot]:
        """
        Load the most recently saved snapshot for ``name``.

        Args:
            name: Baseline name (e.g. a machine name)

        Returns:
            The stored Snapshot, or None when no baseline exists yet
        """
        raise NotImplementedError

    def save_snapshot(self, name: str, snapshot: Snapshot) -> None:
        """
        Persist ``snapshot`` as the baseline for ``name``, replacing any previous one.

        Args:
            name: Baseline name
            snapshot: Snapshot to persist
        """
        raise NotImplementedError


@dataclass
class JsonSnapshotStore(SnapshotStore):
    """Keeps one JSON document per baseline name inside ``directory``."""

    directory: Path
    encoding: str = field(default="utf-8")

    def _path_for(self, name: str) -> Path:
        return Path(self.directory) / f"{name}.json"

    def load_snapshot(self, name: str) -> Optional[Snapshot]:
        path = self._path_for(name)
        if not path.exists():
            logger.debug("No stored snapshot at %s", path)
            return None
        with open(path, "r", encoding=self.encoding) as f:
            data = json.load(f)
        snapshot = Snapshot.from_dict(data)
        logger.debug("Loaded %d records from %s", len(snapshot), path)
        return snapshot

    def save_snapshot(self, name: str, snapshot: Snapshot) -> None:
        path = self._path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding=self.encoding) as f:
            json.dump(snapshot.to_dict(), f, indent=2)
        logger.info("Saved snapshot with %d records to %s", len(snapshot), path)
