"""Snapshot model and persistence."""

from .snapshot_ingest import (
    AppRecord,
    Snapshot,
    ComparisonKey,
    SnapshotStore,
    JsonSnapshotStore,
    record_from_dict
)
from .postgres_client import PostgresSnapshotStore

__all__ = [
    "AppRecord",
    "Snapshot",
    "ComparisonKey",
    "SnapshotStore",
    "JsonSnapshotStore",
    "PostgresSnapshotStore",
    "record_from_dict",
]
