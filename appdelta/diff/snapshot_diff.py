"""
Snapshot diff engine for comparing installed-application snapshots.

This module answers "which records changed?" and nothing more:
- Two records are equal iff all seven ComparisonKey fields are equal
- A record is a raw difference if no equal record exists on the other side
- Snapshots are treated as sets: duplicate keys on one side collapse
- Output order follows input order (old side first), so equal inputs
  always produce equal outputs

Deciding what a difference MEANS (install, uninstall, update) is the job of
change_events.py.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List

from ..ingest.snapshot_ingest import AppRecord, ComparisonKey

logger = logging.getLogger(__name__)


class Side(Enum):
    """Which snapshot a raw difference was found in."""
    ONLY_IN_OLD = "OnlyInOld"
    ONLY_IN_NEW = "OnlyInNew"


@dataclass(frozen=True)
class RawDifference:
    """
    A record present in exactly one of the two snapshots.

    This is the atomic unit handed to classification.
    """
    record: AppRecord
    side: Side


def _unique_by_key(records: Iterable[AppRecord]) -> Dict[ComparisonKey, AppRecord]:
    """Index records by ComparisonKey, keeping the first of any duplicates."""
    unique: Dict[ComparisonKey, AppRecord] = {}
    for record in records:
        unique.setdefault(record.comparison_key(), record)
    return unique


def diff_snapshots(
    old: Iterable[AppRecord],
    new: Iterable[AppRecord]
) -> List[RawDifference]:
    """
    Compute the symmetric difference of two snapshots under ComparisonKey equality.

    Neither input is mutated.

    Args:
        old: Baseline snapshot (or any iterable of AppRecord)
        new: Current snapshot

    Returns:
        OnlyInOld differences in old-snapshot order, followed by OnlyInNew
        differences in new-snapshot order
    """
    old_by_key = _unique_by_key(old)
    new_by_key = _unique_by_key(new)

    differences = [
        RawDifference(record=record, side=Side.ONLY_IN_OLD)
        for key, record in old_by_key.items()
        if key not in new_by_key
    ]
    removed_count = len(differences)

    differences.extend(
        RawDifference(record=record, side=Side.ONLY_IN_NEW)
        for key, record in new_by_key.items()
        if key not in old_by_key
    )

    logger.info(
        "Snapshot diff: %d only in old, %d only in new, %d unchanged",
        removed_count,
        len(differences) - removed_count,
        len(old_by_key) - removed_count
    )
    return differences
