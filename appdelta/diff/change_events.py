"""
Change classification for installed-application diffs.

This module turns raw differences into typed change records:
- snapshot_diff.py answers "Which records changed?"
- this module answers "Was it an install, an uninstall, or an update?"

HOW AN UPDATE IS RECOGNIZED:
An upgrade shows up in the raw diff as one record leaving (old version) and
one record arriving (new version). Both usually carry the version inside
their display name ("Foo 1.0" / "Foo 2.0"), so the names differ. Each raw
difference is reformatted with a normalized Application name
(normalizer.normalize_display_name), and differences are grouped by that
name. A group holding both sides is an update; a group holding one side only
is an install or an uninstall.

DESIGN PRINCIPLES:
1. Deterministic: same inputs, same outputs, no scoring or similarity
2. Every raw difference lands in exactly one group
3. The change type depends only on the group's size and side composition

KNOWN LIMITATIONS:
- Names are only normalized when a DisplayVersion is present. Two records
  without one ("Java 8 Update 381" / "Java 8 Update 391") keep distinct
  names and are reported as Uninstalled + Installed.
- When a group holds several old and several new versions, the pairing is
  first-in-sort-order on each side, not by recency.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

from ..ingest.snapshot_ingest import AppRecord
from ..install_info import extract_username, normalize_install_date
from ..normalizer import normalize_display_name
from .snapshot_diff import RawDifference, Side

if TYPE_CHECKING:
    from .exclusions import ExclusionRules

logger = logging.getLogger(__name__)


# =============================================================================
# CHANGE TAXONOMY
# =============================================================================

class ChangeType(Enum):
    """Canonical change types, valued by their report label."""
    INSTALLED = "Installed"      # Application only exists in the new snapshot
    UNINSTALLED = "Uninstalled"  # Application only exists in the old snapshot
    UPDATED = "Updated"          # Same application, different version


# =============================================================================
# APP DELTA (Reformatted Difference)
# =============================================================================

@dataclass(frozen=True)
class AppDelta:
    """
    A raw difference reformatted into report fields.

    ``application`` is the normalized display name used for grouping.
    ``publisher`` falls back to ``application`` when the source has none, so
    publisher exclusions always have something to match.
    """
    application: str
    publisher: str
    version: str
    installed: str
    user: str
    side: Side
    record: AppRecord


def reformat_difference(difference: RawDifference) -> AppDelta:
    """
    Reformat a RawDifference into an AppDelta.

    Args:
        difference: Raw difference from the snapshot diff

    Returns:
        AppDelta with normalized application name, fallback publisher,
        normalized install date and extracted user
    """
    record = difference.record
    application = normalize_display_name(
        record.display_name,
        record.display_version,
        record.version_major,
        record.version_minor
    ) or ""

    return AppDelta(
        application=application,
        publisher=record.publisher or application,
        version=record.display_version,
        installed=normalize_install_date(record.install_date, record.install_location),
        user=extract_username(record.install_location),
        side=difference.side,
        record=record
    )


# =============================================================================
# CHANGE RECORD (Output Type)
# =============================================================================

@dataclass(frozen=True)
class ChangeRecord:
    """
    A classified change.

    ``old_version`` is only populated for UPDATED records.
    """
    change: ChangeType
    application: str
    publisher: str = ""
    old_version: str = ""
    version: str = ""
    user: str = ""
    installed: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Serialize using the report column names."""
        return {
            "Change": self.change.value,
            "Application": self.application,
            "Publisher": self.publisher,
            "OldVersion": self.old_version,
            "Version": self.version,
            "User": self.user,
            "Installed": self.installed,
        }


@dataclass
class ClassificationResult:
    """
    Complete result of classifying one diff run.

    Counts describe the final records; ``excluded_count`` and
    ``suppressed_count`` describe what was filtered out along the way.
    """
    records: List[ChangeRecord]

    total_changes: int
    installed_count: int
    uninstalled_count: int
    updated_count: int

    # Reformatted differences dropped by global/publisher exclusions
    excluded_count: int = 0
    # Records dropped by category suppression or per-type exclusions
    suppressed_count: int = 0

    def records_by_type(self, change_type: ChangeType) -> List[ChangeRecord]:
        """Filter records by change type."""
        return [r for r in self.records if r.change == change_type]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "total_changes": self.total_changes,
            "installed_count": self.installed_count,
            "uninstalled_count": self.uninstalled_count,
            "updated_count": self.updated_count,
            "excluded_count": self.excluded_count,
            "suppressed_count": self.suppressed_count,
            "records": [r.to_dict() for r in self.records]
        }


# =============================================================================
# GROUPING
# =============================================================================

def group_by_application(deltas: Sequence[AppDelta]) -> Dict[str, List[AppDelta]]:
    """
    Group deltas by exact (case-sensitive) normalized application name.

    Groups and their members keep first-seen order.
    """
    groups: Dict[str, List[AppDelta]] = {}
    for delta in deltas:
        groups.setdefault(delta.application, []).append(delta)
    return groups


def _representatives(members: Sequence[AppDelta]) -> List[AppDelta]:
    """Sort by application and keep the first member per distinct application."""
    first_by_application: Dict[str, AppDelta] = {}
    for delta in sorted(members, key=lambda d: d.application):
        first_by_application.setdefault(delta.application, delta)
    return list(first_by_application.values())


def _single_side(group: Sequence[AppDelta], side: Side) -> bool:
    return all(d.side == side for d in group)


def _record_from_delta(change: ChangeType, delta: AppDelta, old_version: str = "") -> ChangeRecord:
    return ChangeRecord(
        change=change,
        application=delta.application,
        publisher=delta.publisher,
        old_version=old_version,
        version=delta.version,
        user=delta.user,
        installed=delta.installed
    )


# =============================================================================
# CLASSIFICATION RULES
# =============================================================================
# Ordered rules over one group. First match wins.
# Each rule is a function: (group) -> Optional[List[ChangeRecord]]

def _classify_installed(group: Sequence[AppDelta]) -> Optional[List[ChangeRecord]]:
    """
    Rule: every member only exists in the new snapshot.

    Covers the size-1 case and groups left one-sided after exclusions.
    Produces one INSTALLED record per member.
    """
    if not _single_side(group, Side.ONLY_IN_NEW):
        return None
    return [_record_from_delta(ChangeType.INSTALLED, d) for d in group]


def _classify_uninstalled(group: Sequence[AppDelta]) -> Optional[List[ChangeRecord]]:
    """
    Rule: every member only exists in the old snapshot.

    Produces one UNINSTALLED record per member.
    """
    if not _single_side(group, Side.ONLY_IN_OLD):
        return None
    return [_record_from_delta(ChangeType.UNINSTALLED, d) for d in group]


def _classify_updated(group: Sequence[AppDelta]) -> Optional[List[ChangeRecord]]:
    """
    Rule: the group holds members from both snapshots.

    One old representative and one new representative are chosen per
    distinct application (first in sort order). One UPDATED record is
    produced per new representative, carrying the old representative's
    version as ``old_version``.
    """
    old_members = [d for d in group if d.side == Side.ONLY_IN_OLD]
    new_members = [d for d in group if d.side == Side.ONLY_IN_NEW]
    if not old_members or not new_members:
        return None

    old_by_application = {d.application: d for d in _representatives(old_members)}

    records = []
    for new_delta in _representatives(new_members):
        old_delta = old_by_application.get(new_delta.application)
        old_version = old_delta.version if old_delta is not None else ""
        records.append(_record_from_delta(ChangeType.UPDATED, new_delta, old_version))
    return records


# CRITICAL: Order matters - first match wins
CLASSIFICATION_RULES: List[Callable[[Sequence[AppDelta]], Optional[List[ChangeRecord]]]] = [
    _classify_installed,
    _classify_uninstalled,
    _classify_updated,
]


def classify_group(group: Sequence[AppDelta]) -> List[ChangeRecord]:
    """
    Classify one application group into change records.

    Args:
        group: Non-empty list of deltas sharing a normalized application

    Returns:
        Change records for the group (empty only for an empty group)
    """
    if not group:
        return []

    for rule in CLASSIFICATION_RULES:
        records = rule(group)
        if records is not None:
            return records

    # Unreachable: a non-empty group is one-sided or mixed
    return []


# =============================================================================
# MAIN CLASSIFICATION FUNCTION
# =============================================================================

def classify_diff(
    differences: Sequence[RawDifference],
    exclude_installs: bool = False,
    exclude_uninstalls: bool = False,
    exclude_updates: bool = True,
    exclusions: Optional["ExclusionRules"] = None
) -> ClassificationResult:
    """
    Classify raw differences into Installed / Uninstalled / Updated records.

    The function:
    1. Reformats each difference (normalized name, fallback publisher, date, user)
    2. Applies global and publisher exclusions, if any
    3. Groups by normalized application and classifies each group
    4. Drops suppressed categories (updates are suppressed by default)
    5. Applies per-type exclusions, if any

    Args:
        differences: Raw differences from diff_snapshots
        exclude_installs: Drop all INSTALLED records
        exclude_uninstalls: Drop all UNINSTALLED records
        exclude_updates: Drop all UPDATED records
        exclusions: Optional exclusion rules

    Returns:
        ClassificationResult with the surviving records

    Example:
        >>> from appdelta.diff import diff_snapshots, classify_diff
        >>> result = classify_diff(diff_snapshots(old, new), exclude_updates=False)
        >>> for record in result.records:
        ...     print(f"{record.change.value}: {record.application}")
    """
    deltas = [reformat_difference(d) for d in differences]

    excluded_count = 0
    if exclusions is not None:
        kept = exclusions.apply_pre(deltas)
        excluded_count = len(deltas) - len(kept)
        deltas = kept

    records: List[ChangeRecord] = []
    for group in group_by_application(deltas).values():
        records.extend(classify_group(group))
    classified_count = len(records)

    suppressed = set()
    if exclude_installs:
        suppressed.add(ChangeType.INSTALLED)
    if exclude_uninstalls:
        suppressed.add(ChangeType.UNINSTALLED)
    if exclude_updates:
        suppressed.add(ChangeType.UPDATED)
    records = [r for r in records if r.change not in suppressed]

    if exclusions is not None:
        records = exclusions.apply_post(records)

    result = ClassificationResult(
        records=records,
        total_changes=len(records),
        installed_count=sum(1 for r in records if r.change == ChangeType.INSTALLED),
        uninstalled_count=sum(1 for r in records if r.change == ChangeType.UNINSTALLED),
        updated_count=sum(1 for r in records if r.change == ChangeType.UPDATED),
        excluded_count=excluded_count,
        suppressed_count=classified_count - len(records)
    )

    logger.info(
        "Classified %d differences: %d installed, %d uninstalled, %d updated "
        "(%d excluded, %d suppressed)",
        len(differences),
        result.installed_count,
        result.uninstalled_count,
        result.updated_count,
        result.excluded_count,
        result.suppressed_count
    )
    return result
