"""
End-to-end change check: baseline handling, diff, classification and report.

A run compares the current snapshot against the stored baseline and then
stores the current snapshot as the next baseline. When no baseline exists
yet there is nothing to compare; the current snapshot becomes the baseline
and the run reports no changes.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .config import WatchConfig
from .diff.change_events import ClassificationResult, classify_diff
from .diff.exclusions import ExclusionRules
from .diff.snapshot_diff import diff_snapshots
from .ingest.snapshot_ingest import Snapshot, SnapshotStore
from .report import ChangeReport, build_report

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Outcome of one change check."""

    baseline_missing: bool = False
    report: ChangeReport = field(default_factory=ChangeReport)
    classification: Optional[ClassificationResult] = None

    @property
    def has_changes(self) -> bool:
        return not self.report.is_empty


def compare_snapshots(
    old: Snapshot,
    new: Snapshot,
    config: Optional[WatchConfig] = None,
    exclusions: Optional[ExclusionRules] = None
) -> CheckResult:
    """
    Diff two snapshots and classify the result under ``config``.

    ``exclusions`` defaults to the rules compiled from ``config``.

    Raises:
        InvalidExclusionPattern: If a configured exclusion term cannot be compiled
    """
    config = config or WatchConfig()
    if exclusions is None:
        exclusions = config.exclusion_rules()

    differences = diff_snapshots(old, new)
    classification = classify_diff(
        differences,
        exclude_installs=config.exclude_installs,
        exclude_uninstalls=config.exclude_uninstalls,
        exclude_updates=config.exclude_updates,
        exclusions=exclusions
    )
    report = build_report(classification.records, sort_by=config.sort_by, columns=config.columns)
    return CheckResult(report=report, classification=classification)


def check_for_changes(
    current: Snapshot,
    store: SnapshotStore,
    config: Optional[WatchConfig] = None,
    baseline_name: str = "default"
) -> CheckResult:
    """
    Compare ``current`` with the stored baseline and roll the baseline forward.

    Args:
        current: Snapshot of the machine as it is now
        store: Where the previous snapshot is kept
        config: Run configuration (defaults when None)
        baseline_name: Name of the baseline inside the store

    Returns:
        CheckResult; ``baseline_missing`` is True on the first run
    """
    config = config or WatchConfig()
    exclusions = config.exclusion_rules()
    baseline = store.load_snapshot(baseline_name)

    if baseline is None:
        logger.info("No baseline %r found, nothing to compare", baseline_name)
        store.save_snapshot(baseline_name, current)
        return CheckResult(baseline_missing=True)

    result = compare_snapshots(baseline, current, config, exclusions)
    store.save_snapshot(baseline_name, current)
    logger.info("Change check %r complete: %d reportable changes", baseline_name, len(result.report))
    return result
