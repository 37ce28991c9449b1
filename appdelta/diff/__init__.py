"""Installed-application snapshot diff and change classification."""

from .snapshot_diff import (
    diff_snapshots,
    RawDifference,
    Side,
)

from .change_events import (
    # Main classification function
    classify_diff,
    classify_group,
    group_by_application,
    reformat_difference,
    # Enums
    ChangeType,
    # Data classes
    AppDelta,
    ChangeRecord,
    ClassificationResult,
)

from .exclusions import (
    build_pattern,
    apply_stages,
    ExclusionPattern,
    ExclusionStage,
    ExclusionRules,
    InvalidExclusionPattern,
)

__all__ = [
    # Layer 1: Snapshot Diff
    "diff_snapshots",
    "RawDifference",
    "Side",
    # Layer 2: Change Classification
    "classify_diff",
    "classify_group",
    "group_by_application",
    "reformat_difference",
    "ChangeType",
    "AppDelta",
    "ChangeRecord",
    "ClassificationResult",
    # Exclusion Filtering
    "build_pattern",
    "apply_stages",
    "ExclusionPattern",
    "ExclusionStage",
    "ExclusionRules",
    "InvalidExclusionPattern",
]
