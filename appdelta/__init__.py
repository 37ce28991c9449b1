from .parser import SnapshotParser
from .normalizer import AppNormalizer, normalize_display_name
from .install_info import normalize_install_date, extract_username
from .ingest import AppRecord, Snapshot, JsonSnapshotStore
from .diff import diff_snapshots, classify_diff, ChangeType, ChangeRecord, ExclusionRules, InvalidExclusionPattern
from .report import ChangeReport, build_report
from .config import WatchConfig
from .pipeline import CheckResult, check_for_changes, compare_snapshots
from .schema import STANDARD_HEADERS, COLUMN_MAPPINGS, DEFAULT_COLUMNS

__all__ = [
    "SnapshotParser", "AppNormalizer", "normalize_display_name",
    "normalize_install_date", "extract_username",
    "AppRecord", "Snapshot", "JsonSnapshotStore",
    "diff_snapshots", "classify_diff", "ChangeType", "ChangeRecord",
    "ExclusionRules", "InvalidExclusionPattern",
    "ChangeReport", "build_report", "WatchConfig",
    "CheckResult", "check_for_changes", "compare_snapshots",
    "STANDARD_HEADERS", "COLUMN_MAPPINGS", "DEFAULT_COLUMNS",
]
