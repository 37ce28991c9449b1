"""Report shaping for classified changes: ordering, deduplication and empty-column elision."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .diff.change_events import ChangeRecord
from .schema import DEFAULT_COLUMNS, DEFAULT_SORT_KEY


@dataclass
class ChangeReport:
    """
    Ordered change rows ready for presentation.

    ``columns`` only lists columns that hold a value in at least one row.
    """
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows


def build_report(
    records: Iterable[ChangeRecord],
    sort_by: str = DEFAULT_SORT_KEY,
    columns: Optional[Sequence[str]] = None
) -> ChangeReport:
    """
    Build an ordered report from change records.

    Rows are deduplicated (identical rows collapse), sorted by ``sort_by``
    then Application, and columns that are empty in every row are dropped.

    Args:
        records: Classified change records
        sort_by: Column to sort by (default "Change")
        columns: Columns to include, in order (default: all report columns)

    Returns:
        ChangeReport

    Raises:
        ValueError: If ``sort_by`` or a requested column is not a report column
    """
    columns = list(columns) if columns is not None else list(DEFAULT_COLUMNS)
    unknown = [c for c in columns if c not in DEFAULT_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown report columns: {', '.join(unknown)}")
    if sort_by not in DEFAULT_COLUMNS:
        raise ValueError(f"Unknown sort column: {sort_by}")

    full_rows = sorted(
        (record.to_dict() for record in records),
        key=lambda r: (r[sort_by], r["Application"])
    )

    rows: List[Dict[str, str]] = []
    seen = set()
    for full_row in full_rows:
        row = {c: full_row[c] for c in columns}
        key = tuple(row.items())
        if key in seen:
            continue
        seen.add(key)
        rows.append(row)

    visible = [c for c in columns if any(row[c] for row in rows)]
    return ChangeReport(
        columns=visible,
        rows=[{c: row[c] for c in visible} for row in rows]
    )
