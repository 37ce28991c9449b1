#!/usr/bin/env python3
"""Example: report software changes between runs from an inventory export.

Each run parses the current inventory export (CSV or Excel), compares it
with the baseline kept in a state directory, prints the changes and stores
the current inventory as the next baseline.
"""

import logging
from pathlib import Path

from appdelta import SnapshotParser, JsonSnapshotStore, WatchConfig, check_for_changes
from appdelta.adapters.csv_adapter import CsvAdapter
from appdelta.adapters.excel_adapter import ExcelAdapter


def check_changes(inventory_file: str, state_dir: str, config_file: str = None):
    """Compare an inventory export with the stored baseline and print the changes.

    Args:
        inventory_file: Path to the current inventory export
        state_dir: Directory holding the baseline snapshot
        config_file: Optional YAML configuration file
    """
    parser = SnapshotParser()
    parser.register_adapter(CsvAdapter())
    parser.register_adapter(ExcelAdapter())

    config = WatchConfig.load(Path(config_file) if config_file else None)
    current = parser.parse(inventory_file)
    store = JsonSnapshotStore(Path(state_dir))

    result = check_for_changes(current, store, config)

    if result.baseline_missing:
        print(f"No baseline yet: stored {len(current)} applications as the baseline")
        return result

    if not result.has_changes:
        print("No software changes")
        return result

    widths = {
        c: max(len(c), *(len(row[c]) for row in result.report.rows))
        for c in result.report.columns
    }
    print("  ".join(c.ljust(widths[c]) for c in result.report.columns))
    for row in result.report.rows:
        print("  ".join(row[c].ljust(widths[c]) for c in result.report.columns))

    return result


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 3:
        print("Usage: python check_software_changes.py <inventory_file> <state_dir> [config.yaml]")
        print("\nExample:")
        print("  python check_software_changes.py installed.csv ./state")
        sys.exit(1)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    check_changes(sys.argv[1], sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else None)
