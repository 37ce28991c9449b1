from .normalizer import AppNormalizer
from .ingest.snapshot_ingest import AppRecord, Snapshot, record_from_dict
from typing import List, Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


class SnapshotParser:
    """Parser for installed-application inventory files."""

    def __init__(self):
        """Initialize the parser with no adapters registered."""
        self.adapters = []
        self.normalizer = AppNormalizer()

    def register_adapter(self, adapter):
        """Register a file adapter for parsing.

        Args:
            adapter: Adapter instance with can_handle() and read() methods
        """
        self.adapters.append(adapter)

    def _adapter_for(self, file_path: str):
        for adapter in self.adapters:
            if adapter.can_handle(file_path):
                return adapter
        raise ValueError(f"No adapter found for {file_path}")

    def read_rows(self, file_path: str) -> List[Dict[str, Any]]:
        """Read raw rows with their original column names."""
        return self._adapter_for(file_path).read(file_path)

    def parse_records(self, raw_rows: List[Dict[str, Any]]) -> List[AppRecord]:
        """Map raw rows onto AppRecords, skipping rows without a display name."""
        records = []
        for index, row in enumerate(self.normalizer.normalize(raw_rows)):
            record = record_from_dict(row)
            if not record.display_name:
                logger.debug("Skipping row %d without a display name", index)
                continue
            records.append(record)
        return records

    def parse(self, file_path: str, captured_at: Optional[str] = None) -> Snapshot:
        """Parse an inventory file into a Snapshot.

        Args:
            file_path: Path to the inventory export
            captured_at: Capture time to record (defaults to now)

        Returns:
            Snapshot of the records in the file

        Raises:
            ValueError: If no adapter is found for the file
        """
        raw_rows = self.read_rows(file_path)
        records = self.parse_records(raw_rows)
        logger.info("Parsed %d application records from %s", len(records), file_path)
        return Snapshot.from_records(records, captured_at=captured_at, source=str(file_path))

    def get_mapping_report(self, file_path: str) -> Dict[str, Any]:
        """Get a report of how columns from a file map to record fields."""
        return self.normalizer.get_mapping_report(self.read_rows(file_path))
