import csv
import io
import logging
import chardet
from pathlib import Path
from typing import List, Dict, Any

logger = logging.getLogger(__name__)

# Export-Csv writes a "#TYPE System.Management.Automation.PSCustomObject" line
# above the header unless -NoTypeInformation is given
TYPE_INFO_PREFIX = "#TYPE"

FALLBACK_ENCODINGS = ['latin-1', 'cp1252']


class CsvAdapter:
    """CSV adapter for installed-application inventory exports.

    Handles:
    - Multiple encodings (UTF-8, UTF-8-BOM, UTF-16 from PowerShell, Windows-1252, ...)
    - Different delimiters (comma, semicolon, tab)
    - A leading PowerShell type-information line
    - Empty files
    """

    def can_handle(self, file_path: str) -> bool:
        """Check if this adapter can handle the given file."""
        return Path(file_path).suffix.lower() in [".csv", ".tsv"]

    def _detect_encoding(self, raw_data: bytes) -> str:
        """Detect encoding using byte-order marks first, then chardet."""
        if raw_data.startswith(b'\xef\xbb\xbf'):
            return 'utf-8-sig'
        if raw_data.startswith((b'\xff\xfe', b'\xfe\xff')):
            return 'utf-16'

        result = chardet.detect(raw_data[:10000])
        encoding = result.get('encoding') or 'utf-8'

        encoding_lower = encoding.lower()
        if 'utf-8' in encoding_lower or 'utf8' in encoding_lower or encoding_lower == 'ascii':
            return 'utf-8'
        return encoding

    def _detect_delimiter(self, header_line: str, suffix: str) -> str:
        """Pick the delimiter that occurs most often in the header line."""
        if suffix == '.tsv':
            return '\t'

        counts = {
            ',': header_line.count(','),
            ';': header_line.count(';'),
            '\t': header_line.count('\t'),
        }
        best = max(counts, key=lambda d: counts[d])
        return best if counts[best] > 0 else ','

    def _decode(self, raw_data: bytes, file_path: str) -> str:
        encoding = self._detect_encoding(raw_data)
        try:
            return raw_data.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            logger.debug("Decoding %s as %s failed: %s", file_path, encoding, e)

        for fallback_encoding in FALLBACK_ENCODINGS:
            try:
                return raw_data.decode(fallback_encoding)
            except UnicodeDecodeError:
                continue
        raise ValueError(f"Could not decode file {file_path}")

    def read(self, file_path: str) -> List[Dict[str, Any]]:
        """Read a CSV file and return raw rows as list of dictionaries.

        Args:
            file_path: Path to the CSV/TSV file

        Returns:
            List of dictionaries, where each dictionary represents a row
            with column names as keys

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file cannot be decoded or parsed
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        raw_data = path.read_bytes()
        if not raw_data:
            return []

        text = self._decode(raw_data, file_path)
        if text.startswith(TYPE_INFO_PREFIX):
            text = text.split("\n", 1)[1] if "\n" in text else ""
        if not text.strip():
            return []

        header_line = text.split("\n", 1)[0]
        delimiter = self._detect_delimiter(header_line, path.suffix.lower())

        try:
            reader = csv.DictReader(io.StringIO(text, newline=""), delimiter=delimiter)
            rows = [
                {
                    key: str(value) if value is not None else ''
                    for key, value in row.items()
                    if key is not None
                }
                for row in reader
            ]
        except csv.Error as e:
            raise ValueError(f"Error parsing CSV file {file_path}: {e}")

        logger.debug("Read %d rows from %s", len(rows), file_path)
        return rows
