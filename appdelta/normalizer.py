from datetime import date, datetime
from typing import List, Dict, Any, Optional, Pattern
import logging
import re
from .schema import STANDARD_HEADERS, COLUMN_MAPPINGS

logger = logging.getLogger(__name__)

# "Update 381" -> "Update " (vendor update counters, e.g. Java runtimes)
UPDATE_COUNTER_PATTERN = re.compile(r'(Update )\d{1,3}', re.IGNORECASE)

# "Foo 1.2.3 (x64)" -> "Foo (x64)"
ARCH_SUFFIX_VERSION_PATTERN = re.compile(r'\d+(?:\.\d+)+\s*(?=\(x\d\d\)$)', re.IGNORECASE)

# Trailing " v", "()", "version ", "- " and whitespace, in any combination
TRAILING_NOISE_PATTERN = re.compile(r'(?:\s+v|\(\)|\bversion |- |\s)+$', re.IGNORECASE)

WHITESPACE_PATTERN = re.compile(r'\s+')


def _version_candidates(
    display_version: str,
    version_major: Optional[int],
    version_minor: Optional[int]
) -> List[str]:
    """Substrings that identify the version inside a display name, longest first."""
    candidates = {display_version, re.sub(r'\.0$', '', display_version)}
    if version_major is not None and version_minor is not None:
        candidates.add(f"{version_major}.{version_minor}")
    return sorted((c for c in candidates if c), key=lambda c: (-len(c), c))


def _strip_once(name: str, candidates: Optional[Pattern]) -> str:
    if candidates is not None:
        name = candidates.sub('', name)
    name = UPDATE_COUNTER_PATTERN.sub(r'\1', name)
    name = ARCH_SUFFIX_VERSION_PATTERN.sub('', name)
    name = TRAILING_NOISE_PATTERN.sub('', name)
    return WHITESPACE_PATTERN.sub(' ', name).strip()


def normalize_display_name(
    display_name: Optional[str],
    display_version: Optional[str],
    version_major: Optional[int] = None,
    version_minor: Optional[int] = None
) -> Optional[str]:
    """Strip version noise from a display name so one application keeps one key across versions.

    Only runs when both a display name and a display version are present;
    otherwise the display name is returned unchanged.

    Steps:
    - Remove every case-insensitive occurrence of the version, the version
      without a single trailing ".0", and "major.minor". All candidates are
      removed in one pass over the name, longest match first.
    - Collapse update counters ("Update 381" -> "Update ").
    - Drop a dotted version sitting right before an "(x64)"-style suffix.
    - Strip trailing " v", "()", "version ", "- " and whitespace, and
      collapse whitespace runs to one space.

    The steps repeat until the name stops changing, so the result is a fixed
    point: normalizing it again returns it unchanged. If nothing is left the
    original name is kept.

    Args:
        display_name: Application display name
        display_version: Display version string
        version_major: Optional major version number
        version_minor: Optional minor version number

    Returns:
        Normalized name used for grouping
    """
    if not display_name or not display_version:
        return display_name

    candidates = _version_candidates(display_version, version_major, version_minor)
    candidate_pattern = None
    if candidates:
        candidate_pattern = re.compile('|'.join(re.escape(c) for c in candidates), re.IGNORECASE)

    name = display_name
    previous = None
    while name != previous:
        previous = name
        name = _strip_once(name, candidate_pattern)

    return name or display_name


class AppNormalizer:
    """Normalizer for installed-application inventory rows.

    Maps the column name variations found in inventory exports onto the
    standard record fields (DisplayName, Publisher, DisplayVersion, ...).
    """

    def __init__(self):
        """Initialize the normalizer with column mappings."""
        # Forward lookup: normalized variation -> standard field name
        self._variation_to_standard = {}
        for standard, variations in COLUMN_MAPPINGS.items():
            for variation in variations:
                self._variation_to_standard[self._normalize_label(variation)] = standard

        # Longest variations first so partial matching prefers specific labels
        self._partial_order = sorted(self._variation_to_standard, key=len, reverse=True)

    @staticmethod
    def _normalize_label(label: str) -> str:
        return re.sub(r'[\s_\-]+', ' ', label.lower().strip())

    def get_standard_template(self) -> List[str]:
        """Get the standard record field names in order."""
        return STANDARD_HEADERS.copy()

    def normalize_column_name(self, column_name: str) -> Optional[str]:
        """Normalize a column name to a standard record field.

        Args:
            column_name: The original column name from the export

        Returns:
            Standard field name if a match is found, None otherwise
        """
        if not column_name:
            return None

        normalized_input = self._normalize_label(column_name)

        # Direct lookup
        if normalized_input in self._variation_to_standard:
            return self._variation_to_standard[normalized_input]

        # Partial matching (input contains a known variation)
        for variation in self._partial_order:
            if len(variation) > 3 and variation in normalized_input:
                return self._variation_to_standard[variation]

        return None

    def normalize_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Normalize a single row to the standard record fields.

        The first non-empty value wins when several columns map to the same
        field. Dates delivered as date objects (e.g. Excel cells) are rendered
        as yyyyMMdd, the native encoding of install dates.

        Args:
            row: Dictionary representing a single inventory row

        Returns:
            Dictionary keyed by every standard field, missing fields set to ""
        """
        normalized_row: Dict[str, Any] = {header: "" for header in STANDARD_HEADERS}

        for original_key, value in row.items():
            if original_key is None:
                continue

            standard_key = self.normalize_column_name(str(original_key))
            if not standard_key:
                logger.debug("Ignoring unmapped column %r", original_key)
                continue

            if normalized_row[standard_key] not in ("", None):
                continue

            if isinstance(value, (datetime, date)):
                value = value.strftime("%Y%m%d")
            elif isinstance(value, str):
                value = value.strip()
            elif value is None:
                value = ""

            normalized_row[standard_key] = value

        return normalized_row

    def normalize(self, raw_rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Normalize a list of raw rows to the standard record fields."""
        return [self.normalize_row(row) for row in raw_rows]

    def get_mapping_report(self, raw_rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Generate a report of column mappings for debugging.

        Args:
            raw_rows: List of dictionaries representing inventory rows

        Returns:
            Dictionary with mapping information
        """
        if not raw_rows:
            return {"mapped": {}, "unmapped": []}

        all_columns = set()
        for row in raw_rows:
            all_columns.update(row.keys())

        mapped = {}
        unmapped = []

        for column in sorted(c for c in all_columns if c is not None):
            standard = self.normalize_column_name(str(column))
            if standard:
                mapped.setdefault(standard, []).append(column)
            else:
                unmapped.append(column)

        return {
            "mapped": mapped,
            "unmapped": unmapped,
            "standard_headers": STANDARD_HEADERS
        }
