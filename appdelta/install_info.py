"""
Install-date and user extraction for installed-application records.

Install dates arrive in whatever encoding the source wrote. The known
encodings are tried in a fixed order; the first one that parses wins.

NOTE: month/day is tried before day/month. A day/month date whose day and
month are both <= 12 (e.g. "03/04/2024" meaning 3 April) is therefore read
as month/day (4 March). This precedence is not corrected; callers in
non-US locales should be aware of it.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)

# (shape, strptime format) in precedence order
DATE_FORMATS: List[Tuple[Pattern, str]] = [
    (re.compile(r'^\d{2}/\d{2}/\d{4}$'), "%m/%d/%Y"),
    (re.compile(r'^\d{2}/\d{2}/\d{4}$'), "%d/%m/%Y"),
    (re.compile(r'^\d{14}$'), "%Y%m%d%H%M%S"),
    (re.compile(r'^\d{8}$'), "%Y%m%d"),
]

ISO_DATE_FORMAT = "%Y-%m-%d"

PATH_SEPARATORS = re.compile(r'[\\/]+')


def _parse_known_format(raw: str) -> Optional[datetime]:
    for shape, fmt in DATE_FORMATS:
        if not shape.match(raw):
            continue
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


def _modified_date(path: str) -> Optional[datetime]:
    try:
        location = Path(path)
        if not location.exists():
            return None
        return datetime.fromtimestamp(location.stat().st_mtime)
    except (OSError, OverflowError, ValueError):
        return None


def normalize_install_date(raw: Any, install_location: Optional[str] = None) -> str:
    """
    Normalize an install date to ISO yyyy-MM-dd.

    Tries month/day/year, day/month/year, yyyyMMddHHmmss and yyyyMMdd in that
    order. When none match and ``install_location`` names an existing path,
    that path's last-modified date is used instead.

    Args:
        raw: Install date as reported by the source (may be empty or None)
        install_location: Optional install directory used as a fallback

    Returns:
        ISO date string, or "" when no date can be determined
    """
    text = str(raw).strip() if raw is not None else ""

    if text:
        parsed = _parse_known_format(text)
        if parsed is not None:
            return parsed.strftime(ISO_DATE_FORMAT)
        logger.debug("Unrecognized install date %r", text)

    if install_location:
        modified = _modified_date(install_location)
        if modified is not None:
            logger.debug("Using modified time of %s as install date", install_location)
            return modified.strftime(ISO_DATE_FORMAT)

    return ""


def extract_username(install_location: Optional[str]) -> str:
    """Return the path segment following a "Users" segment, or "" if there is none.

    Works for both Windows ("C:\\Users\\alice\\AppData") and POSIX
    ("/Users/alice/Applications") separators.
    """
    if not install_location:
        return ""

    segments = [s for s in PATH_SEPARATORS.split(install_location) if s]
    for index, segment in enumerate(segments[:-1]):
        if segment == "Users":
            return segments[index + 1]
    return ""
