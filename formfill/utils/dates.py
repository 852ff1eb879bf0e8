"""
Date parsing helpers for validation and column type sniffing.

Handles:
- date / datetime objects (as produced by openpyxl)
- ISO dates and datetimes, YYYY/MM/DD, YYYY.MM.DD
- US style MM/DD/YYYY
- compact YYYYMMDD
- month-name forms (``March 5, 2024``, ``5 Mar 2024``) and RFC 2822
- spreadsheet serial day numbers (1899-12-30 epoch)
"""
import math
import re
from datetime import date, datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any, Optional

# Spreadsheet day 0; serial 60 is the fictitious 1900-02-29.
SPREADSHEET_EPOCH = datetime(1899, 12, 30)

_ISO_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_YMD_RE = re.compile(r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})(?:[T ].*)?$")
_US_DATE_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_COMPACT_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_TEXT_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%d-%b-%Y",
)


def _build(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse common calendar date forms. Serial numbers are not considered here."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or isinstance(value, (bool, int, float)):
        return None

    text = str(value).strip()
    if not text:
        return None

    if _ISO_PREFIX_RE.match(text):
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass

    match = _YMD_RE.match(text)
    if match:
        return _build(*match.groups())

    match = _US_DATE_RE.match(text)
    if match:
        month, day, year = match.groups()
        return _build(year, month, day)

    match = _COMPACT_DATE_RE.match(text)
    if match:
        return _build(*match.groups())

    for fmt in _TEXT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        return parsedate_to_datetime(text).date()
    except (TypeError, ValueError, IndexError):
        return None


def as_number(value: Any) -> Optional[float]:
    """Finite float for numeric values and numeric strings, else None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(str(value).strip()) if not isinstance(value, (int, float)) else float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def from_serial(serial: float) -> Optional[date]:
    """Convert a spreadsheet serial day number to a calendar date."""
    try:
        return (SPREADSHEET_EPOCH + timedelta(days=serial)).date()
    except OverflowError:
        return None
