"""Date parsing and normalization utilities."""

import math
import re
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

# Spreadsheet serial day 0. Using Dec 30 rather than Dec 31 absorbs the
# phantom Feb 29, 1900 that spreadsheet software counts.
EXCEL_EPOCH = date(1899, 12, 30)

# Youngest and oldest age we accept from a birthdate
MIN_AGE = 0
MAX_AGE = 120

# Two-digit years from this value up belong to the 1900s ("3/4/55" -> 1955),
# lower ones to the 2000s ("3/4/05" -> 2005)
TWO_DIGIT_YEAR_PIVOT = 50
TWO_DIGIT_YEAR_FORMAT = "%m/%d/%y"

# Primary date patterns, tried in order; first successful parse wins.
#
# IMPORTANT - Date Format Ambiguity:
# "03/04/1980" is read as US month/day. The day/month reading is only used
# when the US reading is impossible (e.g. "25/04/1980").
#
# strptime's %m and %d accept one or two digits, so a single pattern covers
# both the padded and unpadded variants.
DATE_PATTERNS = [
    # ISO format
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})$", "%Y-%m-%d"),
    # US month/day/year
    (r"^(\d{1,2})/(\d{1,2})/(\d{4})$", "%m/%d/%Y"),
    # International day/month/year
    (r"^(\d{1,2})/(\d{1,2})/(\d{4})$", "%d/%m/%Y"),
    # ISO with slashes
    (r"^(\d{4})/(\d{1,2})/(\d{1,2})$", "%Y/%m/%d"),
    # Dash-separated US, then international
    (r"^(\d{1,2})-(\d{1,2})-(\d{4})$", "%m-%d-%Y"),
    (r"^(\d{1,2})-(\d{1,2})-(\d{4})$", "%d-%m-%Y"),
]

# Fallback formats for strings exported with a time or a text month
FALLBACK_PATTERNS = [
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})[ T](\d{1,2}):(\d{2}):(\d{2})$", "%Y-%m-%d %H:%M:%S"),
    (r"^(\d{1,2})/(\d{1,2})/(\d{4}) (\d{1,2}):(\d{2})(:\d{2})?$", "%m/%d/%Y %H:%M"),
    (r"^(\d{1,2})/(\d{1,2})/(\d{2})$", TWO_DIGIT_YEAR_FORMAT),
    (r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$", "%d.%m.%Y"),
    (r"^(\d{1,2})-(\w{3})-(\d{4})$", "%d-%b-%Y"),
    (r"^(\w{3})\s+(\d{1,2}),?\s+(\d{4})$", "%b %d, %Y"),
    (r"^(\w+)\s+(\d{1,2}),?\s+(\d{4})$", "%B %d, %Y"),
    (r"^(\d{8})$", "%Y%m%d"),
]

COMPILED_PATTERNS = [(re.compile(pattern), fmt) for pattern, fmt in DATE_PATTERNS]
COMPILED_FALLBACK_PATTERNS = [
    (re.compile(pattern, re.IGNORECASE), fmt) for pattern, fmt in FALLBACK_PATTERNS
]


def _normalize_fallback(date_str: str, fmt: str) -> str:
    """Massage a string so it lines up with a fallback strptime format."""
    if fmt == "%Y-%m-%d %H:%M:%S":
        return date_str.replace("T", " ")
    if fmt == "%m/%d/%Y %H:%M":
        # Drop seconds so one format covers both "1:05" and "1:05:00"
        parts = date_str.split(" ")
        return f"{parts[0]} {':'.join(parts[1].split(':')[:2])}"
    if fmt == "%b %d, %Y" or fmt == "%B %d, %Y":
        month, rest = date_str.split(None, 1)
        day, year = rest.replace(",", " ").split()
        return f"{month} {day}, {year}"
    return date_str


def _expand_two_digit_year(match: re.Match[str]) -> date:
    """Build a date from month/day/yy groups using TWO_DIGIT_YEAR_PIVOT.

    strptime's %y puts 00-68 in the 2000s, which turns most short-form
    birthdates into future dates.
    """
    month, day, short_year = (int(g) for g in match.groups())
    century = 1900 if short_year >= TWO_DIGIT_YEAR_PIVOT else 2000
    return date(century + short_year, month, day)


def parse_date(raw_date: str) -> date:
    """Parse a raw date string into a date object.

    Handles:
    - ISO: 1980-01-15, 1980/01/15
    - US: 01/15/1980, 1/15/1980, 01-15-1980
    - International: 15/01/1980, 15-01-1980
    - Fallbacks: 1980-01-15 00:00:00, 15-Jan-1980, Jan 15, 1980, 19800115
    - Two-digit years: 3/4/55 -> 1955-03-04, 3/4/05 -> 2005-03-04

    Args:
        raw_date: The raw date string to parse.

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date cannot be parsed.
    """
    if not raw_date:
        raise ValueError("Empty date string")

    date_str = raw_date.strip()
    if not date_str:
        raise ValueError("Empty date string after stripping whitespace")

    for pattern, fmt in COMPILED_PATTERNS:
        if pattern.match(date_str):
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                # Pattern matched but the fields are out of range, try next
                continue

    for pattern, fmt in COMPILED_FALLBACK_PATTERNS:
        match = pattern.match(date_str)
        if match:
            try:
                if fmt == TWO_DIGIT_YEAR_FORMAT:
                    return _expand_two_digit_year(match)
                return datetime.strptime(_normalize_fallback(date_str, fmt), fmt).date()
            except ValueError:
                continue

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    raise ValueError(f"Cannot parse date: '{raw_date}'")


def excel_serial_to_date(serial: float) -> Optional[date]:
    """Convert a spreadsheet serial day count to a calendar date.

    Fractional parts (time of day) are dropped.

    Args:
        serial: Days since the spreadsheet epoch.

    Returns:
        The calendar date, or None if the serial is out of range.
    """
    if not math.isfinite(serial):
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=math.floor(serial))
    except OverflowError:
        return None


def to_date(value: object) -> Optional[date]:
    """Convert a raw spreadsheet cell into a date.

    Args:
        value: Cell value (datetime, date, serial number, or string).

    Returns:
        Parsed date, or None if the cell is empty or not a valid date.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, (int, float, Decimal)):
        return excel_serial_to_date(float(value))

    if isinstance(value, str):
        try:
            return parse_date(value)
        except ValueError:
            return None

    return None


def derive_age(birthdate: Optional[date], reference: date) -> Optional[int]:
    """Compute whole years between a birthdate and a reference date.

    Results outside [MIN_AGE, MAX_AGE] usually mean swapped day/month or a
    wrong century, so they are rejected.

    Args:
        birthdate: Date of birth, or None.
        reference: Date the age is measured at.

    Returns:
        Age in whole years, or None when missing or implausible.
    """
    if birthdate is None:
        return None

    age = reference.year - birthdate.year
    if (reference.month, reference.day) < (birthdate.month, birthdate.day):
        age -= 1

    if age < MIN_AGE or age > MAX_AGE:
        return None
    return age

