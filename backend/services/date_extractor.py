"""Locate the collection/report date of a lab report.

Patterns run from the most specific vendor layout to loose unanchored dates;
the first one that yields a valid calendar date wins. When nothing matches the
extractor returns a fixed fallback so callers always get a timestamp.
"""
import logging
import re
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

FALLBACK_TEST_DATE = "2023-06-15T00:00:00.000Z"

MONTHS = {
    "Jan": 1, "Feb": 2, "Mar": 3, "Apr": 4, "May": 5, "Jun": 6,
    "Jul": 7, "Aug": 8, "Sep": 9, "Oct": 10, "Nov": 11, "Dec": 12,
}

COLLECTION_DATE_PATTERN = re.compile(r"Collection Date, Time\s*\n\s*(\d{2}-[A-Za-z]{3}-\d{4})", re.IGNORECASE)

_LABEL = r"(?:test|collection|sample|report|drawn|collected|date)[^a-zA-Z0-9](?:date|time|on|at)?[^a-zA-Z0-9]*?"
_NUMERIC = r"\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}"
_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*"

DATE_PATTERNS = [
    re.compile(_LABEL + r"(" + _NUMERIC + r"(?:\s*(?:at)?\s*\d{1,2}:\d{2}(?:\s*[AP]M)?)?)", re.IGNORECASE),
    re.compile(
        _LABEL + r"(?:(\d{1,2}\s+" + _MONTH + r"\s+\d{2,4})|(" + _MONTH + r"\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{2,4}))",
        re.IGNORECASE,
    ),
    re.compile(_LABEL + r"(\d{4}-\d{2}-\d{2})", re.IGNORECASE),
    re.compile(r"(?:^|\s)(" + _NUMERIC + r")(?:\s|$)"),
    re.compile(r"(?:^|\s)(\d{4}-\d{2}-\d{2})(?:\s|$)"),
    re.compile(r"(?:report\s+generated|printed)(?:\s+on)?:\s*(" + _NUMERIC + r")", re.IGNORECASE),
    re.compile(r"(?:ordered|completed)(?:\s+on)?:\s*(" + _NUMERIC + r")", re.IGNORECASE),
]

ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
NUMERIC_DATE = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})")
DAY_FIRST_DATE = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\s+(\d{2,4})$")
MONTH_FIRST_DATE = re.compile(r"^([A-Za-z]+)\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{2,4})$", re.IGNORECASE)


def to_iso(value: datetime) -> str:
    """Render a datetime as UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.astimezone()
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def _expand_year(year: int) -> int:
    if year < 100:
        year += 2000 if year < 50 else 1900
    return year


def _local_midnight(year: int, month: int, day: int) -> datetime | None:
    """Local midnight as a UTC datetime, or None when it falls outside the representable years."""
    try:
        return datetime(year, month, day).astimezone().astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def _parse_month_name(date_str: str) -> datetime | None:
    cleaned = re.sub(r"\s+", " ", date_str.replace(",", " ")).strip()
    match = DAY_FIRST_DATE.match(cleaned)
    if match:
        day, month_word, year = match.groups()
    else:
        match = MONTH_FIRST_DATE.match(cleaned)
        if not match:
            return None
        month_word, day, year = match.groups()
    month = MONTHS.get(month_word[:3].title())
    if month is None:
        return None
    return _local_midnight(_expand_year(int(year)), month, int(day))


def parse_date_string(date_str: str) -> datetime | None:
    """Parse one captured date token.

    ISO dates are read as UTC midnight; numeric ``A/B/Y`` dates are
    month/day/year at local midnight; anything else is tried as a month-name
    date. Times trailing a numeric date are ignored.
    """
    date_str = date_str.strip()
    iso = ISO_DATE.match(date_str)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
        try:
            return datetime(year, month, day, tzinfo=timezone.utc)
        except ValueError:
            return None

    numeric = NUMERIC_DATE.match(date_str)
    if numeric:
        month, day, year = (int(part) for part in numeric.groups())
        return _local_midnight(_expand_year(year), month, day)

    return _parse_month_name(date_str)


def _collection_date(text: str) -> datetime | None:
    match = COLLECTION_DATE_PATTERN.search(text)
    if not match:
        return None
    day, month_abbr, year = match.group(1).strip().split("-")
    month = MONTHS.get(month_abbr.title())
    if month is None:
        return None
    logger.debug("Found collection date %s", match.group(1))
    return _local_midnight(int(year), month, int(day))


def extract_test_date_with_source(text: str) -> tuple[str, bool]:
    """Return ``(iso_timestamp, inferred)`` where ``inferred`` marks the fallback date."""
    collected = _collection_date(text)
    if collected is not None:
        return to_iso(collected), False

    for pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        date_group = next((group for group in match.groups() if group), None)
        if not date_group:
            continue
        parsed = parse_date_string(date_group)
        if parsed is not None and parsed.year > 1900:
            logger.debug("Parsed test date %s from %r", parsed.isoformat(), match.group(0))
            return to_iso(parsed), False
        logger.debug("Discarded unparseable date %r", date_group)

    logger.debug("No valid date found, using fallback %s", FALLBACK_TEST_DATE)
    return FALLBACK_TEST_DATE, True


def extract_test_date(text: str) -> str:
    return extract_test_date_with_source(text)[0]
