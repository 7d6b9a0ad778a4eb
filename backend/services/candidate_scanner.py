"""Regex passes that turn raw report text into candidate biomarker mentions.

Each matcher targets one surface form. All matchers run over the same text and
their output is merged into a single list ordered by text offset.
"""
import logging
import re
from dataclasses import dataclass, replace

from backend.config import settings
from backend.services.biomarker_catalog import is_known_biomarker

logger = logging.getLogger(__name__)

_NAME = r"([A-Za-z][A-Za-z0-9 \t\-()/]*?)"
_NAME_LINE = r"[A-Za-z][A-Za-z \t\-()]*"
# Wrapped names start a line, and every line before the value line is name-only.
_MULTILINE_NAME = (
    r"^[ \t]*(" + _NAME_LINE + r"(?:\r?\n[ \t]*" + _NAME_LINE + r")*?\r?\n[ \t]*[A-Za-z][A-Za-z0-9 \t\-()/]*?)"
)
_VALUE = r"(\d+\.?\d*)"
_UNIT = r"([\w/%^]+)"


@dataclass(frozen=True)
class Matcher:
    name: str
    pattern: re.Pattern
    has_range: bool = False


MATCHERS = (
    Matcher("colon", re.compile(_NAME + r"[\s:.]+" + _VALUE + r"[ \t]*" + _UNIT + r"?")),
    Matcher("tabular", re.compile(_NAME + r"[ \t]+" + _VALUE + r"[ \t]+" + _UNIT)),
    Matcher(
        "inline_range",
        re.compile(
            _NAME + r"[\s:.]+" + _VALUE + r"[ \t]*" + _UNIT + r"?"
            r"[\s(]*(?:Reference Range|Normal Range|Normal)[\s:\-]*(\d+\.?\d*)[\s\-–]*(\d+\.?\d*)",
            re.IGNORECASE,
        ),
        has_range=True,
    ),
    Matcher("flagged", re.compile(_NAME + r"[\s:.]+" + _VALUE + r"[ \t]*" + _UNIT + r"?[ \t]*([HL])\b", re.IGNORECASE)),
    Matcher("multiline", re.compile(_MULTILINE_NAME + r"[\s:.]+" + _VALUE + r"[ \t]*" + _UNIT + r"?", re.MULTILINE)),
)

EXCLUSION_PATTERNS = [
    re.compile(r"\b(?:address|street|ave|avenue|blvd|boulevard|suite)\b", re.IGNORECASE),
    re.compile(r"\b(?:city|state|zip|postal)\b", re.IGNORECASE),
    re.compile(r"\b(?:phone|fax|email|contact)\b", re.IGNORECASE),
    re.compile(r"inc\.|llc|corporation|copyright|rights reserved", re.IGNORECASE),
    re.compile(r"randox health", re.IGNORECASE),
    re.compile(r"com$|\.com|www\.", re.IGNORECASE),
    re.compile(r"\b(?:reference|normal)\s+range\b", re.IGNORECASE),
]

SECTION_HEADERS = [
    "patient information", "doctor information", "laboratory information",
    "billing information", "insurance", "diagnosis", "specimen", "comments",
    "methodology", "interpretation", "disclaimer",
]

COMMON_WORDS = {
    "test", "result", "value", "normal", "reference", "range",
    "name", "gender", "dob", "page", "report", "date", "time",
}

DATE_TOKEN = re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}")
DATE_OR_TIME_NAME = re.compile(r"date|time", re.IGNORECASE)


@dataclass(frozen=True)
class CandidateMatch:
    name: str
    value: float
    raw_value: str
    position: int
    value_position: int
    unit: str | None = None
    range_min: float | None = None
    range_max: float | None = None
    matcher: str = ""

    @property
    def has_explicit_range(self) -> bool:
        return self.range_min is not None and self.range_max is not None


def clean_name(name: str) -> str:
    return re.sub(r"\s+", " ", name).strip()


def is_biomarker_name(name: str) -> bool:
    cleaned = clean_name(name)
    if any(pattern.search(cleaned) for pattern in EXCLUSION_PATTERNS):
        return False
    if len(cleaned) < 3 or len(cleaned) > 60:
        return False
    lowered = cleaned.lower()
    if any(header in lowered for header in SECTION_HEADERS):
        return False
    if is_known_biomarker(cleaned):
        return True
    if len(cleaned.split(" ")) == 1 and lowered in COMMON_WORDS:
        return False
    return True


def is_valid_value(value: float) -> bool:
    return settings.min_biomarker_value <= value <= settings.max_biomarker_value


def _explicit_range(match: re.Match) -> tuple[float | None, float | None]:
    try:
        low, high = float(match.group(4)), float(match.group(5))
    except (TypeError, ValueError):
        return None, None
    if low < high:
        return low, high
    return None, None


def run_matcher(text: str, matcher: Matcher) -> list[CandidateMatch]:
    found = []
    for match in matcher.pattern.finditer(text):
        name = match.group(1).strip()
        raw_value = match.group(2)
        if DATE_TOKEN.match(text, match.start(2)) or DATE_OR_TIME_NAME.search(name):
            continue
        try:
            value = float(raw_value)
        except ValueError:
            continue
        if not is_biomarker_name(name) or not is_valid_value(value):
            continue

        unit = match.group(3).strip() if match.group(3) else None
        range_min, range_max = _explicit_range(match) if matcher.has_range else (None, None)
        found.append(
            CandidateMatch(
                name=name,
                value=value,
                raw_value=raw_value,
                position=match.start(1),
                value_position=match.start(2),
                unit=unit,
                range_min=range_min,
                range_max=range_max,
                matcher=matcher.name,
            )
        )
    return found


def scan_candidates(text: str) -> list[CandidateMatch]:
    """Return candidate mentions ordered by text offset.

    A numeric token read by several matchers yields one candidate: the one whose
    name starts earliest in the text, so a wrapped name beats its last line.
    Ties go to the earlier matcher in ``MATCHERS``. An inline range read by any
    matcher for that token is kept on the surviving candidate.
    """
    by_value_position: dict[int, CandidateMatch] = {}
    for matcher in MATCHERS:
        for candidate in run_matcher(text, matcher):
            existing = by_value_position.get(candidate.value_position)
            if existing is None:
                by_value_position[candidate.value_position] = candidate
                continue
            kept, other = (candidate, existing) if candidate.position < existing.position else (existing, candidate)
            if not kept.has_explicit_range and other.has_explicit_range:
                kept = replace(kept, range_min=other.range_min, range_max=other.range_max)
            by_value_position[candidate.value_position] = kept

    candidates = sorted(by_value_position.values(), key=lambda c: (c.position, c.value_position))
    logger.debug("Scanned %d candidate biomarker mentions", len(candidates))
    return candidates
