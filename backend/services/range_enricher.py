"""Reference-range inference for scanned biomarkers."""
import logging
import re

from backend.schemas.analysis import BiomarkerObservation, ReferenceRange
from backend.services.biomarker_catalog import BiomarkerDefinition, get_definition
from backend.services.candidate_scanner import CandidateMatch, clean_name, is_biomarker_name

logger = logging.getLogger(__name__)

CONTEXT_BEFORE = 100
CONTEXT_AFTER = 200

_BOUND = r"([<>]?\s*\d+\.?\d*)"

CONTEXT_RANGE_PATTERNS = [
    re.compile(r"Reference Range:?\s*" + _BOUND + r"\s*[-–]\s*" + _BOUND, re.IGNORECASE),
    re.compile(r"Normal Range:?\s*" + _BOUND + r"\s*[-–]\s*" + _BOUND, re.IGNORECASE),
    re.compile(r"\(" + _BOUND + r"\s*[-–]\s*" + _BOUND + r"\)"),
]

BACKFILL_PATTERN = re.compile(
    r"([A-Za-z][A-Za-z0-9 \t\-()/]*?)[\s:.]+(?:reference|normal|range|ref)[\s:.]*" + _BOUND + r"\s*[-–]\s*" + _BOUND,
    re.IGNORECASE,
)


def parse_range(low_text: str, high_text: str) -> ReferenceRange | None:
    """Build a range from two bound strings, ignoring ``<``/``>`` markers."""
    try:
        low = float(re.sub(r"[<>]", "", low_text).strip())
        high = float(re.sub(r"[<>]", "", high_text).strip())
    except ValueError:
        return None
    if not low < high:
        return None
    return ReferenceRange(min=low, max=high)


def _anchored_pattern(candidate: CandidateMatch) -> re.Pattern:
    return re.compile(
        re.escape(candidate.name)
        + r"[\s:]+"
        + re.escape(candidate.raw_value)
        + r"\s*"
        + re.escape(candidate.unit or "")
        + r"\s*[(\[]?([\d.]+)\s*[-–]\s*([\d.]+)[)\]]?"
    )


def _window(text: str, candidate: CandidateMatch) -> str:
    start = max(0, candidate.position - CONTEXT_BEFORE)
    end = min(len(text), candidate.position + CONTEXT_AFTER)
    return text[start:end]


def _line_window(text: str, candidate: CandidateMatch) -> str:
    """The context window clipped to the lines the candidate occupies."""
    line_start = text.rfind("\n", 0, candidate.position) + 1
    line_end = text.find("\n", candidate.value_position)
    if line_end == -1:
        line_end = len(text)
    start = max(line_start, candidate.position - CONTEXT_BEFORE)
    end = min(line_end, candidate.position + CONTEXT_AFTER)
    return text[start:end]


def find_anchored_range(text: str, candidate: CandidateMatch) -> ReferenceRange | None:
    """Range printed right after this candidate's own value, e.g. ``Glucose 92 mg/dL (70-100)``."""
    match = _anchored_pattern(candidate).search(_window(text, candidate))
    if not match:
        return None
    return parse_range(match.group(1), match.group(2))


def find_contextual_range(text: str, candidate: CandidateMatch) -> ReferenceRange | None:
    """Search near the candidate for a printed range.

    The name/value-anchored form may wrap onto the next line. The unanchored
    label and parenthesis forms only look at the candidate's own line, so a
    neighbouring row's range is never borrowed.
    """
    anchored = find_anchored_range(text, candidate)
    if anchored is not None:
        return anchored

    surrounding = _line_window(text, candidate)
    for pattern in CONTEXT_RANGE_PATTERNS:
        match = pattern.search(surrounding)
        if not match:
            continue
        found = parse_range(match.group(1), match.group(2))
        if found is not None:
            return found
    return None


def dictionary_range(name: str) -> ReferenceRange | None:
    definition = get_definition(name)
    if definition is None:
        return None
    return ReferenceRange(min=definition.range_min, max=definition.range_max)


def resolve_range(text: str, candidate: CandidateMatch, definition: BiomarkerDefinition | None = None) -> ReferenceRange | None:
    """Pick the reference range for an accepted candidate.

    Inline range first, then a range printed near the value, then the
    dictionary default when the name resolved to a known biomarker.
    """
    if candidate.has_explicit_range:
        return ReferenceRange(min=candidate.range_min, max=candidate.range_max)
    contextual = find_contextual_range(text, candidate)
    if contextual is not None:
        return contextual
    if definition is None:
        return None
    return ReferenceRange(min=definition.range_min, max=definition.range_max)


def backfill_ranges(text: str, biomarkers: dict[str, BiomarkerObservation]) -> int:
    """Fill missing ranges from "Name: reference X - Y" lines anywhere in the text.

    Returns the number of biomarkers updated.
    """
    filled = 0
    for match in BACKFILL_PATTERN.finditer(text):
        name = clean_name(match.group(1))
        observation = biomarkers.get(name)
        if observation is None or observation.reference_range is not None:
            continue
        if not is_biomarker_name(name):
            continue
        found = parse_range(match.group(2), match.group(3))
        if found is None:
            continue
        observation.reference_range = found
        filled += 1
    if filled:
        logger.debug("Backfilled %d reference ranges", filled)
    return filled
