"""Cross-report trend helpers: canonical names, display order and series."""
import re
from collections import defaultdict
from datetime import datetime

from backend.schemas.analysis import (
    BiomarkerTrend,
    HistoryEntry,
    ReferenceRange,
    TrendOverviewItem,
    TrendPoint,
)
from backend.services.biomarker_catalog import BIOMARKER_DEFINITIONS, get_definition
from backend.services.range_enricher import dictionary_range

# Short lipid aliases share ranges with their full names and are not shown separately.
PREFERRED_BIOMARKER_ORDER = [name for name in BIOMARKER_DEFINITIONS if name not in {"Cholesterol", "HDL", "LDL"}]

BIOMARKER_NAME_MAP = {
    "MCH": "Mean Cell Hemoglobin",
    "MCHC": "Mean Cell Hemoglobin Concentration",
    "MCV": "Mean Cell Volume",
    "RBC": "Red Blood Cells",
    "WBC": "White Blood Cells",
    "HDL": "HDL Cholesterol",
    "LDL": "LDL Cholesterol",
    "Cholesterol": "Total Cholesterol",
    "A1C": "HbA1c",
    "Hemoglobin A1c": "HbA1c",
    "BUN": "Urea (BUN)",
    "Urea": "Urea (BUN)",
    "PotassiumCT": "Potassium",
    "SodiumCT": "Sodium",
    "ALT": "Alanine Aminotransferase (ALT)",
    "AST": "Aspartate Aminotransferase (AST/GOT)",
    "ALP": "Alkaline Phosphatase (ALP)",
    "GGT": "Gamma-Glutamyltransferase (GGT)",
    "Bilirubin": "Total Bilirubin",
    "Folate": "Folic acid/Folate",
    "Folic acid": "Folic acid/Folate",
    "Vitamin D": "Vitamin D, 25 Hydroxy",
    "ZincRH": "Zinc",
    "CRP": "High Sensitivity C-Reactive Protein (hsCRP)",
    "hsCRP": "High Sensitivity C-Reactive Protein (hsCRP)",
    "C-Reactive Protein": "High Sensitivity C-Reactive Protein (hsCRP)",
    "TSH": "Thyroid Stimulating Hormone (TSH)",
    "FT4": "Free Thyroxine (FT4)",
    "FT3": "Free Tri-iodothyronine (FT3)",
    "SHBG": "Sex Hormone Binding Globulin (SHBG)",
    "Testosterone": "Testosterone, Total",
}

STANDALONE_EXCLUSIONS = {
    "high", "low", "normal", "optimal", "reference", "range",
    "results", "elevated", "decreased", "value", "test", "standard",
    "pending", "final", "see", "note", "positive", "negative",
    "inflammation", "syndrome", "thyroid", "report",
}

NON_BIOMARKER_WORDS = {
    "com", "health", "california", "ca", "randox", "monica", "santa",
    "center", "medical", "clinic", "laboratories", "diagnostic", "inc",
    "ltd", "llc", "corporation", "test", "report", "page", "date",
    "results", "thyroid", "syndrome", "optimal", "inflammation",
}

_FLAG_SUFFIX = re.compile(r"\s*(High|Low)$", re.IGNORECASE)


def _clean(name: str) -> str:
    return re.sub(r"\s+", " ", name.replace("↵", " ")).strip()


def normalize_biomarker_name(name: str) -> str:
    """Map a report-level display name onto the canonical name used for trends."""
    cleaned = _clean(name)
    base_name = _FLAG_SUFFIX.sub("", cleaned).strip()

    if cleaned in BIOMARKER_NAME_MAP:
        return BIOMARKER_NAME_MAP[cleaned]
    if base_name in BIOMARKER_NAME_MAP:
        return BIOMARKER_NAME_MAP[base_name]
    if base_name == "Hydroxy":
        return "Vitamin D, 25 Hydroxy"

    lowered = cleaned.lower()
    matching = [known for known in PREFERRED_BIOMARKER_ORDER if known.lower() in lowered]
    if matching:
        return max(matching, key=len)
    return cleaned


def is_valid_trend_biomarker(name: str) -> bool:
    cleaned = _clean(name)
    if cleaned.lower() in STANDALONE_EXCLUSIONS:
        return False

    base_name = _FLAG_SUFFIX.sub("", cleaned).strip()
    if base_name in BIOMARKER_NAME_MAP or get_definition(base_name) is not None:
        return True

    words = base_name.split()
    if len(words) > 5:
        return False
    return not any(word.lower() in NON_BIOMARKER_WORDS for word in words)


def _preferred_index(name: str) -> int:
    lowered = name.lower()
    known_lowered = [known.lower() for known in PREFERRED_BIOMARKER_ORDER]
    if lowered in known_lowered:
        return known_lowered.index(lowered)
    for index, known in enumerate(known_lowered):
        if known in lowered:
            return index
    return -1


def order_biomarker_names(names) -> list[str]:
    """Preferred panel order first, then everything else alphabetically."""
    def sort_key(name: str):
        index = _preferred_index(name)
        if index == -1:
            return (1, 0, name.lower(), name)
        return (0, index, name.lower(), name)

    return sorted(set(names), key=sort_key)


def _parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def range_status(value: float | None, reference_range: ReferenceRange | None) -> str | None:
    if value is None or reference_range is None:
        return None
    if value < reference_range.min:
        return "below"
    if value > reference_range.max:
        return "above"
    return "within"


def compute_delta(prev: float | None, curr: float | None) -> float | None:
    if prev is None or curr is None or prev == 0:
        return None
    return ((curr - prev) / abs(prev)) * 100.0


def _category(name: str) -> str:
    definition = get_definition(name)
    return definition.category if definition else "Other"


def _grouped_points(history: list[HistoryEntry]) -> dict[str, list[tuple[datetime, HistoryEntry, str]]]:
    grouped = defaultdict(list)
    for entry in history:
        for raw_name in entry.biomarkers:
            if not is_valid_trend_biomarker(raw_name):
                continue
            grouped[normalize_biomarker_name(raw_name)].append((_parse_iso(entry.date), entry, raw_name))
    for points in grouped.values():
        points.sort(key=lambda item: item[0])
    return grouped


def build_trends(history: list[HistoryEntry]) -> list[BiomarkerTrend]:
    """One date-ordered series per canonical biomarker name across all reports."""
    grouped = _grouped_points(history)
    trends = []
    for name in order_biomarker_names(grouped):
        observations = [(when, entry, entry.biomarkers[raw_name]) for when, entry, raw_name in grouped[name]]
        reference_range = next(
            (obs.reference_range for _, _, obs in observations if obs.reference_range is not None),
            None,
        )
        if reference_range is None:
            reference_range = dictionary_range(name)
        unit = next((obs.unit for _, _, obs in observations if obs.unit), None)
        trends.append(
            BiomarkerTrend(
                name=name,
                category=_category(name),
                unit=unit,
                reference_range=reference_range,
                points=[
                    TrendPoint(
                        date=entry.date,
                        value=obs.value,
                        unit=obs.unit,
                        status=range_status(obs.value, reference_range),
                    )
                    for _, entry, obs in observations
                ],
            )
        )
    return trends


def build_overview(history: list[HistoryEntry], threshold: float = 5.0) -> list[TrendOverviewItem]:
    """Latest-vs-previous change per biomarker, largest movement first."""
    output = []
    for trend in build_trends(history):
        points = [point for point in trend.points if point.value is not None]
        if len(points) < 2:
            continue
        prev, curr = points[-2], points[-1]
        delta = compute_delta(prev.value, curr.value)
        if delta is None:
            continue
        direction = "stable"
        if delta > threshold:
            direction = "up"
        elif delta < -threshold:
            direction = "down"
        output.append(
            TrendOverviewItem(
                biomarker=trend.name,
                category=trend.category,
                previous=prev.value,
                current=curr.value,
                delta_percent=round(delta, 2),
                direction=direction,
                previous_date=prev.date,
                latest_date=curr.date,
            )
        )

    output.sort(key=lambda item: abs(item.delta_percent), reverse=True)
    return output
