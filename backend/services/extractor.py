"""Text-to-biomarker pipeline for a single report.

Stages run in order over one text buffer: date extraction, candidate scanning,
dictionary-first resolution with range enrichment, then a range backfill sweep.
"""
import logging
import re
from dataclasses import dataclass, field

from backend.schemas.analysis import AnalysisResult, BiomarkerObservation
from backend.services.biomarker_catalog import BIOMARKER_DEFINITIONS, BiomarkerDefinition, matches_known_biomarker
from backend.services.candidate_scanner import CandidateMatch, scan_candidates
from backend.services.date_extractor import extract_test_date_with_source
from backend.services.range_enricher import backfill_ranges, resolve_range

logger = logging.getLogger(__name__)


@dataclass
class ExtractedBiomarkers:
    biomarkers: dict[str, BiomarkerObservation] = field(default_factory=dict)
    original_order: list[str] = field(default_factory=list)

    def add(self, name: str, observation: BiomarkerObservation) -> None:
        self.biomarkers[name] = observation
        self.original_order.append(name)

    def __contains__(self, name: str) -> bool:
        return name in self.biomarkers


def normalize_display_name(name: str) -> str:
    return re.sub(r"\s+", " ", re.sub(r"[\r\n]+", " ", name)).strip()


def _accept(
    text: str,
    extracted: ExtractedBiomarkers,
    candidate: CandidateMatch,
    definition: BiomarkerDefinition | None = None,
) -> None:
    name = normalize_display_name(candidate.name)
    default_unit = definition.units if definition else None
    extracted.add(
        name,
        BiomarkerObservation(
            value=candidate.value,
            unit=candidate.unit or default_unit,
            reference_range=resolve_range(text, candidate, definition),
            order_index=len(extracted.original_order),
        ),
    )


def extract_all_biomarkers(text: str) -> ExtractedBiomarkers:
    """Extract biomarkers from report text, dictionary matches first.

    Known biomarkers are accepted in text order, then every other plausible
    candidate. A display name is only ever accepted once; later mentions of
    the same name are dropped.
    """
    extracted = ExtractedBiomarkers()
    candidates = scan_candidates(text)

    deferred = []
    for candidate in candidates:
        canonical = matches_known_biomarker(candidate.name)
        if canonical is None:
            deferred.append(candidate)
            continue
        if normalize_display_name(candidate.name) in extracted:
            continue
        _accept(text, extracted, candidate, BIOMARKER_DEFINITIONS[canonical])

    for candidate in deferred:
        if normalize_display_name(candidate.name) in extracted:
            continue
        _accept(text, extracted, candidate)

    backfill_ranges(text, extracted.biomarkers)
    logger.debug(
        "Accepted %d of %d candidates (%d outside the dictionary)",
        len(extracted.original_order),
        len(candidates),
        len(deferred),
    )
    return extracted


def analyze_text(file_name: str, text: str) -> AnalysisResult:
    test_date, inferred = extract_test_date_with_source(text)
    extracted = extract_all_biomarkers(text)
    return AnalysisResult(
        file_name=file_name,
        test_date=test_date,
        biomarkers=extracted.biomarkers,
        original_order=extracted.original_order,
        date_inferred=inferred,
    )


def analyze_pages(file_name: str, pages: list[str]) -> AnalysisResult:
    return analyze_text(file_name, "\n".join(pages))
