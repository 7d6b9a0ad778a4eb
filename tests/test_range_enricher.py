from backend.schemas.analysis import BiomarkerObservation
from backend.services.biomarker_catalog import get_definition
from backend.services.candidate_scanner import scan_candidates
from backend.services.range_enricher import (
    backfill_ranges,
    dictionary_range,
    find_contextual_range,
    parse_range,
    resolve_range,
)


def _bounds(reference_range):
    return None if reference_range is None else (reference_range.min, reference_range.max)


def test_parse_range_strips_comparison_markers():
    assert _bounds(parse_range("<5", "10")) == (5.0, 10.0)
    assert _bounds(parse_range(" 3.5", ">5.0")) == (3.5, 5.0)


def test_parse_range_requires_min_below_max():
    assert parse_range("10", "5") is None
    assert parse_range("5", "5") is None
    assert parse_range("abc", "5") is None


def test_dictionary_range_for_known_and_unknown_names():
    assert _bounds(dictionary_range("Glucose")) == (70.0, 100.0)
    assert dictionary_range("Omega Index") is None


def test_contextual_range_reads_reference_label_on_same_line():
    text = "Omega Index: 6.5 % Reference Range: 4 - 8"
    [candidate] = scan_candidates(text)
    assert _bounds(find_contextual_range(text, candidate)) == (4.0, 8.0)


def test_contextual_range_ignores_neighbouring_rows():
    text = "Omega Index: 6.5 %\nBeta Marker: 3.1 (1 - 5)"
    omega, beta = scan_candidates(text)
    assert find_contextual_range(text, omega) is None
    assert _bounds(find_contextual_range(text, beta)) == (1.0, 5.0)


def test_resolve_range_prefers_range_printed_after_value():
    text = "Glucose: 92 mg/dL (65-99)"
    [candidate] = scan_candidates(text)
    assert _bounds(resolve_range(text, candidate, get_definition("Glucose"))) == (65.0, 99.0)


def test_resolve_range_falls_back_to_dictionary_for_known_biomarkers():
    text = "Hemoglobin 14.2 g/dL\nGlucose: 92 mg/dL (65-99)"
    hemoglobin = scan_candidates(text)[0]
    assert hemoglobin.name == "Hemoglobin"
    assert _bounds(resolve_range(text, hemoglobin, get_definition("Hemoglobin"))) == (12.0, 17.0)


def test_resolve_range_unknown_name_without_context_is_none():
    text = "Omega Index: 6.5 %"
    [candidate] = scan_candidates(text)
    assert resolve_range(text, candidate) is None


def test_backfill_only_fills_missing_ranges():
    text = "Omega Index: normal 4 - 8\nGlucose: reference 60 - 90\n"
    biomarkers = {
        "Omega Index": BiomarkerObservation(value=6.5, unit="%"),
        "Glucose": BiomarkerObservation(value=85, unit="mg/dL", reference_range=parse_range("70", "100")),
    }
    assert backfill_ranges(text, biomarkers) == 1
    assert _bounds(biomarkers["Omega Index"].reference_range) == (4.0, 8.0)
    assert _bounds(biomarkers["Glucose"].reference_range) == (70.0, 100.0)


def test_resolve_range_prefers_nearby_range_over_dictionary():
    text = "Glucose 92 mg/dL Normal (65 - 99)"
    [candidate] = scan_candidates(text)
    assert _bounds(resolve_range(text, candidate, get_definition("Glucose"))) == (65.0, 99.0)
