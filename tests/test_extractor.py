from datetime import datetime, timezone

from backend.services.date_extractor import FALLBACK_TEST_DATE
from backend.services.extractor import analyze_pages, analyze_text, extract_all_biomarkers

SAMPLE_REPORT = (
    "Randox Health\n"
    "Collection Date, Time\n"
    "08-Feb-2024\n"
    "Hemoglobin 14.2 g/dL\n"
    "Glucose: 92 mg/dL (70-100)\n"
    "Vitamin B12: 450 pg/mL\n"
    "Zinc Level: 15 umol/L Normal Range: 10 - 20\n"
)


def _range(observation):
    reference_range = observation.reference_range
    return None if reference_range is None else (reference_range.min, reference_range.max)


def test_single_known_biomarker_gets_dictionary_range():
    result = analyze_text("report.pdf", "Glucose: 85 mg/dL")
    glucose = result.biomarkers["Glucose"]
    assert glucose.value == 85.0
    assert glucose.unit == "mg/dL"
    assert _range(glucose) == (70.0, 100.0)
    assert glucose.order_index == 0
    assert result.original_order == ["Glucose"]
    assert result.test_date == FALLBACK_TEST_DATE
    assert result.date_inferred
    assert result.error is None


def test_inline_range_beats_dictionary_range():
    extracted = extract_all_biomarkers("Cholesterol: 180 (Reference Range: 125-200)")
    assert list(extracted.biomarkers) == ["Cholesterol"]
    cholesterol = extracted.biomarkers["Cholesterol"]
    assert cholesterol.value == 180.0
    assert cholesterol.unit == "mg/dL"
    assert _range(cholesterol) == (125.0, 200.0)


def test_multiple_lines_without_units():
    extracted = extract_all_biomarkers("Glucose: 85\nCholesterol: 180")
    assert extracted.original_order == ["Glucose", "Cholesterol"]
    assert extracted.biomarkers["Glucose"].unit == "mg/dL"
    assert _range(extracted.biomarkers["Cholesterol"]) == (125.0, 200.0)


def test_first_mention_of_a_name_wins():
    extracted = extract_all_biomarkers("Glucose: 85 mg/dL\nGlucose: 120 mg/dL")
    assert extracted.original_order == ["Glucose"]
    assert extracted.biomarkers["Glucose"].value == 85.0


def test_out_of_range_values_are_not_reported():
    assert extract_all_biomarkers("Glucose: 100001 mg/dL").biomarkers == {}
    assert extract_all_biomarkers("Glucose: -1 mg/dL").biomarkers == {}


def test_sample_report_end_to_end():
    result = analyze_text("randox.pdf", SAMPLE_REPORT)

    expected_date = datetime(2024, 2, 8).astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")
    assert result.test_date == expected_date
    assert not result.date_inferred
    assert result.original_order == ["Hemoglobin", "Glucose", "Vitamin B12", "Zinc Level"]
    assert [result.biomarkers[name].order_index for name in result.original_order] == [0, 1, 2, 3]

    assert _range(result.biomarkers["Hemoglobin"]) == (12.0, 17.0)
    assert _range(result.biomarkers["Glucose"]) == (70.0, 100.0)
    assert _range(result.biomarkers["Vitamin B12"]) == (200.0, 900.0)
    assert _range(result.biomarkers["Zinc Level"]) == (10.0, 20.0)
    assert result.biomarkers["Zinc Level"].unit == "umol/L"


def test_dictionary_matches_are_listed_before_other_names():
    extracted = extract_all_biomarkers("Zinc Level: 15 umol/L\nGlucose: 92 mg/dL")
    assert extracted.original_order == ["Glucose", "Zinc Level"]


def test_backfill_fills_unknown_biomarker_ranges():
    text = "Omega Index: 6.5 %\n\n" + ("filler line\n" * 30) + "Omega Index: reference 4 - 8\n"
    extracted = extract_all_biomarkers(text)
    assert _range(extracted.biomarkers["Omega Index"]) == (4.0, 8.0)


def test_extraction_is_deterministic():
    first = analyze_text("a.pdf", SAMPLE_REPORT)
    second = analyze_text("a.pdf", SAMPLE_REPORT)
    assert first.model_dump() == second.model_dump()


def test_pages_are_joined_with_newlines():
    result = analyze_pages("two-pages.pdf", ["Glucose: 85 mg/dL", "Hemoglobin 14.2 g/dL"])
    assert result.original_order == ["Glucose", "Hemoglobin"]


def test_wrapped_name_is_reported_under_full_name():
    extracted = extract_all_biomarkers("Mean Cell\nHemoglobin 30 pg")
    assert extracted.original_order == ["Mean Cell Hemoglobin"]
    observation = extracted.biomarkers["Mean Cell Hemoglobin"]
    assert (observation.value, observation.unit, observation.order_index) == (30.0, "pg", 0)


def test_range_on_the_same_row_beats_dictionary_default():
    extracted = extract_all_biomarkers("Glucose 92 mg/dL Normal (65 - 99)")
    assert _range(extracted.biomarkers["Glucose"]) == (65.0, 99.0)
