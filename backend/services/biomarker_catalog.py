"""Known-biomarker dictionary and the name matcher used to reconcile scanned names.

The dictionary is built once at import time and exposed read-only. Entry order
matters: the substring matcher returns the first entry that matches.
"""
import re
from dataclasses import dataclass
from types import MappingProxyType

from rapidfuzz import fuzz

from backend.config import settings


@dataclass(frozen=True)
class BiomarkerDefinition:
    name: str
    units: str
    range_min: float
    range_max: float
    category: str


BIOMARKERS = [
    {"name": "Hemoglobin", "units": "g/dL", "range": (12, 17), "category": "Complete Blood Count"},
    {"name": "Hematocrit", "units": "%", "range": (36, 52), "category": "Complete Blood Count"},
    {"name": "Mean Cell Hemoglobin", "units": "pg", "range": (27, 33), "category": "Complete Blood Count"},
    {"name": "Mean Cell Hemoglobin Concentration", "units": "g/dL", "range": (32, 36), "category": "Complete Blood Count"},
    {"name": "Mean Cell Volume", "units": "fL", "range": (80, 100), "category": "Complete Blood Count"},
    {"name": "Red Blood Cells", "units": "x10^12/L", "range": (4.2, 5.8), "category": "Complete Blood Count"},
    {"name": "Basophils", "units": "x10^9/L", "range": (0, 0.2), "category": "Differential Count"},
    {"name": "Eosinophils", "units": "x10^9/L", "range": (0, 0.5), "category": "Differential Count"},
    {"name": "Lymphocytes", "units": "x10^9/L", "range": (1.0, 4.0), "category": "Differential Count"},
    {"name": "Monocytes", "units": "x10^9/L", "range": (0.2, 0.8), "category": "Differential Count"},
    {"name": "Neutrophils", "units": "x10^9/L", "range": (2.0, 7.0), "category": "Differential Count"},
    {"name": "White Blood Cells", "units": "x10^9/L", "range": (4.0, 11.0), "category": "Complete Blood Count"},
    {"name": "Platelets", "units": "x10^9/L", "range": (150, 450), "category": "Complete Blood Count"},
    {"name": "Ferritin", "units": "ng/mL", "range": (20, 250), "category": "Iron Studies"},
    {"name": "Total Cholesterol", "units": "mg/dL", "range": (125, 200), "category": "Lipid Panel"},
    {"name": "LDL Cholesterol", "units": "mg/dL", "range": (0, 100), "category": "Lipid Panel"},
    {"name": "HDL Cholesterol", "units": "mg/dL", "range": (40, 60), "category": "Lipid Panel"},
    {"name": "Cholesterol", "units": "mg/dL", "range": (125, 200), "category": "Lipid Panel"},
    {"name": "HDL", "units": "mg/dL", "range": (40, 60), "category": "Lipid Panel"},
    {"name": "LDL", "units": "mg/dL", "range": (0, 100), "category": "Lipid Panel"},
    {"name": "Triglycerides", "units": "mg/dL", "range": (0, 150), "category": "Lipid Panel"},
    {"name": "High Sensitivity C-Reactive Protein (hsCRP)", "units": "mg/L", "range": (0, 3), "category": "Inflammation"},
    {"name": "Creatine Kinase (CK-NAC)", "units": "U/L", "range": (30, 200), "category": "Muscle Enzymes"},
    {"name": "Glucose", "units": "mg/dL", "range": (70, 100), "category": "Glucose Metabolism"},
    {"name": "HbA1c", "units": "%", "range": (4, 5.7), "category": "Glucose Metabolism"},
    {"name": "Albumin", "units": "g/dL", "range": (3.5, 5.0), "category": "Kidney Function"},
    {"name": "Calcium (adjusted)", "units": "mg/dL", "range": (8.5, 10.5), "category": "Kidney Function"},
    {"name": "Creatinine", "units": "mg/dL", "range": (0.6, 1.2), "category": "Kidney Function"},
    {"name": "Cystatin C", "units": "mg/L", "range": (0.5, 1.0), "category": "Kidney Function"},
    {"name": "Estimated Glomerular Filtration Rate (eGFR)", "units": "mL/min/1.73m²", "range": (90, 120), "category": "Kidney Function"},
    {"name": "Magnesium", "units": "mg/dL", "range": (1.7, 2.3), "category": "Kidney Function"},
    {"name": "PotassiumCT", "units": "mmol/L", "range": (3.5, 5.2), "category": "Kidney Function"},
    {"name": "SodiumCT", "units": "mmol/L", "range": (135, 145), "category": "Kidney Function"},
    {"name": "Urea (BUN)", "units": "mg/dL", "range": (7, 20), "category": "Kidney Function"},
    {"name": "Alanine Aminotransferase (ALT)", "units": "U/L", "range": (7, 55), "category": "Liver Function"},
    {"name": "Alkaline Phosphatase (ALP)", "units": "U/L", "range": (44, 147), "category": "Liver Function"},
    {"name": "Aspartate Aminotransferase (AST/GOT)", "units": "U/L", "range": (8, 48), "category": "Liver Function"},
    {"name": "Copper", "units": "µg/dL", "range": (70, 140), "category": "Liver Function"},
    {"name": "Gamma-Glutamyltransferase (GGT)", "units": "U/L", "range": (8, 61), "category": "Liver Function"},
    {"name": "Total Bilirubin", "units": "mg/dL", "range": (0.1, 1.2), "category": "Liver Function"},
    {"name": "Folic acid/Folate", "units": "ng/mL", "range": (3, 17), "category": "Vitamins and Minerals"},
    {"name": "Vitamin C deficiencyRH", "units": "mg/L", "range": (0.4, 2.0), "category": "Vitamins and Minerals"},
    {"name": "Vitamin B12", "units": "pg/mL", "range": (200, 900), "category": "Vitamins and Minerals"},
    {"name": "Vitamin D, 25 Hydroxy", "units": "ng/mL", "range": (30, 100), "category": "Vitamins and Minerals"},
    {"name": "ZincRH", "units": "µmol/L", "range": (10, 20), "category": "Vitamins and Minerals"},
    {"name": "Immunoglobulin E (IgE)", "units": "IU/mL", "range": (0, 100), "category": "Immunoglobulins"},
    {"name": "Free Thyroxine (FT4)", "units": "ng/dL", "range": (0.8, 1.8), "category": "Thyroid"},
    {"name": "Free Tri-iodothyronine (FT3)", "units": "pg/mL", "range": (2.3, 4.2), "category": "Thyroid"},
    {"name": "Thyroid Stimulating Hormone (TSH)", "units": "µIU/mL", "range": (0.4, 4.0), "category": "Thyroid"},
    {"name": "Sex Hormone Binding Globulin (SHBG)", "units": "nmol/L", "range": (10, 80), "category": "Hormones"},
    {"name": "Testosterone, Total", "units": "ng/dL", "range": (280, 1100), "category": "Hormones"},
    {"name": "Estradiol", "units": "pg/mL", "range": (10, 50), "category": "Hormones"},
    {"name": "Total Prostate Specific Antigen (TPSA)", "units": "ng/mL", "range": (0, 4), "category": "Cancer Markers"},
]


BIOMARKER_DEFINITIONS = MappingProxyType(
    {
        item["name"]: BiomarkerDefinition(
            name=item["name"],
            units=item["units"],
            range_min=float(item["range"][0]),
            range_max=float(item["range"][1]),
            category=item["category"],
        )
        for item in BIOMARKERS
    }
)


def _clean(name: str) -> str:
    return re.sub(r"\s+", " ", name).strip().lower()


def _substring_match(name: str) -> str | None:
    for known in BIOMARKER_DEFINITIONS:
        known_norm = known.lower()
        if name == known_norm or known_norm in name or name in known_norm:
            return known
    return None


def _token_set_match(name: str, threshold: int) -> str | None:
    best_score = -1.0
    best_name = None
    for known in BIOMARKER_DEFINITIONS:
        known_norm = known.lower()
        if name == known_norm:
            return known
        score = fuzz.token_set_ratio(name, known_norm)
        if score > best_score:
            best_score = score
            best_name = known
    if best_score >= threshold:
        return best_name
    return None


def matches_known_biomarker(name: str) -> str | None:
    """Return the canonical dictionary name for ``name``, or None.

    The default strategy is case-insensitive equality or substring containment
    in either direction, so "Glucose, Fasting" resolves to "Glucose" and "HDL"
    resolves to "HDL Cholesterol".
    """
    cleaned = _clean(name)
    if not cleaned:
        return None
    if settings.name_matcher == "token_set":
        return _token_set_match(cleaned, settings.name_match_threshold)
    return _substring_match(cleaned)


def is_known_biomarker(name: str) -> bool:
    return matches_known_biomarker(name) is not None


def get_definition(name: str) -> BiomarkerDefinition | None:
    canonical = matches_known_biomarker(name)
    if canonical is None:
        return None
    return BIOMARKER_DEFINITIONS[canonical]
