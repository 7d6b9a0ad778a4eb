from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReferenceRange(CamelModel):
    """Closed numeric interval a biomarker value is expected to fall in."""
    min: float
    max: float

    @model_validator(mode="after")
    def _check_bounds(self):
        if not self.min < self.max:
            raise ValueError("reference range min must be lower than max")
        return self


class BiomarkerObservation(CamelModel):
    """One biomarker measurement as read from a report."""
    value: float | None = Field(default=None, description="Measured value, null only when nothing could be read")
    unit: str | None = Field(default=None, description="Unit as printed, or the dictionary default")
    reference_range: ReferenceRange | None = Field(default=None, description="Inline, contextual or dictionary range")
    order_index: int | None = Field(default=None, description="Position of first occurrence within the report")


class AnalysisResult(CamelModel):
    """Per-file outcome of the extraction pipeline."""
    file_name: str
    test_date: str
    biomarkers: dict[str, BiomarkerObservation] = Field(default_factory=dict)
    original_order: list[str] = Field(default_factory=list)
    error: str | None = None
    date_inferred: bool = False


class AnalyzeResponse(BaseModel):
    results: list[AnalysisResult]


class HistoryEntry(CamelModel):
    date: str
    file_name: str
    biomarkers: dict[str, BiomarkerObservation]
    original_order: list[str] = Field(default_factory=list)


class TrendPoint(CamelModel):
    date: str
    value: float | None
    unit: str | None = None
    status: str | None = None


class BiomarkerTrend(CamelModel):
    name: str
    category: str
    unit: str | None = None
    reference_range: ReferenceRange | None = None
    points: list[TrendPoint]


class TrendOverviewItem(CamelModel):
    biomarker: str
    category: str
    previous: float
    current: float
    delta_percent: float
    direction: str
    previous_date: str
    latest_date: str
