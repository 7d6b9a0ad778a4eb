from backend.models.analysis import AnalysisRecord, ObservationRecord

__all__ = [
    "AnalysisRecord",
    "ObservationRecord",
]
