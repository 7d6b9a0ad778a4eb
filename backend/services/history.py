from sqlalchemy.orm import Session, selectinload

from backend.models.analysis import AnalysisRecord, ObservationRecord
from backend.schemas.analysis import AnalysisResult, BiomarkerObservation, HistoryEntry, ReferenceRange


def save_results(db: Session, results: list[AnalysisResult]) -> None:
    """Append results to the stored history; entries are never merged."""
    for result in results:
        record = AnalysisRecord(
            file_name=result.file_name,
            test_date=result.test_date,
            date_inferred=result.date_inferred,
            error=result.error,
        )
        for position, name in enumerate(result.original_order):
            observation = result.biomarkers[name]
            reference_range = observation.reference_range
            record.observations.append(
                ObservationRecord(
                    name=name,
                    value=observation.value,
                    unit=observation.unit,
                    range_min=reference_range.min if reference_range else None,
                    range_max=reference_range.max if reference_range else None,
                    order_index=observation.order_index if observation.order_index is not None else position,
                )
            )
        db.add(record)
    db.commit()


def _to_entry(record: AnalysisRecord) -> HistoryEntry:
    biomarkers = {}
    for observation in record.observations:
        reference_range = None
        if observation.range_min is not None and observation.range_max is not None:
            reference_range = ReferenceRange(min=observation.range_min, max=observation.range_max)
        biomarkers[observation.name] = BiomarkerObservation(
            value=observation.value,
            unit=observation.unit,
            reference_range=reference_range,
            order_index=observation.order_index,
        )
    return HistoryEntry(
        date=record.test_date,
        file_name=record.file_name,
        biomarkers=biomarkers,
        original_order=[observation.name for observation in record.observations],
    )


def load_history(db: Session) -> list[HistoryEntry]:
    rows = (
        db.query(AnalysisRecord)
        .options(selectinload(AnalysisRecord.observations))
        .order_by(AnalysisRecord.id.asc())
        .all()
    )
    return [_to_entry(record) for record in rows]


def clear_history(db: Session) -> int:
    rows = db.query(AnalysisRecord).all()
    for record in rows:
        db.delete(record)
    db.commit()
    return len(rows)
