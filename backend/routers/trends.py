from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.schemas.analysis import BiomarkerTrend, TrendOverviewItem
from backend.services.history import load_history
from backend.services.trend_analyzer import build_overview, build_trends

router = APIRouter(prefix="/api/trends", tags=["trends"])


@router.get("", response_model=list[BiomarkerTrend], response_model_exclude_none=True)
def trends(db: Session = Depends(get_db)):
    return build_trends(load_history(db))


@router.get("/overview", response_model=list[TrendOverviewItem])
def overview(db: Session = Depends(get_db)):
    return build_overview(load_history(db))
