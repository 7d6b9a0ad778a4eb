from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.schemas.analysis import HistoryEntry
from backend.services.history import clear_history, load_history

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("", response_model=list[HistoryEntry], response_model_exclude_none=True)
def list_history(db: Session = Depends(get_db)):
    return load_history(db)


@router.delete("")
def delete_history(db: Session = Depends(get_db)):
    removed = clear_history(db)
    return {
        "statusCode": 200,
        "message": "History cleared",
        "data": {"removed": removed},
    }
