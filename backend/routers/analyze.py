import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from backend.config import settings
from backend.database import get_db
from backend.schemas.analysis import AnalyzeResponse
from backend.services.analysis import UploadedReport, analyze_reports
from backend.services.history import save_results

router = APIRouter(prefix="/api", tags=["analyze"])
logger = logging.getLogger(__name__)


@router.post("/analyze", response_model=AnalyzeResponse, response_model_exclude_none=True)
async def analyze(
    reports: list[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
):
    if not reports:
        raise HTTPException(status_code=400, detail="No files provided")

    try:
        uploads = [UploadedReport(file_name=file.filename or "report.pdf", content=await file.read()) for file in reports]
        results = await analyze_reports(uploads)
        if settings.persist_history:
            save_results(db, results)
    except Exception as exc:
        logger.exception("Failed to process analyze request")
        raise HTTPException(status_code=500, detail="Failed to process request") from exc

    logger.info(
        "Analyzed %d report(s), %d failed",
        len(results),
        sum(1 for result in results if result.error),
    )
    return AnalyzeResponse(results=results)
