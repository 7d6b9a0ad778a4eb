import asyncio
import logging
from dataclasses import dataclass

from fastapi.concurrency import run_in_threadpool

from backend.config import settings
from backend.schemas.analysis import AnalysisResult
from backend.services.date_extractor import now_iso
from backend.services.extractor import analyze_pages
from backend.services.pdf_text import PdfDecodeError, extract_page_texts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedReport:
    file_name: str
    content: bytes


def failed_result(file_name: str, message: str) -> AnalysisResult:
    return AnalysisResult(file_name=file_name, test_date=now_iso(), error=message)


def _rejection_reason(upload: UploadedReport) -> str | None:
    if not upload.file_name.lower().endswith(".pdf"):
        return "Please upload a PDF file"
    max_size_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(upload.content) > max_size_bytes:
        return f"File too large. Max size is {settings.max_upload_size_mb}MB"
    return None


async def analyze_report(upload: UploadedReport) -> AnalysisResult:
    reason = _rejection_reason(upload)
    if reason:
        return failed_result(upload.file_name, reason)

    try:
        pages = await run_in_threadpool(extract_page_texts, upload.content)
    except PdfDecodeError as exc:
        return failed_result(upload.file_name, str(exc))

    try:
        return analyze_pages(upload.file_name, pages)
    except Exception:
        logger.exception("Biomarker extraction failed for %s", upload.file_name)
        return failed_result(upload.file_name, "Failed to parse PDF content")


async def analyze_reports(uploads: list[UploadedReport]) -> list[AnalysisResult]:
    """Analyze every upload concurrently; one file's failure never affects another."""
    return list(await asyncio.gather(*(analyze_report(upload) for upload in uploads)))
