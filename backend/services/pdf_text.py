import io
import logging

import pdfplumber

logger = logging.getLogger(__name__)


class PdfDecodeError(RuntimeError):
    pass


def extract_page_texts(file_bytes: bytes) -> list[str]:
    """Decode a PDF into one text string per page."""
    try:
        with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
            return [page.extract_text() or "" for page in pdf.pages]
    except Exception as exc:
        # pdfplumber surfaces pdfminer errors under several exception types.
        logger.warning("PDF decoding failed: %s", exc)
        raise PdfDecodeError("Failed to parse PDF") from exc
