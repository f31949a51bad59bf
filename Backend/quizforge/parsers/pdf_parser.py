"""PDF adapter: PyMuPDF first, pypdf as fallback."""

import io
import logging

import fitz  # PyMuPDF
from pypdf import PdfReader

from quizforge.models import DocumentFormat
from quizforge.utils.errors import ExtractionError
from .base import AdapterResult, BaseFormatAdapter, ExtractionOptions

logger = logging.getLogger(__name__)


class PdfAdapter(BaseFormatAdapter):
    """
    Page-by-page text extraction.

    Non-empty pages are kept in page order and joined by a blank line; a page
    with no text (scanned image, blank page) is skipped, not an error.
    """

    format = DocumentFormat.PDF

    def extract(self, file_bytes: bytes, options: ExtractionOptions) -> AdapterResult:
        try:
            logger.info("Trying PyMuPDF...")
            pages = self._pages_with_pymupdf(file_bytes)
        except Exception as e:
            logger.error(f"PyMuPDF failed: {str(e)}. Trying fallback...")
            try:
                logger.info("Trying pypdf...")
                pages = self._pages_with_pypdf(file_bytes)
            except Exception as fallback_e:
                logger.error(f"pypdf failed: {str(fallback_e)}")
                raise ExtractionError("PDF", fallback_e) from fallback_e

        kept = [p.strip() for p in pages if p and p.strip()]
        return AdapterResult(
            text="\n\n".join(kept),
            metadata={"page_count": len(pages), "pages_with_text": len(kept)},
        )

    @staticmethod
    def _pages_with_pymupdf(file_bytes: bytes) -> list[str]:
        with fitz.open(stream=file_bytes, filetype="pdf") as doc:
            return [page.get_text() for page in doc]

    @staticmethod
    def _pages_with_pypdf(file_bytes: bytes) -> list[str]:
        reader = PdfReader(io.BytesIO(file_bytes))
        return [page.extract_text() or "" for page in reader.pages]
