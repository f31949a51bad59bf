from quizforge.models import DocumentFormat
from .base import AdapterResult, BaseFormatAdapter, ExtractionOptions


class TxtAdapter(BaseFormatAdapter):
    """Plain text; decoded as UTF-8 with undecodable bytes replaced."""

    format = DocumentFormat.TXT

    def extract(self, file_bytes: bytes, options: ExtractionOptions) -> AdapterResult:
        return AdapterResult(text=file_bytes.decode("utf-8-sig", errors="replace"))
