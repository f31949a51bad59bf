"""Base classes for the per-format text adapters."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from quizforge.models import DocumentFormat


@dataclass
class ExtractionOptions:
    """Per-call knobs; adapters ignore the ones that do not apply to them."""
    path: Optional[str] = None
    max_slides: Optional[int] = None
    natural_slide_order: bool = False


@dataclass
class AdapterResult:
    """
    Raw (un-normalized) output of an adapter.

    metadata is adapter specific: page_count for PDF, slide_count and
    slides_kept for PPTX, line_count for images.
    """
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class BaseFormatAdapter(ABC):
    """Abstract base class for format adapters."""

    format: DocumentFormat

    @abstractmethod
    def extract(self, file_bytes: bytes, options: ExtractionOptions) -> AdapterResult:
        """
        Extract text from a document.

        Raises:
            ExtractionError: the container is corrupt or unreadable
        """
        pass
