"""DOCX and PPTX adapters (both are zip/XML packages)."""

import io
import logging
import re
import zipfile

import docx
from lxml import etree

from quizforge.models import DocumentFormat
from quizforge.utils.errors import ExtractionError
from .base import AdapterResult, BaseFormatAdapter, ExtractionOptions

logger = logging.getLogger(__name__)

DRAWINGML_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
SLIDE_PART_RE = re.compile(r"^ppt/slides/slide(\d+)\.xml$")


class DocxAdapter(BaseFormatAdapter):
    format = DocumentFormat.DOCX

    def extract(self, file_bytes: bytes, options: ExtractionOptions) -> AdapterResult:
        try:
            document = docx.Document(io.BytesIO(file_bytes))
        except Exception as e:
            raise ExtractionError("DOCX", e) from e

        paragraphs = [p.text for p in document.paragraphs]
        return AdapterResult(
            text="\n".join(paragraphs),
            metadata={"paragraph_count": len(paragraphs)},
        )


def slide_sort_key(name: str, natural: bool = False):
    """
    Sort key for slide part names.

    The default is a plain string sort, so slide10.xml lands before
    slide2.xml. natural=True sorts on the slide number instead.
    """
    if natural:
        match = SLIDE_PART_RE.match(name)
        if match:
            return (int(match.group(1)), name)
    return name


class PptxAdapter(BaseFormatAdapter):
    """
    Reads ppt/slides/slideN.xml parts straight out of the zip container.

    Each slide contributes its a:t text runs joined by spaces; slides are
    separated by a blank line and slides without text are skipped.
    """

    format = DocumentFormat.PPTX

    def extract(self, file_bytes: bytes, options: ExtractionOptions) -> AdapterResult:
        try:
            with zipfile.ZipFile(io.BytesIO(file_bytes)) as archive:
                slide_names = sorted(
                    (n for n in archive.namelist() if SLIDE_PART_RE.match(n)),
                    key=lambda n: slide_sort_key(n, options.natural_slide_order),
                )
                slide_count = len(slide_names)
                if options.max_slides is not None and options.max_slides >= 0:
                    slide_names = slide_names[:options.max_slides]

                slides = []
                for name in slide_names:
                    slide_text = self._slide_text(archive.read(name))
                    if slide_text:
                        slides.append(slide_text)
        except (zipfile.BadZipFile, etree.XMLSyntaxError, KeyError) as e:
            raise ExtractionError("PPTX", e) from e

        logger.info(f"PPTX: kept {len(slide_names)} of {slide_count} slides")
        return AdapterResult(
            text="\n\n".join(slides),
            metadata={"slide_count": slide_count, "slides_kept": len(slide_names)},
        )

    @staticmethod
    def _slide_text(xml_bytes: bytes) -> str:
        root = etree.fromstring(xml_bytes)
        runs = root.iter(f"{{{DRAWINGML_NS}}}t")
        texts = [r.text for r in runs if r.text and r.text.strip()]
        return " ".join(texts).strip()
