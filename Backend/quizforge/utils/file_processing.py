import os
import re
import tempfile
import logging
from contextlib import contextmanager
from functools import partial
from typing import Iterator, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from quizforge.models import DocumentFormat, ExtractedDocument, TruncationReason
from quizforge.parsers import ExtractionOptions, create_adapter, resolve_format
from quizforge.parsers.image_parser import ImageAdapter, TesseractOCREngine
from quizforge.utils.config import Settings, settings
from quizforge.utils.errors import ExtractionError

logger = logging.getLogger(__name__)

# The crude PPTX fallback assumes a deck of about this many slides
ESTIMATED_SLIDES_PER_DECK = 10


def normalize_text(text: str) -> str:
    """Collapse whitespace, keep at most one blank line between paragraphs, trim."""
    if not text:
        return ""
    s = text.replace("\r\n", "\n").replace("\r", "\n")
    s = re.sub(r"[^\S\n]+", " ", s)
    s = re.sub(r" ?\n ?", "\n", s)
    s = re.sub(r"\n{3,}", "\n\n", s)
    return s.strip()


def needs_chunking(text: str, max_chars: Optional[int] = None) -> bool:
    if max_chars is None:
        max_chars = settings.max_chars
    return len(text) > max_chars


def chunk_text(text: str, max_chars: Optional[int] = None) -> list[str]:
    """
    Split text on whitespace into chunks of at most max_chars.

    Paragraph breaks are preferred, then line breaks, then spaces. Pieces are
    packed greedily; a single word longer than max_chars becomes its own
    oversized chunk instead of being cut.
    """
    if max_chars is None:
        max_chars = settings.max_chars
    if not needs_chunking(text, max_chars):
        return [text]
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=max_chars,
        chunk_overlap=0,
        length_function=len,
        separators=["\n\n", "\n", " "],
    )
    chunks = (c.strip() for c in splitter.split_text(text))
    return [c for c in chunks if c]


def estimate_slide_window(text: str, max_slides: int) -> tuple[str, bool]:
    """
    Keep roughly max_slides slides worth of words, assuming a ten slide deck.

    Only used when the slide structure is unknown. Returns the (possibly
    shortened) text and whether anything was cut.
    """
    words = text.split()
    words_per_slide = len(words) // ESTIMATED_SLIDES_PER_DECK
    max_words = words_per_slide * max_slides
    if max_words <= 0 or len(words) <= max_words:
        return text, False
    return " ".join(words[:max_words]), True


def truncation_note(
    reason: TruncationReason,
    chunk_count: int = 1,
    max_slides: Optional[int] = None,
    slide_count: Optional[int] = None,
    slides_kept: Optional[int] = None,
) -> str:
    chunk_part = f"using first portion ({chunk_count} total chunks) for quiz generation"
    if reason == TruncationReason.SLIDE_CAP:
        note = f"Content limited to the first {slides_kept} of {slide_count} slides due to size constraints"
    elif reason == TruncationReason.WORD_ESTIMATE:
        note = f"Content limited to approximately {max_slides} slides due to size constraints"
    else:
        return f"[Note: Large file detected. Using first portion ({chunk_count} total chunks) for quiz generation.]"
    if chunk_count > 1:
        note = f"{note}; {chunk_part}"
    return f"[Note: {note}.]"


def limit_text_size(
    text: str,
    source_format: DocumentFormat,
    max_chars: Optional[int] = None,
    max_slides: Optional[int] = None,
    slide_count: Optional[int] = None,
    slides_kept: Optional[int] = None,
) -> tuple[str, Optional[TruncationReason], int]:
    """
    The single size-limiting stage.

    Slide limiting runs first, then the character budget. The structural cap
    applies when the adapter reported slide_count; the word estimate is only
    for callers that pass PPTX text without slide metadata (PptxAdapter
    always reports it, so process_document never takes that branch).
    Whatever fired, exactly one note is appended and the reason is the first
    limit that applied.

    Returns (text, reason or None, chunk_count).
    """
    reason = None
    if source_format == DocumentFormat.PPTX and max_slides is not None:
        if slide_count is not None:
            if slides_kept is not None and slides_kept < slide_count:
                reason = TruncationReason.SLIDE_CAP
        else:
            text, limited = estimate_slide_window(text, max_slides)
            if limited:
                reason = TruncationReason.WORD_ESTIMATE

    chunks = chunk_text(text, max_chars)
    chunk_count = len(chunks)
    if chunk_count > 1:
        logger.info(f"Large text detected: using first of {chunk_count} chunks")
        text = chunks[0]
        reason = reason or TruncationReason.CHUNKED

    if reason is not None:
        note = truncation_note(reason, chunk_count, max_slides, slide_count, slides_kept)
        text = f"{text}\n\n{note}"
    return text, reason, chunk_count


def process_document(
    name: str,
    file_bytes: Optional[bytes] = None,
    path: Optional[str] = None,
    max_slides: Optional[int] = None,
    config: Optional[Settings] = None,
    image_adapter=None,
) -> ExtractedDocument:
    """
    Extract, normalize and size-limit one document.

    name is a filename or bare extension tag; the format comes from the
    extension only. Images always go through the path-based OCR route.
    """
    config = config or settings
    source_format = resolve_format(name)

    if file_bytes is None and source_format != DocumentFormat.IMAGE:
        if not path:
            raise ExtractionError(source_format.name, "no document bytes or path supplied")
        try:
            with open(path, "rb") as f:
                file_bytes = f.read()
        except OSError as e:
            raise ExtractionError(source_format.name, e) from e

    if source_format == DocumentFormat.IMAGE and image_adapter is None:
        image_adapter = ImageAdapter(partial(TesseractOCREngine, config.ocr_language))
    adapter = create_adapter(source_format, image_adapter)
    options = ExtractionOptions(
        path=path,
        max_slides=max_slides,
        natural_slide_order=config.natural_slide_order,
    )
    result = adapter.extract(file_bytes or b"", options)
    text = normalize_text(result.text)
    logger.info(f"Extracted {len(text)} characters from {source_format.name} document")

    text, reason, chunk_count = limit_text_size(
        text,
        source_format,
        max_chars=config.max_chars,
        max_slides=max_slides,
        slide_count=result.metadata.get("slide_count"),
        slides_kept=result.metadata.get("slides_kept"),
    )
    return ExtractedDocument(
        text=text,
        source_format=source_format,
        truncated=reason is not None,
        chunk_count=chunk_count,
        truncation_reason=reason,
    )


def file_size_mb(file_bytes: bytes) -> float:
    return len(file_bytes) / (1024 * 1024)


def size_warning(size_mb: float, config: Optional[Settings] = None) -> Optional[str]:
    config = config or settings
    if size_mb > config.very_large_file_mb:
        return (f"Large file detected ({size_mb:.2f} MB). "
                "Processing may take longer and hit API limits.")
    if size_mb > config.large_file_warning_mb:
        return f"File size is {size_mb:.2f} MB. Large files may take longer to process."
    return None


def effective_max_slides(
    source_format: DocumentFormat,
    size_mb: float,
    requested: Optional[int] = None,
    config: Optional[Settings] = None,
) -> Optional[int]:
    """An explicit cap wins; very large decks get the automatic cap."""
    config = config or settings
    if requested is not None:
        return requested
    if source_format == DocumentFormat.PPTX and size_mb > config.very_large_file_mb:
        return config.auto_max_slides
    return None


@contextmanager
def temporary_upload(file_bytes: bytes, suffix: str) -> Iterator[str]:
    """Write an upload to a named temp file for collaborators that need a path."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        tmp.write(file_bytes)
        tmp_path = tmp.name
    try:
        yield tmp_path
    finally:
        try:
            os.unlink(tmp_path)
        except OSError as e:
            logger.error(f"Error deleting temp file: {str(e)}")
