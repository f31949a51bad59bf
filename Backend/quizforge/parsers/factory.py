"""Resolve a declared file extension to its format adapter."""

import os
from typing import Optional

from quizforge.models import DocumentFormat
from quizforge.utils.errors import UnsupportedFormatError
from .base import BaseFormatAdapter
from .image_parser import ImageAdapter
from .office import DocxAdapter, PptxAdapter
from .pdf_parser import PdfAdapter
from .text_parser import TxtAdapter

EXTENSION_FORMATS = {
    "docx": DocumentFormat.DOCX,
    "txt": DocumentFormat.TXT,
    "pdf": DocumentFormat.PDF,
    "pptx": DocumentFormat.PPTX,
    "jpg": DocumentFormat.IMAGE,
    "jpeg": DocumentFormat.IMAGE,
    "png": DocumentFormat.IMAGE,
    "bmp": DocumentFormat.IMAGE,
    "gif": DocumentFormat.IMAGE,
}


def extension_of(name: str) -> str:
    """'notes.PDF', '.pdf' and 'PDF' all give 'pdf'."""
    name = (name or "").strip()
    _, ext = os.path.splitext(name)
    if not ext:
        ext = name
    return ext.lstrip(".").lower()


def resolve_format(name: str) -> DocumentFormat:
    """ Map an extension tag or filename to a DocumentFormat. """
    ext = extension_of(name)
    try:
        return EXTENSION_FORMATS[ext]
    except KeyError:
        raise UnsupportedFormatError(ext) from None


def is_supported_format(name: str) -> bool:
    return extension_of(name) in EXTENSION_FORMATS


def create_adapter(
    fmt: DocumentFormat,
    image_adapter: Optional[ImageAdapter] = None,
) -> BaseFormatAdapter:
    """ Create the adapter for a format. """
    if fmt == DocumentFormat.DOCX:
        return DocxAdapter()

    elif fmt == DocumentFormat.TXT:
        return TxtAdapter()

    elif fmt == DocumentFormat.PDF:
        return PdfAdapter()

    elif fmt == DocumentFormat.PPTX:
        return PptxAdapter()

    elif fmt == DocumentFormat.IMAGE:
        return image_adapter or ImageAdapter()

    else:
        raise UnsupportedFormatError(str(fmt))
