"""Image adapter backed by an OCR engine (Tesseract by default)."""

import contextlib
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List

import pytesseract
from PIL import Image, UnidentifiedImageError

from quizforge.models import DocumentFormat
from quizforge.utils.errors import ExtractionError
from .base import AdapterResult, BaseFormatAdapter, ExtractionOptions

logger = logging.getLogger(__name__)


@dataclass
class OCRLine:
    text: str


@dataclass
class OCRBlock:
    lines: List[OCRLine] = field(default_factory=list)


class TesseractOCREngine:
    """
    recognize(path) -> blocks -> lines, in Tesseract's reading order.

    Words come back from image_to_data tagged with block/paragraph/line
    numbers; they are regrouped into lines and lines into blocks.
    """

    def __init__(self, language: str = "eng"):
        self.language = language
        self.closed = False

    def recognize(self, path: str) -> List[OCRBlock]:
        if self.closed:
            raise RuntimeError("OCR engine is closed")
        try:
            image = Image.open(path)
        except (UnidentifiedImageError, OSError) as e:
            raise ExtractionError("IMAGE", e) from e

        with image:
            data = pytesseract.image_to_data(
                image, lang=self.language, output_type=pytesseract.Output.DICT
            )

        blocks: dict = {}
        for i, word in enumerate(data["text"]):
            if not word or not word.strip():
                continue
            block_key = data["block_num"][i]
            line_key = (data["par_num"][i], data["line_num"][i])
            blocks.setdefault(block_key, {}).setdefault(line_key, []).append(word.strip())

        return [
            OCRBlock(lines=[OCRLine(text=" ".join(words)) for words in lines.values()])
            for lines in blocks.values()
        ]

    def close(self) -> None:
        self.closed = True


class ImageAdapter(BaseFormatAdapter):
    """
    OCR needs a path-addressable file; raw bytes are rejected outright
    rather than written somewhere and retried.
    """

    format = DocumentFormat.IMAGE

    def __init__(self, engine_factory: Callable[[], "TesseractOCREngine"] = TesseractOCREngine):
        self.engine_factory = engine_factory

    def extract(self, file_bytes: bytes, options: ExtractionOptions) -> AdapterResult:
        if not options.path:
            raise ExtractionError(
                "IMAGE",
                "Image processing from bytes is not supported. Please use a file path instead.",
            )
        if not os.path.isfile(options.path):
            raise ExtractionError("IMAGE", f"File does not exist: {options.path}")

        with contextlib.closing(self.engine_factory()) as engine:
            blocks = engine.recognize(options.path)

        lines = [line.text for block in blocks for line in block.lines]
        logger.info(f"OCR recognized {len(lines)} lines in {len(blocks)} blocks")
        return AdapterResult(
            text="".join(f"{line}\n" for line in lines),
            metadata={"block_count": len(blocks), "line_count": len(lines)},
        )
