import io
import json
import zipfile

import docx
import fitz  # PyMuPDF
import pytest

from quizforge.parsers.image_parser import ImageAdapter, OCRBlock, OCRLine
from quizforge.utils.config import Settings

PPTX_SLIDE_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<p:sld xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main" '
    'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main">'
    "<p:cSld><p:spTree><p:sp><p:txBody>{paragraphs}</p:txBody></p:sp></p:spTree></p:cSld>"
    "</p:sld>"
)


def make_pptx(slides: dict) -> bytes:
    """Build a minimal deck: {slide number: [text runs]}."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for number, runs in slides.items():
            paragraphs = "".join(f"<a:p><a:r><a:t>{run}</a:t></a:r></a:p>" for run in runs)
            archive.writestr(f"ppt/slides/slide{number}.xml", PPTX_SLIDE_XML.format(paragraphs=paragraphs))
            archive.writestr(f"ppt/slides/_rels/slide{number}.xml.rels", "<Relationships/>")
    return buffer.getvalue()


def mc_item(question="What produces ATP?", index=1, **extra) -> dict:
    item = {
        "question": question,
        "choices": ["Nucleus", "Mitochondria", "Ribosome", "Golgi body"],
        "correct_answer_index": index,
        "explanation": "Mitochondria run cellular respiration.",
        "type": "multiple_choice",
    }
    item.update(extra)
    return item


class FakeCompletionService:
    """Returns canned replies in order and records every prompt."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeOCREngine:
    def __init__(self, lines=None, error=None):
        self.lines = lines or []
        self.error = error
        self.closed = False
        self.paths = []

    def recognize(self, path):
        self.paths.append(path)
        if self.error:
            raise self.error
        return [OCRBlock(lines=[OCRLine(text=line) for line in self.lines])]

    def close(self):
        self.closed = True


@pytest.fixture
def config():
    return Settings(_env_file=None, google_api_key="", token_budget=8000)


@pytest.fixture
def docx_bytes():
    document = docx.Document()
    document.add_paragraph("Photosynthesis converts light energy into chemical energy.")
    document.add_paragraph("Chlorophyll absorbs mostly blue and red light.")
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def pdf_bytes():
    with fitz.open() as doc:
        doc.new_page().insert_text((72, 72), "Cells are the basic unit of life.")
        doc.new_page()  # blank page
        doc.new_page().insert_text((72, 72), "Mitochondria produce ATP.")
        return doc.tobytes()


@pytest.fixture
def twelve_slide_deck():
    return make_pptx({n: [f"Slide {n}"] for n in range(1, 13)})


@pytest.fixture
def ocr_engine():
    return FakeOCREngine(lines=["The water cycle", "Evaporation and condensation"])


@pytest.fixture
def image_adapter(ocr_engine):
    return ImageAdapter(engine_factory=lambda: ocr_engine)


@pytest.fixture
def quiz_reply():
    return json.dumps([mc_item()])
