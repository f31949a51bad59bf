import logging
from typing import Optional

from fastapi import FastAPI, Form, HTTPException, UploadFile

from quizforge.models import QuizResult, QuizType
from quizforge.parsers import is_supported_format
from quizforge.schemas import FlashcardsResponse, HealthResponse, QuizRequest, SummaryResponse
from quizforge.services.quiz_service import QuizData, QuizService
from quizforge.utils.config import settings
from quizforge.utils.errors import CompletionError, ExtractionError, SynthesisError, UnsupportedFormatError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="QuizForge")
quiz_service = QuizService(settings)


def _http_error(e: Exception, action: str) -> HTTPException:
    if isinstance(e, (UnsupportedFormatError, ValueError)):
        return HTTPException(400, str(e))
    if isinstance(e, ExtractionError):
        return HTTPException(422, str(e))
    if isinstance(e, CompletionError):
        return HTTPException(503, str(e))
    if isinstance(e, SynthesisError):
        return HTTPException(502, f"Error {action}: {str(e)}")
    # completion/OCR transport errors are surfaced as-is
    logger.exception(f"Error {action}")
    return HTTPException(502, f"Error {action}: {str(e)}")


async def _read_upload(file: UploadFile) -> bytes:
    if not (file.filename and is_supported_format(file.filename)):
        raise HTTPException(400, f"Unsupported file format: {file.filename}")
    return await file.read()


@app.post("/generate-quiz/", response_model=QuizData)
async def generate_quiz(
    file: UploadFile,
    question_count: Optional[int] = Form(None),
    quiz_type: QuizType = Form(QuizType.MULTIPLE_CHOICE),
    max_slides: Optional[int] = Form(None),
):
    file_bytes = await _read_upload(file)
    try:
        return quiz_service.generate_quiz(
            file.filename,
            file_bytes,
            question_count=question_count,
            quiz_type=quiz_type,
            max_slides=max_slides,
        )
    except Exception as e:
        raise _http_error(e, "generating quiz") from e

@app.post("/evaluate-quiz/", response_model=QuizResult)
async def evaluate_quiz(request: QuizRequest):
    try:
        return quiz_service.evaluate_quiz(request.quiz_id, request.answers)
    except KeyError:
        raise HTTPException(404, "Quiz not found")
    except ValueError as e:
        raise HTTPException(422, f"Error evaluating quiz: {str(e)}")

@app.post("/summary/", response_model=SummaryResponse)
async def summary(file: UploadFile):
    file_bytes = await _read_upload(file)
    try:
        return SummaryResponse(summary=quiz_service.generate_summary(file.filename, file_bytes))
    except Exception as e:
        raise _http_error(e, "generating summary") from e

@app.post("/flashcards/", response_model=FlashcardsResponse)
async def flashcards(file: UploadFile, card_count: Optional[int] = Form(None)):
    file_bytes = await _read_upload(file)
    try:
        cards = quiz_service.generate_flashcards(file.filename, file_bytes, card_count=card_count)
        return FlashcardsResponse(flashcards=cards)
    except Exception as e:
        raise _http_error(e, "generating flashcards") from e

@app.get("/health/", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", llm_model=settings.llm_model, api_key=settings.api_key_status)
