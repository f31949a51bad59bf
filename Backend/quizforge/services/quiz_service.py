import time
import random
import logging
from typing import Optional

from pydantic import BaseModel, Field

from quizforge.models import DocumentFormat, ExtractedDocument, Flashcard, QuizQuestion, QuizResult, QuizType
from quizforge.parsers import extension_of, resolve_format
from quizforge.services.llm import CompletionService, create_completion_service
from quizforge.services.prompts import build_flashcards_prompt, build_quiz_prompt, build_summary_prompt
from quizforge.services.response_parser import parse_flashcards, synthesize
from quizforge.services.scoring import QuizSession, score_session
from quizforge.utils.config import Settings, settings
from quizforge.utils.errors import ExtractionError
from quizforge.utils.file_processing import (
    effective_max_slides,
    file_size_mb,
    process_document,
    size_warning,
    temporary_upload,
)

logger = logging.getLogger(__name__)


class QuizData(BaseModel):
    quiz_id: str
    quiz_type: QuizType
    source_format: DocumentFormat
    questions: list[QuizQuestion]
    truncated: bool = False
    chunk_count: int = 1
    warnings: list[str] = Field(default_factory=list)


class QuizService:
    """
    Runs the pipeline end to end and keeps generated quizzes in memory.

    Nothing is persisted: quizzes live in self.quizzes for the lifetime of
    the process.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        completion: Optional[CompletionService] = None,
        image_adapter=None,
    ):
        self.config = config or settings
        self.quizzes: dict[str, list[QuizQuestion]] = {}
        self._completion = completion
        self.image_adapter = image_adapter

    @property
    def completion(self) -> CompletionService:
        if self._completion is None:
            self._completion = create_completion_service(self.config)
        return self._completion

    @completion.setter
    def completion(self, service: CompletionService) -> None:
        self._completion = service

    def extract(
        self,
        filename: str,
        file_bytes: Optional[bytes] = None,
        path: Optional[str] = None,
        max_slides: Optional[int] = None,
    ) -> tuple[ExtractedDocument, list[str]]:
        """Extract one upload; returns the document and any size warnings."""
        source_format = resolve_format(filename)
        warnings = []
        size_mb = file_size_mb(file_bytes) if file_bytes is not None else 0.0
        warning = size_warning(size_mb, self.config)
        if warning:
            warnings.append(warning)

        max_slides = effective_max_slides(source_format, size_mb, max_slides, self.config)
        if max_slides is not None and source_format == DocumentFormat.PPTX:
            logger.info(f"Limiting PPTX to the first {max_slides} slides")

        if source_format == DocumentFormat.IMAGE and path is None and file_bytes is not None:
            # OCR only reads from disk
            with temporary_upload(file_bytes, suffix=f".{extension_of(filename)}") as tmp_path:
                document = process_document(
                    filename, None, tmp_path, max_slides, self.config, self.image_adapter
                )
        else:
            document = process_document(
                filename, file_bytes, path, max_slides, self.config, self.image_adapter
            )

        if not document.text.strip():
            raise ExtractionError(source_format.name, "No text could be extracted from the file")
        return document, warnings

    def _question_count(self, question_count: Optional[int]) -> int:
        count = self.config.default_question_count if question_count is None else question_count
        if count < 1 or count > self.config.max_question_count:
            raise ValueError(f"question_count must be between 1 and {self.config.max_question_count}")
        return count

    def generate_questions(self, text: str, question_count: int, quiz_type: QuizType) -> list[QuizQuestion]:
        """Prompt -> completion -> synthesis; no retries."""
        prompt = build_quiz_prompt(text, question_count, quiz_type)
        reply = self.completion.complete(prompt)
        questions = synthesize(reply, quiz_type)
        if len(questions) != question_count:
            logger.warning(f"Asked for {question_count} questions, got {len(questions)}")
        return questions

    def generate_quiz(
        self,
        filename: str,
        file_bytes: Optional[bytes] = None,
        question_count: Optional[int] = None,
        quiz_type: QuizType = QuizType.MULTIPLE_CHOICE,
        max_slides: Optional[int] = None,
        path: Optional[str] = None,
    ) -> QuizData:
        """Generate and store a quiz for one uploaded document."""
        count = self._question_count(question_count)
        quiz_type = QuizType.parse(quiz_type)
        document, warnings = self.extract(filename, file_bytes, path, max_slides)
        questions = self.generate_questions(document.text, count, quiz_type)

        quiz_id = f"quiz_{random.randint(1000,9999)}_{int(time.time())}"
        self.quizzes[quiz_id] = questions
        logger.info(f"Stored {quiz_id} with {len(questions)} {quiz_type.value} questions")
        return QuizData(
            quiz_id=quiz_id,
            quiz_type=quiz_type,
            source_format=document.source_format,
            questions=questions,
            truncated=document.truncated,
            chunk_count=document.chunk_count,
            warnings=warnings,
        )

    def start_session(self, quiz_id: str) -> QuizSession:
        if quiz_id not in self.quizzes:
            raise KeyError("Quiz not found")
        return QuizSession(self.quizzes[quiz_id])

    def evaluate_quiz(self, quiz_id: str, answers: list) -> QuizResult:
        """Score answers given by position; missing positions are unanswered."""
        session = self.start_session(quiz_id)
        for position, value in enumerate(answers[:len(session.questions)]):
            session.answer(position, value)
        return score_session(session)

    def discard_quiz(self, quiz_id: str) -> None:
        self.quizzes.pop(quiz_id, None)

    def generate_summary(
        self,
        filename: str,
        file_bytes: Optional[bytes] = None,
        path: Optional[str] = None,
    ) -> str:
        document, _ = self.extract(filename, file_bytes, path)
        return self.completion.complete(build_summary_prompt(document.text)).strip()

    def generate_flashcards(
        self,
        filename: str,
        file_bytes: Optional[bytes] = None,
        card_count: Optional[int] = None,
        path: Optional[str] = None,
    ) -> list[Flashcard]:
        document, _ = self.extract(filename, file_bytes, path)
        prompt = build_flashcards_prompt(
            document.text,
            self.config.default_flashcard_count if card_count is None else card_count,
        )
        return parse_flashcards(self.completion.complete(prompt))
