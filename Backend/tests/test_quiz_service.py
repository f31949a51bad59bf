# =============================================================================
# QuizService: extraction -> prompt -> completion -> synthesis -> scoring
# =============================================================================

import json
import os

import pytest

from conftest import FakeCompletionService, mc_item
from quizforge.models import DocumentFormat, QuizType
from quizforge.services.llm import _message_text, create_completion_service
from quizforge.services.quiz_service import QuizService
from quizforge.utils.errors import CompletionError, ExtractionError, SynthesisError, UnsupportedFormatError

NOTES = b"Mitochondria produce ATP through cellular respiration."


@pytest.fixture
def make_service(config, image_adapter):
    def _make(*replies):
        return QuizService(config, completion=FakeCompletionService(*replies), image_adapter=image_adapter)
    return _make


class TestGenerateQuiz:
    def test_generates_and_stores_quiz(self, make_service, quiz_reply):
        service = make_service(quiz_reply)
        quiz = service.generate_quiz("notes.txt", NOTES, question_count=1)
        assert quiz.quiz_id.startswith("quiz_")
        assert quiz.quiz_type == QuizType.MULTIPLE_CHOICE
        assert quiz.source_format == DocumentFormat.TXT
        assert len(quiz.questions) == 1
        assert service.quizzes[quiz.quiz_id] == quiz.questions

    def test_prompt_carries_document_and_count(self, make_service, quiz_reply):
        service = make_service(quiz_reply)
        service.generate_quiz("notes.txt", NOTES, question_count=1, quiz_type="true_false")
        prompt = service.completion.prompts[0]
        assert NOTES.decode() in prompt
        assert "create exactly 1 true/false" in prompt

    def test_default_question_count(self, make_service, quiz_reply):
        service = make_service(quiz_reply)
        service.generate_quiz("notes.txt", NOTES)
        assert "create exactly 5" in service.completion.prompts[0]

    @pytest.mark.parametrize("count", [0, 21])
    def test_question_count_out_of_range(self, make_service, count):
        service = make_service()
        with pytest.raises(ValueError):
            service.generate_quiz("notes.txt", NOTES, question_count=count)

    def test_unsupported_format(self, make_service):
        with pytest.raises(UnsupportedFormatError):
            make_service().generate_quiz("notes.odt", NOTES)

    def test_empty_document(self, make_service):
        service = make_service()
        with pytest.raises(ExtractionError):
            service.generate_quiz("notes.txt", b"  \n\n ")
        assert service.completion.prompts == []

    def test_synthesis_failure_is_not_retried(self, make_service):
        service = make_service("Sorry, no quiz today.", json.dumps([mc_item()]))
        with pytest.raises(SynthesisError):
            service.generate_quiz("notes.txt", NOTES, question_count=1)
        assert len(service.completion.prompts) == 1
        assert service.quizzes == {}

    def test_completion_errors_pass_through(self, make_service):
        service = make_service(TimeoutError("deadline exceeded"))
        with pytest.raises(TimeoutError, match="deadline exceeded"):
            service.generate_quiz("notes.txt", NOTES, question_count=1)

    def test_image_upload_goes_through_a_temp_file(self, make_service, ocr_engine, quiz_reply):
        service = make_service(quiz_reply)
        quiz = service.generate_quiz("board.png", b"\x89PNG fake", question_count=1)
        assert quiz.source_format == DocumentFormat.IMAGE
        assert len(ocr_engine.paths) == 1
        assert ocr_engine.paths[0].endswith(".png")
        assert not os.path.exists(ocr_engine.paths[0])
        assert ocr_engine.closed is True
        assert "The water cycle" in service.completion.prompts[0]

    def test_large_upload_warning(self, make_service, quiz_reply):
        service = make_service(quiz_reply)
        service.config = service.config.model_copy(update={"large_file_warning_mb": 0.00001})
        quiz = service.generate_quiz("notes.txt", NOTES, question_count=1)
        assert len(quiz.warnings) == 1
        assert "Large files may take longer" in quiz.warnings[0]


class TestEvaluateQuiz:
    def test_scores_answers_by_position(self, make_service, quiz_reply):
        service = make_service(quiz_reply)
        quiz = service.generate_quiz("notes.txt", NOTES, question_count=1)
        result = service.evaluate_quiz(quiz.quiz_id, [1])
        assert result.score == 1
        assert result.percentage == 100.0

    def test_missing_answers_are_unanswered(self, make_service):
        reply = json.dumps([mc_item(), mc_item(question="Second?", index=2)])
        service = make_service(reply)
        quiz = service.generate_quiz("notes.txt", NOTES, question_count=2)
        result = service.evaluate_quiz(quiz.quiz_id, [1])
        assert result.score == 1
        assert result.user_answers == [1, -1]

    def test_unknown_quiz(self, make_service):
        with pytest.raises(KeyError):
            make_service().evaluate_quiz("quiz_0000_0", [0])

    def test_discard(self, make_service, quiz_reply):
        service = make_service(quiz_reply)
        quiz = service.generate_quiz("notes.txt", NOTES, question_count=1)
        service.discard_quiz(quiz.quiz_id)
        with pytest.raises(KeyError):
            service.start_session(quiz.quiz_id)


class TestStudyAids:
    def test_summary(self, make_service):
        service = make_service("  Cells make energy.  ")
        assert service.generate_summary("notes.txt", NOTES) == "Cells make energy."
        assert "study summary" in service.completion.prompts[0]

    def test_flashcards(self, make_service):
        service = make_service('[{"front": "ATP", "back": "Energy currency"}]')
        cards = service.generate_flashcards("notes.txt", NOTES, card_count=3)
        assert [(c.front, c.back) for c in cards] == [("ATP", "Energy currency")]
        assert "exactly 3 flashcards" in service.completion.prompts[0]


class TestCompletionService:
    def test_missing_api_key(self, config):
        with pytest.raises(CompletionError, match="GOOGLE_API_KEY"):
            create_completion_service(config)

    def test_lazy_completion_reports_missing_key(self, config):
        service = QuizService(config)
        with pytest.raises(CompletionError):
            service.generate_quiz("notes.txt", NOTES, question_count=1)

    def test_message_text_joins_content_parts(self):
        assert _message_text("plain") == "plain"
        assert _message_text([{"type": "text", "text": "[1"}, "]", {"type": "image"}]) == "[1]"
