from typing import Optional, Union

from quizforge.models import QuizQuestion, QuizResult, QuizType

Answer = Union[int, str, None]


def score_answer(question: QuizQuestion, answer: Answer) -> bool:
    """
    Index equality for multiple choice and true/false; trimmed,
    case-insensitive text equality for enumeration. Unanswered is wrong.
    """
    if answer is None:
        return False
    if question.type == QuizType.ENUMERATION:
        if not isinstance(answer, str):
            return False
        return answer.strip().lower() == question.correct_answer.strip().lower()
    if isinstance(answer, bool) or not isinstance(answer, int):
        return False
    return answer == question.correct_answer_index


class QuizSession:
    """
    In-memory state of one quiz attempt: answers by position and a cursor.

    Index answers (multiple choice, true/false) and free-text answers
    (enumeration) live in parallel lists.
    """

    def __init__(self, questions: list[QuizQuestion]):
        self.questions = list(questions)
        self.restart()

    def restart(self) -> None:
        self.current_index = 0
        self.user_answers: list[Optional[int]] = [None] * len(self.questions)
        self.text_answers: list[Optional[str]] = [None] * len(self.questions)

    @property
    def current_question(self) -> QuizQuestion:
        return self.questions[self.current_index]

    def select_answer(self, answer_index: int, position: Optional[int] = None) -> None:
        pos = self.current_index if position is None else position
        self.user_answers[pos] = answer_index

    def answer_text(self, text: str, position: Optional[int] = None) -> None:
        pos = self.current_index if position is None else position
        self.text_answers[pos] = text

    def answer(self, position: int, value: Answer) -> None:
        """Record whichever kind of answer the question at position takes."""
        if value is None:
            self.user_answers[position] = None
            self.text_answers[position] = None
        elif self.questions[position].type == QuizType.ENUMERATION:
            self.answer_text(str(value), position)
        elif isinstance(value, int) and not isinstance(value, bool):
            self.select_answer(value, position)
        else:
            raise ValueError(f"question {position} takes an answer index, got {value!r}")

    def answer_at(self, position: int) -> Answer:
        if self.questions[position].type == QuizType.ENUMERATION:
            return self.text_answers[position]
        return self.user_answers[position]

    def is_answered(self, position: Optional[int] = None) -> bool:
        pos = self.current_index if position is None else position
        value = self.answer_at(pos)
        if isinstance(value, str):
            return bool(value.strip())
        return value is not None

    def is_current_correct(self) -> bool:
        return score_answer(self.current_question, self.answer_at(self.current_index))

    def next_question(self) -> bool:
        """Advance the cursor; False once the last question is reached."""
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1
            return True
        return False

    def previous_question(self) -> bool:
        if self.current_index > 0:
            self.current_index -= 1
            return True
        return False

    @property
    def is_finished(self) -> bool:
        return all(self.is_answered(i) for i in range(len(self.questions)))


def score_session(session: QuizSession) -> QuizResult:
    score = sum(
        1 for i, q in enumerate(session.questions)
        if score_answer(q, session.answer_at(i))
    )
    return QuizResult(
        questions=session.questions,
        score=score,
        total_questions=len(session.questions),
        user_answers=[-1 if a is None else a for a in session.user_answers],
        text_answers=list(session.text_answers),
    )
