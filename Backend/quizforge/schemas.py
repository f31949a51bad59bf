from typing import Optional, Union

from pydantic import BaseModel

from quizforge.models import Flashcard

class QuizRequest(BaseModel):
    quiz_id: str
    answers: list[Optional[Union[int, str]]]  # by question position

class SummaryResponse(BaseModel):
    summary: str

class FlashcardsResponse(BaseModel):
    flashcards: list[Flashcard]

class HealthResponse(BaseModel):
    status: str
    llm_model: str
    api_key: str
