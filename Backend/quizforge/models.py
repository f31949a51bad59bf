from enum import Enum
from typing import Annotated, ClassVar, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    computed_field,
    field_validator,
    model_validator,
)

TRUE_FALSE_CHOICES = ("True", "False")


class QuizType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    ENUMERATION = "enumeration"
    TRUE_FALSE = "true_false"

    @classmethod
    def parse(cls, value) -> "QuizType":
        """Case-insensitive lookup; anything unrecognised is multiple choice."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        return cls.MULTIPLE_CHOICE


class DocumentFormat(str, Enum):
    DOCX = "docx"
    TXT = "txt"
    PDF = "pdf"
    PPTX = "pptx"
    IMAGE = "image"


class TruncationReason(str, Enum):
    SLIDE_CAP = "slide_cap"
    WORD_ESTIMATE = "word_estimate"
    CHUNKED = "chunked"


class ExtractedDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    source_format: DocumentFormat
    truncated: bool = False
    chunk_count: int = 1
    truncation_reason: Optional[TruncationReason] = None


# Quiz questions: one variant per quiz type, discriminated on "type"

class _QuestionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ClassVar[QuizType]

    type: QuizType
    question: str = Field(..., min_length=1)
    choices: list[str] = Field(default_factory=list)
    correct_answer_index: int = 0
    explanation: str = ""

    @field_validator("type")
    @classmethod
    def _type_matches_kind(cls, v: QuizType) -> QuizType:
        if v != cls.kind:
            raise ValueError(f"expected type {cls.kind.value}, got {v.value}")
        return v

    @field_validator("question")
    @classmethod
    def _question_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("question text is blank")
        return v


class MultipleChoiceQuestion(_QuestionBase):
    kind: ClassVar[QuizType] = QuizType.MULTIPLE_CHOICE

    type: QuizType = QuizType.MULTIPLE_CHOICE
    choices: list[str] = Field(..., min_length=4, max_length=4)
    correct_answer_index: int = Field(0, ge=0, le=3)


class EnumerationQuestion(_QuestionBase):
    kind: ClassVar[QuizType] = QuizType.ENUMERATION

    type: QuizType = QuizType.ENUMERATION
    correct_answer: str

    @field_validator("correct_answer")
    @classmethod
    def _answer_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("correct_answer is blank")
        return v


class TrueFalseQuestion(_QuestionBase):
    kind: ClassVar[QuizType] = QuizType.TRUE_FALSE

    type: QuizType = QuizType.TRUE_FALSE
    choices: list[str] = Field(default_factory=lambda: list(TRUE_FALSE_CHOICES))
    correct_answer_index: int = Field(0, ge=0, le=1)
    is_true: bool

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        choices = data.get("choices")
        if not choices:
            data["choices"] = list(TRUE_FALSE_CHOICES)
        elif isinstance(choices, list) and [str(c).strip().lower() for c in choices] == ["true", "false"]:
            data["choices"] = list(TRUE_FALSE_CHOICES)
        if data.get("is_true") is None:
            try:
                data["is_true"] = int(data.get("correct_answer_index", 0)) == 0
            except (TypeError, ValueError):
                pass
        return data

    @model_validator(mode="after")
    def _check_consistency(self):
        if list(self.choices) != list(TRUE_FALSE_CHOICES):
            raise ValueError(f"true/false choices must be {list(TRUE_FALSE_CHOICES)}")
        if self.is_true != (self.correct_answer_index == 0):
            raise ValueError("is_true disagrees with correct_answer_index")
        return self


def _question_tag(value) -> str:
    # a missing or unknown type is multiple choice
    raw = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return QuizType.parse(raw).value


QuizQuestion = Annotated[
    Union[
        Annotated[MultipleChoiceQuestion, Tag(QuizType.MULTIPLE_CHOICE.value)],
        Annotated[EnumerationQuestion, Tag(QuizType.ENUMERATION.value)],
        Annotated[TrueFalseQuestion, Tag(QuizType.TRUE_FALSE.value)],
    ],
    Discriminator(_question_tag),
]

question_adapter = TypeAdapter(QuizQuestion)


class QuizResult(BaseModel):
    questions: list[QuizQuestion]
    score: int
    total_questions: int
    user_answers: list[int]
    text_answers: list[Optional[str]] = Field(default_factory=list)

    @computed_field
    @property
    def percentage(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return self.score / self.total_questions * 100


class Flashcard(BaseModel):
    model_config = ConfigDict(frozen=True)

    front: str
    back: str
