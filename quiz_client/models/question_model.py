"""
models/question_model.py

Quiz question, generated quiz set and quiz configuration models.
Pydantic v2. No network or UI code.
"""

import logging
from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

MIN_QUESTIONS = 1
MAX_QUESTIONS = 20

DIFFICULTIES = ("Easy", "Medium", "Hard")


class QuestionKind(str, Enum):
    """How a question is answered and graded."""

    OBJECTIVE = "objective"   # single correct option, machine-gradable
    FREE_FORM = "free-form"   # reference answer only


# Question type as chosen in the configuration form -> question kind
QUESTION_TYPES = {
    "MCQ": QuestionKind.OBJECTIVE,
    "Short-answer": QuestionKind.FREE_FORM,
}


class Question(BaseModel):
    """
    One generated question.

    For objective questions `options` holds the ordered choices and
    `answer` the designated correct option. For free-form questions
    `options` is empty and `answer` is the reference answer, revealed only
    after submission.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        description="Opaque question identity, unique within a quiz set"
    )
    question_text: str = Field(
        ...,
        min_length=1,
        description="Prompt text"
    )
    kind: QuestionKind = Field(
        ...,
        description="objective | free-form"
    )
    options: Tuple[str, ...] = Field(
        default=(),
        description="Ordered option strings (objective only)"
    )
    answer: str = Field(
        default="",
        description="Correct option (objective) or reference answer (free-form)"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """Backends send numeric ids; identities are compared as strings."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @model_validator(mode="after")
    def validate_kind_shape(self) -> "Question":
        if self.kind is QuestionKind.OBJECTIVE:
            if len(self.options) < 2:
                raise ValueError("objective questions need at least 2 options")
            if self.answer not in self.options:
                # Kept, but never scored as correct (see exam_service.judge).
                logger.warning(
                    f"Q{self.id}: correct answer {self.answer!r} matches no option"
                )
        elif self.options:
            raise ValueError("free-form questions carry no options")
        return self

    @property
    def has_valid_answer_key(self) -> bool:
        return self.kind is QuestionKind.OBJECTIVE and self.answer in self.options


class QuizSet(BaseModel):
    """Questions returned by one generation response. Immutable."""

    model_config = ConfigDict(frozen=True)

    topic: str
    questions: tuple[Question, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "QuizSet":
        ids = [q.id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError("question ids must be unique within a quiz set")
        return self

    @property
    def kind(self) -> QuestionKind:
        return self.questions[0].kind


class QuizConfiguration(BaseModel):
    """
    Quiz request form. Field names follow the generation collaborator's
    wire format through aliases.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    topic: str = Field(
        ...,
        description="Quiz topic (non-empty)"
    )
    num_questions: int = Field(
        ...,
        alias="numQuestions",
        description=f"Question count ({MIN_QUESTIONS}-{MAX_QUESTIONS})"
    )
    difficulty: str = Field(
        ...,
        description="One of DIFFICULTIES"
    )
    question_type: str = Field(
        ...,
        alias="questionType",
        description="One of QUESTION_TYPES"
    )

    @field_validator("topic")
    @classmethod
    def validate_topic(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("topic must not be empty")
        return v.strip()

    @field_validator("num_questions")
    @classmethod
    def validate_count(cls, v: int) -> int:
        if not MIN_QUESTIONS <= v <= MAX_QUESTIONS:
            raise ValueError(
                f"numQuestions must be between {MIN_QUESTIONS} and {MAX_QUESTIONS}"
            )
        return v

    @field_validator("difficulty")
    @classmethod
    def validate_difficulty(cls, v: str) -> str:
        if v not in DIFFICULTIES:
            raise ValueError(f"difficulty must be one of {list(DIFFICULTIES)}")
        return v

    @field_validator("question_type")
    @classmethod
    def validate_question_type(cls, v: str) -> str:
        if v not in QUESTION_TYPES:
            raise ValueError(f"questionType must be one of {list(QUESTION_TYPES)}")
        return v

    @property
    def kind(self) -> QuestionKind:
        return QUESTION_TYPES[self.question_type]

    def to_payload(self) -> dict:
        """Generation request body."""
        return self.model_dump(by_alias=True)
