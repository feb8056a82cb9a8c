"""
models/session_state.py

State carried by a single quiz attempt: lifecycle state, answer ledger,
attempt result. No UI code.
"""

import time
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from quiz_client.models.question_model import QuizConfiguration, QuizSet


class SessionState(str, Enum):
    """Lifecycle of one quiz attempt."""

    CONFIGURING = "configuring"
    GENERATING = "generating"
    READY = "ready"
    SUBMITTED = "submitted"


class Verdict(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


class _Unanswered:
    """Sentinel returned by AnswerLedger.get() for questions with no answer."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNANSWERED"

    def __bool__(self) -> bool:
        return False


UNANSWERED = _Unanswered()


class AnswerLedger:
    """
    Answer sheet: question id -> chosen option (objective) or free text.

    Keys appear only when the user acts. Ids that are not in the current
    quiz set are accepted and simply never read.
    """

    def __init__(self) -> None:
        self._answers: Dict[str, str] = {}

    def record(self, question_id: str, value: str) -> None:
        self._answers[str(question_id)] = value

    def get(self, question_id: str):
        return self._answers.get(str(question_id), UNANSWERED)

    def clear(self) -> None:
        self._answers.clear()

    def snapshot(self) -> Dict[str, str]:
        """Copy of the recorded answers."""
        return dict(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, question_id) -> bool:
        return str(question_id) in self._answers


class AttemptResult(BaseModel):
    """
    Score of one submitted objective quiz. Produced once, never mutated.

    Attributes:
        topic:     Topic echoed by the quiz set.
        correct:   Number of questions answered with the correct option.
        total:     Number of questions in the quiz set.
        verdicts:  Per-question verdicts, in quiz order.
        timestamp: Unix time the result was computed.
    """

    model_config = ConfigDict(frozen=True)

    topic: str
    correct: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    verdicts: Tuple[Tuple[str, Verdict], ...] = ()
    timestamp: float = Field(default_factory=time.time)

    def verdict_for(self, question_id: str) -> Optional[Verdict]:
        for qid, verdict in self.verdicts:
            if qid == question_id:
                return verdict
        return None

    def to_history_payload(self) -> dict:
        """History-save request body."""
        return {"topic": self.topic, "score": self.correct, "totalQuestions": self.total}


class Session(BaseModel):
    """
    Everything one quiz attempt owns.

    The quiz set and ledger are owned exclusively by this session. The quiz
    set is frozen all the way down; the ledger is only exposed as snapshots.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: SessionState = SessionState.CONFIGURING
    config: Optional[QuizConfiguration] = None
    quiz: Optional[QuizSet] = None
    ledger: AnswerLedger = Field(default_factory=AnswerLedger)
    result: Optional[AttemptResult] = None
    error: Optional[str] = None
