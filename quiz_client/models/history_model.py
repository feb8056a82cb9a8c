"""
models/history_model.py

Past quiz attempts as returned by the history collaborator.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int | str
    topic: str
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0, alias="totalQuestions")
    attempted_at: datetime = Field(..., alias="attemptedAt")

    @property
    def taken_on(self) -> date:
        return self.attempted_at.date()

    def to_display(self) -> dict:
        return {
            "id": self.id,
            "topic": self.topic,
            "score": self.score,
            "total": self.total_questions,
            "taken_on": self.taken_on.isoformat(),
        }
