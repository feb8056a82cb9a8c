# =============================================================================
# CONFTEST - Shared fixtures
# =============================================================================

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from quiz_client.models.question_model import Question, QuestionKind, QuizSet
from quiz_client.services.credential_store import CredentialStore


ROME_OPTIONS = [
    ["Augustus", "Nero", "Caligula", "Trajan"],
    ["Tiber", "Po", "Arno", "Rhine"],
    ["753 BC", "509 BC", "27 BC", "476 AD"],
]
ROME_ANSWERS = ["Augustus", "Tiber", "753 BC"]


# =============================================================================
# Configuration and payload fixtures
# =============================================================================


@pytest.fixture
def rome_config():
    return {"topic": "Rome", "numQuestions": 3, "difficulty": "Easy", "questionType": "MCQ"}


@pytest.fixture
def short_answer_config():
    return {"topic": "Rome", "numQuestions": 2, "difficulty": "Medium", "questionType": "Short-answer"}


@pytest.fixture
def mcq_payload():
    """Generation response exactly as the backend sends it."""
    return {
        "topic": "Rome",
        "questions": [
            {
                "id": i + 1,
                "questionText": f"Rome question {i + 1}",
                "options": json.dumps(ROME_OPTIONS[i]),
                "correctAnswer": ROME_ANSWERS[i],
            }
            for i in range(3)
        ],
    }


@pytest.fixture
def short_answer_payload():
    return {
        "topic": "Rome",
        "questions": [
            {"id": 1, "questionText": "Who founded Rome?", "options": None,
             "correctAnswer": "Romulus"},
            {"id": 2, "questionText": "Name the Roman forum.", "options": None,
             "correctAnswer": "Forum Romanum"},
        ],
    }


def build_mcq_quiz(topic: str = "Rome") -> QuizSet:
    return QuizSet(
        topic=topic,
        questions=tuple(
            Question(
                id=str(i + 1),
                question_text=f"{topic} question {i + 1}",
                kind=QuestionKind.OBJECTIVE,
                options=ROME_OPTIONS[i],
                answer=ROME_ANSWERS[i],
            )
            for i in range(3)
        ),
    )


def build_free_form_quiz(topic: str = "Rome") -> QuizSet:
    return QuizSet(
        topic=topic,
        questions=(
            Question(id="1", question_text="Who founded Rome?",
                     kind=QuestionKind.FREE_FORM, answer="Romulus"),
            Question(id="2", question_text="Name the Roman forum.",
                     kind=QuestionKind.FREE_FORM, answer="Forum Romanum"),
        ),
    )


@pytest.fixture
def mcq_quiz():
    return build_mcq_quiz()


@pytest.fixture
def free_form_quiz():
    return build_free_form_quiz()


# =============================================================================
# Collaborator fixtures
# =============================================================================


@pytest.fixture
def store():
    return CredentialStore()


@pytest.fixture
def logged_in_store():
    s = CredentialStore()
    s.set("token-123", "alice")
    return s


@pytest.fixture
def mock_backend(mcq_quiz):
    """Backend collaborator that answers immediately."""
    backend = AsyncMock()
    backend.generate_quiz = AsyncMock(return_value=mcq_quiz)
    backend.save_history = AsyncMock(return_value=None)
    backend.fetch_history = AsyncMock(return_value=[])
    return backend


class ControlledBackend:
    """
    Backend whose generation responses are released by the test, in any
    order, to exercise stale-response handling.
    """

    def __init__(self):
        self.pending: list[asyncio.Future] = []
        self.save_history = AsyncMock(return_value=None)

    async def generate_quiz(self, config):
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future


@pytest.fixture
def controlled_backend():
    return ControlledBackend()
