"""
services/session_machine.py

Lifecycle of a single quiz attempt.

    CONFIGURING -> GENERATING -> READY -> SUBMITTED
         ^             |  ^                  |
         +-- failure --+  +-- regenerate ----+

Runs on one asyncio event loop; the only suspension points are the
collaborator calls. Generation responses are tagged so that only the most
recently issued request is ever applied. The history save after an
objective submission is fire-and-forget and never retried.
"""

import asyncio
import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from quiz_client.errors import (
    GenerationError,
    InvalidStateError,
    PersistenceWarning,
    QuizClientError,
    ValidationError,
)
from quiz_client.models.question_model import QuestionKind, QuizConfiguration, QuizSet
from quiz_client.models.session_state import AttemptResult, Session, SessionState
from quiz_client.services.exam_service import calculate_score, review_questions

logger = logging.getLogger(__name__)


class QuizSessionMachine:
    """
    Owns one Session and enforces its legal transitions.

    Args:
        generator: collaborator with `async generate_quiz(config) -> QuizSet`.
        history:   collaborator with `async save_history(payload)`.
                   Defaults to `generator`.
    """

    def __init__(self, generator, history=None):
        self._generator = generator
        self._history = history if history is not None else generator
        self._session = Session()
        self._generation_tag = 0
        self._attempt = 0
        self._awaiting = False
        self._pending_saves: set = set()
        self.persistence_warning: Optional[PersistenceWarning] = None

    # ── Read-only view ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def config(self) -> Optional[QuizConfiguration]:
        return self._session.config

    @property
    def quiz(self) -> Optional[QuizSet]:
        return self._session.quiz

    @property
    def result(self) -> Optional[AttemptResult]:
        return self._session.result

    @property
    def error(self) -> Optional[str]:
        """User-visible message of the last generation failure."""
        return self._session.error

    @property
    def awaiting_generation(self) -> bool:
        """True while a generation response is outstanding."""
        return self._awaiting

    @property
    def answers(self) -> dict:
        return self._session.ledger.snapshot()

    def get_answer(self, question_id: str):
        return self._session.ledger.get(question_id)

    def _require(self, *allowed: SessionState, action: str) -> None:
        if self._session.state not in allowed:
            raise InvalidStateError(
                f"{action}() is not allowed in state '{self._session.state.value}'"
            )

    def _transition(self, new_state: SessionState) -> None:
        old = self._session.state
        self._session.state = new_state
        logger.info(f"Session {old.value} -> {new_state.value}")

    def _reset_attempt(self) -> None:
        self._attempt += 1
        self._session.quiz = None
        self._session.ledger.clear()
        self._session.result = None
        self.persistence_warning = None

    # ── Transitions ──────────────────────────────────────────────────────────

    def configure(self, config: Union[QuizConfiguration, dict]) -> QuizConfiguration:
        """
        Set the quiz configuration. Only from CONFIGURING.

        Raises:
            ValidationError:   a field is missing or out of range; state unchanged.
            InvalidStateError: called outside CONFIGURING.
        """
        self._require(SessionState.CONFIGURING, action="configure")
        if not isinstance(config, QuizConfiguration):
            try:
                config = QuizConfiguration.model_validate(config or {})
            except PydanticValidationError as e:
                fields = ", ".join(
                    ".".join(str(p) for p in err["loc"]) or "configuration"
                    for err in e.errors()
                )
                raise ValidationError(f"Invalid quiz configuration: {fields}") from e
        self._session.config = config
        self._session.error = None
        logger.info(
            f"Configured: '{config.topic}', {config.num_questions} questions, "
            f"{config.difficulty}, {config.question_type}"
        )
        return config

    async def request_generation(self) -> Optional[QuizSet]:
        """
        Ask the generation collaborator for a new quiz set.

        Resets any previous attempt. If a newer request is issued before this
        one completes, this one's outcome is discarded and None is returned.

        Raises:
            ValidationError:  no configuration has been set.
            GenerationError:  the latest request failed; state is CONFIGURING.
        """
        config = self._session.config
        if config is None:
            raise ValidationError("Configure the quiz before requesting generation.")

        self._generation_tag += 1
        tag = self._generation_tag
        self._reset_attempt()
        self._session.error = None
        self._awaiting = True
        if self._session.state is not SessionState.GENERATING:
            self._transition(SessionState.GENERATING)

        try:
            quiz = await self._generator.generate_quiz(config)
            if quiz.kind is not config.kind:
                raise GenerationError(
                    f"Expected {config.kind.value} questions, got {quiz.kind.value}."
                )
        except asyncio.CancelledError:
            if tag == self._generation_tag:
                self._fail_generation("Quiz generation was cancelled.")
            raise
        except Exception as e:
            if tag != self._generation_tag:
                logger.debug(f"Discarding failure of superseded generation #{tag}: {e}")
                return None
            message = str(e) if isinstance(e, QuizClientError) else "Failed to generate quiz."
            if not isinstance(e, QuizClientError):
                logger.exception("Unexpected error from generation collaborator")
            self._fail_generation(message)
            if isinstance(e, GenerationError):
                raise
            raise GenerationError(message) from e

        if tag != self._generation_tag:
            logger.debug(f"Discarding superseded generation #{tag}")
            return None

        self._reset_attempt()
        self._session.quiz = quiz
        self._awaiting = False
        self._transition(SessionState.READY)
        return quiz

    def _fail_generation(self, message: str) -> None:
        self._reset_attempt()
        self._awaiting = False
        self._session.error = message
        self._transition(SessionState.CONFIGURING)

    def answer(self, question_id: str, value: str) -> None:
        """Record an answer. Only from READY."""
        self._require(SessionState.READY, action="answer")
        self._session.ledger.record(question_id, value)

    async def submit(self) -> Optional[AttemptResult]:
        """
        Finish the attempt. Only from READY.

        Objective quizzes are scored and a history save is scheduled without
        being awaited. Free-form quizzes only reveal their reference answers.
        """
        self._require(SessionState.READY, action="submit")
        quiz = self._session.quiz
        self._transition(SessionState.SUBMITTED)

        if quiz.kind is not QuestionKind.OBJECTIVE:
            return None

        result = calculate_score(quiz, self._session.ledger)
        self._session.result = result
        logger.info(f"Scored {result.correct}/{result.total} on '{result.topic}'")

        task = asyncio.get_running_loop().create_task(self._persist(result, self._attempt))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)
        return result

    async def _persist(self, result: AttemptResult, attempt: int) -> None:
        try:
            await self._history.save_history(result.to_history_payload())
        except Exception as e:
            warning = PersistenceWarning(f"Failed to save score: {e}")
            logger.warning(str(warning))
            # A save that outlives its attempt must not flag the next one.
            if attempt == self._attempt:
                self.persistence_warning = warning
        else:
            logger.info(f"Saved attempt on '{result.topic}' to history")

    async def wait_for_persistence(self) -> None:
        """Wait for any scheduled history save to finish."""
        if self._pending_saves:
            await asyncio.gather(*self._pending_saves, return_exceptions=True)

    def discard(self) -> None:
        """Drop the current attempt and return to CONFIGURING, keeping the configuration."""
        self._require(SessionState.READY, SessionState.SUBMITTED, action="discard")
        self._reset_attempt()
        self._transition(SessionState.CONFIGURING)

    # ── Presentation ─────────────────────────────────────────────────────────

    def view(self) -> dict:
        """Snapshot of the session for display."""
        session = self._session
        submitted = session.state is SessionState.SUBMITTED
        result = session.result
        return {
            "state": session.state.value,
            "awaiting": self._awaiting,
            "error": session.error,
            "config": session.config.to_payload() if session.config else None,
            "topic": session.quiz.topic if session.quiz else None,
            "questions": (
                review_questions(session.quiz, session.ledger, submitted)
                if session.quiz else []
            ),
            "result": (
                {"correct": result.correct, "total": result.total}
                if result else None
            ),
        }
