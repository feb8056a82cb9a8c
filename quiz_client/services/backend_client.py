"""
services/backend_client.py

HTTP client for the remote quiz backend (authentication, quiz generation,
attempt history).
Public API (QuizBackendClient):
  - login(username, password)              : stores the issued credential
  - register(username, email, password)
  - logout()                               : clears the credential
  - generate_quiz(config) -> QuizSet       : remote generation
  - save_history(payload)                  : one attempt, no retry
  - fetch_history() -> List[HistoryEntry]
  - is_reachable() -> bool                 : startup check, never raises

Design:
- One httpx.AsyncClient per request; no retry or backoff here.
- The option list arrives as a JSON-encoded string and is decoded here,
  before any Question enters the data model.
- 401/403 on a protected call drops the stored credential.
"""

import json
import logging
from typing import List, Optional, Tuple

import httpx
from pydantic import ValidationError as PydanticValidationError

from config import BACKEND_URL, HTTP_TIMEOUT
from quiz_client.errors import AuthenticationError, GenerationError, HistoryError
from quiz_client.models.history_model import HistoryEntry
from quiz_client.models.question_model import (
    Question,
    QuestionKind,
    QuizConfiguration,
    QuizSet,
)
from quiz_client.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

# ── Endpoints ────────────────────────────────────────────────────────────────
LOGIN_PATH = "/api/auth/login"
REGISTER_PATH = "/api/auth/register"
GENERATE_PATH = "/api/v1/quiz/generate"
HISTORY_SAVE_PATH = "/api/history/save"
HISTORY_PATH = "/api/history"

_REJECTED = (401, 403)


class QuizBackendClient:
    """Calls the remote backend on behalf of the credential in `store`."""

    def __init__(
        self,
        store: CredentialStore,
        base_url: str = BACKEND_URL,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    def _auth_headers(self) -> dict:
        token = self.store.token
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _check_rejected(self, response: httpx.Response, operation: str) -> None:
        if response.status_code in _REJECTED:
            logger.warning(f"{operation}: credential rejected ({response.status_code}), dropping it")
            self.store.clear()
            raise AuthenticationError("Your session has expired. Please log in again.")

    # ══════════════════════════════════════════════════════════════════════════
    # Authentication
    # ══════════════════════════════════════════════════════════════════════════

    async def login(self, username: str, password: str) -> str:
        """Log in and store the issued token. Returns the token."""
        try:
            async with self._make_client() as client:
                response = await client.post(
                    LOGIN_PATH, json={"username": username, "password": password}
                )
        except httpx.HTTPError as e:
            logger.error(f"login: transport error - {e}")
            raise AuthenticationError("Invalid username or password.") from e

        if response.status_code != 200:
            logger.info(f"login: rejected for '{username}' ({response.status_code})")
            raise AuthenticationError("Invalid username or password.")

        try:
            token = response.json()["token"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"login: malformed response - {e}")
            raise AuthenticationError("Invalid username or password.") from e
        if not token:
            raise AuthenticationError("Invalid username or password.")

        self.store.set(token, username)
        return token

    async def register(self, username: str, email: str, password: str) -> None:
        try:
            async with self._make_client() as client:
                response = await client.post(
                    REGISTER_PATH,
                    json={"username": username, "email": email, "password": password},
                )
        except httpx.HTTPError as e:
            logger.error(f"register: transport error - {e}")
            raise AuthenticationError(
                "Registration failed. Username or email may already be in use."
            ) from e

        if response.is_error:
            logger.info(f"register: rejected for '{username}' ({response.status_code})")
            raise AuthenticationError(
                "Registration failed. Username or email may already be in use."
            )
        logger.info(f"register: account '{username}' created")

    def logout(self) -> None:
        self.store.clear()

    async def is_reachable(self) -> bool:
        """True if the backend answers HTTP at all, whatever the status."""
        try:
            async with self._make_client() as client:
                await client.get("/", timeout=5.0)
        except httpx.HTTPError as e:
            logger.debug(f"is_reachable: {e}")
            return False
        return True

    # ══════════════════════════════════════════════════════════════════════════
    # Quiz generation
    # ══════════════════════════════════════════════════════════════════════════

    async def generate_quiz(self, config: QuizConfiguration) -> QuizSet:
        """
        Request a quiz for `config` and decode the response.

        Raises:
            AuthenticationError: the credential was rejected (and dropped).
            GenerationError:     any other failure, including a malformed
                                 payload or a question kind that disagrees
                                 with the requested one.
        """
        try:
            async with self._make_client() as client:
                response = await client.post(
                    GENERATE_PATH, json=config.to_payload(), headers=self._auth_headers()
                )
        except httpx.HTTPError as e:
            logger.error(f"generate_quiz: transport error - {e}")
            raise GenerationError(
                "Failed to generate quiz. Please check if the backend is running and try again."
            ) from e

        self._check_rejected(response, "generate_quiz")
        if response.is_error:
            logger.error(f"generate_quiz: backend returned {response.status_code}")
            raise GenerationError(
                "Failed to generate quiz. Please check if the backend is running and try again."
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError("The generated quiz could not be read.") from e

        quiz = decode_quiz(data, config.kind, config.topic)
        logger.info(f"generate_quiz: {len(quiz.questions)} questions on '{quiz.topic}'")
        return quiz

    # ══════════════════════════════════════════════════════════════════════════
    # History
    # ══════════════════════════════════════════════════════════════════════════

    async def save_history(self, payload: dict) -> None:
        """Save one attempt. Single attempt; raises HistoryError on failure."""
        try:
            async with self._make_client() as client:
                response = await client.post(
                    HISTORY_SAVE_PATH, json=payload, headers=self._auth_headers()
                )
        except httpx.HTTPError as e:
            raise HistoryError(f"Failed to save score: {e}") from e

        self._check_rejected(response, "save_history")
        if response.is_error:
            raise HistoryError(f"Failed to save score: HTTP {response.status_code}")

    async def fetch_history(self) -> List[HistoryEntry]:
        try:
            async with self._make_client() as client:
                response = await client.get(HISTORY_PATH, headers=self._auth_headers())
        except httpx.HTTPError as e:
            logger.error(f"fetch_history: transport error - {e}")
            raise HistoryError("Failed to fetch history.") from e

        self._check_rejected(response, "fetch_history")
        if response.is_error:
            logger.error(f"fetch_history: backend returned {response.status_code}")
            raise HistoryError("Failed to fetch history.")

        try:
            return [HistoryEntry.model_validate(item) for item in response.json()]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.error(f"fetch_history: malformed response - {e}")
            raise HistoryError("Failed to fetch history.") from e


# ══════════════════════════════════════════════════════════════════════════════
# Payload decoding
# ══════════════════════════════════════════════════════════════════════════════

def decode_options(raw) -> Tuple[str, ...]:
    """
    Option list as sent by the backend: a JSON-encoded array of strings.
    Missing or empty means no options.
    """
    if raw is None or raw == "":
        return ()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise GenerationError(f"Options are not valid JSON: {e}") from e
    if not isinstance(raw, list) or not all(isinstance(o, str) for o in raw):
        raise GenerationError("Options must be an array of strings.")
    return tuple(raw)


def decode_quiz(data, expected_kind: QuestionKind, topic: str = "") -> QuizSet:
    """
    Generation response -> QuizSet.

    `topic` is used when the response does not echo one.

    Every question takes the requested kind; a question whose shape does not
    fit that kind makes the whole payload malformed.
    """
    if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
        raise GenerationError("The generated quiz is malformed.")

    try:
        questions = []
        for item in data["questions"]:
            if not isinstance(item, dict):
                raise GenerationError("The generated quiz is malformed.")
            questions.append(Question(
                id=item.get("id"),
                question_text=item.get("questionText") or "",
                kind=expected_kind,
                options=decode_options(item.get("options")),
                answer=item.get("correctAnswer") or "",
            ))
        return QuizSet(topic=data.get("topic") or topic, questions=tuple(questions))
    except PydanticValidationError as e:
        logger.error(f"decode_quiz: {e.error_count()} validation error(s)")
        raise GenerationError(
            f"The generated quiz does not match the requested question type: {e}"
        ) from e
