"""
errors.py

Error taxonomy for the quiz client. No error here is fatal to the process.
"""


class QuizClientError(Exception):
    """Base class for every error raised by the quiz client."""


class ValidationError(QuizClientError):
    """Configuration input is missing or out of range."""


class GenerationError(QuizClientError):
    """Remote generation failed or returned a malformed payload."""


class InvalidStateError(QuizClientError):
    """An action was invoked in a session state that forbids it."""


class AuthenticationError(QuizClientError):
    """Credentials were rejected by the authentication collaborator."""


class HistoryError(QuizClientError):
    """Attempt history could not be fetched."""


class PersistenceWarning(UserWarning):
    """History save failed. Logged only, never blocks the user's result."""
