"""
services/credential_store.py

Process-wide credential store and the presence-only session gate.

The store starts empty at process start, is filled by a successful login and
emptied by logout or by an authoritative rejection from a protected call.
Everything else only reads it, and receives it as a parameter.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

LANDING_PATH = "/login"


@dataclass(frozen=True)
class Credential:
    token: str
    username: str


class CredentialStore:
    """Holds at most one (token, username) pair."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._credential: Optional[Credential] = None

    def set(self, token: str, username: str) -> None:
        with self._lock:
            self._credential = Credential(token=token, username=username)
        logger.info(f"Credential stored for user '{username}'")

    def clear(self) -> None:
        with self._lock:
            had = self._credential is not None
            self._credential = None
        if had:
            logger.info("Credential cleared")

    def get(self) -> Optional[Credential]:
        with self._lock:
            return self._credential

    @property
    def token(self) -> Optional[str]:
        cred = self.get()
        return cred.token if cred else None

    @property
    def username(self) -> Optional[str]:
        cred = self.get()
        return cred.username if cred else None


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    redirect: Optional[str] = None


class SessionGate:
    """
    Presence-only entry check.

    A credential that is present is let through without verification; the
    backend rejects invalid ones when they are used, and the caller then
    clears the store so the next entry comes back here.
    """

    def __init__(self, landing_path: str = LANDING_PATH):
        self.landing_path = landing_path

    @staticmethod
    def can_enter(credential) -> bool:
        if credential is None:
            return False
        token = credential.token if isinstance(credential, Credential) else credential
        return isinstance(token, str) and bool(token.strip())

    def check(self, store: CredentialStore) -> GateDecision:
        """Decision for the current store contents. Never raises."""
        if self.can_enter(store.get()):
            return GateDecision(allowed=True)
        logger.debug(f"Entry denied, redirecting to {self.landing_path}")
        return GateDecision(allowed=False, redirect=self.landing_path)


# Process-wide instance used by the local server
credentials = CredentialStore()
