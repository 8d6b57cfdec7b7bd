"""
Session Store
=============

In-memory registry of encryption sessions held by the NBFC.

Sessions hold secret keys, so the store is bounded: at most
``max_sessions`` live at once and each expires ``ttl_seconds`` after it
was created.

Version: 0.1.0
"""

import hashlib
import hmac
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from shared.config import settings
from shared.exceptions import CreditEvaluationError, InvalidInputError
from shared.fhe import Ciphertext, EncryptionSession
from shared.logging import get_logger


logger = get_logger(__name__)


class SessionNotFoundError(CreditEvaluationError):
    """No session with the requested id."""


class SessionLimitError(CreditEvaluationError):
    """The store already holds the maximum number of sessions."""


@dataclass
class SessionRecord:
    session: EncryptionSession
    created_at: float
    # Set once a credit proof was issued; needed to reveal the ratio
    encrypted_salary: Ciphertext | None = None
    # SHA-256 of the encrypted average issued with that proof, until revealed
    issued_average: bytes | None = None


def _fingerprint(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


class SessionStore:
    """Thread-safe map of session id to session record."""

    def __init__(
        self,
        max_sessions: int | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the store.

        Args:
            max_sessions: Live session limit.
                          Defaults to settings.nbfc_max_sessions.
            ttl_seconds: Session lifetime.
                         Defaults to settings.nbfc_session_ttl_seconds.
            clock: Monotonic time source
        """
        self.max_sessions = max_sessions or settings.nbfc_max_sessions
        self.ttl_seconds = ttl_seconds or settings.nbfc_session_ttl_seconds
        self._clock = clock
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._prune()
            return len(self._records)

    def _prune(self) -> None:
        # Caller holds the lock
        now = self._clock()
        expired = [
            session_id
            for session_id, record in self._records.items()
            if now - record.created_at > self.ttl_seconds
        ]
        for session_id in expired:
            del self._records[session_id]
        if expired:
            logger.info("encryption_sessions_expired", count=len(expired))

    def _check_capacity(self) -> None:
        # Caller holds the lock
        self._prune()
        if len(self._records) >= self.max_sessions:
            raise SessionLimitError(f"Session limit of {self.max_sessions} reached")

    def add(self, session: EncryptionSession) -> EncryptionSession:
        with self._lock:
            self._check_capacity()
            if session.session_id in self._records:
                raise InvalidInputError(f"Session {session.session_id} already exists")
            self._records[session.session_id] = SessionRecord(session, created_at=self._clock())
        return session

    def create(self) -> EncryptionSession:
        """
        Create and register a fresh session.

        Raises:
            SessionLimitError: If the store is full
        """
        # Fail before paying for key generation
        with self._lock:
            self._check_capacity()
        return self.add(EncryptionSession.create())

    def _record(self, session_id: str) -> SessionRecord:
        with self._lock:
            self._prune()
            record = self._records.get(session_id)
        if record is None:
            raise SessionNotFoundError(f"Unknown session {session_id}")
        return record

    def get(self, session_id: str) -> EncryptionSession:
        return self._record(session_id).session

    def remember_proof(
        self,
        session_id: str,
        encrypted_salary: Ciphertext,
        encrypted_average: bytes,
    ) -> None:
        """Record what a successful credit proof was issued for."""
        record = self._record(session_id)
        with self._lock:
            record.encrypted_salary = encrypted_salary
            record.issued_average = _fingerprint(encrypted_average)

    def claim_average(self, session_id: str, encrypted_average: bytes) -> Ciphertext:
        """
        Spend the session's issued encrypted average.

        Each issued average can be revealed once; any other ciphertext is
        refused.

        Returns:
            The encrypted salary the average is compared with

        Raises:
            SessionNotFoundError: Unknown or expired session
            InvalidInputError: No proof yet, already revealed, or not the
                ciphertext this session issued
        """
        record = self._record(session_id)
        with self._lock:
            if record.encrypted_salary is None:
                raise InvalidInputError(f"Session {session_id} has no credit proof yet")
            if record.issued_average is None:
                raise InvalidInputError(f"Session {session_id} expense ratio already revealed")
            if not hmac.compare_digest(record.issued_average, _fingerprint(encrypted_average)):
                raise InvalidInputError("Ciphertext was not issued by this session")
            record.issued_average = None
            return record.encrypted_salary

    def close(self, session_id: str) -> None:
        with self._lock:
            if self._records.pop(session_id, None) is None:
                raise SessionNotFoundError(f"Unknown session {session_id}")
        logger.info("encryption_session_closed", session_id=session_id)
