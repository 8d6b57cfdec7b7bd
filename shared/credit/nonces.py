"""
Nonce Registry
==============

Single-use nonces for threshold proofs. A nonce is consumed the first time
it is checked, whether or not the rest of the decision succeeds.

A nonce is an 8-byte big-endian issue time in unix seconds followed by
random bytes. The registry refuses nonces older than its time-to-live, so
it only has to remember consumed nonces for that long.

Version: 0.1.0
"""

import secrets
import threading
import time
from collections.abc import Callable

from shared.config import settings
from shared.exceptions import InvalidInputError, ReplayDetectedError


NONCE_SIZE = 32
TIMESTAMP_SIZE = 8

# Tolerated clock difference between the issuing and the consuming process
MAX_CLOCK_SKEW_SECONDS = 60


def issue_nonce(clock: Callable[[], float] = time.time) -> bytes:
    """Fresh nonce stamped with the current time."""
    issued_at = int(clock())
    return issued_at.to_bytes(TIMESTAMP_SIZE, "big") + secrets.token_bytes(NONCE_SIZE - TIMESTAMP_SIZE)


def nonce_issued_at(nonce: bytes) -> int:
    """Issue time, in unix seconds, of a well-formed nonce."""
    return int.from_bytes(nonce[:TIMESTAMP_SIZE], "big")


class NonceRegistry:
    """In-memory, thread-safe record of consumed nonces."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the registry.

        Args:
            ttl_seconds: How long after issue a nonce is accepted.
                         Defaults to settings.nonce_ttl_seconds.
            clock: Wall-clock source in unix seconds
        """
        self.ttl_seconds = ttl_seconds or settings.nonce_ttl_seconds
        self._clock = clock
        # nonce -> issue time
        self._seen: dict[bytes, int] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def __contains__(self, nonce: object) -> bool:
        with self._lock:
            return nonce in self._seen

    def consume(self, nonce: bytes) -> None:
        """
        Mark ``nonce`` as used.

        Raises:
            InvalidInputError: If the nonce is not NONCE_SIZE bytes.
            ReplayDetectedError: If it was consumed before, has expired,
                or claims to be issued in the future.
        """
        if not isinstance(nonce, bytes) or len(nonce) != NONCE_SIZE:
            raise InvalidInputError(f"Nonce must be {NONCE_SIZE} bytes")

        issued_at = nonce_issued_at(nonce)
        now = self._clock()
        if issued_at > now + MAX_CLOCK_SKEW_SECONDS:
            raise ReplayDetectedError("nonce issued in the future")
        if now - issued_at > self.ttl_seconds:
            raise ReplayDetectedError("nonce expired")

        with self._lock:
            self._prune(now)
            if nonce in self._seen:
                raise ReplayDetectedError("nonce already used")
            self._seen[nonce] = issued_at

    def _prune(self, now: float) -> None:
        # Expired nonces are refused by their timestamp alone
        expired = [n for n, issued_at in self._seen.items() if now - issued_at > self.ttl_seconds]
        for n in expired:
            del self._seen[n]

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()
