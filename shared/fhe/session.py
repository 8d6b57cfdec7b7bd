"""
Encryption Sessions
===================

Per-applicant CKKS keypairs built on TenSEAL.

A session owns a private TenSEAL context. Only its evaluation context
(public key and relinearization keys, no secret key) ever leaves the
process, as bytes from ``evaluation_key``.

Usage:
    session = EncryptionSession.create()
    ct = session.encrypt(1200)

    # Aggregator side
    ctx = load_evaluation_context(session.evaluation_key)

Version: 0.1.0
"""

import uuid
from dataclasses import dataclass

import tenseal as ts

from shared.config import FHESettings, settings
from shared.exceptions import InvalidInputError
from shared.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class Ciphertext:
    """Serialized single-slot CKKS vector."""

    data: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.data, bytes) or not self.data:
            raise InvalidInputError("Ciphertext must be non-empty bytes")

    def __repr__(self) -> str:
        return f"Ciphertext({len(self.data)} bytes)"

    @classmethod
    def from_vector(cls, vector: ts.CKKSVector) -> "Ciphertext":
        return cls(vector.serialize())

    def load(self, context: ts.Context) -> ts.CKKSVector:
        """Deserialize against ``context``."""
        try:
            return ts.ckks_vector_from(context, self.data)
        except (ValueError, RuntimeError, TypeError) as e:
            raise InvalidInputError(f"Malformed ciphertext: {e}") from e


def load_evaluation_context(data: bytes) -> ts.Context:
    """
    Load a serialized evaluation context.

    Raises:
        InvalidInputError: If the bytes do not decode or the context
            carries a secret key.
    """
    if not data:
        raise InvalidInputError("Evaluation key is empty")
    try:
        context = ts.context_from(data)
    except (ValueError, RuntimeError, TypeError) as e:
        raise InvalidInputError(f"Malformed evaluation key: {e}") from e
    if context.is_private():
        raise InvalidInputError("Evaluation key must not contain a secret key")
    return context


def encrypt_value(context: ts.Context, value: int | float) -> Ciphertext:
    """Encrypt one value; an evaluation context is enough."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError("Only numeric values can be encrypted")
    return Ciphertext.from_vector(ts.ckks_vector(context, [float(value)]))


class EncryptionSession:
    """
    A CKKS keypair bound to one applicant session.

    Never shared across sessions; create one per applicant.
    """

    def __init__(self, context: ts.Context, session_id: str | None = None) -> None:
        if not context.is_private():
            raise InvalidInputError("Encryption session needs a context with a secret key")
        self.session_id = session_id or str(uuid.uuid4())
        self._context = context

        public = context.copy()
        public.make_context_public()
        self._evaluation_context = public
        self._evaluation_key = public.serialize()

    @classmethod
    def create(cls, config: FHESettings | None = None) -> "EncryptionSession":
        """Generate a fresh keypair from the FHE settings."""
        config = config or settings.fhe
        context = ts.context(
            ts.SCHEME_TYPE.CKKS,
            poly_modulus_degree=config.poly_modulus_degree,
            coeff_mod_bit_sizes=list(config.coeff_mod_bit_sizes),
        )
        context.global_scale = config.global_scale

        session = cls(context)
        logger.info(
            "encryption_session_created",
            session_id=session.session_id,
            poly_modulus_degree=config.poly_modulus_degree,
        )
        return session

    def __repr__(self) -> str:
        return f"EncryptionSession(session_id={self.session_id!r})"

    @property
    def evaluation_key(self) -> bytes:
        """Serialized public context, safe to hand to the aggregator."""
        return self._evaluation_key

    @property
    def evaluation_context(self) -> ts.Context:
        return self._evaluation_context

    def encrypt(self, value: int | float) -> Ciphertext:
        return encrypt_value(self._context, value)

    def encrypt_many(self, values: list[int | float]) -> list[Ciphertext]:
        return [self.encrypt(v) for v in values]

    def decrypt(self, ciphertext: Ciphertext | bytes) -> float:
        if not isinstance(ciphertext, Ciphertext):
            ciphertext = Ciphertext(ciphertext)
        return ciphertext.load(self._context).decrypt()[0]

    def decrypt_integer(self, ciphertext: Ciphertext | bytes) -> int:
        """Decrypt and round away the CKKS approximation error."""
        return round(self.decrypt(ciphertext))
