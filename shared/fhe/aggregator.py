"""
Encrypted Aggregation
=====================

Noisy average of encrypted values under an evaluation context.

The aggregator never holds a secret key. It sums the ciphertexts, scales
by 1/count and adds an encryption of a small uniform integer so that the
decrypted average does not reveal the exact expense total.

Version: 0.1.0
"""

import asyncio
import secrets
from collections.abc import Sequence

import tenseal as ts

from shared.config import settings
from shared.exceptions import AggregationError, InvalidInputError
from shared.fhe.session import Ciphertext, load_evaluation_context
from shared.logging import get_logger


logger = get_logger(__name__)


class EncryptedAggregator:
    """
    Computes noisy encrypted averages.

    Usage:
        aggregator = EncryptedAggregator(session.evaluation_key)
        encrypted_average = aggregator.average(encrypted_expenses)
    """

    def __init__(
        self,
        evaluation_context: ts.Context | bytes,
        noise_bound: int | None = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            evaluation_context: Public TenSEAL context or its serialization.
            noise_bound: Inclusive upper bound of the additive noise.
                        Defaults to settings.fhe.noise_bound.

        Raises:
            InvalidInputError: If the context holds a secret key.
        """
        if isinstance(evaluation_context, (bytes, bytearray)):
            evaluation_context = load_evaluation_context(bytes(evaluation_context))
        elif evaluation_context.is_private():
            raise InvalidInputError("Aggregator must not hold a secret key")

        self.context = evaluation_context
        self.noise_bound = settings.fhe.noise_bound if noise_bound is None else noise_bound
        if self.noise_bound < 0:
            raise InvalidInputError("noise_bound must be non-negative")

    def _noise(self) -> int:
        return secrets.randbelow(self.noise_bound + 1)

    def average(
        self,
        ciphertexts: Sequence[Ciphertext | bytes],
        count: int | None = None,
    ) -> Ciphertext:
        """
        Encrypted ``sum(ciphertexts) / count + noise``.

        Args:
            ciphertexts: Values encrypted under the matching secret context.
            count: Number of values; must equal ``len(ciphertexts)``.

        Raises:
            AggregationError: On an empty sequence or a count mismatch.
            InvalidInputError: If a ciphertext does not decode.
        """
        if not ciphertexts:
            raise AggregationError("cannot average zero values")
        if count is None:
            count = len(ciphertexts)
        elif count != len(ciphertexts):
            raise AggregationError(f"count {count} does not match {len(ciphertexts)} values")

        vectors = [
            (ct if isinstance(ct, Ciphertext) else Ciphertext(bytes(ct))).load(self.context)
            for ct in ciphertexts
        ]

        total = vectors[0]
        for vector in vectors[1:]:
            total = total + vector

        noisy = total * (1.0 / count) + ts.ckks_vector(self.context, [float(self._noise())])

        logger.info("encrypted_average_computed", count=count)
        return Ciphertext.from_vector(noisy)

    async def average_async(
        self,
        ciphertexts: Sequence[Ciphertext | bytes],
        count: int | None = None,
    ) -> Ciphertext:
        """Run ``average`` on a worker thread."""
        return await asyncio.to_thread(self.average, ciphertexts, count)
