"""
Exceptions
==========

Error hierarchy for the credit evaluation core.

A salary that does not exceed the threshold is not an error: the protocol
reports it as a REJECTED outcome. Everything here is either a caller mistake
(rejected before expensive work) or a fault.

Version: 0.1.0
"""


class CreditEvaluationError(Exception):
    """Base class for all zkcredit errors."""


class InvalidInputError(CreditEvaluationError, ValueError):
    """Value out of range, malformed public inputs, or an unusable context."""


class AggregationError(InvalidInputError):
    """Encrypted averaging was asked to work on unusable input."""


class ProverError(CreditEvaluationError):
    """The prover could not produce an argument for the given assignment."""


class UnknownWireError(ProverError):
    """A witness or public input names a wire the circuit does not have."""


class UnsatisfiedWitnessError(ProverError):
    """The assignment violates at least one circuit constraint."""


class ProofGenerationError(CreditEvaluationError):
    """Proving failed for a statement that was checked to be satisfiable."""


class VerificationError(CreditEvaluationError):
    """The argument must not be trusted."""


class ReplayDetectedError(VerificationError):
    """A nonce was presented a second time."""
