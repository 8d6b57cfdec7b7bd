"""
Loan Decision Evaluator
=======================

Deterministic eligibility and score from a verified threshold argument and
a revealed expense ratio.

Ratios are fixed-point integers in basis points: ``RATIO_SCALE`` (10000)
is 100%, so a 50% maximum is 5000.

Version: 0.1.0
"""

from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import BaseModel, Field

from shared.config import settings
from shared.exceptions import InvalidInputError
from shared.logging import get_logger
from shared.zk.comparator import PUBLIC_THRESHOLD


logger = get_logger(__name__)

RATIO_SCALE = 10_000

ELIGIBLE_REASON = "Meets all criteria for loan approval"
INELIGIBLE_REASON = "Expense ratio exceeds maximum allowed"


class ScoringPolicy(BaseModel):
    """Score parameters; defaults follow settings.credit."""

    base_score: int = Field(default_factory=lambda: settings.credit.base_score)
    max_bonus: int = Field(default_factory=lambda: settings.credit.max_bonus, ge=0)
    ineligible_score: int = Field(default_factory=lambda: settings.credit.ineligible_score)

    model_config = {"frozen": True}


@dataclass(frozen=True)
class EligibilityVerdict:
    """Outcome of a loan decision."""

    eligible: bool
    reason: str
    score: int


def _check_ratio(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer number of basis points")
    if not 0 <= value <= RATIO_SCALE:
        raise InvalidInputError(f"{name} must be between 0 and {RATIO_SCALE}, got {value}")


def decide(
    argument: bytes,
    public_inputs: Mapping[str, object],
    expense_ratio: int,
    max_expense_ratio: int,
    policy: ScoringPolicy | None = None,
) -> EligibilityVerdict:
    """
    Decide eligibility.

    The argument is assumed to have been verified already; it is only
    checked for presence here.

    Args:
        argument: Verified threshold argument
        public_inputs: Public inputs it was verified against
        expense_ratio: Revealed average expense over salary, in basis points
        max_expense_ratio: Highest acceptable ratio, in basis points
        policy: Scoring policy, defaults to settings

    Returns:
        EligibilityVerdict

    Raises:
        InvalidInputError: On out-of-range ratios, a zero maximum, an empty
            argument, or public inputs without a threshold.
    """
    if not argument:
        raise InvalidInputError("Argument is empty")
    if PUBLIC_THRESHOLD not in public_inputs:
        raise InvalidInputError(f"Public inputs are missing '{PUBLIC_THRESHOLD}'")
    _check_ratio("expense_ratio", expense_ratio)
    _check_ratio("max_expense_ratio", max_expense_ratio)
    if max_expense_ratio == 0:
        raise InvalidInputError("max_expense_ratio must be positive")

    policy = policy or ScoringPolicy()

    if expense_ratio <= max_expense_ratio:
        bonus = min(policy.max_bonus, (max_expense_ratio - expense_ratio) * 100 // max_expense_ratio)
        verdict = EligibilityVerdict(True, ELIGIBLE_REASON, policy.base_score + bonus)
    else:
        verdict = EligibilityVerdict(False, INELIGIBLE_REASON, policy.ineligible_score)

    logger.info(
        "loan_decision_made",
        eligible=verdict.eligible,
        score=verdict.score,
        max_ratio=max_expense_ratio,
    )
    return verdict


def expense_ratio_basis_points(average: int | float, salary: int) -> int:
    """
    Average expense as a share of salary, in basis points.

    Rounded to the nearest basis point and capped at RATIO_SCALE; a
    negative average (possible only through encryption error) counts as 0.
    """
    if isinstance(salary, bool) or not isinstance(salary, int) or salary <= 0:
        raise InvalidInputError("salary must be a positive integer")
    ratio = round(average * RATIO_SCALE / salary)
    return max(0, min(RATIO_SCALE, ratio))
