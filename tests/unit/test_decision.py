"""
Unit Tests for Loan Decisions
=============================
"""

import pytest

from shared.credit import (
    ELIGIBLE_REASON,
    INELIGIBLE_REASON,
    RATIO_SCALE,
    ScoringPolicy,
    decide,
    expense_ratio_basis_points,
)
from shared.exceptions import InvalidInputError
from shared.zk import PUBLIC_THRESHOLD


ARGUMENT = b"\x01" * 32
PUBLIC = {PUBLIC_THRESHOLD: 5000}


class TestDecide:
    """Tests for decide()."""

    def test_low_ratio_earns_bonus(self):
        verdict = decide(ARGUMENT, PUBLIC, 1000, 5000)
        assert verdict.eligible
        assert verdict.reason == ELIGIBLE_REASON
        assert verdict.score == 780

    def test_ratio_at_maximum(self):
        verdict = decide(ARGUMENT, PUBLIC, 5000, 5000)
        assert verdict.eligible
        assert verdict.score == 700

    def test_zero_ratio_caps_bonus(self):
        verdict = decide(ARGUMENT, PUBLIC, 0, 5000)
        assert verdict.score == 800

    def test_ratio_above_maximum(self):
        verdict = decide(ARGUMENT, PUBLIC, 5001, 5000)
        assert not verdict.eligible
        assert verdict.reason == INELIGIBLE_REASON
        assert verdict.score == 600

    def test_deterministic(self):
        assert decide(ARGUMENT, PUBLIC, 1234, 5000) == decide(ARGUMENT, PUBLIC, 1234, 5000)

    def test_custom_policy(self):
        policy = ScoringPolicy(base_score=500, max_bonus=10, ineligible_score=100)
        assert decide(ARGUMENT, PUBLIC, 0, 5000, policy).score == 510
        assert decide(ARGUMENT, PUBLIC, 6000, 5000, policy).score == 100

    def test_zero_maximum(self):
        with pytest.raises(InvalidInputError, match="positive"):
            decide(ARGUMENT, PUBLIC, 0, 0)

    @pytest.mark.parametrize(
        "ratio, maximum",
        [(-1, 5000), (RATIO_SCALE + 1, 5000), (100, RATIO_SCALE + 1), (0.5, 5000)],
    )
    def test_out_of_range(self, ratio, maximum):
        with pytest.raises(InvalidInputError):
            decide(ARGUMENT, PUBLIC, ratio, maximum)

    def test_empty_argument(self):
        with pytest.raises(InvalidInputError, match="empty"):
            decide(b"", PUBLIC, 1000, 5000)

    def test_missing_threshold(self):
        with pytest.raises(InvalidInputError, match=PUBLIC_THRESHOLD):
            decide(ARGUMENT, {}, 1000, 5000)


class TestExpenseRatio:
    """Tests for expense_ratio_basis_points()."""

    def test_exact(self):
        assert expense_ratio_basis_points(600, 6000) == 1000

    def test_rounds_noise(self):
        assert expense_ratio_basis_points(603.004, 6000) == 1005

    def test_clamped(self):
        assert expense_ratio_basis_points(-0.3, 6000) == 0
        assert expense_ratio_basis_points(12000, 6000) == RATIO_SCALE

    @pytest.mark.parametrize("salary", [0, -1, True, 6000.0])
    def test_invalid_salary(self, salary):
        with pytest.raises(InvalidInputError):
            expense_ratio_basis_points(600, salary)
