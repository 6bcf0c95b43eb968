"""Tests for the reward ledger — remaining supply never goes below zero."""

import pytest

from evolution.compensation.ledger import RewardLedger
from evolution.errors import RewardOverflowError, ValidationError


USER = "0x" + "1" * 40


class TestRewardLedger:
    def test_credit_moves_supply(self) -> None:
        ledger = RewardLedger(total_supply=1000)
        assert ledger.credit(USER, 300) == 300
        assert ledger.remaining_supply == 700
        assert ledger.distributed == 300
        assert ledger.balance_of(USER) == 300

    def test_credit_exact_remaining(self) -> None:
        ledger = RewardLedger(total_supply=100)
        ledger.credit(USER, 100)
        assert ledger.remaining_supply == 0

    def test_overdraw_rejected_without_change(self) -> None:
        ledger = RewardLedger(total_supply=100)
        ledger.credit(USER, 60)
        with pytest.raises(RewardOverflowError, match="remaining supply"):
            ledger.credit(USER, 41)
        assert ledger.remaining_supply == 40
        assert ledger.balance_of(USER) == 60

    def test_negative_credit_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RewardLedger(total_supply=100).credit(USER, -1)

    def test_negative_supply_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RewardLedger(total_supply=-1)

    def test_unknown_balance_is_zero(self) -> None:
        assert RewardLedger(total_supply=1).balance_of(USER) == 0
