"""Reward settlement — ledger the vault credits rewards to."""

from evolution.compensation.ledger import RewardLedger

__all__ = ["RewardLedger"]
