"""Reward ledger — the token balances rewards are credited to.

The vault pays rewards out of a fixed supply held for it. The ledger
tracks what is left and the balance credited to each address. A credit
larger than the remaining supply is refused without changing anything,
so the remaining supply never goes below zero.

Storage is in-memory. Transfer and fee mechanics of the token itself
live outside this package.
"""

from __future__ import annotations

from evolution.crypto.address import normalize_address
from evolution.errors import RewardOverflowError, ValidationError


class RewardLedger:
    """In-memory balance ledger with a bounded reward supply.

    Usage:
        ledger = RewardLedger(total_supply=1_000_000 * 10**18)
        ledger.credit(user, reward)
        ledger.balance_of(user)
    """

    def __init__(self, total_supply: int) -> None:
        if isinstance(total_supply, bool) or not isinstance(total_supply, int):
            raise ValidationError(f"total_supply must be an integer, got {total_supply!r}")
        if total_supply < 0:
            raise ValidationError(f"total_supply must be non-negative, got {total_supply}")
        self._total_supply = total_supply
        self._remaining = total_supply
        self._balances: dict[str, int] = {}

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def remaining_supply(self) -> int:
        return self._remaining

    @property
    def distributed(self) -> int:
        return self._total_supply - self._remaining

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def can_credit(self, amount: int) -> bool:
        return 0 <= amount <= self._remaining

    def credit(self, address: str, amount: int) -> int:
        """Credit ``amount`` to ``address`` and return the new balance."""
        account = normalize_address(address)
        if amount < 0:
            raise ValidationError(f"Credit amount must be non-negative, got {amount}")
        if amount > self._remaining:
            raise RewardOverflowError(
                f"Credit of {amount} exceeds remaining supply {self._remaining}"
            )
        self._remaining -= amount
        self._balances[account] = self._balances.get(account, 0) + amount
        return self._balances[account]

    def balances(self) -> dict[str, int]:
        return dict(self._balances)
