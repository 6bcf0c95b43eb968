"""Reward percentage table — per-level fixed-point reward multipliers.

Percentages carry an implied 2-decimal scale: a stored value of 10 means
0.10%, 10000 means 100.00%. Deploy config multiplies each human-readable
percentage by 100:

    [0.1, 10, 100, 1000, 10000] -> [10, 1000, 10000, 100000, 1000000]

so the reward for a base amount is

    floor(base_amount * percentage / 10000)

Values above 10000 are allowed and pay more than the base amount; the
table is not capped at 100%.
"""

from __future__ import annotations

from typing import Sequence

from evolution.errors import RewardOverflowError, ValidationError
from evolution.models.tiers import parse_non_negative_int, sized_length


PERCENTAGE_DIVISOR = 10_000
UINT256_MAX = 2**256 - 1


class RewardPercentageTable:
    """Fixed-length table of per-level reward percentages."""

    def __init__(self, total_levels: int) -> None:
        if total_levels < 1:
            raise ValidationError(f"total_levels must be >= 1, got {total_levels}")
        self._total_levels = total_levels
        self._percentages: tuple[int, ...] = ()

    @property
    def total_levels(self) -> int:
        return self._total_levels

    @property
    def is_configured(self) -> bool:
        return len(self._percentages) == self._total_levels

    def set_table(self, percentages: Sequence[int | str]) -> None:
        """Replace the whole table. Length must equal the number of levels."""
        self._percentages = self.stage(percentages)

    def stage(self, percentages: Sequence[int | str]) -> tuple[int, ...]:
        """Validate and build a replacement table without installing it."""
        count = sized_length(percentages, "reward percentages")
        if count != self._total_levels:
            raise ValidationError(
                f"Expected {self._total_levels} reward percentages, got {count}"
            )
        return tuple(parse_non_negative_int(p, "reward percentage") for p in percentages)

    def install(self, staged: tuple[int, ...]) -> None:
        self._percentages = tuple(staged)

    def percentages(self) -> tuple[int, ...]:
        return self._percentages

    def percentage_for(self, level: int) -> int:
        self._require_level(level)
        return self._percentages[level]

    def apply_reward(self, level: int, base_amount: int) -> int:
        """Compute the reward for ``base_amount`` at ``level``.

        Multiplies before dividing and rounds down. The intermediate
        product must fit in uint256, mirroring the on-chain arithmetic.
        """
        percentage = self.percentage_for(level)
        if isinstance(base_amount, bool) or not isinstance(base_amount, int):
            raise ValidationError(f"base_amount must be an integer, got {base_amount!r}")
        if base_amount < 0:
            raise ValidationError(f"base_amount must be non-negative, got {base_amount}")

        product = base_amount * percentage
        if product > UINT256_MAX:
            raise RewardOverflowError(
                f"Reward overflow: {base_amount} * {percentage} exceeds uint256"
            )
        return product // PERCENTAGE_DIVISOR

    def _require_level(self, level: int) -> None:
        if not self.is_configured:
            raise ValidationError("Reward percentage table is not configured")
        if isinstance(level, bool) or not isinstance(level, int):
            raise ValidationError(f"Invalid level: {level!r}")
        if not 0 <= level < self._total_levels:
            raise ValidationError(
                f"Level {level} out of range [0, {self._total_levels - 1}]"
            )
