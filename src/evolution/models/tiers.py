"""Tier models — evolution criteria and the user statistics they gate.

A criterion governs the transition from level i to level i+1. All three
thresholds must be met (logical AND), and meeting a threshold exactly
qualifies. UserStats carries the same three dimensions in the same order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from evolution.errors import ValidationError


@dataclass(frozen=True)
class EvolutionCriterion:
    """Thresholds to evolve out of a level."""
    min_referrals: int
    min_evolved_referrals: int
    min_volume: int

    @classmethod
    def from_sequence(cls, values: Sequence[int | str]) -> EvolutionCriterion:
        """Build from a 3-element sequence, as supplied by deploy config.

        Numeric strings are accepted (deploy scripts pass them that way).
        """
        if isinstance(values, EvolutionCriterion):
            return values
        count = sized_length(values, "criterion")
        if count != 3:
            raise ValidationError(
                f"Criterion must have exactly 3 thresholds, got {count}"
            )
        parsed = [parse_non_negative_int(v, "criterion threshold") for v in values]
        return cls(*parsed)

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.min_referrals, self.min_evolved_referrals, self.min_volume)


@dataclass(frozen=True)
class UserStats:
    """Measured activity of a user, compared against a criterion."""
    referrals: int = 0
    evolved_referrals: int = 0
    volume: int = 0

    def meets(self, criterion: EvolutionCriterion) -> bool:
        return (
            self.referrals >= criterion.min_referrals
            and self.evolved_referrals >= criterion.min_evolved_referrals
            and self.volume >= criterion.min_volume
        )


def parse_non_negative_int(value: int | str, what: str) -> int:
    """Parse an int (or numeric string) and require it to be >= 0."""
    if isinstance(value, (bool, float)):
        raise ValidationError(f"Invalid {what}: {value!r}")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {what}: {value!r}") from exc
    if parsed < 0:
        raise ValidationError(f"Invalid {what}: {value!r} is negative")
    return parsed


def sized_length(value: Sequence, what: str) -> int:
    """Length of a sequence argument, ValidationError if it has none."""
    if value is None or isinstance(value, (str, bytes)):
        raise ValidationError(f"Invalid {what}: expected a sequence, got {value!r}")
    try:
        return len(value)
    except TypeError as exc:
        raise ValidationError(f"Invalid {what}: expected a sequence, got {value!r}") from exc
