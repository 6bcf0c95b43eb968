"""Tier criteria engine — stores and evaluates per-level evolution thresholds.

Level i's criterion governs the transition i → i+1, so only levels
[0, N-2] carry one. The terminal level N-1 never evolves.

The table is replaced as a whole on every update: the new table is built
and validated off to the side, then swapped in with a single assignment.
A failed update leaves the previous table in place.
"""

from __future__ import annotations

from typing import Sequence

from evolution.errors import ValidationError
from evolution.models.tiers import EvolutionCriterion, UserStats, sized_length


class TierCriteriaEngine:
    """Per-level evolution criteria for a fixed number of levels."""

    def __init__(self, total_levels: int) -> None:
        if total_levels < 1:
            raise ValidationError(f"total_levels must be >= 1, got {total_levels}")
        self._total_levels = total_levels
        self._criteria: dict[int, EvolutionCriterion] = {}

    @property
    def total_levels(self) -> int:
        return self._total_levels

    @property
    def terminal_level(self) -> int:
        return self._total_levels - 1

    def set_criteria(
        self,
        levels: Sequence[int | str],
        criteria: Sequence[Sequence[int | str] | EvolutionCriterion],
    ) -> None:
        """Replace the whole criteria table.

        Raises ValidationError (table untouched) on length mismatch,
        duplicate or out-of-range level, or a malformed criterion.
        """
        self._criteria = self.stage(levels, criteria)

    def stage(
        self,
        levels: Sequence[int | str],
        criteria: Sequence[Sequence[int | str] | EvolutionCriterion],
    ) -> dict[int, EvolutionCriterion]:
        """Validate and build a replacement table without installing it."""
        n_levels = sized_length(levels, "levels")
        n_criteria = sized_length(criteria, "criteria")
        if n_levels != n_criteria:
            raise ValidationError(
                f"levels and criteria length mismatch: {n_levels} != {n_criteria}"
            )

        staged: dict[int, EvolutionCriterion] = {}
        for raw_level, raw_criterion in zip(levels, criteria):
            level = self._parse_level(raw_level)
            if level in staged:
                raise ValidationError(f"Duplicate level in criteria update: {level}")
            staged[level] = EvolutionCriterion.from_sequence(raw_criterion)
        return staged

    def install(self, staged: dict[int, EvolutionCriterion]) -> None:
        """Swap in a table previously produced by ``stage``."""
        self._criteria = dict(staged)

    def criteria(self) -> dict[int, EvolutionCriterion]:
        """Snapshot of the current table, keyed by level."""
        return dict(self._criteria)

    def criterion_for(self, level: int) -> EvolutionCriterion | None:
        return self._criteria.get(level)

    def is_eligible(self, current_level: int, stats: UserStats) -> bool:
        """Whether a user at ``current_level`` may evolve to the next level.

        Terminal level and levels without a criterion are never eligible.
        """
        if current_level >= self.terminal_level:
            return False
        criterion = self._criteria.get(current_level)
        if criterion is None:
            return False
        return stats.meets(criterion)

    def shortfall(self, current_level: int, stats: UserStats) -> list[str]:
        """List the thresholds a user is missing. Empty = eligible."""
        if current_level >= self.terminal_level:
            return [f"level {current_level} is terminal"]
        criterion = self._criteria.get(current_level)
        if criterion is None:
            return [f"no criterion configured for level {current_level}"]

        missing: list[str] = []
        if stats.referrals < criterion.min_referrals:
            missing.append(f"referrals {stats.referrals} < {criterion.min_referrals}")
        if stats.evolved_referrals < criterion.min_evolved_referrals:
            missing.append(
                f"evolved referrals {stats.evolved_referrals} "
                f"< {criterion.min_evolved_referrals}"
            )
        if stats.volume < criterion.min_volume:
            missing.append(f"volume {stats.volume} < {criterion.min_volume}")
        return missing

    def _parse_level(self, raw_level: int | str) -> int:
        if isinstance(raw_level, bool):
            raise ValidationError(f"Invalid level: {raw_level!r}")
        try:
            level = int(raw_level)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid level: {raw_level!r}") from exc
        if not 0 <= level <= self._total_levels - 2:
            raise ValidationError(
                f"Criteria level {level} out of range [0, {self._total_levels - 2}]"
            )
        return level
