"""Level state machine — enforces registration and promotion transitions.

States: Unregistered → Level 0 → Level 1 → … → Level N-1 (terminal).

Transitions are fail-closed: anything other than Unregistered → 0 or
K → K+1 is rejected. No regression, no skipping, nothing leaves the
terminal level.
"""

from __future__ import annotations

from typing import Optional


# Sentinel level for an address that has not registered.
UNREGISTERED = -1


class LevelStateMachine:
    """Validates level transitions for a fixed number of levels."""

    def __init__(self, total_levels: int) -> None:
        self._total_levels = total_levels

    @property
    def terminal_level(self) -> int:
        return self._total_levels - 1

    def is_terminal(self, level: int) -> bool:
        return level == self.terminal_level

    def next_level(self, level: int) -> Optional[int]:
        """The only level reachable from ``level``, or None if terminal."""
        if level == UNREGISTERED:
            return 0
        if self.is_terminal(level):
            return None
        return level + 1

    def transition(self, current: int, target: int) -> list[str]:
        """Check a transition. Returns errors; empty list means allowed.

        The caller applies the change only when the list is empty.
        """
        errors: list[str] = []

        if not UNREGISTERED <= current <= self.terminal_level:
            errors.append(f"Unknown current level: {current}")
            return errors

        if target <= current and current != UNREGISTERED:
            errors.append(f"Illegal transition: level {current} → {target} (regression)")
            return errors

        expected = self.next_level(current)
        if expected is None:
            errors.append(f"Illegal transition: level {current} is terminal")
        elif target != expected:
            if current == UNREGISTERED:
                errors.append(f"Registration must start at level 0, not {target}")
            else:
                errors.append(
                    f"Illegal transition: level {current} → {target} "
                    f"(must evolve one level at a time)"
                )
        return errors
