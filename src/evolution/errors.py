"""Error taxonomy for the reward vault.

Every core operation is all-or-nothing: when one of these is raised,
no state has been changed. Callers can tell the failure classes apart
by type:

- ValidationError: malformed input shape (length mismatch, index out
  of range, bad signature length, bad address).
- AuthorizationError: wrong signer, or caller lacks the admin capability.
- IneligibleError: promotion criteria not met. Not a system fault.
- RewardOverflowError: reward scaling or ledger credit out of bounds.
"""

from __future__ import annotations


class EvolutionError(Exception):
    """Base class for all reward vault errors."""


class ValidationError(EvolutionError, ValueError):
    """Input has the wrong shape or is out of range."""


class MalformedSignatureError(ValidationError):
    """Signature bytes are not exactly 65 bytes long."""


class AuthorizationError(EvolutionError):
    """Signer or caller is not allowed to perform the operation."""


class InvalidSignatureError(AuthorizationError):
    """Signature is mathematically invalid or non-canonical."""


class IneligibleError(EvolutionError):
    """A promotion was requested but the level criteria are not met."""

    def __init__(self, level: int, shortfall: list[str]) -> None:
        self.level = level
        self.shortfall = list(shortfall)
        detail = "; ".join(self.shortfall) or "no criterion configured"
        super().__init__(f"Not eligible to evolve from level {level}: {detail}")


class RewardOverflowError(EvolutionError, ArithmeticError):
    """Reward arithmetic left the uint256 range or exceeded remaining supply."""


class SigningError(EvolutionError):
    """The off-chain approver could not produce a signature."""


class ConfigError(EvolutionError):
    """Configuration file or environment is missing or invalid."""
