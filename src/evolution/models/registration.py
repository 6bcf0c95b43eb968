"""Registration models — requests, verification kinds and user records.

A registration request binds three values (verification type, referrer,
timestamp) into a commitment. The approver signs the commitment off-chain;
the vault recomputes it from the request at registration time, so a
signature cannot be replayed for different parameters.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from evolution.crypto.commitment import make_commitment
from evolution.models.tiers import UserStats


class VerificationType(enum.IntEnum):
    """Proof-of-personhood result kinds reported by the verifier."""
    DEVICE = 0
    ORB = 1


@dataclass(frozen=True)
class RegistrationRequest:
    """Parameters a user registers with."""
    verification_type: int
    referrer: str
    timestamp: int

    def commitment(self) -> bytes:
        """Return the 32-byte commitment for these parameters."""
        return make_commitment(self.verification_type, self.referrer, self.timestamp)


@dataclass
class UserRecord:
    """Current state of a registered user.

    Level only moves up, one step at a time (enforced by the vault).
    """
    address: str
    referrer: str
    verification_type: int
    commitment: bytes
    level: int = 0
    stats: UserStats = field(default_factory=UserStats)
    registered_at: Optional[datetime] = None
    rewards_claimed: int = 0
