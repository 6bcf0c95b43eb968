"""Core data models for the reward vault."""

from evolution.models.tiers import EvolutionCriterion, UserStats
from evolution.models.signature import Signature
from evolution.models.registration import (
    RegistrationRequest,
    UserRecord,
    VerificationType,
)

__all__ = [
    "EvolutionCriterion",
    "UserStats",
    "Signature",
    "RegistrationRequest",
    "UserRecord",
    "VerificationType",
]
