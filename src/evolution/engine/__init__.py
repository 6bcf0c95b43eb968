"""Protocol engine — criteria, reward table, access control and level transitions."""

from evolution.engine.access import AccessControlAdmin
from evolution.engine.criteria import TierCriteriaEngine
from evolution.engine.rewards import RewardPercentageTable
from evolution.engine.state_machine import LevelStateMachine, UNREGISTERED

__all__ = [
    "AccessControlAdmin",
    "TierCriteriaEngine",
    "RewardPercentageTable",
    "LevelStateMachine",
    "UNREGISTERED",
]
