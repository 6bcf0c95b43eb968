"""Evolution — referral reward vault with approver-signed registration."""

from evolution.vault import RewardVault

__version__ = "0.1.0"

__all__ = ["RewardVault", "__version__"]
