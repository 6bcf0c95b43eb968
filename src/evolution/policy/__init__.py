"""Configuration — policy resolver over deploy-time parameters."""

from evolution.policy.resolver import PolicyResolver

__all__ = ["PolicyResolver"]
