"""Policy resolver — deploy-time configuration for the reward vault.

Table values and limits come from ``config/evolution_params.json``.
Addresses and secrets come from the environment, optionally through a
``.env`` file:

    REGISTRATION_APPROVER_ADDR   approver address set at deploy time
    TOTAL_SUPPLY                 overrides total_supply from the JSON file

The approver private key is not read here; see ApproverSigner.from_env.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from evolution.crypto.address import normalize_address
from evolution.errors import ConfigError, ValidationError
from evolution.models.tiers import EvolutionCriterion, parse_non_negative_int


PARAMS_FILE = "evolution_params.json"
APPROVER_ADDR_ENV = "REGISTRATION_APPROVER_ADDR"
TOTAL_SUPPLY_ENV = "TOTAL_SUPPLY"


class PolicyResolver:
    """Read-only view over validated vault configuration.

    Usage:
        resolver = PolicyResolver.from_config_dir(Path("config"))
        resolver.total_levels()
        resolver.reward_percentages()
        levels, criteria = resolver.evolution_criteria()
    """

    def __init__(self, params: dict[str, Any], env_file: Optional[Path] = None) -> None:
        self._params = params
        self._env_file = env_file
        self._validate()

    @classmethod
    def from_config_dir(
        cls,
        config_dir: Path,
        env_file: Optional[Path] = None,
    ) -> PolicyResolver:
        path = Path(config_dir) / PARAMS_FILE
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            params = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
        return cls(params, env_file=env_file)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def total_levels(self) -> int:
        return int(self._params["total_levels"])

    def reward_percentages(self) -> list[int]:
        return [int(p) for p in self._params["reward_percentage_per_level"]]

    def evolution_criteria(self) -> tuple[list[int], list[EvolutionCriterion]]:
        """Return (levels, criteria) in the order they are configured."""
        section = self._params["evolution_criteria"]
        levels = [int(level) for level in section["levels"]]
        criteria = [EvolutionCriterion.from_sequence(c) for c in section["criteria"]]
        return levels, criteria

    # ------------------------------------------------------------------
    # Limits
    # ------------------------------------------------------------------

    def total_supply(self) -> int:
        self._load_env()
        override = os.getenv(TOTAL_SUPPLY_ENV)
        if override:
            try:
                return parse_non_negative_int(override, TOTAL_SUPPLY_ENV)
            except ValidationError as exc:
                raise ConfigError(str(exc)) from exc
        return int(self._params.get("total_supply", 0))

    def max_commitment_age_seconds(self) -> Optional[int]:
        """Registration freshness window, or None when not enforced."""
        value = self._params.get("max_commitment_age_seconds")
        return None if value is None else int(value)

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    def approver_address(self) -> Optional[str]:
        """Deploy-time approver address, or None if not configured."""
        self._load_env()
        raw = os.getenv(APPROVER_ADDR_ENV)
        if not raw:
            return None
        try:
            return normalize_address(raw)
        except ValidationError as exc:
            raise ConfigError(f"{APPROVER_ADDR_ENV} is not a valid address") from exc

    def as_dict(self) -> dict[str, Any]:
        levels, criteria = self.evolution_criteria()
        return {
            "total_levels": self.total_levels(),
            "reward_percentage_per_level": self.reward_percentages(),
            "evolution_criteria": {
                "levels": levels,
                "criteria": [list(c.as_tuple()) for c in criteria],
            },
            "total_supply": self.total_supply(),
            "max_commitment_age_seconds": self.max_commitment_age_seconds(),
            "approver": self.approver_address(),
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_env(self) -> None:
        load_dotenv(self._env_file)

    def _validate(self) -> None:
        required = ("total_levels", "reward_percentage_per_level", "evolution_criteria")
        missing = [key for key in required if key not in self._params]
        if missing:
            raise ConfigError(f"Missing config keys: {', '.join(missing)}")

        try:
            total_levels = parse_non_negative_int(self._params["total_levels"], "total_levels")
            if total_levels < 1:
                raise ConfigError("total_levels must be at least 1")

            percentages = self._params["reward_percentage_per_level"]
            if len(percentages) != total_levels:
                raise ConfigError(
                    f"reward_percentage_per_level has {len(percentages)} entries, "
                    f"expected {total_levels}"
                )
            for p in percentages:
                parse_non_negative_int(p, "reward percentage")

            section = self._params["evolution_criteria"]
            levels = section.get("levels", [])
            criteria = section.get("criteria", [])
            if len(levels) != len(criteria):
                raise ConfigError("evolution_criteria levels and criteria length mismatch")
            seen: set[int] = set()
            for level in levels:
                parsed = parse_non_negative_int(level, "criteria level")
                if parsed > total_levels - 2 or parsed in seen:
                    raise ConfigError(f"Invalid criteria level: {level}")
                seen.add(parsed)
            for criterion in criteria:
                EvolutionCriterion.from_sequence(criterion)

            if "total_supply" in self._params:
                parse_non_negative_int(self._params["total_supply"], "total_supply")
            age = self._params.get("max_commitment_age_seconds")
            if age is not None:
                parse_non_negative_int(age, "max_commitment_age_seconds")
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
        except (AttributeError, TypeError) as exc:
            raise ConfigError(f"Malformed configuration: {exc}") from exc
