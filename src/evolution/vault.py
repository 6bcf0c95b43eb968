"""Reward vault — the boundary the registration and reward protocol runs behind.

The vault ties the engine pieces together:
- Registration: recompute the commitment from the request, recover the
  signer, and admit the user at level 0 only if the signer is the
  approver configured right now.
- Promotion: evolve a user one level when the criteria for their
  current level are met.
- Rewards: scale a base amount by the user's level percentage and
  credit it to the reward ledger.
- Administration: reward table, criteria table, approver and fee
  whitelist, all restricted to the admin.

Every mutating operation runs under one lock and follows the same
sequence: validate and stage, record the event, then commit to memory.
The event is the durable commit point, so a call that raises (including
an OSError from the event log) leaves no state changed. Errors propagate
to the caller unchanged.
"""

from __future__ import annotations

import dataclasses
import threading
from datetime import datetime, timezone
from typing import Optional, Sequence

from loguru import logger

from evolution.compensation.ledger import RewardLedger
from evolution.crypto.address import ZERO_ADDRESS, normalize_address
from evolution.crypto.commitment import commitment_hex, make_commitment
from evolution.crypto.signature import recover
from evolution.engine.access import AccessControlAdmin
from evolution.engine.criteria import TierCriteriaEngine
from evolution.engine.rewards import RewardPercentageTable
from evolution.engine.state_machine import UNREGISTERED, LevelStateMachine
from evolution.errors import (
    AuthorizationError,
    ConfigError,
    IneligibleError,
    RewardOverflowError,
    ValidationError,
)
from evolution.models.registration import RegistrationRequest, UserRecord
from evolution.models.signature import Signature
from evolution.models.tiers import EvolutionCriterion, UserStats
from evolution.persistence.event_log import EventKind, EventLog
from evolution.policy.resolver import PolicyResolver


DEFAULT_TOTAL_LEVELS = 5


class RewardVault:
    """Registration, evolution and reward boundary.

    Usage:
        vault = RewardVault(admin=deployer)
        vault.set_evolution_reward_percentage_per_level(deployer, [10, 1000, 10000, 100000, 1000000])
        vault.set_evolution_criteria(deployer, [0, 1, 2, 3], criteria)
        vault.set_approver_address(deployer, signer.address)

        request = RegistrationRequest(1, referrer, timestamp)
        signature = signer.sign(vault.make_user_registration_commitment(1, referrer, timestamp))
        vault.register(user, request, signature)
        vault.promote(user)
    """

    def __init__(
        self,
        admin: str,
        total_levels: int = DEFAULT_TOTAL_LEVELS,
        approver: str = ZERO_ADDRESS,
        ledger: Optional[RewardLedger] = None,
        event_log: Optional[EventLog] = None,
        max_commitment_age: Optional[int] = None,
    ) -> None:
        self._access = AccessControlAdmin(admin, approver)
        self._criteria = TierCriteriaEngine(total_levels)
        self._rewards = RewardPercentageTable(total_levels)
        self._state_machine = LevelStateMachine(total_levels)
        self._ledger = ledger
        self._event_log = event_log
        self._max_commitment_age = max_commitment_age
        self._users: dict[str, UserRecord] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_resolver(
        cls,
        resolver: PolicyResolver,
        admin: str,
        ledger: Optional[RewardLedger] = None,
        event_log: Optional[EventLog] = None,
    ) -> RewardVault:
        """Build a vault configured with deploy-time tables and approver."""
        if ledger is None:
            ledger = RewardLedger(resolver.total_supply())
        vault = cls(
            admin=admin,
            total_levels=resolver.total_levels(),
            ledger=ledger,
            event_log=event_log,
            max_commitment_age=resolver.max_commitment_age_seconds(),
        )
        vault.set_evolution_reward_percentage_per_level(admin, resolver.reward_percentages())
        levels, criteria = resolver.evolution_criteria()
        vault.set_evolution_criteria(admin, levels, criteria)
        approver = resolver.approver_address()
        if approver is not None:
            vault.set_approver_address(admin, approver)
        return vault

    # ------------------------------------------------------------------
    # Commitments
    # ------------------------------------------------------------------

    @staticmethod
    def make_user_registration_commitment(
        verification_type: int,
        referrer: str,
        timestamp: int,
    ) -> bytes:
        """Compute the commitment the approver must sign for a registration."""
        return make_commitment(verification_type, referrer, timestamp)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_evolution_reward_percentage_per_level(
        self,
        caller: str,
        percentages: Sequence[int | str],
    ) -> None:
        with self._lock:
            self._access.require_admin(caller)
            staged = self._rewards.stage(percentages)
            self._emit(EventKind.REWARD_PERCENTAGES_SET, caller, {"percentages": list(staged)})
            self._rewards.install(staged)
            logger.info(f"Evolution reward percentages set: {list(staged)}")

    def set_evolution_criteria(
        self,
        caller: str,
        levels: Sequence[int | str],
        criteria: Sequence[Sequence[int | str] | EvolutionCriterion],
    ) -> None:
        with self._lock:
            self._access.require_admin(caller)
            staged = self._criteria.stage(levels, criteria)
            self._emit(
                EventKind.CRITERIA_SET,
                caller,
                {"criteria": {str(k): list(v.as_tuple()) for k, v in sorted(staged.items())}},
            )
            self._criteria.install(staged)
            logger.info(f"Evolution criteria set for levels {sorted(staged)}")

    def set_approver_address(self, caller: str, address: str) -> None:
        with self._lock:
            self._access.require_admin(caller)
            previous = self._access.get_approver()
            current = normalize_address(address)
            self._emit(
                EventKind.APPROVER_SET, caller, {"previous": previous, "approver": current}
            )
            self._access.set_approver(caller, current)
            logger.info(f"Approver address set to: {current}")

    def get_approver(self) -> str:
        return self._access.get_approver()

    @property
    def approver(self) -> str:
        return self._access.get_approver()

    @property
    def admin(self) -> str:
        return self._access.admin

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        with self._lock:
            self._access.require_admin(caller)
            successor = normalize_address(new_admin)
            self._emit(EventKind.ADMIN_TRANSFERRED, caller, {"admin": successor})
            self._access.transfer_admin(caller, successor)
            logger.info(f"Vault admin transferred to {self._access.admin}")

    def set_whitelist_address_for_fee_batch(
        self,
        caller: str,
        addresses: Sequence[str],
        flags: Sequence[bool],
    ) -> None:
        with self._lock:
            updates = self._access.stage_whitelist_batch(caller, addresses, flags)
            self._emit(EventKind.FEE_WHITELIST_UPDATED, caller, {"updates": updates})
            self._access.install_whitelist(updates)
            logger.info(f"Fee whitelist updated for {len(updates)} address(es)")

    def is_whitelisted_for_fee(self, address: str) -> bool:
        return self._access.is_whitelisted(address)

    # ------------------------------------------------------------------
    # Registration and evolution
    # ------------------------------------------------------------------

    def register(
        self,
        user: str,
        request: RegistrationRequest,
        signature: Signature | bytes | str,
        now: Optional[datetime] = None,
    ) -> UserRecord:
        """Admit ``user`` at level 0 on an approver-signed request.

        Raises ValidationError for malformed input, a stale request or an
        already-registered user, and AuthorizationError when the signature
        does not recover to the current approver.
        """
        with self._lock:
            account = normalize_address(user)
            if account in self._users:
                raise ValidationError(f"{account} is already registered")
            errors = self._state_machine.transition(UNREGISTERED, 0)
            if errors:
                raise ValidationError("; ".join(errors))

            commitment = request.commitment()
            referrer = normalize_address(request.referrer)
            if referrer == account:
                raise ValidationError(f"{account} cannot refer itself")
            self._check_freshness(request.timestamp, now)

            signer = recover(commitment, signature)
            if not self._access.is_approver(signer):
                logger.warning(
                    f"Rejected registration of {account}: signer {signer} is not the approver"
                )
                raise AuthorizationError(
                    f"Signer {signer} is not the current approver {self._access.get_approver()}"
                )

            record = UserRecord(
                address=account,
                referrer=referrer,
                verification_type=int(request.verification_type),
                commitment=commitment,
                registered_at=now or datetime.now(timezone.utc),
            )
            self._emit(
                EventKind.USER_REGISTERED,
                account,
                {
                    "referrer": referrer,
                    "verification_type": record.verification_type,
                    "commitment": commitment_hex(commitment),
                },
            )

            self._users[account] = record
            referrer_record = self._users.get(referrer)
            if referrer_record is not None:
                referrer_record.stats = dataclasses.replace(
                    referrer_record.stats, referrals=referrer_record.stats.referrals + 1
                )
            logger.info(f"Registered {account} at level 0 (referrer {referrer})")
            return dataclasses.replace(record)

    def promote(self, user: str) -> UserRecord:
        """Evolve ``user`` to the next level.

        Raises IneligibleError if the current level's criteria are not
        met or the user is already at the terminal level.
        """
        with self._lock:
            record = self._require_user(user)
            shortfall = self._criteria.shortfall(record.level, record.stats)
            if shortfall:
                raise IneligibleError(record.level, shortfall)

            target = record.level + 1
            errors = self._state_machine.transition(record.level, target)
            if errors:
                raise ValidationError("; ".join(errors))

            previous = record.level
            self._emit(EventKind.USER_PROMOTED, record.address, {"from": previous, "to": target})

            record.level = target
            if previous == 0:
                referrer_record = self._users.get(record.referrer)
                if referrer_record is not None:
                    referrer_record.stats = dataclasses.replace(
                        referrer_record.stats,
                        evolved_referrals=referrer_record.stats.evolved_referrals + 1,
                    )
            logger.info(f"Evolved {record.address} from level {previous} to {target}")
            return dataclasses.replace(record)

    def is_eligible(self, user: str) -> bool:
        record = self._require_user(user)
        return self._criteria.is_eligible(record.level, record.stats)

    def record_volume(self, user: str, amount: int) -> UserStats:
        """Accrue activity volume reported by the token ledger."""
        with self._lock:
            record = self._require_user(user)
            if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
                raise ValidationError(f"Volume must be a non-negative integer, got {amount!r}")
            self._emit(EventKind.VOLUME_RECORDED, record.address, {"amount": amount})
            record.stats = dataclasses.replace(record.stats, volume=record.stats.volume + amount)
            return record.stats

    # ------------------------------------------------------------------
    # Rewards
    # ------------------------------------------------------------------

    def compute_reward(self, level: int, base_amount: int) -> int:
        return self._rewards.apply_reward(level, base_amount)

    def claim_reward(self, user: str, base_amount: int) -> int:
        """Credit the level-scaled reward for ``base_amount`` to ``user``."""
        with self._lock:
            if self._ledger is None:
                raise ConfigError("No reward ledger configured")
            record = self._require_user(user)
            reward = self._rewards.apply_reward(record.level, base_amount)
            if not self._ledger.can_credit(reward):
                raise RewardOverflowError(
                    f"Reward {reward} exceeds remaining supply {self._ledger.remaining_supply}"
                )
            self._emit(
                EventKind.REWARD_CREDITED,
                record.address,
                {"level": record.level, "base_amount": base_amount, "reward": reward},
            )

            self._ledger.credit(record.address, reward)
            record.rewards_claimed += reward
            logger.info(f"Credited reward {reward} to {record.address} at level {record.level}")
            return reward

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def user(self, address: str) -> Optional[UserRecord]:
        record = self._users.get(normalize_address(address))
        return dataclasses.replace(record) if record is not None else None

    def is_registered(self, address: str) -> bool:
        return normalize_address(address) in self._users

    def level_of(self, address: str) -> int:
        record = self._users.get(normalize_address(address))
        return record.level if record is not None else UNREGISTERED

    def evolution_criteria(self) -> dict[int, EvolutionCriterion]:
        return self._criteria.criteria()

    def evolution_reward_percentages(self) -> tuple[int, ...]:
        return self._rewards.percentages()

    @property
    def total_levels(self) -> int:
        return self._criteria.total_levels

    @property
    def ledger(self) -> Optional[RewardLedger]:
        return self._ledger

    @property
    def event_log(self) -> Optional[EventLog]:
        return self._event_log

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_user(self, address: str) -> UserRecord:
        account = normalize_address(address)
        record = self._users.get(account)
        if record is None:
            raise ValidationError(f"{account} is not registered")
        return record

    def _check_freshness(self, timestamp: int, now: Optional[datetime]) -> None:
        if self._max_commitment_age is None:
            return
        now_ts = int((now or datetime.now(timezone.utc)).timestamp())
        age = now_ts - timestamp
        if age < 0:
            raise ValidationError(f"Registration timestamp {timestamp} is in the future")
        if age > self._max_commitment_age:
            raise ValidationError(
                f"Registration request expired: {age}s old, "
                f"limit {self._max_commitment_age}s"
            )

    def _emit(self, kind: EventKind, actor: str, payload: dict) -> None:
        if self._event_log is None:
            return
        self._event_log.record(kind, normalize_address(actor), payload)
