"""Access control — admin capability, approver identity and fee whitelist.

The admin (the deployer) is the only caller allowed to rotate the
approver or edit the fee whitelist. Approver rotation takes effect
immediately: signatures are checked against whoever is approver at
verification time, never against the signer at signing time.

Whitelist entries are created on first write and only ever flagged
false, never removed.
"""

from __future__ import annotations

from typing import Sequence

from evolution.crypto.address import ZERO_ADDRESS, normalize_address
from evolution.errors import AuthorizationError, ValidationError
from evolution.models.tiers import sized_length


class AccessControlAdmin:
    """Holds the admin, the approver and the fee whitelist."""

    def __init__(self, admin: str, approver: str = ZERO_ADDRESS) -> None:
        self._admin = normalize_address(admin)
        self._approver = normalize_address(approver)
        self._fee_whitelist: dict[str, bool] = {}

    @property
    def admin(self) -> str:
        return self._admin

    def require_admin(self, caller: str) -> None:
        """Raise AuthorizationError unless ``caller`` is the admin."""
        try:
            normalized = normalize_address(caller)
        except ValidationError as exc:
            raise AuthorizationError(f"Caller {caller!r} is not the admin") from exc
        if normalized != self._admin:
            raise AuthorizationError(f"Caller {normalized} is not the admin")

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        self.require_admin(caller)
        self._admin = normalize_address(new_admin)

    # ------------------------------------------------------------------
    # Approver
    # ------------------------------------------------------------------

    def set_approver(self, caller: str, new_address: str) -> None:
        """Overwrite the approver. Idempotent for the current value."""
        self.require_admin(caller)
        self._approver = normalize_address(new_address)

    def get_approver(self) -> str:
        return self._approver

    def is_approver(self, address: str) -> bool:
        return self._approver != ZERO_ADDRESS and address == self._approver

    # ------------------------------------------------------------------
    # Fee whitelist
    # ------------------------------------------------------------------

    def set_whitelist_batch(
        self,
        caller: str,
        addresses: Sequence[str],
        flags: Sequence[bool],
    ) -> dict[str, bool]:
        """Apply (address, flag) pairs. Returns the applied updates.

        All addresses and flags are validated before anything is written,
        so a failing batch leaves every entry as it was.
        """
        updates = self.stage_whitelist_batch(caller, addresses, flags)
        self.install_whitelist(updates)
        return updates

    def stage_whitelist_batch(
        self,
        caller: str,
        addresses: Sequence[str],
        flags: Sequence[bool],
    ) -> dict[str, bool]:
        """Validate a batch and return the updates without writing them."""
        self.require_admin(caller)
        n_addresses = sized_length(addresses, "addresses")
        n_flags = sized_length(flags, "flags")
        if n_addresses != n_flags:
            raise ValidationError(
                f"addresses and flags length mismatch: {n_addresses} != {n_flags}"
            )

        updates: dict[str, bool] = {}
        for address, flag in zip(addresses, flags):
            if not isinstance(flag, bool):
                raise ValidationError(f"Whitelist flag must be a bool, got {flag!r}")
            updates[normalize_address(address)] = flag
        return updates

    def install_whitelist(self, updates: dict[str, bool]) -> None:
        self._fee_whitelist.update(updates)

    def is_whitelisted(self, address: str) -> bool:
        return self._fee_whitelist.get(normalize_address(address), False)

    def whitelist(self) -> dict[str, bool]:
        """Snapshot of every whitelist entry ever written."""
        return dict(self._fee_whitelist)
