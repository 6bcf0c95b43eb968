"""Approver signer — off-chain capability that signs registration commitments.

The signer wraps the approver's private key and exposes only ``sign`` and
the derived ``address``. The key itself is never returned or logged.
Signing requests may arrive concurrently from many registration attempts;
access to the key is serialised with a lock.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import ValidationError as KeyValidationError
from loguru import logger

from evolution.crypto.commitment import commitment_hex, parse_commitment
from evolution.errors import ConfigError, SigningError
from evolution.models.signature import Signature


APPROVER_KEY_ENV = "APPROVER_KEY"


class ApproverSigner:
    """Signs commitments with the approver key.

    Usage:
        signer = ApproverSigner.from_env()
        signature = signer.sign(request.commitment())
        vault.register(user, request, signature)
    """

    def __init__(self, private_key: str | bytes) -> None:
        try:
            self.__account = Account.from_key(private_key)
        except (KeyValidationError, ValueError, TypeError) as exc:
            raise ConfigError("Approver key is not a valid secp256k1 private key") from exc
        self._lock = threading.Lock()

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Path] = None,
        variable: str = APPROVER_KEY_ENV,
    ) -> ApproverSigner:
        """Load the approver key from the environment (and a .env file)."""
        load_dotenv(env_file)
        key = os.getenv(variable)
        if not key:
            raise ConfigError(f"Missing {variable} in environment or .env")
        return cls(key)

    @property
    def address(self) -> str:
        """Checksum address derived from the key."""
        return self.__account.address

    def sign(self, commitment: bytes | str) -> Signature:
        """Sign a 32-byte commitment with the personal-sign prefix.

        Raises SigningError if the signing primitive fails. The caller may
        retry with the same commitment.
        """
        raw = parse_commitment(commitment)
        message = encode_defunct(primitive=raw)
        with self._lock:
            try:
                signed = self.__account.sign_message(message)
            except (KeyValidationError, ValueError, TypeError) as exc:
                raise SigningError(f"Failed to sign {commitment_hex(raw)}") from exc
        logger.debug(f"Approver {self.address} signed commitment {commitment_hex(raw)}")
        return Signature(v=signed.v, r=signed.r, s=signed.s)

    def __repr__(self) -> str:
        return f"ApproverSigner(address={self.address})"
