"""Registration commitment — deterministic hash over registration parameters.

The commitment is keccak-256 over the tightly packed encoding

    uint8 verification_type || address referrer || uint256 timestamp

which is what Solidity's keccak256(abi.encodePacked(...)) produces for the
same types. Every field has a fixed width (1 + 20 + 32 bytes), so no two
distinct parameter tuples share an encoding. Both the requester and the
approver compute it independently and must agree bit for bit.
"""

from __future__ import annotations

from web3 import Web3

from evolution.crypto.address import normalize_address
from evolution.errors import ValidationError


COMMITMENT_TYPES = ["uint8", "address", "uint256"]

UINT8_MAX = 2**8 - 1
UINT256_MAX = 2**256 - 1


def make_commitment(verification_type: int, referrer: str, timestamp: int) -> bytes:
    """Compute the 32-byte registration commitment.

    Pure: same inputs always give the same output. Raises ValidationError
    if a value does not fit its encoded width or the referrer is not a
    valid address.
    """
    _require_uint(verification_type, UINT8_MAX, "verification_type")
    _require_uint(timestamp, UINT256_MAX, "timestamp")
    checksum_referrer = normalize_address(referrer)

    digest = Web3.solidity_keccak(
        COMMITMENT_TYPES,
        [int(verification_type), checksum_referrer, int(timestamp)],
    )
    return bytes(digest)


def commitment_hex(commitment: bytes) -> str:
    """Render a commitment as a 0x-prefixed hex string."""
    return "0x" + commitment.hex()


def parse_commitment(value: str | bytes) -> bytes:
    """Accept a commitment as raw bytes or 0x-hex and return 32 bytes."""
    if isinstance(value, str):
        try:
            value = bytes.fromhex(value.removeprefix("0x"))
        except ValueError as exc:
            raise ValidationError(f"Commitment is not valid hex: {value!r}") from exc
    if len(value) != 32:
        raise ValidationError(f"Commitment must be 32 bytes, got {len(value)}")
    return bytes(value)


def _require_uint(value: int, maximum: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= maximum:
        raise ValidationError(f"{name} out of range [0, {maximum}]: {value}")
