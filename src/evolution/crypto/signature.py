"""Signature codec — split, join and recover approver signatures.

Wire form is 65 bytes, r (32) || s (32) || v (1), as produced by
eth_account's sign_message. The signed digest follows the personal-sign
(EIP-191 version 0x45) convention:

    keccak256("\\x19Ethereum Signed Message:\\n32" || commitment)

so signatures issued by any standard wallet over the raw commitment bytes
recover to the same address here.

Non-canonical signatures (s in the upper half of the curve order) are
rejected: for every valid (r, s) there is a second valid (r, n - s), and
accepting both would make signatures malleable.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError

from evolution.crypto.commitment import parse_commitment
from evolution.errors import InvalidSignatureError, MalformedSignatureError
from evolution.models.signature import Signature


SIGNATURE_LENGTH = 65

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2


def split(signature: bytes | str) -> Signature:
    """Split a 65-byte signature (raw or 0x-hex) into (v, r, s)."""
    raw = _as_bytes(signature)
    if len(raw) != SIGNATURE_LENGTH:
        raise MalformedSignatureError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}"
        )
    r = int.from_bytes(raw[0:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]
    return Signature(v=v, r=r, s=s)


def join(signature: Signature) -> bytes:
    """Serialise (v, r, s) back into the 65-byte wire form."""
    if not 0 <= signature.v <= 0xFF:
        raise MalformedSignatureError(f"v does not fit in one byte: {signature.v}")
    for name, value in (("r", signature.r), ("s", signature.s)):
        if not 0 <= value < 2**256:
            raise MalformedSignatureError(f"{name} does not fit in 32 bytes")
    return (
        signature.r.to_bytes(32, "big")
        + signature.s.to_bytes(32, "big")
        + bytes([signature.v])
    )


def recover(commitment: bytes | str, signature: Signature | bytes | str) -> str:
    """Recover the checksum address that signed a commitment.

    Raises InvalidSignatureError for out-of-range or non-canonical values
    and for signatures no public key can be recovered from.
    """
    digest_source = parse_commitment(commitment)
    if not isinstance(signature, Signature):
        signature = split(signature)

    v, r, s = signature.as_vrs()
    if v in (0, 1):
        v += 27
    if v not in (27, 28):
        raise InvalidSignatureError(f"Invalid recovery byte v={signature.v}")
    if not 1 <= r < SECP256K1_N:
        raise InvalidSignatureError("Signature r out of range")
    if not 1 <= s <= SECP256K1_HALF_N:
        raise InvalidSignatureError("Signature s is not canonical (upper half-order)")

    message = encode_defunct(primitive=digest_source)
    try:
        return Account.recover_message(message, vrs=(v, r, s))
    except (BadSignature, KeyValidationError, ValueError) as exc:
        raise InvalidSignatureError(f"Signature recovery failed: {exc}") from exc


def _as_bytes(signature: bytes | str) -> bytes:
    if isinstance(signature, str):
        try:
            return bytes.fromhex(signature.removeprefix("0x"))
        except ValueError as exc:
            raise MalformedSignatureError("Signature is not valid hex") from exc
    return bytes(signature)
