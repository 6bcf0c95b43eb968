"""Signature model — the (v, r, s) triple of a secp256k1 signature.

Canonical wire form is 65 bytes: r (32) || s (32) || v (1).
Encoding and recovery live in evolution.crypto.signature.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Signature:
    """A split secp256k1 signature.

    v is the recovery byte (27 or 28 for personal-sign signatures);
    r and s are the 256-bit curve values as integers.
    """
    v: int
    r: int
    s: int

    def as_vrs(self) -> tuple[int, int, int]:
        return (self.v, self.r, self.s)
