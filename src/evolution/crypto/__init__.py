"""Cryptographic primitives — commitments, signature codec, approver signer."""

from evolution.crypto.commitment import make_commitment
from evolution.crypto.signature import join, recover, split
from evolution.crypto.signer import ApproverSigner

__all__ = ["make_commitment", "split", "join", "recover", "ApproverSigner"]
