#!/usr/bin/env python3
"""Produce an approver-signed registration for a user.

Computes the registration commitment for (verification type, referrer,
timestamp), signs it with the approver key and prints the split
signature (v, r, s) the registration call expects.

Usage:
    python3 tools/sign_registration.py
    python3 tools/sign_registration.py <verification_type> <referrer> <timestamp>

Requires:
    APPROVER_KEY in a .env file at the project root (or the environment).
"""

import os
import sys
from pathlib import Path

# Add src to path for evolution imports
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from dotenv import load_dotenv
from evolution.crypto.commitment import commitment_hex, make_commitment
from evolution.crypto.signature import recover
from evolution.crypto.signer import ApproverSigner

# ------------------------------------------------------------------ #
# Configuration                                                       #
# ------------------------------------------------------------------ #

load_dotenv(ROOT / ".env")

if not os.getenv("APPROVER_KEY"):
    print("ERROR: Missing APPROVER_KEY in .env")
    sys.exit(1)

if len(sys.argv) == 4:
    verification_type = int(sys.argv[1])
    referrer = sys.argv[2]
    timestamp = int(sys.argv[3])
else:
    verification_type = 1
    referrer = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
    timestamp = 100

# ------------------------------------------------------------------ #
# Commit and sign                                                     #
# ------------------------------------------------------------------ #

signer = ApproverSigner.from_env(ROOT / ".env")
commitment = make_commitment(verification_type, referrer, timestamp)
signature = signer.sign(commitment)

# Self-check: the signature must recover to this approver
if recover(commitment, signature) != signer.address:
    print("ERROR: Signature does not recover to the approver address")
    sys.exit(1)

print(f"  Approver:           {signer.address}")
print(f"  Verification type:  {verification_type}")
print(f"  Referrer:           {referrer}")
print(f"  Timestamp:          {timestamp}")
print(f"  Commitment:         {commitment_hex(commitment)}")
print()
print(f"  v: {signature.v}")
print(f"  r: 0x{signature.r:064x}")
print(f"  s: 0x{signature.s:064x}")
