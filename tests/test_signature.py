"""Tests for the signature codec — split/join, recovery and malleability rejection."""

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from evolution.crypto.commitment import make_commitment
from evolution.crypto.signature import SECP256K1_N, join, recover, split
from evolution.crypto.signer import ApproverSigner
from evolution.errors import (
    AuthorizationError,
    InvalidSignatureError,
    MalformedSignatureError,
    ValidationError,
)
from evolution.models.signature import Signature


APPROVER_KEY = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"
OTHER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
REFERRER = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"


@pytest.fixture
def signer() -> ApproverSigner:
    return ApproverSigner(APPROVER_KEY)


@pytest.fixture
def commitment() -> bytes:
    return make_commitment(1, REFERRER, 100)


class TestSplitJoin:
    def test_round_trip(self) -> None:
        sig = Signature(v=28, r=12345, s=2**255 - 19)
        assert split(join(sig)) == sig

    def test_wire_layout(self) -> None:
        sig = Signature(v=27, r=1, s=2)
        raw = join(sig)
        assert len(raw) == 65
        assert raw[:32] == (1).to_bytes(32, "big")
        assert raw[32:64] == (2).to_bytes(32, "big")
        assert raw[64] == 27

    def test_split_hex(self, signer: ApproverSigner, commitment: bytes) -> None:
        sig = signer.sign(commitment)
        assert split("0x" + join(sig).hex()) == sig

    def test_split_matches_eth_account(self, commitment: bytes) -> None:
        signed = Account.sign_message(encode_defunct(primitive=commitment), APPROVER_KEY)
        sig = split(bytes(signed.signature))
        assert (sig.v, sig.r, sig.s) == (signed.v, signed.r, signed.s)

    @pytest.mark.parametrize("length", [0, 64, 66])
    def test_wrong_length_rejected(self, length: int) -> None:
        with pytest.raises(MalformedSignatureError):
            split(b"\x01" * length)

    def test_malformed_is_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            split(b"\x01" * 64)

    def test_join_rejects_wide_v(self) -> None:
        with pytest.raises(MalformedSignatureError):
            join(Signature(v=256, r=1, s=1))


class TestRecover:
    def test_recovers_approver(self, signer: ApproverSigner, commitment: bytes) -> None:
        assert recover(commitment, signer.sign(commitment)) == signer.address

    def test_recovers_from_raw_bytes(self, signer: ApproverSigner, commitment: bytes) -> None:
        raw = join(signer.sign(commitment))
        assert recover(commitment, raw) == signer.address

    def test_other_key_recovers_other_address(self, signer: ApproverSigner, commitment: bytes) -> None:
        other = ApproverSigner(OTHER_KEY)
        assert recover(commitment, other.sign(commitment)) != signer.address

    def test_different_commitment_different_signer(self, signer: ApproverSigner, commitment: bytes) -> None:
        sig = signer.sign(commitment)
        tampered = make_commitment(1, REFERRER, 101)
        assert recover(tampered, sig) != signer.address

    def test_zero_one_v_normalised(self, signer: ApproverSigner, commitment: bytes) -> None:
        sig = signer.sign(commitment)
        legacy = Signature(v=sig.v - 27, r=sig.r, s=sig.s)
        assert recover(commitment, legacy) == signer.address

    def test_high_s_rejected(self, signer: ApproverSigner, commitment: bytes) -> None:
        sig = signer.sign(commitment)
        flipped_v = 27 if sig.v == 28 else 28
        malleated = Signature(v=flipped_v, r=sig.r, s=SECP256K1_N - sig.s)
        with pytest.raises(InvalidSignatureError, match="canonical"):
            recover(commitment, malleated)

    def test_invalid_v_rejected(self, signer: ApproverSigner, commitment: bytes) -> None:
        sig = signer.sign(commitment)
        with pytest.raises(InvalidSignatureError):
            recover(commitment, Signature(v=29, r=sig.r, s=sig.s))

    def test_zero_r_rejected(self, commitment: bytes) -> None:
        with pytest.raises(InvalidSignatureError):
            recover(commitment, Signature(v=27, r=0, s=1))

    def test_invalid_signature_is_authorization_error(self, commitment: bytes) -> None:
        with pytest.raises(AuthorizationError):
            recover(commitment, Signature(v=27, r=SECP256K1_N, s=1))

    def test_bad_commitment_length(self, signer: ApproverSigner, commitment: bytes) -> None:
        with pytest.raises(ValidationError):
            recover(commitment[:31], signer.sign(commitment))
