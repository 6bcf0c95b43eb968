"""Address normalisation for 20-byte account identifiers."""

from __future__ import annotations

from eth_utils import is_address, to_checksum_address

from evolution.errors import ValidationError


ZERO_ADDRESS = "0x" + "0" * 40


def normalize_address(value: str) -> str:
    """Return the checksum form of a hex address.

    Accepts any case. Raises ValidationError for anything that is not a
    20-byte hex address (or has a wrong mixed-case checksum).
    """
    if not isinstance(value, str) or not is_address(value):
        raise ValidationError(f"Invalid address: {value!r}")
    return to_checksum_address(value)
