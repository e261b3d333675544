"""Ethereum address validation and normalization."""

from __future__ import annotations

from eth_utils import is_checksum_address, is_hex_address, remove_0x_prefix, to_checksum_address


def is_valid_address(value: str | None) -> bool:
    """Return True for hex addresses that are all-lower, all-upper or correctly checksummed."""

    if not value or not isinstance(value, str):
        return False
    candidate = value.strip()
    if not is_hex_address(candidate):
        return False
    digits = remove_0x_prefix(candidate)
    if digits == digits.lower() or digits == digits.upper():
        return True
    return bool(is_checksum_address(candidate))


def lookup_address(value: str) -> str:
    """Return the lower-cased, ``0x``-prefixed form used as the storage key."""

    return to_checksum_address(value.strip()).lower()


def display_address(value: str) -> str:
    """Return the EIP-55 checksummed form used in responses."""

    return to_checksum_address(value)


__all__ = ["display_address", "is_valid_address", "lookup_address"]
