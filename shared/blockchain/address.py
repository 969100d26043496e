"""Hex address helpers."""

import re


ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: str) -> bool:
    """Check for a 0x-prefixed 20-byte hex address."""
    return bool(ADDRESS_PATTERN.match(value))


def normalize_address(value: str) -> str:
    """
    Lowercase an address for comparison.

    Raises:
        ValueError: If value is not a 20-byte hex address
    """
    if not is_address(value):
        raise ValueError(f"invalid address: {value!r}")
    return value.lower()
