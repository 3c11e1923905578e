"""Wallet address validation helpers."""

import re
from typing import Any

ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")


def is_valid_address(value: Any) -> bool:
    """Return ``True`` if ``value`` is ``0x`` followed by exactly 40 hex digits.

    The whole string must match; surrounding whitespace is rejected.
    """
    if not isinstance(value, str):
        return False
    return ADDRESS_PATTERN.fullmatch(value) is not None


def normalize_address(value: str) -> str:
    """Return the lowercase form used for storage and comparison."""
    return value.lower()
