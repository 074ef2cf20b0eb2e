from __future__ import annotations

import secrets

from ..core.constants import GENERATED_PASSWORD_DIGITS, TOKEN_BYTES


def generate_token() -> str:
    """URL-safe hex token for invitation and offer links."""
    return secrets.token_hex(TOKEN_BYTES)


def yearly_code(prefix: str, year: int, sequence: int) -> str:
    """Human readable document code, e.g. CAN-2025-001."""
    return f"{prefix}-{year}-{sequence:03d}"


def generate_numeric_password(digits: int = GENERATED_PASSWORD_DIGITS) -> str:
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))
