from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Login account. Linked to an Employee for everyone except bootstrap admins."""

    json_exclude = ("password_hash",)

    user_id: str
    email: str
    password_hash: str
    role: Role
    employee_id: Optional[str]
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: str
    email: str
    role: Role
    employee_id: Optional[str]
    name: str = ""
