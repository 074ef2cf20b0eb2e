from __future__ import annotations

from typing import Iterable

from ..core.enums import ADMIN_ROLES, Role
from ..core.exceptions import AuthorizationError
from ..users.model import SessionUser


def is_admin(actor: SessionUser) -> bool:
    """HR and super admins manage every employee's data."""
    return actor.role in ADMIN_ROLES


def ensure_role(actor: SessionUser, roles: Iterable[Role], message: str = "Unauthorized") -> None:
    if actor.role not in set(roles):
        raise AuthorizationError(message)


def ensure_admin(actor: SessionUser, message: str = "Unauthorized") -> None:
    ensure_role(actor, ADMIN_ROLES, message)


def require_employee_id(actor: SessionUser) -> str:
    if not actor.employee_id:
        raise AuthorizationError("Employee ID not found")
    return actor.employee_id
