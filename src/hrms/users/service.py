from __future__ import annotations

from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.permissions import ensure_admin
from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..employees.repository import EmployeeRepository
from .model import SessionUser, User
from .repository import UserRepository

logger = get_logger("hrms.users")

MIN_PASSWORD_LENGTH = 6


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository, employees: EmployeeRepository):
        self._users = users
        self._employees = employees

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email(email or "")
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder or corrupted hashes
            ok = False

        if not ok:
            logger.warning("failed login for %s", user.email)
            raise AuthenticationError("Invalid email or password")

        return self.session_user(user)

    def session_user(self, user: User) -> SessionUser:
        name = user.email
        if user.employee_id:
            employee = self._employees.get_by_id(user.employee_id)
            if employee:
                if not employee.is_active:
                    raise AuthenticationError("Account is inactive")
                name = employee.name
        return SessionUser(
            user_id=user.user_id,
            email=user.email,
            role=user.role,
            employee_id=user.employee_id,
            name=name,
        )


class UserService:
    """Use case: manage login accounts."""

    def __init__(self, users: UserRepository, employees: EmployeeRepository):
        self._users = users
        self._employees = employees

    def get(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(self, actor: SessionUser) -> Sequence[User]:
        ensure_admin(actor)
        return self._users.list_users()

    def create_account(
        self,
        *,
        email: str,
        password: str,
        role: Role,
        employee_id: Optional[str],
        actor: Optional[SessionUser] = None,
    ) -> User:
        if actor is not None:
            ensure_admin(actor)
            if role == Role.SUPER_ADMIN and actor.role != Role.SUPER_ADMIN:
                raise AuthorizationError("Only super admins can create super admin accounts")

        email = require_non_empty(email, "Email").lower()
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")
        if employee_id:
            if not self._employees.get_by_id(employee_id):
                raise NotFoundError("Employee not found")
            if self._users.get_by_employee_id(employee_id):
                raise ConflictError("Employee already has a user account")

        user_id = self._users.create_user(
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            employee_id=employee_id,
        )
        logger.info("user created id=%s role=%s", user_id, role.value)
        return self.get(user_id)

    def change_password(self, actor: SessionUser, *, current_password: str, new_password: str) -> None:
        user = self.get(actor.user_id)
        if not check_password_hash(user.password_hash, current_password or ""):
            raise ValidationError("Current password is incorrect")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        if current_password == new_password:
            raise ValidationError("New password must be different from the current password")
        self._users.update_password(user.user_id, password_hash=generate_password_hash(new_password))
        logger.info("password changed for user=%s", user.user_id)

    def set_active(self, actor: SessionUser, user_id: str, *, is_active: bool) -> User:
        ensure_admin(actor)
        user = self.get(user_id)
        if user.user_id == actor.user_id and not is_active:
            raise ValidationError("You cannot deactivate your own account")
        self._users.set_active(user_id, is_active=is_active)
        return self.get(user_id)
