from __future__ import annotations

from typing import Optional, Sequence

from ..common.permissions import ensure_admin, is_admin
from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..database.repository import SequenceRepository
from ..users.model import SessionUser
from .model import Employee
from .repository import EmployeeRepository

logger = get_logger("hrms.employees")


class EmployeeService:
    """Use case: employee directory (HR writes, managers read their team)."""

    def __init__(self, employees: EmployeeRepository, sequences: SequenceRepository):
        self._employees = employees
        self._sequences = sequences

    def get(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def get_for(self, actor: SessionUser, employee_id: str) -> Employee:
        employee = self.get(employee_id)
        if is_admin(actor) or actor.employee_id == employee.employee_id:
            return employee
        if actor.role == Role.MANAGER and employee.manager_id == actor.employee_id:
            return employee
        raise AuthorizationError("Unauthorized")

    def me(self, actor: SessionUser) -> Employee:
        if not actor.employee_id:
            raise NotFoundError("Employee record not found")
        return self.get(actor.employee_id)

    def team(self, actor: SessionUser) -> Sequence[Employee]:
        if not actor.employee_id:
            return []
        return self._employees.list_employees(manager_id=actor.employee_id, is_active=True)

    def list_for(self, actor: SessionUser, *, role: Optional[Role] = None, is_active: Optional[bool] = None) -> Sequence[Employee]:
        if is_admin(actor):
            return self._employees.list_employees(role=role, is_active=is_active)
        if actor.role == Role.MANAGER:
            return self._employees.list_employees(role=role, is_active=is_active, manager_id=actor.employee_id)
        raise AuthorizationError("Unauthorized")

    def next_code(self) -> str:
        return f"EMP{self._sequences.next_value('employee'):03d}"

    def create(
        self,
        actor: Optional[SessionUser],
        *,
        name: str,
        email: str,
        role: Role,
        code: Optional[str] = None,
        manager_id: Optional[str] = None,
        department: Optional[str] = None,
        designation: Optional[str] = None,
    ) -> Employee:
        """Create an employee. actor is None for system provisioning (onboarding)."""

        if actor is not None:
            ensure_admin(actor)
        name = require_non_empty(name, "Name")
        email = require_non_empty(email, "Email").lower()

        if self._employees.get_by_email(email):
            raise ConflictError("Employee with this email already exists")
        if code and self._employees.get_by_code(code):
            raise ConflictError("Employee ID already exists")
        if manager_id:
            manager = self._employees.get_by_id(manager_id)
            if not manager or not manager.is_active:
                raise ValidationError("Manager not found or inactive")

        code = code or self.next_code()
        employee_id = self._employees.create_employee(
            code=code,
            name=name,
            email=email,
            role=role,
            manager_id=manager_id,
            department=department,
            designation=designation,
        )
        logger.info("employee created id=%s code=%s role=%s", employee_id, code, role.value)
        return self.get(employee_id)

    def update(self, actor: SessionUser, employee_id: str, fields: dict) -> Employee:
        ensure_admin(actor)
        employee = self.get(employee_id)
        if "email" in fields and fields["email"]:
            other = self._employees.get_by_email(fields["email"])
            if other and other.employee_id != employee.employee_id:
                raise ConflictError("Employee with this email already exists")
        if fields.get("manager_id") == employee.employee_id:
            raise ValidationError("Employee cannot be their own manager")
        if fields:
            self._employees.update_employee(employee_id, fields)
        return self.get(employee_id)

    def set_status(self, actor: SessionUser, employee_id: str, *, is_active: bool) -> Employee:
        ensure_admin(actor)
        self.get(employee_id)
        self._employees.set_active(employee_id, is_active=is_active)
        logger.info("employee %s active=%s by user=%s", employee_id, is_active, actor.user_id)
        return self.get(employee_id)
