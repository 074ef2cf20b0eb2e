from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Employee


class EmployeeRepository(Protocol):
    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_employees(
        self,
        *,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        manager_id: Optional[str] = None,
    ) -> Sequence[Employee]:
        raise NotImplementedError

    def create_employee(
        self,
        *,
        code: str,
        name: str,
        email: str,
        role: Role,
        manager_id: Optional[str],
        department: Optional[str] = None,
        designation: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def update_employee(self, employee_id: str, fields: dict) -> bool:
        """Fields use model attribute names (name, role, manager_id, ...)."""

        raise NotImplementedError

    def set_active(self, employee_id: str, *, is_active: bool) -> bool:
        raise NotImplementedError
