from __future__ import annotations

from typing import Optional

from pydantic import EmailStr, Field

from ..common.schemas import ApiModel
from ..core.enums import Role


class CreateEmployeeBody(ApiModel):
    name: str = Field(min_length=1)
    email: EmailStr
    role: Role = Role.EMPLOYEE
    employee_code: Optional[str] = None
    manager_id: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    # Optional login created together with the employee
    password: Optional[str] = Field(default=None, min_length=6)


class UpdateEmployeeBody(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    manager_id: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None


class EmployeeStatusBody(ApiModel):
    is_active: bool
