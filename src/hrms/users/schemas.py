from __future__ import annotations

from typing import Optional

from pydantic import EmailStr, Field

from ..common.schemas import ApiModel
from ..core.enums import Role


class LoginBody(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ChangePasswordBody(ApiModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class CreateUserBody(ApiModel):
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = Role.EMPLOYEE
    employee_id: Optional[str] = None


class UserStatusBody(ApiModel):
    is_active: bool
