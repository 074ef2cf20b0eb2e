from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import Field, model_validator

from ..common.schemas import ApiModel
from ..core.enums import LeaveType


class ApplyLeaveBody(ApiModel):
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(min_length=1, max_length=500)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self


class LeaveActionBody(ApiModel):
    action: Literal["approve", "reject", "cancel"]
    rejection_reason: Optional[str] = Field(default=None, max_length=500)


class SetBalanceBody(ApiModel):
    employee_id: str
    leave_type: LeaveType
    year: int = Field(ge=2000, le=2100)
    total_days: float = Field(ge=0)
