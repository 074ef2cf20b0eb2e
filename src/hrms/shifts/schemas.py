from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from ..common.schemas import ApiModel
from ..core.enums import WEEKDAY_NAMES
from .model import AssignmentScope, AssignmentType, ShiftType

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ShiftBody(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    code: Optional[str] = None
    shift_type: ShiftType = ShiftType.FIXED
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)
    grace_period: int = Field(default=15, ge=0)
    early_exit_grace_period: int = Field(default=15, ge=0)
    minimum_working_hours: int = Field(default=480, ge=0)
    break_duration: int = Field(default=60, ge=0)
    is_break_paid: bool = False
    working_days: List[str] = Field(default_factory=lambda: list(WEEKDAY_NAMES[:5]))
    is_night_shift: bool = False
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_days(self):
        unknown = [d for d in self.working_days if d not in WEEKDAY_NAMES]
        if unknown:
            raise ValueError(f"Unknown working days: {', '.join(unknown)}")
        return self


class ShiftUpdateBody(ShiftBody):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    start_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=HHMM_PATTERN)
    is_active: Optional[bool] = None


class AssignmentBody(ApiModel):
    shift_id: str
    assignment_type: AssignmentType = AssignmentType.PERMANENT
    scope: AssignmentScope = AssignmentScope.EMPLOYEE
    employee_id: Optional[str] = None
    team_manager_id: Optional[str] = None
    department_role: Optional[str] = None
    effective_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.assignment_type == AssignmentType.PERMANENT and self.effective_date is None:
            raise ValueError("effectiveDate is required for permanent assignments")
        return self


class RosterBody(ApiModel):
    employee_id: str
    dates: List[date] = Field(min_length=1)
    shift_id: Optional[str] = None
    is_weekly_off: bool = False
    notes: Optional[str] = None
    replace_existing: bool = False


class SwapRequestBody(ApiModel):
    requestee_id: str
    requester_date: date
    requestee_date: date
    reason: str = Field(min_length=1, max_length=500)


class SwapReviewBody(ApiModel):
    status: Literal["approved", "rejected", "cancelled"]
    rejection_reason: Optional[str] = None
