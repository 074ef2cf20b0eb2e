from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from ..common.schemas import ApiModel
from ..core.enums import LeaveType, Role
from .model import HalfDayDeductionRule, WorkingDaysRule


class SalaryStructureBody(ApiModel):
    employee_id: Optional[str] = None
    role: Optional[Role] = None
    gross_monthly_salary: float = Field(ge=0)
    working_days_rule: WorkingDaysRule = WorkingDaysRule.SHIFT_BASED
    fixed_working_days: Optional[int] = Field(default=None, ge=1, le=31)
    paid_leave_types: List[LeaveType] = Field(default_factory=lambda: [LeaveType.PAID])
    unpaid_leave_types: List[LeaveType] = Field(default_factory=lambda: [LeaveType.UNPAID])
    half_day_deduction_rule: HalfDayDeductionRule = HalfDayDeductionRule.HALF_DAY
    effective_from: date

    @model_validator(mode="after")
    def check_target(self):
        if bool(self.employee_id) == bool(self.role):
            raise ValueError("Provide exactly one of employeeId or role")
        if self.working_days_rule == WorkingDaysRule.FIXED_DAYS and not self.fixed_working_days:
            raise ValueError("fixedWorkingDays is required for fixed_days rule")
        return self

    def data(self) -> dict:
        out = self.model_dump()
        out["paid_leave_types"] = tuple(self.paid_leave_types)
        out["unpaid_leave_types"] = tuple(self.unpaid_leave_types)
        return out


class SalaryRevisionBody(ApiModel):
    gross_monthly_salary: Optional[float] = Field(default=None, ge=0)
    working_days_rule: Optional[WorkingDaysRule] = None
    fixed_working_days: Optional[int] = Field(default=None, ge=1, le=31)
    paid_leave_types: Optional[List[LeaveType]] = None
    unpaid_leave_types: Optional[List[LeaveType]] = None
    half_day_deduction_rule: Optional[HalfDayDeductionRule] = None
    effective_from: Optional[date] = None

    def data(self) -> dict:
        out = self.changes()
        for key in ("paid_leave_types", "unpaid_leave_types"):
            if out.get(key) is not None:
                out[key] = tuple(out[key])
        return out


class ProcessPayrollBody(ApiModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    employee_ids: Optional[List[str]] = None


class PayrollActionBody(ApiModel):
    action: Literal["lock", "unlock"]
