from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from ..core.enums import LeaveType, Role


class WorkingDaysRule(str, Enum):
    SHIFT_BASED = "shift_based"
    CALENDAR_DAYS = "calendar_days"
    FIXED_DAYS = "fixed_days"


class HalfDayDeductionRule(str, Enum):
    HALF_DAY = "half_day"
    PROPORTIONAL = "proportional"


class PayrollStatus(str, Enum):
    DRAFT = "draft"
    PROCESSED = "processed"
    LOCKED = "locked"


@dataclass(frozen=True)
class SalaryStructure:
    """Monthly pay terms for one employee, or for every employee of a role.

    A new version replaces the previous active structure of the same target;
    the previous one is closed at the new effective_from.
    """

    structure_id: str
    gross_monthly_salary: float
    effective_from: date
    employee_id: Optional[str] = None
    role: Optional[Role] = None
    working_days_rule: WorkingDaysRule = WorkingDaysRule.SHIFT_BASED
    fixed_working_days: Optional[int] = None
    paid_leave_types: Tuple[LeaveType, ...] = (LeaveType.PAID,)
    unpaid_leave_types: Tuple[LeaveType, ...] = (LeaveType.UNPAID,)
    half_day_deduction_rule: HalfDayDeductionRule = HalfDayDeductionRule.HALF_DAY
    effective_to: Optional[date] = None
    is_active: bool = True
    version: int = 1
    previous_version_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def effective_on(self, d: date) -> bool:
        if not self.is_active or self.effective_from > d:
            return False
        return self.effective_to is None or self.effective_to >= d


@dataclass(frozen=True)
class Deductions:
    json_properties = ("total",)

    unpaid_leave: float = 0.0
    half_day: float = 0.0
    late_penalty: float = 0.0

    @property
    def total(self) -> float:
        return round(self.unpaid_leave + self.half_day + self.late_penalty, 2)


@dataclass(frozen=True)
class PayrollCalculationResult:
    total_working_days: int
    present_days: int = 0
    absent_days: int = 0
    half_days: int = 0
    paid_leave_days: int = 0
    unpaid_leave_days: int = 0
    late_arrivals: int = 0
    payable_days: float = 0.0
    per_day_salary: float = 0.0
    gross_payable: float = 0.0
    deductions: Deductions = field(default_factory=Deductions)
    net_payable: float = 0.0
    anomalies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Payroll:
    payroll_id: str
    employee_id: str
    month: int
    year: int
    salary_structure_id: str
    gross_monthly_salary: float
    result: PayrollCalculationResult
    status: PayrollStatus = PayrollStatus.DRAFT
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    locked_at: Optional[datetime] = None
    locked_by: Optional[str] = None
    payslip_generated: bool = False
    payslip_generated_at: Optional[datetime] = None

    @property
    def is_locked(self) -> bool:
        return self.status == PayrollStatus.LOCKED


@dataclass(frozen=True)
class AttendanceSummary:
    total_working_days: int
    present_days: int
    absent_days: int
    half_days: int
    paid_leave_days: int
    unpaid_leave_days: int
    late_arrivals: int


@dataclass(frozen=True)
class Payslip:
    payslip_id: str
    payroll_id: str
    employee_id: str
    employee_name: str
    employee_code: str
    designation: str
    month: int
    year: int
    gross_monthly_salary: float
    payable_days: float
    per_day_salary: float
    gross_payable: float
    deductions: Deductions
    net_payable: float
    attendance: AttendanceSummary
    structure_version: int
    generated_at: Optional[datetime] = None
    generated_by: Optional[str] = None
