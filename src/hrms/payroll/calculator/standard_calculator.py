from __future__ import annotations

from datetime import date

from ...common.datetime_utils import iter_days, month_bounds
from ...core.enums import AttendanceStatus
from ...shifts.rules import works_on
from ..model import Deductions, HalfDayDeductionRule, PayrollCalculationResult, WorkingDaysRule
from .base import PayrollCalculator, PayrollPeriod


def _is_sunday(d: date) -> bool:
    return d.weekday() == 6


def _works(period: PayrollPeriod, d: date) -> bool:
    shift = period.shift_on(d)
    return shift is not None and works_on(shift, d)


def total_working_days(period: PayrollPeriod) -> int:
    structure = period.structure
    start, end = month_bounds(period.year, period.month)
    if structure.working_days_rule == WorkingDaysRule.FIXED_DAYS:
        return int(structure.fixed_working_days or 0)
    if structure.working_days_rule == WorkingDaysRule.CALENDAR_DAYS:
        return sum(1 for d in iter_days(start, end) if not _is_sunday(d))
    return sum(1 for d in iter_days(start, end) if _works(period, d))


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: pay per working day, leave before attendance, half days at 0.5."""

    def calculate(self, period: PayrollPeriod) -> PayrollCalculationResult:
        structure = period.structure
        start, end = month_bounds(period.year, period.month)
        anomalies: list[str] = []

        working_days = total_working_days(period)
        attendance = {r.date: r for r in period.attendance}

        leave_on = {}
        for leave in period.approved_leaves:
            for d in iter_days(max(leave.start_date, start), min(leave.end_date, end)):
                leave_on.setdefault(d, leave)

        present = absent = half = paid_leave = unpaid_leave = late = 0
        for d in iter_days(start, end):
            if structure.working_days_rule == WorkingDaysRule.CALENDAR_DAYS and _is_sunday(d):
                continue

            leave = leave_on.get(d)
            record = attendance.get(d)
            if leave is not None:
                if leave.leave_type in structure.paid_leave_types:
                    paid_leave += 1
                elif leave.leave_type in structure.unpaid_leave_types:
                    unpaid_leave += 1
            elif record is not None:
                if record.status == AttendanceStatus.PRESENT:
                    present += 1
                    if record.is_late:
                        late += 1
                elif record.status == AttendanceStatus.HALF_DAY:
                    half += 1
                elif record.status == AttendanceStatus.ABSENT:
                    absent += 1
            elif _works(period, d):
                anomalies.append(f"Missing attendance record for {d.isoformat()}")
                absent += 1

        if working_days > 0:
            per_day = structure.gross_monthly_salary / working_days
        else:
            per_day = 0.0
            anomalies.append("No working days in period")

        payable_days = present + paid_leave + half * 0.5
        half_day_deduction = 0.0
        if structure.half_day_deduction_rule == HalfDayDeductionRule.HALF_DAY:
            half_day_deduction = half * per_day * 0.5
        deductions = Deductions(
            unpaid_leave=round(unpaid_leave * per_day, 2),
            half_day=round(half_day_deduction, 2),
            late_penalty=0.0,
        )
        gross_payable = round(payable_days * per_day, 2)

        if present + absent + half + paid_leave + unpaid_leave > working_days:
            anomalies.append("Attendance/leave days exceed total working days")

        return PayrollCalculationResult(
            total_working_days=working_days,
            present_days=present,
            absent_days=absent,
            half_days=half,
            paid_leave_days=paid_leave,
            unpaid_leave_days=unpaid_leave,
            late_arrivals=late,
            payable_days=payable_days,
            per_day_salary=round(per_day, 2),
            gross_payable=gross_payable,
            deductions=deductions,
            net_payable=round(gross_payable - deductions.total, 2),
            anomalies=tuple(anomalies),
        )
