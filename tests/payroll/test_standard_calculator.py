from datetime import date, datetime

from hrms.attendance.model import AttendanceRecord
from hrms.core.enums import AttendanceStatus, LeaveStatus, LeaveType
from hrms.leaves.model import Leave
from hrms.payroll.calculator.base import PayrollPeriod
from hrms.payroll.calculator.standard_calculator import StandardPayrollCalculator, total_working_days
from hrms.payroll.model import HalfDayDeductionRule, SalaryStructure, WorkingDaysRule
from hrms.shifts.model import Shift


def _structure(**overrides):
    values = dict(
        structure_id="s1",
        gross_monthly_salary=26000,
        effective_from=date(2025, 1, 1),
        employee_id="e1",
        working_days_rule=WorkingDaysRule.CALENDAR_DAYS,
    )
    values.update(overrides)
    return SalaryStructure(**values)


def _record(d, status=AttendanceStatus.PRESENT, is_late=False):
    return AttendanceRecord(
        attendance_id=f"a-{d.isoformat()}",
        employee_id="e1",
        date=d,
        check_in=datetime(d.year, d.month, d.day, 9, 0),
        status=status,
        is_late=is_late,
    )


def _leave(d, leave_type):
    return Leave(
        leave_id=f"l-{d.isoformat()}",
        employee_id="e1",
        leave_type=leave_type,
        start_date=d,
        end_date=d,
        days=1,
        reason="x",
        status=LeaveStatus.APPROVED,
    )


def _period(structure, attendance=(), leaves=(), shift=None):
    return PayrollPeriod(
        employee_id="e1",
        month=3,
        year=2025,
        structure=structure,
        attendance=list(attendance),
        approved_leaves=list(leaves),
        shift_on=lambda d: shift,
    )


def _march_working_days():
    return [date(2025, 3, d) for d in range(1, 32) if date(2025, 3, d).weekday() != 6]


def test_calendar_days_excludes_sundays():
    assert total_working_days(_period(_structure())) == 26


def test_fixed_days_uses_configured_count():
    structure = _structure(working_days_rule=WorkingDaysRule.FIXED_DAYS, fixed_working_days=22)
    assert total_working_days(_period(structure)) == 22


def test_shift_based_counts_shift_working_days():
    shift = Shift(shift_id="sh", name="General", start_time="09:00", end_time="18:00")
    structure = _structure(working_days_rule=WorkingDaysRule.SHIFT_BASED)
    # March 2025 has 21 weekdays
    assert total_working_days(_period(structure, shift=shift)) == 21
    assert total_working_days(_period(structure, shift=None)) == 0


def test_full_month_breakdown():
    days = _march_working_days()
    present, half, absent = days[:20], days[20:22], days[22]
    paid, unpaid = days[23], days[24:26]

    attendance = [_record(d, is_late=(i == 0)) for i, d in enumerate(present)]
    attendance += [_record(d, AttendanceStatus.HALF_DAY) for d in half]
    attendance.append(_record(absent, AttendanceStatus.ABSENT))
    leaves = [_leave(paid, LeaveType.PAID)] + [_leave(d, LeaveType.UNPAID) for d in unpaid]

    result = StandardPayrollCalculator().calculate(_period(_structure(), attendance, leaves))

    assert result.total_working_days == 26
    assert result.present_days == 20
    assert result.half_days == 2
    assert result.absent_days == 1
    assert result.paid_leave_days == 1
    assert result.unpaid_leave_days == 2
    assert result.late_arrivals == 1
    assert result.payable_days == 22
    assert result.per_day_salary == 1000
    assert result.gross_payable == 22000
    assert result.deductions.unpaid_leave == 2000
    assert result.deductions.half_day == 1000
    assert result.net_payable == 19000
    assert result.anomalies == ()


def test_leave_takes_precedence_over_attendance():
    d = date(2025, 3, 3)
    result = StandardPayrollCalculator().calculate(
        _period(_structure(), [_record(d)], [_leave(d, LeaveType.PAID)])
    )
    assert result.paid_leave_days == 1
    assert result.present_days == 0


def test_proportional_rule_skips_half_day_deduction():
    d = date(2025, 3, 3)
    structure = _structure(half_day_deduction_rule=HalfDayDeductionRule.PROPORTIONAL)
    result = StandardPayrollCalculator().calculate(_period(structure, [_record(d, AttendanceStatus.HALF_DAY)]))
    assert result.payable_days == 0.5
    assert result.deductions.half_day == 0


def test_missing_records_on_shift_days_are_absences():
    shift = Shift(shift_id="sh", name="General", start_time="09:00", end_time="18:00")
    structure = _structure(working_days_rule=WorkingDaysRule.SHIFT_BASED)
    result = StandardPayrollCalculator().calculate(_period(structure, shift=shift))
    assert result.absent_days == 21
    assert result.net_payable == 0
    assert "Missing attendance record for 2025-03-03" in result.anomalies


def test_zero_working_days_is_reported():
    structure = _structure(working_days_rule=WorkingDaysRule.FIXED_DAYS, fixed_working_days=None)
    result = StandardPayrollCalculator().calculate(_period(structure))
    assert result.per_day_salary == 0
    assert "No working days in period" in result.anomalies


def test_more_days_than_fixed_working_days_is_reported():
    structure = _structure(working_days_rule=WorkingDaysRule.FIXED_DAYS, fixed_working_days=5)
    records = [_record(date(2025, 3, d)) for d in (3, 4, 5, 6, 7, 10)]
    result = StandardPayrollCalculator().calculate(_period(structure, records))
    assert result.present_days == 6
    assert "Attendance/leave days exceed total working days" in result.anomalies


def test_days_within_working_days_are_not_flagged():
    structure = _structure()
    records = [_record(d) for d in _march_working_days()]
    result = StandardPayrollCalculator().calculate(_period(structure, records))
    assert "Attendance/leave days exceed total working days" not in result.anomalies
