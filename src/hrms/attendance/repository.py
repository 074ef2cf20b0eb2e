from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, PolicyViolation


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_records(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        employee_id: str,
        work_date: date,
        check_in: datetime,
        is_late: bool,
        status: AttendanceStatus,
        shift_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def update_checkout(
        self,
        attendance_id: str,
        *,
        check_out: datetime,
        working_minutes: int,
        is_early_exit: bool,
        status: AttendanceStatus,
    ) -> bool:
        raise NotImplementedError

    def correct_record(self, attendance_id: str, fields: dict, *, corrected_by: str) -> bool:
        """HR override; fields use AttendanceRecord attribute names."""

        raise NotImplementedError

    def update_break_totals(
        self,
        attendance_id: str,
        *,
        total_break_minutes: int,
        unpaid_break_minutes: int,
        net_working_minutes: Optional[int],
    ) -> bool:
        raise NotImplementedError

    def add_policy_violation(self, attendance_id: str, violation: PolicyViolation) -> bool:
        raise NotImplementedError

    def create_leave_record(self, *, employee_id: str, work_date: date, leave_type: str) -> str:
        raise NotImplementedError

    def delete_leave_records(self, *, employee_id: str, start_date: date, end_date: date) -> int:
        raise NotImplementedError
