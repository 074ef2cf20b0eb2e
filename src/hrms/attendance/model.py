from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class PolicyViolation:
    type: str
    message: str
    at: datetime
    reference_id: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per employee per day."""

    attendance_id: str
    employee_id: str
    date: date
    check_in: datetime
    check_out: Optional[datetime] = None
    working_minutes: Optional[int] = None
    is_late: bool = False
    is_early_exit: bool = False
    status: AttendanceStatus = AttendanceStatus.PRESENT
    notes: Optional[str] = None
    shift_id: Optional[str] = None
    total_break_minutes: int = 0
    unpaid_break_minutes: int = 0
    net_working_minutes: Optional[int] = None
    policy_violations: Tuple[PolicyViolation, ...] = field(default_factory=tuple)
    corrected_by: Optional[str] = None
    corrected_at: Optional[datetime] = None

    @property
    def is_leave_record(self) -> bool:
        return bool(self.notes) and "leave" in self.notes.lower()
