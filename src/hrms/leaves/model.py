from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class Leave:
    """Domain entity: leave request."""

    leave_id: str
    employee_id: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    def covers(self, d: date) -> bool:
        return self.start_date <= d <= self.end_date


@dataclass(frozen=True)
class LeaveBalance:
    json_properties = ("available_days",)

    employee_id: str
    leave_type: LeaveType
    year: int
    total_days: float
    used_days: float

    @property
    def available_days(self) -> float:
        return self.total_days - self.used_days
