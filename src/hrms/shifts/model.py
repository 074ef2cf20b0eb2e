from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


class ShiftType(str, Enum):
    FIXED = "fixed"
    ROTATIONAL = "rotational"
    FLEXIBLE = "flexible"


class AssignmentType(str, Enum):
    PERMANENT = "permanent"
    TEMPORARY = "temporary"


class AssignmentScope(str, Enum):
    EMPLOYEE = "employee"
    TEAM = "team"
    DEPARTMENT = "department"


class SwapStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ShiftSource(str, Enum):
    """Where a resolved shift came from, highest priority first."""

    ROSTER = "roster"
    TEMPORARY = "temporary_assignment"
    PERMANENT = "permanent_assignment"
    TEAM = "team_assignment"
    DEPARTMENT = "department_assignment"


@dataclass(frozen=True)
class Shift:
    """Work shift template. Times are local wall-clock HH:mm strings."""

    shift_id: str
    name: str
    start_time: str
    end_time: str
    code: Optional[str] = None
    shift_type: ShiftType = ShiftType.FIXED
    grace_period: int = 15
    early_exit_grace_period: int = 15
    minimum_working_hours: int = 480
    break_duration: int = 60
    is_break_paid: bool = False
    working_days: Tuple[str, ...] = ("monday", "tuesday", "wednesday", "thursday", "friday")
    is_night_shift: bool = False
    is_active: bool = True
    description: Optional[str] = None


@dataclass(frozen=True)
class ShiftAssignment:
    assignment_id: str
    shift_id: str
    assignment_type: AssignmentType
    scope: AssignmentScope
    effective_date: date
    employee_id: Optional[str] = None
    team_manager_id: Optional[str] = None
    department_role: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True
    notes: Optional[str] = None

    def covers(self, d: date) -> bool:
        if not self.is_active:
            return False
        if self.assignment_type == AssignmentType.TEMPORARY:
            start = self.start_date or self.effective_date
            return start <= d and (self.end_date is None or d <= self.end_date)
        return self.effective_date <= d and (self.end_date is None or d <= self.end_date)


@dataclass(frozen=True)
class RosterEntry:
    roster_id: str
    employee_id: str
    shift_id: Optional[str]
    date: date
    week_number: int
    month: int
    year: int
    is_weekly_off: bool = False
    notes: Optional[str] = None
    created_by: Optional[str] = None


@dataclass(frozen=True)
class ShiftSwap:
    swap_id: str
    requester_id: str
    requestee_id: str
    requester_date: date
    requestee_date: date
    requester_shift_id: str
    requestee_shift_id: str
    reason: str
    status: SwapStatus = SwapStatus.PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ResolvedShift:
    shift: Shift
    source: ShiftSource
    reference_id: Optional[str] = None


@dataclass(frozen=True)
class ShiftConflict:
    has_conflict: bool
    conflicts: Tuple[str, ...] = field(default_factory=tuple)
