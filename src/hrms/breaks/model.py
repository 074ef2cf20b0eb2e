from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional, Tuple


class BreakScope(str, Enum):
    GLOBAL = "global"
    ROLE = "role"
    EMPLOYEE = "employee"


class BreakType(str, Enum):
    LUNCH = "lunch"
    TEA = "tea"
    PERSONAL = "personal"
    CUSTOM = "custom"
    EMERGENCY = "emergency"


class BreakStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    AUTO_COMPLETED = "auto_completed"
    CANCELLED = "cancelled"


FINISHED_STATUSES = (BreakStatus.COMPLETED, BreakStatus.AUTO_COMPLETED)


@dataclass(frozen=True)
class BreakPolicy:
    """Limits on how many breaks an employee may take and for how long.

    Zero for a limit means "no limit".
    """

    policy_id: str
    name: str
    scope: BreakScope = BreakScope.GLOBAL
    scope_ids: Tuple[str, ...] = ()
    allow_breaks: bool = True
    allowed_break_types: Tuple[BreakType, ...] = (BreakType.LUNCH, BreakType.TEA, BreakType.PERSONAL)
    max_breaks_per_day: int = 0
    max_total_break_duration: int = 0
    max_duration_per_break: int = 0
    min_working_hours_before_first_break: float = 0
    grace_period: int = 5
    paid_breaks: Tuple[BreakType, ...] = (BreakType.LUNCH,)
    deduct_break_time: bool = True
    allow_break_overrun: bool = False
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    is_active: bool = True
    priority: int = 0
    description: Optional[str] = None

    def effective_on(self, d: date) -> bool:
        if not self.is_active:
            return False
        if self.effective_from and d < self.effective_from:
            return False
        if self.effective_to and d > self.effective_to:
            return False
        return True


@dataclass(frozen=True)
class BreakSession:
    session_id: str
    employee_id: str
    attendance_id: str
    date: date
    break_type: BreakType
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int = 0
    status: BreakStatus = BreakStatus.ACTIVE
    is_paid: bool = True
    exceeded_duration: bool = False
    exceeded_daily_limit: bool = False
    violation_reason: Optional[str] = None
    notes: Optional[str] = None
    policy_id: Optional[str] = None
    corrected_by: Optional[str] = None
    corrected_at: Optional[datetime] = None
    correction_reason: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES


@dataclass(frozen=True)
class BreakSummary:
    """Today's break usage for one employee."""

    active_break: Optional[BreakSession]
    sessions: Tuple[BreakSession, ...] = field(default_factory=tuple)
    breaks_taken: int = 0
    total_break_minutes: int = 0
    remaining_breaks: int = 0
    remaining_minutes: int = 0
    policy: Optional[BreakPolicy] = None


@dataclass(frozen=True)
class BreakTotals:
    count: int = 0
    total_minutes: int = 0


@dataclass(frozen=True)
class BreakViolation:
    session_id: str
    employee_id: str
    employee_name: str
    date: date
    break_type: BreakType
    duration: int
    exceeded_duration: bool
    exceeded_daily_limit: bool
    violation_reason: Optional[str] = None


@dataclass(frozen=True)
class BreakAnalytics:
    """Finished breaks over a date range, optionally for one department."""

    start_date: date
    end_date: date
    total_breaks: int = 0
    total_break_minutes: int = 0
    average_break_minutes: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_department: Dict[str, BreakTotals] = field(default_factory=dict)
    by_date: Dict[str, BreakTotals] = field(default_factory=dict)
    violations: Tuple[BreakViolation, ...] = field(default_factory=tuple)

    json_properties = ("violation_count",)

    @property
    def violation_count(self) -> int:
        return len(self.violations)
