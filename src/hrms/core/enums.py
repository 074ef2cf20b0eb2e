from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    SUPER_ADMIN = "super_admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"


ADMIN_ROLES = frozenset({Role.SUPER_ADMIN, Role.HR})


class AttendanceStatus(str, Enum):
    """Attendance status stored on each daily record."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half_day"
    MISSED_CHECKOUT = "missed_checkout"


class LeaveType(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    SICK = "sick"
    CASUAL = "casual"
    ANNUAL = "annual"


class LeaveStatus(str, Enum):
    """Approval workflow state of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
