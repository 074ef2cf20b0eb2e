from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.constants import HALF_DAY_HOURS, MIN_WORKING_HOURS
from ..core.enums import AttendanceStatus


def derive_status(check_in: datetime, check_out: Optional[datetime], working_minutes: Optional[int] = None) -> AttendanceStatus:
    """Daily status from worked time: >= 8h present, >= 4h half day, else absent."""
    if check_out is None:
        return AttendanceStatus.MISSED_CHECKOUT
    if working_minutes is None:
        working_minutes = int((check_out - check_in).total_seconds() // 60)
    hours = working_minutes / 60
    if hours >= MIN_WORKING_HOURS:
        return AttendanceStatus.PRESENT
    if hours >= HALF_DAY_HOURS:
        return AttendanceStatus.HALF_DAY
    return AttendanceStatus.ABSENT
