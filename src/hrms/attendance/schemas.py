from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import Field

from ..common.schemas import ApiModel
from ..core.enums import AttendanceStatus
from ..wifi.schemas import ConnectionBody


class PunchBody(ApiModel):
    """Check-in / check-out. The client reports its current network."""

    wifi: Optional[ConnectionBody] = None


class CorrectAttendanceBody(ApiModel):
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class ManualAttendanceBody(ApiModel):
    employee_id: str = Field(min_length=1)
    work_date: date = Field(alias="date")
    check_in: datetime
    check_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = Field(default=None, max_length=500)
