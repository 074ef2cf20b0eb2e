from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...shifts.model import Shift
from ..status import derive_status
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in, regular check-out."""

    def decide_checkin(self, *, now: datetime, shift: Optional[Shift]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(
        self,
        *,
        now: datetime,
        check_in: datetime,
        shift: Optional[Shift],
        working_minutes: int,
    ) -> StatusDecision:
        return StatusDecision(status=derive_status(check_in, now, working_minutes))
