from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...shifts.model import Shift
from .base import StatusDecision
from .normal_strategy import NormalStrategy


class LateStrategy(NormalStrategy):
    """Late check-in. The day still counts as present, flagged late."""

    def decide_checkin(self, *, now: datetime, shift: Optional[Shift]) -> StatusDecision:
        start = shift.start_time if shift else None
        note = f"Checked in after shift start {start}" if start else "Checked in after 09:00"
        return StatusDecision(status=AttendanceStatus.PRESENT, is_late=True, note=note)
