from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_LATE_GRACE_MINUTES, DEFAULT_WORK_START, MIN_WORKING_HOURS
from ..shifts.model import Shift
from ..shifts.rules import is_early_exit_for_shift, is_late_check_in
from .strategies.base import AttendanceStrategy
from .strategies.early_strategy import EarlyExitStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    default_start: str = DEFAULT_WORK_START
    default_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES

    def for_checkin(self, *, now: datetime, shift: Optional[Shift]) -> AttendanceStrategy:
        if shift:
            late = is_late_check_in(now, shift.start_time, shift.grace_period)
        else:
            late = is_late_check_in(now, self.default_start, self.default_grace_minutes)
        return LateStrategy() if late else NormalStrategy()

    def for_checkout(self, *, now: datetime, check_in: datetime, shift: Optional[Shift], working_minutes: int) -> AttendanceStrategy:
        if shift:
            early = is_early_exit_for_shift(now, check_in.date(), shift)
        else:
            early = working_minutes < MIN_WORKING_HOURS * 60
        return EarlyExitStrategy() if early else NormalStrategy()
