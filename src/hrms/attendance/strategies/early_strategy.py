from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...shifts.model import Shift
from ..status import derive_status
from .base import StatusDecision
from .normal_strategy import NormalStrategy


class EarlyExitStrategy(NormalStrategy):
    """Checked out before the shift end (or before the minimum working hours)."""

    def decide_checkout(
        self,
        *,
        now: datetime,
        check_in: datetime,
        shift: Optional[Shift],
        working_minutes: int,
    ) -> StatusDecision:
        return StatusDecision(
            status=derive_status(check_in, now, working_minutes),
            is_early_exit=True,
        )
