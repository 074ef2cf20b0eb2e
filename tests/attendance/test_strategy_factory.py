from datetime import datetime

from hrms.attendance.factory import AttendanceStrategyFactory
from hrms.attendance.status import derive_status
from hrms.attendance.strategies.early_strategy import EarlyExitStrategy
from hrms.attendance.strategies.late_strategy import LateStrategy
from hrms.attendance.strategies.normal_strategy import NormalStrategy
from hrms.core.enums import AttendanceStatus
from hrms.shifts.model import Shift

SHIFT = Shift(shift_id="s", name="Morning", start_time="07:00", end_time="15:00", grace_period=10)


def test_factory_uses_default_start_without_shift():
    f = AttendanceStrategyFactory()
    assert isinstance(f.for_checkin(now=datetime(2025, 3, 3, 9, 15), shift=None), NormalStrategy)
    assert isinstance(f.for_checkin(now=datetime(2025, 3, 3, 9, 16), shift=None), LateStrategy)


def test_factory_uses_shift_start_and_grace():
    f = AttendanceStrategyFactory()
    assert isinstance(f.for_checkin(now=datetime(2025, 3, 3, 7, 10), shift=SHIFT), NormalStrategy)
    assert isinstance(f.for_checkin(now=datetime(2025, 3, 3, 7, 11), shift=SHIFT), LateStrategy)


def test_checkout_without_shift_uses_minimum_hours():
    f = AttendanceStrategyFactory()
    check_in = datetime(2025, 3, 3, 9, 0)
    assert isinstance(
        f.for_checkout(now=datetime(2025, 3, 3, 16, 0), check_in=check_in, shift=None, working_minutes=420),
        EarlyExitStrategy,
    )
    assert isinstance(
        f.for_checkout(now=datetime(2025, 3, 3, 17, 0), check_in=check_in, shift=None, working_minutes=480),
        NormalStrategy,
    )


def test_late_decision_keeps_present_status():
    decision = LateStrategy().decide_checkin(now=datetime(2025, 3, 3, 7, 30), shift=SHIFT)
    assert decision.status == AttendanceStatus.PRESENT
    assert decision.is_late
    assert decision.note == "Checked in after shift start 07:00"


def test_derive_status_thresholds():
    start = datetime(2025, 3, 3, 9, 0)
    assert derive_status(start, None) == AttendanceStatus.MISSED_CHECKOUT
    assert derive_status(start, datetime(2025, 3, 3, 17, 0)) == AttendanceStatus.PRESENT
    assert derive_status(start, datetime(2025, 3, 3, 13, 0)) == AttendanceStatus.HALF_DAY
    assert derive_status(start, datetime(2025, 3, 3, 12, 59)) == AttendanceStatus.ABSENT
