from datetime import date, datetime

import pytest

from hrms.core.exceptions import ValidationError
from hrms.shifts.model import Shift
from hrms.shifts.rules import (
    is_early_exit_for_shift,
    is_late_check_in,
    shift_end_on,
    validate_shift_times,
    works_on,
)

NIGHT = Shift(shift_id="n", name="Night", start_time="22:00", end_time="06:00", is_night_shift=True)
DAY = Shift(shift_id="d", name="General", start_time="09:00", end_time="18:00")


def test_late_only_after_grace():
    assert not is_late_check_in(datetime(2025, 3, 3, 9, 15), "09:00", 15)
    assert is_late_check_in(datetime(2025, 3, 3, 9, 16), "09:00", 15)


def test_night_shift_ends_next_day():
    assert shift_end_on(NIGHT, date(2025, 3, 3)) == datetime(2025, 3, 4, 6, 0)
    assert not is_early_exit_for_shift(datetime(2025, 3, 4, 5, 50), date(2025, 3, 3), NIGHT)
    assert is_early_exit_for_shift(datetime(2025, 3, 4, 5, 0), date(2025, 3, 3), NIGHT)


def test_validate_shift_times():
    validate_shift_times("22:00", "06:00", True)
    with pytest.raises(ValidationError):
        validate_shift_times("18:00", "09:00", False)
    with pytest.raises(ValidationError):
        validate_shift_times("22:00", "22:00", True)


def test_works_on_uses_weekday_names():
    assert works_on(DAY, date(2025, 3, 7))
    assert not works_on(DAY, date(2025, 3, 8))
