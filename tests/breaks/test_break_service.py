from datetime import date, datetime

import pytest

from hrms.breaks.model import BreakPolicy, BreakScope, BreakStatus, BreakType
from hrms.breaks.service import select_policy
from hrms.core.constants import UNLIMITED_REMAINING
from hrms.core.enums import Role
from hrms.core.exceptions import AuthorizationError, ValidationError

from fakes import actor, fake_container


def _at(hour, minute=0):
    return datetime(2025, 3, 3, hour, minute)


def _setup(**policy):
    c = fake_container()
    manager = c.repos.employees.add("Meera Manager", Role.MANAGER)
    worker = c.repos.employees.add("Ravi Kumar", manager_id=manager.employee_id)
    c.repos.break_policies.create_policy({"name": "Default", **policy})
    me = actor(worker)
    c.attendance_service.check_in(me, now=_at(9))
    return c, manager, worker, me


def test_select_policy_prefers_most_specific_scope():
    c = fake_container()
    worker = c.repos.employees.add("Ravi")
    general = BreakPolicy(policy_id="g", name="global", priority=10)
    by_role = BreakPolicy(policy_id="r", name="role", scope=BreakScope.ROLE, scope_ids=("employee",))
    mine = BreakPolicy(policy_id="e", name="mine", scope=BreakScope.EMPLOYEE, scope_ids=(worker.employee_id,))
    expired = BreakPolicy(
        policy_id="x", name="expired", scope=BreakScope.EMPLOYEE, scope_ids=(worker.employee_id,), effective_to=date(2025, 1, 1)
    )
    on = date(2025, 3, 3)
    assert select_policy([general, by_role, mine], worker, on).name == "mine"
    assert select_policy([general, by_role, expired], worker, on).name == "role"
    assert select_policy([general], worker, on).name == "global"
    assert select_policy([], worker, on) is None


def test_break_requires_open_attendance():
    c = fake_container()
    worker = c.repos.employees.add("Ravi")
    with pytest.raises(ValidationError, match="check in"):
        c.break_service.start_break(actor(worker), BreakType.LUNCH, now=_at(13))


def test_lunch_break_is_paid_and_recorded():
    c, _, _, me = _setup()
    session = c.break_service.start_break(me, BreakType.LUNCH, now=_at(13))
    assert session.is_paid
    with pytest.raises(ValidationError, match="already on a break"):
        c.break_service.start_break(me, BreakType.TEA, now=_at(13, 5))

    ended = c.break_service.end_break(me, now=_at(13, 40))

    assert ended.status == BreakStatus.COMPLETED
    assert ended.duration == 40
    record = c.repos.attendance.get_by_id(ended.attendance_id)
    assert record.total_break_minutes == 40
    assert record.unpaid_break_minutes == 0


def test_policy_limits():
    c, _, _, me = _setup(max_breaks_per_day=1, min_working_hours_before_first_break=2)
    with pytest.raises(ValidationError, match="at least 2 hours"):
        c.break_service.start_break(me, BreakType.TEA, now=_at(10))
    with pytest.raises(ValidationError, match="custom break is not allowed"):
        c.break_service.start_break(me, BreakType.CUSTOM, now=_at(11))

    c.break_service.start_break(me, BreakType.TEA, now=_at(11))
    c.break_service.end_break(me, now=_at(11, 10))
    with pytest.raises(ValidationError, match="Maximum 1 breaks"):
        c.break_service.start_break(me, BreakType.TEA, now=_at(15))

    emergency = c.break_service.start_break(me, BreakType.EMERGENCY, now=_at(15))
    assert emergency.status == BreakStatus.ACTIVE


def test_overrun_adds_violation():
    c, _, _, me = _setup(max_duration_per_break=15)
    c.break_service.start_break(me, BreakType.TEA, now=_at(11))
    ended = c.break_service.end_break(me, now=_at(11, 30))

    assert ended.exceeded_duration
    assert ended.violation_reason == "Break duration exceeded limit of 15 minutes"
    record = c.repos.attendance.get_by_id(ended.attendance_id)
    assert record.policy_violations[0].type == "break_overrun"


def test_within_grace_is_not_overrun():
    c, _, _, me = _setup(max_duration_per_break=15)
    c.break_service.start_break(me, BreakType.TEA, now=_at(11))
    assert not c.break_service.end_break(me, now=_at(11, 20)).exceeded_duration


def test_disallowed_breaks():
    c, _, _, me = _setup(allow_breaks=False)
    with pytest.raises(ValidationError, match="not allowed for your role"):
        c.break_service.start_break(me, BreakType.TEA, now=_at(11))


def test_today_summary_reports_remaining():
    c, _, _, me = _setup(max_breaks_per_day=3, max_total_break_duration=60)
    c.break_service.start_break(me, BreakType.TEA, now=_at(11))
    c.break_service.end_break(me, now=_at(11, 15))

    summary = c.break_service.today_summary(me, now=_at(12))

    assert summary.breaks_taken == 1
    assert summary.remaining_breaks == 2
    assert summary.remaining_minutes == 45
    assert summary.active_break is None


def test_unlimited_summary_without_limits():
    c, _, _, me = _setup()
    summary = c.break_service.today_summary(me, now=_at(12))
    assert summary.remaining_breaks == UNLIMITED_REMAINING


def test_hr_correction_and_team_listing():
    c, manager, worker, me = _setup()
    c.break_service.start_break(me, BreakType.TEA, now=_at(11))
    session = c.break_service.end_break(me, now=_at(11, 10))

    corrected = c.break_service.correct(
        actor(role=Role.HR), session.session_id, start_time=_at(11), end_time=_at(11, 25), reason="Badge log"
    )
    assert corrected.duration == 25
    assert corrected.correction_reason == "Badge log"

    listed = c.break_service.list_for_employee(
        actor(manager), worker.employee_id, start_date=date(2025, 3, 1), end_date=date(2025, 3, 31)
    )
    assert len(listed) == 1
    with pytest.raises(AuthorizationError):
        c.break_service.list_for_employee(me, worker.employee_id, start_date=date(2025, 3, 1), end_date=date(2025, 3, 31))


def test_break_pushing_day_over_total_limit_is_flagged():
    c, _, _, me = _setup(max_total_break_duration=30)
    c.break_service.start_break(me, BreakType.TEA, now=_at(11))
    first = c.break_service.end_break(me, now=_at(11, 20))
    assert not first.exceeded_daily_limit

    c.break_service.start_break(me, BreakType.TEA, now=_at(15))
    second = c.break_service.end_break(me, now=_at(15, 15))

    assert second.exceeded_daily_limit
    assert not second.exceeded_duration
    with pytest.raises(ValidationError, match="Daily break limit of 30 minutes reached"):
        c.break_service.start_break(me, BreakType.TEA, now=_at(16))


def test_analytics_groups_finished_breaks():
    c, _, worker, me = _setup(max_duration_per_break=15)
    c.repos.employees.update_employee(worker.employee_id, {"department": "Engineering"})
    c.break_service.start_break(me, BreakType.TEA, now=_at(11))
    c.break_service.end_break(me, now=_at(11, 10))
    c.break_service.start_break(me, BreakType.LUNCH, now=_at(13))
    c.break_service.end_break(me, now=_at(13, 41))
    c.break_service.start_break(me, BreakType.TEA, now=_at(16))

    report = c.break_service.analytics(actor(role=Role.HR), start_date=date(2025, 3, 1), end_date=date(2025, 3, 31))

    assert report.total_breaks == 2
    assert report.total_break_minutes == 51
    assert report.average_break_minutes == 26
    assert report.by_type == {"tea": 1, "lunch": 1}
    assert report.by_department["Engineering"].count == 2
    assert report.by_date["2025-03-03"].total_minutes == 51
    assert [v.break_type for v in report.violations] == [BreakType.LUNCH]
    assert report.violations[0].employee_name == "Ravi Kumar"
    assert report.violation_count == 1


def test_analytics_department_filter_and_access():
    c, manager, _, me = _setup()
    c.break_service.start_break(me, BreakType.TEA, now=_at(11))
    c.break_service.end_break(me, now=_at(11, 10))
    window = dict(start_date=date(2025, 3, 1), end_date=date(2025, 3, 31))

    assert c.break_service.analytics(actor(role=Role.HR), department="Finance", **window).total_breaks == 0
    with pytest.raises(AuthorizationError):
        c.break_service.analytics(actor(manager), **window)
    with pytest.raises(ValidationError):
        c.break_service.analytics(actor(role=Role.HR), start_date=date(2025, 3, 31), end_date=date(2025, 3, 1))
