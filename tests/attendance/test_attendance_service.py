from datetime import date, datetime, time

import pytest

from hrms.breaks.model import BreakStatus, BreakType
from hrms.core.enums import AttendanceStatus, Role
from hrms.core.exceptions import AuthorizationError, ValidationError
from hrms.shifts.model import AssignmentScope, AssignmentType
from hrms.wifi.model import ConnectionType, PolicyScope, WifiConnection

from fakes import actor, fake_container

MONDAY = date(2025, 3, 3)


def _setup():
    c = fake_container()
    manager = c.repos.employees.add("Meera Manager", Role.MANAGER)
    worker = c.repos.employees.add("Ravi Kumar", manager_id=manager.employee_id)
    return c, manager, worker


def test_check_in_and_out_without_shift():
    c, _, worker = _setup()
    me = actor(worker)

    record = c.attendance_service.check_in(me, now=datetime(2025, 3, 3, 9, 30))
    assert record.is_late
    assert record.status == AttendanceStatus.PRESENT
    assert record.shift_id is None

    with pytest.raises(ValidationError, match="Already checked in"):
        c.attendance_service.check_in(me, now=datetime(2025, 3, 3, 10, 0))

    done = c.attendance_service.check_out(me, now=datetime(2025, 3, 3, 18, 0))
    assert done.working_minutes == 510
    assert not done.is_early_exit
    assert done.status == AttendanceStatus.PRESENT

    with pytest.raises(ValidationError, match="Already checked out"):
        c.attendance_service.check_out(me, now=datetime(2025, 3, 3, 18, 5))


def test_shift_drives_lateness_and_early_exit():
    c, _, worker = _setup()
    shift = c.repos.shifts.add("Morning", "07:00", "15:00", grace_period=10)
    c.repos.shift_assignments.create_assignment(
        {
            "shift_id": shift.shift_id,
            "scope": AssignmentScope.EMPLOYEE,
            "assignment_type": AssignmentType.PERMANENT,
            "employee_id": worker.employee_id,
            "effective_date": date(2025, 1, 1),
        }
    )
    me = actor(worker)

    record = c.attendance_service.check_in(me, now=datetime(2025, 3, 3, 7, 5))
    assert not record.is_late
    assert record.shift_id == shift.shift_id

    done = c.attendance_service.check_out(me, now=datetime(2025, 3, 3, 12, 0))
    assert done.is_early_exit
    assert done.status == AttendanceStatus.HALF_DAY


def test_only_employees_record_attendance():
    c, manager, _ = _setup()
    with pytest.raises(AuthorizationError):
        c.attendance_service.check_in(actor(manager), now=datetime(2025, 3, 3, 9, 0))


def test_check_out_requires_check_in():
    c, _, worker = _setup()
    with pytest.raises(ValidationError, match="No check-in"):
        c.attendance_service.check_out(actor(worker), now=datetime(2025, 3, 3, 18, 0))


def test_wifi_policy_blocks_check_in():
    c, _, worker = _setup()
    network_id = c.repos.wifi_networks.create_network({"ssid": "Office"})
    c.repos.wifi_policies.create_policy({"name": "Company", "scope": PolicyScope.COMPANY, "allowed_networks": [network_id]})
    me = actor(worker)

    with pytest.raises(AuthorizationError, match="Mobile data detected"):
        c.attendance_service.check_in(
            me,
            connection=WifiConnection(connected=True, connection_type=ConnectionType.MOBILE),
            now=datetime(2025, 3, 3, 9, 0),
        )
    record = c.attendance_service.check_in(
        me, connection=WifiConnection(connected=True, ssid="Office"), now=datetime(2025, 3, 3, 9, 0)
    )
    assert record.employee_id == worker.employee_id


def test_check_out_closes_open_break():
    c, _, worker = _setup()
    c.repos.break_policies.create_policy({"name": "Default"})
    me = actor(worker)
    c.attendance_service.check_in(me, now=datetime(2025, 3, 3, 9, 0))
    c.break_service.start_break(me, BreakType.TEA, now=datetime(2025, 3, 3, 17, 30))

    done = c.attendance_service.check_out(me, now=datetime(2025, 3, 3, 18, 0))

    sessions = c.repos.break_sessions.list_for_attendance(done.attendance_id)
    assert sessions[0].status == BreakStatus.AUTO_COMPLETED
    assert sessions[0].duration == 30
    assert done.total_break_minutes == 30
    assert done.unpaid_break_minutes == 30
    assert done.net_working_minutes == 510


def test_listing_scopes():
    c, manager, worker = _setup()
    outsider = c.repos.employees.add("Other Person")
    c.repos.attendance.add(worker.employee_id, MONDAY, time(9, 0))
    c.repos.attendance.add(outsider.employee_id, MONDAY, time(9, 0))
    window = dict(start_date=date(2025, 3, 1), end_date=date(2025, 3, 31))

    assert len(c.attendance_service.list_for(actor(role=Role.HR), **window)) == 2
    assert len(c.attendance_service.list_for(actor(manager), **window)) == 1
    with pytest.raises(AuthorizationError):
        c.attendance_service.list_for(actor(manager), employee_id=outsider.employee_id, **window)
    with pytest.raises(AuthorizationError):
        c.attendance_service.list_for(actor(worker), employee_id=outsider.employee_id, **window)


def test_hr_correction_rederives_status():
    c, _, worker = _setup()
    record = c.repos.attendance.add(worker.employee_id, MONDAY, time(9, 0))
    admin = actor(role=Role.HR)

    corrected = c.attendance_service.correct(admin, record.attendance_id, check_out=datetime(2025, 3, 3, 14, 0))

    assert corrected.status == AttendanceStatus.HALF_DAY
    assert corrected.working_minutes == 300
    assert corrected.corrected_by == admin.user_id
    with pytest.raises(ValidationError):
        c.attendance_service.correct(admin, record.attendance_id, check_out=datetime(2025, 3, 3, 8, 0))


def test_hr_correction_clears_lateness_fixed_by_hr():
    c, _, worker = _setup()
    me = actor(worker)
    c.attendance_service.check_in(me, now=datetime(2025, 3, 3, 10, 30))
    done = c.attendance_service.check_out(me, now=datetime(2025, 3, 3, 19, 0))
    assert done.is_late

    fixed = c.attendance_service.correct(actor(role=Role.HR), done.attendance_id, check_in=datetime(2025, 3, 3, 8, 55))

    assert not fixed.is_late
    assert not fixed.is_early_exit
    assert fixed.working_minutes == 605
    assert fixed.status == AttendanceStatus.PRESENT


def test_hr_correction_flags_early_exit_against_shift():
    c, _, worker = _setup()
    shift = c.repos.shifts.add("Morning", "07:00", "15:00")
    c.repos.shift_assignments.create_assignment(
        {
            "shift_id": shift.shift_id,
            "scope": AssignmentScope.EMPLOYEE,
            "assignment_type": AssignmentType.PERMANENT,
            "employee_id": worker.employee_id,
            "effective_date": date(2025, 1, 1),
        }
    )
    record = c.repos.attendance.add(worker.employee_id, MONDAY, time(7, 0), time(15, 0))

    fixed = c.attendance_service.correct(actor(role=Role.HR), record.attendance_id, check_out=datetime(2025, 3, 3, 13, 0))

    assert fixed.is_early_exit
    assert fixed.status == AttendanceStatus.HALF_DAY


def test_manual_record_without_check_out_is_missed_checkout():
    c, _, worker = _setup()
    admin = actor(role=Role.HR)

    record = c.attendance_service.create_manual(
        admin, employee_id=worker.employee_id, work_date=MONDAY, check_in=datetime(2025, 3, 3, 9, 45)
    )

    assert record.is_late
    assert record.status == AttendanceStatus.MISSED_CHECKOUT
    assert record.check_out is None
    assert record.corrected_by == admin.user_id
    with pytest.raises(ValidationError, match="already exists"):
        c.attendance_service.create_manual(
            admin, employee_id=worker.employee_id, work_date=MONDAY, check_in=datetime(2025, 3, 3, 9, 0)
        )


def test_manual_record_with_both_times():
    c, _, worker = _setup()

    record = c.attendance_service.create_manual(
        actor(role=Role.HR),
        employee_id=worker.employee_id,
        work_date=MONDAY,
        check_in=datetime(2025, 3, 3, 9, 0),
        check_out=datetime(2025, 3, 3, 18, 0),
        notes="Forgot to punch",
    )

    assert not record.is_late
    assert record.working_minutes == 540
    assert record.status == AttendanceStatus.PRESENT
    assert record.notes == "Forgot to punch"


def test_manual_record_is_hr_only():
    c, manager, worker = _setup()
    with pytest.raises(AuthorizationError):
        c.attendance_service.create_manual(
            actor(manager), employee_id=worker.employee_id, work_date=MONDAY, check_in=datetime(2025, 3, 3, 9, 0)
        )
