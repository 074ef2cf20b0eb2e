from datetime import date

import pytest

from hrms.core.enums import LeaveStatus, LeaveType, Role
from hrms.core.exceptions import AuthorizationError, ConflictError, ValidationError
from hrms.shifts.model import SwapStatus

from fakes import actor, fake_container

WED = date(2025, 3, 5)
SAT = date(2025, 3, 8)


def _setup():
    c = fake_container()
    manager = c.repos.employees.add("Meera Manager", Role.MANAGER)
    worker = c.repos.employees.add("Ravi Kumar", manager_id=manager.employee_id)
    peer = c.repos.employees.add("Sita Rao", manager_id=manager.employee_id)
    general = c.repos.shifts.add("General")
    late = c.repos.shifts.add("Late", "13:00", "22:00")
    return c, manager, worker, peer, general, late


def test_shift_names_are_unique():
    c = fake_container()
    admin = actor(role=Role.HR)
    c.shift_service.create(admin, {"name": "General", "start_time": "09:00", "end_time": "18:00"})
    with pytest.raises(ConflictError):
        c.shift_service.create(admin, {"name": "General", "start_time": "10:00", "end_time": "19:00"})
    with pytest.raises(ValidationError):
        c.shift_service.create(admin, {"name": "Bad", "start_time": "19:00", "end_time": "10:00"})


def test_temporary_assignment_requires_dates():
    c, _, worker, _, general, _ = _setup()
    with pytest.raises(ValidationError):
        c.shift_assignment_service.create(
            actor(role=Role.HR),
            {
                "shift_id": general.shift_id,
                "scope": "employee",
                "assignment_type": "temporary",
                "employee_id": worker.employee_id,
            },
        )


def test_manager_rosters_own_team():
    c, manager, worker, _, general, _ = _setup()
    entries = c.roster_service.assign(
        actor(manager), employee_id=worker.employee_id, dates=[WED], shift_id=general.shift_id
    )
    assert entries[0].shift_id == general.shift_id
    assert entries[0].week_number == 10

    other = c.repos.employees.add("Other Manager", Role.MANAGER)
    with pytest.raises(AuthorizationError):
        c.roster_service.assign(actor(other), employee_id=worker.employee_id, dates=[WED], shift_id=general.shift_id)


def test_roster_conflicts_are_reported():
    c, manager, worker, _, general, late = _setup()
    c.repos.leaves.add(worker.employee_id, LeaveType.SICK, WED, WED, status=LeaveStatus.PENDING)

    with pytest.raises(ValidationError) as err:
        c.roster_service.assign(
            actor(manager), employee_id=worker.employee_id, dates=[WED, SAT], shift_id=general.shift_id
        )
    message = str(err.value)
    assert "Employee has pending leave on 2025-03-05" in message
    assert "Shift General is not active on Saturday" in message


def test_replace_existing_skips_different_shift_conflict():
    c, manager, worker, _, general, late = _setup()
    c.roster_service.assign(actor(manager), employee_id=worker.employee_id, dates=[WED], shift_id=general.shift_id)
    with pytest.raises(ValidationError, match="different shift"):
        c.roster_service.assign(actor(manager), employee_id=worker.employee_id, dates=[WED], shift_id=late.shift_id)

    c.roster_service.assign(
        actor(manager), employee_id=worker.employee_id, dates=[WED], shift_id=late.shift_id, replace_existing=True
    )
    assert c.repos.roster.get_for_employee_and_date(worker.employee_id, WED).shift_id == late.shift_id


def test_weekly_off_needs_no_shift():
    c, manager, worker, _, _, _ = _setup()
    entry = c.roster_service.assign(
        actor(manager), employee_id=worker.employee_id, dates=[SAT], shift_id=None, is_weekly_off=True
    )[0]
    assert entry.is_weekly_off
    with pytest.raises(ValidationError):
        c.roster_service.assign(actor(manager), employee_id=worker.employee_id, dates=[WED], shift_id=None)


def test_approved_swap_exchanges_shifts():
    c, manager, worker, peer, general, late = _setup()
    c.repos.roster.upsert_entry(employee_id=worker.employee_id, work_date=WED, shift_id=general.shift_id)
    c.repos.roster.upsert_entry(employee_id=peer.employee_id, work_date=WED, shift_id=late.shift_id)
    peer_user = c.repos.users.add(email=peer.email, password_hash="x", role=Role.EMPLOYEE, employee_id=peer.employee_id)

    swap = c.shift_swap_service.request(
        actor(worker), requestee_id=peer.employee_id, requester_date=WED, requestee_date=WED, reason="Appointment"
    )
    assert swap.requester_shift_id == general.shift_id
    assert swap.requestee_shift_id == late.shift_id
    assert c.repos.notifications.count_unread(peer_user.user_id) == 1

    reviewed = c.shift_swap_service.review(actor(peer), swap.swap_id, status=SwapStatus.APPROVED)

    assert reviewed.status == SwapStatus.APPROVED
    assert c.repos.roster.get_for_employee_and_date(worker.employee_id, WED).shift_id == late.shift_id
    assert c.repos.roster.get_for_employee_and_date(peer.employee_id, WED).shift_id == general.shift_id
    with pytest.raises(ValidationError, match="not pending"):
        c.shift_swap_service.review(actor(manager), swap.swap_id, status=SwapStatus.REJECTED)


def test_swap_rules():
    c, _, worker, peer, general, _ = _setup()
    with pytest.raises(ValidationError, match="yourself"):
        c.shift_swap_service.request(
            actor(worker), requestee_id=worker.employee_id, requester_date=WED, requestee_date=WED, reason="x"
        )
    with pytest.raises(ValidationError, match="no shift"):
        c.shift_swap_service.request(
            actor(worker), requestee_id=peer.employee_id, requester_date=WED, requestee_date=WED, reason="x"
        )

    c.repos.roster.upsert_entry(employee_id=worker.employee_id, work_date=WED, shift_id=general.shift_id)
    c.repos.roster.upsert_entry(employee_id=peer.employee_id, work_date=WED, shift_id=general.shift_id)
    swap = c.shift_swap_service.request(
        actor(worker), requestee_id=peer.employee_id, requester_date=WED, requestee_date=WED, reason="x"
    )
    with pytest.raises(AuthorizationError):
        c.shift_swap_service.review(actor(peer), swap.swap_id, status=SwapStatus.CANCELLED)
    assert c.shift_swap_service.review(actor(worker), swap.swap_id, status=SwapStatus.CANCELLED).status == SwapStatus.CANCELLED
