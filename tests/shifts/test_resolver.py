from datetime import date

from hrms.core.enums import Role
from hrms.shifts.model import AssignmentScope, AssignmentType, ShiftSource

from fakes import fake_container

DAY = date(2025, 3, 5)


def _setup():
    c = fake_container()
    manager = c.repos.employees.add("Meera Manager", Role.MANAGER)
    worker = c.repos.employees.add("Ravi Kumar", manager_id=manager.employee_id)
    shifts = {name: c.repos.shifts.add(name) for name in ("Dept", "Team", "Perm", "Temp", "Roster")}
    return c, worker, shifts


def _assign(c, shift, scope, assignment_type=AssignmentType.PERMANENT, **extra):
    c.repos.shift_assignments.create_assignment(
        {
            "shift_id": shift.shift_id,
            "scope": scope,
            "assignment_type": assignment_type,
            "effective_date": date(2025, 1, 1),
            **extra,
        }
    )


def test_priority_order():
    c, worker, shifts = _setup()
    resolve = lambda: c.shift_resolver.resolve(worker.employee_id, DAY)

    assert resolve() is None

    _assign(c, shifts["Dept"], AssignmentScope.DEPARTMENT, department_role="employee")
    assert resolve().source == ShiftSource.DEPARTMENT

    _assign(c, shifts["Team"], AssignmentScope.TEAM, team_manager_id=worker.manager_id)
    assert resolve().source == ShiftSource.TEAM

    _assign(c, shifts["Perm"], AssignmentScope.EMPLOYEE, employee_id=worker.employee_id)
    assert resolve().shift.name == "Perm"

    _assign(
        c,
        shifts["Temp"],
        AssignmentScope.EMPLOYEE,
        AssignmentType.TEMPORARY,
        employee_id=worker.employee_id,
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 10),
    )
    assert resolve().source == ShiftSource.TEMPORARY
    assert c.shift_resolver.resolve(worker.employee_id, date(2025, 3, 11)).source == ShiftSource.PERMANENT

    c.repos.roster.upsert_entry(employee_id=worker.employee_id, work_date=DAY, shift_id=shifts["Roster"].shift_id)
    resolved = resolve()
    assert resolved.source == ShiftSource.ROSTER
    assert resolved.shift.name == "Roster"


def test_weekly_off_roster_means_no_shift():
    c, worker, shifts = _setup()
    _assign(c, shifts["Perm"], AssignmentScope.EMPLOYEE, employee_id=worker.employee_id)
    c.repos.roster.upsert_entry(employee_id=worker.employee_id, work_date=DAY, shift_id=None, is_weekly_off=True)
    assert c.shift_resolver.resolve(worker.employee_id, DAY) is None


def test_inactive_shift_falls_through():
    c, worker, shifts = _setup()
    _assign(c, shifts["Dept"], AssignmentScope.DEPARTMENT, department_role="employee")
    _assign(c, shifts["Perm"], AssignmentScope.EMPLOYEE, employee_id=worker.employee_id)
    c.repos.shifts.update_shift(shifts["Perm"].shift_id, {"is_active": False})
    assert c.shift_resolver.resolve(worker.employee_id, DAY).shift.name == "Dept"


def test_latest_permanent_assignment_wins():
    c, worker, shifts = _setup()
    _assign(c, shifts["Perm"], AssignmentScope.EMPLOYEE, employee_id=worker.employee_id)
    _assign(
        c, shifts["Team"], AssignmentScope.EMPLOYEE, employee_id=worker.employee_id, effective_date=date(2025, 2, 1)
    )
    assert c.shift_resolver.resolve(worker.employee_id, DAY).shift.name == "Team"
