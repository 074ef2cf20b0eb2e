from datetime import date, time

import pytest

from hrms.core.enums import Role
from hrms.core.exceptions import AuthorizationError, ValidationError
from hrms.payroll.model import PayrollStatus, WorkingDaysRule

from fakes import actor, fake_container


def _setup():
    c = fake_container()
    employees = c.repos.employees
    manager = employees.add("Meera Manager", Role.MANAGER)
    worker = employees.add("Ravi Kumar", manager_id=manager.employee_id, designation="Engineer")
    admin = actor(role=Role.HR)
    c.salary_structure_service.create(
        admin,
        {
            "employee_id": worker.employee_id,
            "gross_monthly_salary": 26000,
            "effective_from": date(2025, 1, 1),
            "working_days_rule": WorkingDaysRule.CALENDAR_DAYS,
        },
    )
    for day in (3, 4, 5):
        c.repos.attendance.add(worker.employee_id, date(2025, 3, day), time(9, 0), time(18, 0))
    return c, admin, manager, worker


def test_structure_requires_exactly_one_target():
    c = fake_container()
    admin = actor(role=Role.HR)
    with pytest.raises(ValidationError):
        c.salary_structure_service.create(admin, {"gross_monthly_salary": 1, "effective_from": date(2025, 1, 1)})
    with pytest.raises(ValidationError):
        c.salary_structure_service.create(
            admin,
            {"employee_id": "x", "role": Role.EMPLOYEE, "gross_monthly_salary": 1, "effective_from": date(2025, 1, 1)},
        )


def test_fixed_days_rule_needs_day_count():
    c = fake_container()
    with pytest.raises(ValidationError):
        c.salary_structure_service.create(
            actor(role=Role.HR),
            {
                "role": Role.EMPLOYEE,
                "gross_monthly_salary": 1000,
                "effective_from": date(2025, 1, 1),
                "working_days_rule": WorkingDaysRule.FIXED_DAYS,
            },
        )


def test_new_structure_supersedes_previous_version():
    c, admin, _, worker = _setup()
    first = c.repos.salary_structures.find_current(employee_id=worker.employee_id)

    second = c.salary_structure_service.create(
        admin,
        {"employee_id": worker.employee_id, "gross_monthly_salary": 30000, "effective_from": date(2025, 6, 1)},
    )

    assert second.version == 2
    assert second.previous_version_id == first.structure_id
    old = c.repos.salary_structures.get_by_id(first.structure_id)
    assert not old.is_active
    assert old.effective_to == date(2025, 6, 1)
    assert c.repos.audit.actions("payroll") == ["salary_structure_created", "salary_structure_created"]


def test_role_structure_applies_when_no_employee_structure():
    c = fake_container()
    employee = c.repos.employees.add("Asha")
    structure = c.salary_structure_service.create(
        actor(role=Role.SUPER_ADMIN),
        {"role": Role.EMPLOYEE, "gross_monthly_salary": 20000, "effective_from": date(2025, 1, 1)},
    )
    assert c.salary_structure_service.active_for(employee, date(2025, 3, 1)).structure_id == structure.structure_id


def test_process_calculates_and_collects_errors():
    c, admin, manager, worker = _setup()

    outcome = c.payroll_service.process(admin, month=3, year=2025)

    assert outcome.processed == 1
    payroll = outcome.payrolls[0]
    assert payroll.employee_id == worker.employee_id
    assert payroll.status == PayrollStatus.PROCESSED
    assert payroll.result.present_days == 3
    assert payroll.result.gross_payable == 3000
    assert [e.employee_id for e in outcome.errors] == [manager.employee_id]
    assert outcome.errors[0].error == "No active salary structure found"


def test_process_rejects_bad_period_and_non_admin():
    c, _, manager, _ = _setup()
    with pytest.raises(ValidationError):
        c.payroll_service.process(actor(role=Role.HR), month=13, year=2025)
    with pytest.raises(AuthorizationError):
        c.payroll_service.process(actor(manager), month=3, year=2025)


def test_locked_payroll_is_not_reprocessed():
    c, admin, _, worker = _setup()
    payroll = c.payroll_service.process(admin, month=3, year=2025).payrolls[0]

    locked = c.payroll_service.lock(admin, payroll.payroll_id)
    assert locked.status == PayrollStatus.LOCKED
    assert locked.locked_by == admin.user_id

    outcome = c.payroll_service.process(admin, month=3, year=2025, employee_ids=[worker.employee_id])
    assert outcome.processed == 0
    assert outcome.errors[0].error == "Payroll already locked for this period"

    with pytest.raises(ValidationError):
        c.payroll_service.lock(admin, payroll.payroll_id)
    assert c.payroll_service.unlock(admin, payroll.payroll_id).status == PayrollStatus.PROCESSED


def test_visibility_follows_ownership_and_team():
    c, admin, manager, worker = _setup()
    payroll = c.payroll_service.process(admin, month=3, year=2025).payrolls[0]
    outsider = c.repos.employees.add("Other Person")

    assert c.payroll_service.get(actor(worker), payroll.payroll_id) == payroll
    assert c.payroll_service.get(actor(manager), payroll.payroll_id) == payroll
    with pytest.raises(AuthorizationError):
        c.payroll_service.get(actor(outsider), payroll.payroll_id)
    assert c.payroll_service.list_for(actor(outsider)) == []
    assert len(c.payroll_service.list_for(actor(manager), month=3, year=2025)) == 1


def test_payslip_generated_once():
    c, admin, _, worker = _setup()
    payroll = c.payroll_service.process(admin, month=3, year=2025).payrolls[0]

    first = c.payroll_service.payslip(actor(worker), payroll.payroll_id)
    second = c.payroll_service.payslip(admin, payroll.payroll_id)

    assert first.payslip_id == second.payslip_id
    assert first.employee_name == "Ravi Kumar"
    assert first.designation == "Engineer"
    assert first.attendance.present_days == 3
    assert first.structure_version == 1
    assert c.repos.payrolls.get_by_id(payroll.payroll_id).payslip_generated
    assert c.repos.audit.actions("payroll").count("payslip_generated") == 1


def test_unexpected_failure_for_one_employee_does_not_stop_the_batch(monkeypatch):
    c, admin, _, worker = _setup()
    other = c.repos.employees.add("Asha Rao")
    c.salary_structure_service.create(
        admin, {"employee_id": other.employee_id, "gross_monthly_salary": 26000, "effective_from": date(2025, 1, 1)}
    )
    real_calculate = c.payroll_service.calculate

    def calculate(employee, month, year, structure):
        if employee.employee_id == worker.employee_id:
            raise RuntimeError("attendance store unavailable")
        return real_calculate(employee, month, year, structure)

    monkeypatch.setattr(c.payroll_service, "calculate", calculate)

    outcome = c.payroll_service.process(admin, month=3, year=2025, employee_ids=[worker.employee_id, other.employee_id])

    assert [p.employee_id for p in outcome.payrolls] == [other.employee_id]
    assert [(e.employee_id, e.error) for e in outcome.errors] == [(worker.employee_id, "attendance store unavailable")]
