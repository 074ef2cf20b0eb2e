from datetime import date, datetime, timedelta

import pytest

from hrms.core.enums import LeaveType, Role
from hrms.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from hrms.onboarding.model import OnboardingStatus, OnboardingStep
from hrms.onboarding.service import EXPIRED_LINK_MESSAGE

from fakes import actor, fake_container

HR = actor(role=Role.HR)
NOW = datetime(2025, 3, 10, 9, 0)

STEPS = {
    OnboardingStep.PERSONAL_DETAILS: {
        "fullName": "Asha Rao",
        "dateOfBirth": "1996-05-14",
        "gender": "female",
        "maritalStatus": "single",
        "nationality": "Indian",
        "personalEmail": "asha@gmail.com",
        "mobileNumber": "9876543210",
    },
    OnboardingStep.ADDRESS_DETAILS: {
        "currentAddress": {"line1": "12 MG Road", "city": "Pune", "state": "MH", "pincode": "411001"},
        "sameAsCurrent": True,
    },
    OnboardingStep.IDENTITY_KYC: {"panNumber": "ABCDE1234F"},
    OnboardingStep.EMPLOYMENT_DETAILS: {
        "dateOfJoining": "2025-04-01",
        "employmentType": "full_time",
        "department": "Engineering",
        "designation": "Software Engineer",
        "workLocation": "Pune",
    },
    OnboardingStep.COMPENSATION_PAYROLL: {
        "annualCTC": 1200000,
        "basicSalary": 50000,
        "bankName": "SBI",
        "accountNumber": "001122",
        "ifscCode": "SBIN0001234",
    },
    OnboardingStep.STATUTORY_TAX: {},
    OnboardingStep.EDUCATION_DETAILS: [
        {"qualification": "UG", "degree": "B.E.", "institution": "COEP", "yearOfPassing": 2018}
    ],
    OnboardingStep.PREVIOUS_EMPLOYMENT: [],
    OnboardingStep.EMERGENCY_CONTACT: {"name": "Ravi Rao", "relationship": "father", "mobileNumber": "9822012345"},
    OnboardingStep.POLICIES_DECLARATIONS: {
        "offerLetterAccepted": True,
        "ndaSigned": True,
        "codeOfConductAccepted": True,
        "poshPolicyAcknowledged": True,
        "dataPrivacyConsent": True,
    },
}


def _setup():
    c = fake_container()
    manager = c.repos.employees.add("Meera Manager", Role.MANAGER)
    manager_user = c.repos.users.add(
        email=manager.email, password_hash="x", role=Role.MANAGER, employee_id=manager.employee_id
    )
    request = c.onboarding_service.create(
        HR,
        {
            "email": " Asha.Rao@Example.com ",
            "first_name": "Asha",
            "last_name": "Rao",
            "date_of_joining": date(2025, 4, 1),
            "department": "Engineering",
            "designation": "Software Engineer",
            "reporting_manager_id": manager.employee_id,
        },
        now=NOW,
    )
    return c, manager, manager_user, request


def _submitted(c, request):
    for step, data in STEPS.items():
        c.onboarding_service.save_step(request.token, step, data, now=NOW)
    return c.onboarding_service.submit(request.token, now=NOW)


def test_invitation_sets_expiry_and_notifies_manager():
    c, _, manager_user, request = _setup()
    assert request.code == "ONB-2025-001"
    assert request.email == "asha.rao@example.com"
    assert request.status == OnboardingStatus.INVITED
    assert request.expiry_date == date(2025, 4, 8)
    assert request.token_expiry == NOW + timedelta(days=30)
    assert c.repos.notifications.count_unread(manager_user.user_id) == 1
    assert c.repos.audit.actions("onboarding") == ["onboarding_created"]


def test_one_active_invitation_per_email():
    c, _, _, _ = _setup()
    data = {
        "email": "asha.rao@example.com",
        "first_name": "A",
        "last_name": "R",
        "date_of_joining": date(2025, 4, 1),
        "department": "Engineering",
        "designation": "Engineer",
    }
    with pytest.raises(ConflictError):
        c.onboarding_service.create(HR, data, now=NOW)
    with pytest.raises(ValidationError):
        c.onboarding_service.create(HR, {**data, "email": "other@example.com", "expiry_days": 120}, now=NOW)


def test_manager_sees_own_team_requests_only():
    c, manager, _, request = _setup()
    assert [r.request_id for r in c.onboarding_service.list_for(actor(manager))] == [request.request_id]
    other = c.repos.employees.add("Other Manager", Role.MANAGER)
    with pytest.raises(AuthorizationError):
        c.onboarding_service.get_for(actor(other), request.request_id)


def test_saving_steps_tracks_progress():
    c, _, _, request = _setup()
    submission = c.onboarding_service.save_step(
        request.token, OnboardingStep.PERSONAL_DETAILS, STEPS[OnboardingStep.PERSONAL_DETAILS], now=NOW
    )
    assert submission.progress == 10
    refreshed = c.onboarding_service.find(request.request_id)
    assert refreshed.status == OnboardingStatus.IN_PROGRESS
    assert refreshed.started_at == NOW
    with pytest.raises(ValidationError):
        c.onboarding_service.submit(request.token, now=NOW)


def test_token_checks():
    c, _, _, request = _setup()
    with pytest.raises(NotFoundError):
        c.onboarding_service.open_by_token("bogus", now=NOW)
    with pytest.raises(ValidationError) as exc:
        c.onboarding_service.open_by_token(request.token, now=NOW + timedelta(days=31))
    assert str(exc.value) == EXPIRED_LINK_MESSAGE

    renewed = c.onboarding_service.regenerate_token(HR, request.request_id, expiry_days=60, now=NOW + timedelta(days=31))
    assert renewed.token != request.token
    opened, submission = c.onboarding_service.open_by_token(renewed.token, now=NOW + timedelta(days=32))
    assert opened.request_id == request.request_id
    assert submission is None


def test_submitted_form_is_locked_until_changes_requested():
    c, _, _, request = _setup()
    submitted = _submitted(c, request)
    assert submitted.status == OnboardingStatus.SUBMITTED
    assert submitted.progress == 100
    with pytest.raises(ValidationError):
        c.onboarding_service.save_step(request.token, OnboardingStep.STATUTORY_TAX, {}, now=NOW)

    with pytest.raises(ValidationError):
        c.onboarding_service.review(HR, request.request_id, "request_changes", {"comments": " "})
    changed = c.onboarding_service.review(HR, request.request_id, "request_changes", {"comments": "Fix PAN"})
    assert changed.status == OnboardingStatus.CHANGES_REQUESTED
    assert changed.hr_comments == "Fix PAN"
    c.onboarding_service.save_step(request.token, OnboardingStep.IDENTITY_KYC, {"panNumber": "BCDEA1234F"}, now=NOW)
    assert c.onboarding_service.submit(request.token, now=NOW).status == OnboardingStatus.SUBMITTED


def test_approval_provisions_employee_login_salary_and_leave():
    c, manager, _, request = _setup()
    _submitted(c, request)

    result = c.onboarding_service.approve(HR, request.request_id, today=date(2025, 3, 20))
    assert result.is_new_employee
    employee = result.employee
    assert employee.email == "asha.rao@example.com"
    assert employee.role == Role.EMPLOYEE
    assert employee.manager_id == manager.employee_id
    assert result.request.status == OnboardingStatus.APPROVED
    assert result.request.employee_id == employee.employee_id

    assert len(result.default_password) == 7
    user = c.repos.users.get_by_email("asha.rao@example.com")
    assert user.employee_id == employee.employee_id
    assert c.repos.notifications.count_unread(user.user_id) == 1

    structure = c.repos.salary_structures.find_current(employee_id=employee.employee_id)
    assert structure.gross_monthly_salary == 100000
    assert structure.effective_from == date(2025, 4, 1)

    balances = {b.leave_type: b.total_days for b in c.repos.leave_balances.list_for_employee(employee.employee_id, 2025)}
    assert balances[LeaveType.SICK] == 10
    assert len(balances) == 5

    with pytest.raises(ValidationError):
        c.onboarding_service.delete(HR, request.request_id)


def test_approval_reactivates_existing_employee():
    c, _, _, request = _setup()
    existing = c.repos.employees.add("Asha Rao", email="asha.rao@example.com", is_active=False)
    c.repos.users.add(email="asha.rao@example.com", password_hash="x", role=Role.EMPLOYEE, employee_id=None, is_active=False)
    _submitted(c, request)

    result = c.onboarding_service.review(HR, request.request_id, "approve", {})
    assert not result.is_new_employee
    assert result.default_password is None
    assert result.employee.employee_id == existing.employee_id
    assert result.employee.is_active
    user = c.repos.users.get_by_email("asha.rao@example.com")
    assert user.is_active
    assert user.employee_id == existing.employee_id


def test_reject_and_unknown_action():
    c, _, _, request = _setup()
    with pytest.raises(ValidationError):
        c.onboarding_service.reject(HR, request.request_id, "No show")
    _submitted(c, request)
    with pytest.raises(ValidationError):
        c.onboarding_service.review(HR, request.request_id, "reject", {})
    rejected = c.onboarding_service.review(HR, request.request_id, "reject", {"rejection_reason": "Failed checks"})
    assert rejected.status == OnboardingStatus.REJECTED
    with pytest.raises(ValidationError):
        c.onboarding_service.review(HR, request.request_id, "archive", {})
    employee = c.repos.employees.add("Ravi Kumar")
    with pytest.raises(AuthorizationError):
        c.onboarding_service.review(actor(employee), request.request_id, "approve", {})


def test_hr_edits_a_submitted_step():
    c, _, _, request = _setup()
    with pytest.raises(ValidationError, match="Status must be 'submitted'"):
        c.onboarding_service.edit_submission(HR, request.request_id, OnboardingStep.IDENTITY_KYC, {"panNumber": "BCDEA1234F"})
    _submitted(c, request)

    with pytest.raises(ValidationError):
        c.onboarding_service.edit_submission(HR, request.request_id, OnboardingStep.IDENTITY_KYC, {"panNumber": "bad"})
    submission = c.onboarding_service.edit_submission(
        HR, request.request_id, OnboardingStep.IDENTITY_KYC, {"panNumber": "BCDEA1234F"}
    )

    assert submission.step(OnboardingStep.IDENTITY_KYC)["panNumber"] == "BCDEA1234F"
    assert c.onboarding_service.find(request.request_id).status == OnboardingStatus.SUBMITTED
    assert c.repos.audit.actions("onboarding")[-1] == "hr_updated_submission"
    with pytest.raises(AuthorizationError):
        c.onboarding_service.edit_submission(
            actor(role=Role.MANAGER), request.request_id, OnboardingStep.IDENTITY_KYC, {"panNumber": "BCDEA1234F"}
        )


def test_reminders_are_counted_audited_and_notified():
    c, _, manager_user, request = _setup()
    before = c.repos.notifications.count_unread(manager_user.user_id)

    c.onboarding_service.send_reminder(HR, request.request_id, now=NOW)
    second = c.onboarding_service.send_reminder(HR, request.request_id, now=NOW + timedelta(days=2))

    assert second.reminder_count == 2
    assert second.last_reminder_sent_at == NOW + timedelta(days=2)
    assert c.repos.audit.actions("onboarding").count("reminder_sent") == 2
    assert c.repos.notifications.count_unread(manager_user.user_id) == before + 2


def test_no_reminder_after_approval():
    c, _, _, request = _setup()
    _submitted(c, request)
    c.onboarding_service.approve(HR, request.request_id, today=date(2025, 3, 20))
    with pytest.raises(ValidationError, match="Cannot send reminder"):
        c.onboarding_service.send_reminder(HR, request.request_id, now=NOW)
