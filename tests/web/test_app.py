from datetime import date, datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from hrms.core.enums import Role
from hrms.main import create_app
from hrms.notifications.model import NotificationType
from hrms.recruitment.model import RequisitionStatus

from fakes import actor, fake_container

PASSWORD = "secret123"


@pytest.fixture()
def container():
    return fake_container()


@pytest.fixture()
def client(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)
    return app.test_client()


def _account(container, name, role):
    employee = container.repos.employees.add(name, role, email=f"{name.split()[0].lower()}@acme.io")
    container.repos.users.add(
        email=employee.email,
        password_hash=generate_password_hash(PASSWORD),
        role=role,
        employee_id=employee.employee_id,
    )
    return employee


def _login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_me_requires_login(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.get_json() == {"error": "Unauthorized"}


def test_login_and_me(client, container):
    _account(container, "Helen Hr", Role.HR)
    assert _login(client, "helen@acme.io", "wrong").status_code == 401

    res = _login(client, "Helen@Acme.io")
    assert res.status_code == 200
    body = res.get_json()
    assert body["message"] == "Login successful"
    assert body["role"] == "hr"

    me = client.get("/api/auth/me").get_json()
    assert me["name"] == "Helen Hr"
    assert me["email"] == "helen@acme.io"
    assert "passwordHash" not in me

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").status_code == 401


def test_login_body_is_validated(client):
    res = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})
    assert res.status_code == 400
    assert res.get_json()["issues"][0]["field"] == "email"


def test_employee_cannot_list_employees(client, container):
    _account(container, "Ravi Kumar", Role.EMPLOYEE)
    _login(client, "ravi@acme.io")
    res = client.get("/api/employees")
    assert res.status_code == 403
    assert res.get_json()["error"] == "Forbidden - Insufficient permissions"


def test_hr_creates_employee_with_login(client, container):
    manager = _account(container, "Meera Manager", Role.MANAGER)
    _account(container, "Helen Hr", Role.HR)
    _login(client, "helen@acme.io")

    res = client.post(
        "/api/employees",
        json={
            "name": "Asha Rao",
            "email": "asha@acme.io",
            "managerId": manager.employee_id,
            "department": "Engineering",
            "password": PASSWORD,
        },
    )
    assert res.status_code == 201
    created = res.get_json()
    assert created["managerId"] == manager.employee_id
    assert created["role"] == "employee"
    assert container.repos.users.get_by_email("asha@acme.io").employee_id == created["employeeId"]

    dup = client.post("/api/employees", json={"name": "Asha R", "email": "asha@acme.io"})
    assert dup.status_code == 409

    missing = client.get("/api/employees/000000000000000000000000")
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Employee not found"


def test_employee_checks_in_once_a_day(client, container):
    _account(container, "Ravi Kumar", Role.EMPLOYEE)
    _login(client, "ravi@acme.io")
    first = client.post("/api/attendance/check-in", json={})
    assert first.status_code == 201
    assert first.get_json()["message"] == "Checked in successfully"
    again = client.post("/api/attendance/check-in", json={})
    assert again.status_code == 400
    assert again.get_json()["error"] == "Already checked in today"


def test_public_job_page_needs_no_login(client, container):
    req = container.requisition_service.create(
        actor(role=Role.HR),
        {
            "job_title": "Backend Engineer",
            "department": "Engineering",
            "status": RequisitionStatus.OPEN,
            "allow_public_applications": True,
        },
    )
    page = client.get(f"/api/public/jobs/{req.public_token}")
    assert page.status_code == 200
    assert page.get_json()["jobTitle"] == "Backend Engineer"

    res = client.post(
        f"/api/public/jobs/{req.public_token}/apply",
        json={"firstName": "Kiran", "lastName": "S", "email": "kiran@acme.io", "phoneNumber": "9876543210"},
    )
    assert res.status_code == 201
    assert res.get_json()["candidateId"].startswith("CAN-")
    assert client.get("/api/public/jobs/bogus").status_code == 404


def test_wifi_validate_endpoint_is_a_dry_run(client, container):
    worker = _account(container, "Ravi Kumar", Role.EMPLOYEE)
    now = datetime.now()
    created = container.override_service.create(
        actor(role=Role.HR),
        {
            "employee_id": worker.employee_id,
            "type": "temporary",
            "reason": "Client visit",
            "valid_from": now - timedelta(days=1),
            "valid_to": now + timedelta(days=1),
        },
    )
    _login(client, "ravi@acme.io")

    for _ in range(3):
        res = client.post("/api/wifi/validate", json={"connected": False})
        assert res.status_code == 200
        assert res.get_json()["allowed"] is True
    assert container.repos.overrides.get_by_id(created.override_id).times_used == 0

    assert client.post("/api/attendance/check-in", json={}).status_code == 201
    assert container.repos.overrides.get_by_id(created.override_id).times_used == 1


def test_change_password(client, container):
    _account(container, "Ravi Kumar", Role.EMPLOYEE)
    _login(client, "ravi@acme.io")

    wrong = client.post("/api/users/change-password", json={"currentPassword": "nope", "newPassword": "fresh-pass"})
    assert wrong.status_code == 400
    assert wrong.get_json()["error"] == "Current password is incorrect"

    short = client.post("/api/users/change-password", json={"currentPassword": PASSWORD, "newPassword": "abc"})
    assert short.status_code == 400
    assert short.get_json()["issues"][0]["field"] == "newPassword"

    done = client.post("/api/users/change-password", json={"currentPassword": PASSWORD, "newPassword": "fresh-pass"})
    assert done.status_code == 200
    assert done.get_json()["message"] == "Password changed successfully"

    client.post("/api/auth/logout")
    assert _login(client, "ravi@acme.io").status_code == 401
    assert _login(client, "ravi@acme.io", "fresh-pass").status_code == 200


def test_hr_creates_manual_attendance(client, container):
    worker = _account(container, "Ravi Kumar", Role.EMPLOYEE)
    _account(container, "Helen Hr", Role.HR)
    _login(client, "helen@acme.io")

    res = client.post(
        "/api/attendance",
        json={
            "employeeId": worker.employee_id,
            "date": "2025-03-03",
            "checkIn": "2025-03-03T09:40:00",
            "checkOut": "2025-03-03T18:00:00",
        },
    )
    assert res.status_code == 201
    body = res.get_json()
    assert body["isLate"] is True
    assert body["status"] == "present"
    assert body["correctedBy"] is not None

    again = client.post(
        "/api/attendance",
        json={"employeeId": worker.employee_id, "date": "2025-03-03", "checkIn": "2025-03-03T09:00:00"},
    )
    assert again.status_code == 400


def test_notifications_unread_filter_and_mark_read(client, container):
    worker = _account(container, "Ravi Kumar", Role.EMPLOYEE)
    user = container.repos.users.get_by_employee_id(worker.employee_id)
    for title in ("Leave approved", "Review due"):
        container.notification_service.notify(user.user_id, NotificationType.REMINDER, title, title)
    _login(client, "ravi@acme.io")

    listed = client.get("/api/notifications").get_json()
    assert listed["unreadCount"] == 2
    first = listed["notifications"][0]["notificationId"]

    res = client.put("/api/notifications", json={"notificationIds": [first]})
    assert res.get_json() == {"updated": 1}

    unread = client.get("/api/notifications?unreadOnly=true").get_json()
    assert first not in [n["notificationId"] for n in unread["notifications"]]
    assert len(unread["notifications"]) == 1
    assert unread["unreadCount"] == 1
    assert len(client.get("/api/notifications").get_json()["notifications"]) == 2


def test_onboarding_update_actions_and_reminder(client, container):
    _account(container, "Helen Hr", Role.HR)
    onboarding = container.onboarding_service.create(
        actor(role=Role.HR),
        {
            "email": "asha@acme.io",
            "first_name": "Asha",
            "last_name": "Rao",
            "date_of_joining": date(2025, 4, 1),
            "department": "Engineering",
            "designation": "Software Engineer",
        },
    )
    _login(client, "helen@acme.io")
    url = f"/api/onboarding/{onboarding.request_id}"

    edited = client.put(url, json={"department": "Design"})
    assert edited.status_code == 200
    assert edited.get_json()["department"] == "Design"

    regenerated = client.put(url, json={"action": "regenerate_token", "expiryDays": 10})
    assert regenerated.status_code == 200
    assert regenerated.get_json()["token"] != onboarding.token

    reminded = client.post(f"{url}/reminder")
    assert reminded.status_code == 200
    assert reminded.get_json()["reminderCount"] == 1
    assert reminded.get_json()["message"] == "Reminder sent successfully"

    not_submitted = client.post(f"{url}/hr-update", json={"step": "identityKYC", "data": {"panNumber": "ABCDE1234F"}})
    assert not_submitted.status_code == 400
