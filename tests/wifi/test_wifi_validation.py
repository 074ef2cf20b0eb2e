from datetime import date, datetime

import pytest

from hrms.core.enums import Role
from hrms.core.exceptions import AuthorizationError, ConflictError, ValidationError
from hrms.wifi.model import OverrideStatus, PolicyScope, TimeRange, WifiConnection, WifiNetwork, WifiPolicy
from hrms.wifi.policy import applies_at, match_network, pick_policy

from fakes import actor, fake_container

MONDAY_9AM = datetime(2025, 3, 3, 9, 0)


def _policy(**values):
    values.setdefault("policy_id", values.get("name", "p"))
    values.setdefault("name", "p")
    values.setdefault("scope", PolicyScope.COMPANY)
    return WifiPolicy(**values)


def test_applies_at_checks_window_weekday_and_time():
    assert applies_at(_policy(), MONDAY_9AM)
    assert not applies_at(_policy(effective_from=date(2025, 3, 4)), MONDAY_9AM)
    assert applies_at(_policy(days_of_week=(1,)), MONDAY_9AM)
    assert not applies_at(_policy(days_of_week=(0, 6)), MONDAY_9AM)
    assert not applies_at(_policy(time_range=TimeRange("10:00", "18:00")), MONDAY_9AM)


def test_overnight_time_range():
    night = _policy(time_range=TimeRange("22:00", "06:00"))
    assert applies_at(night, datetime(2025, 3, 3, 23, 0))
    assert applies_at(night, datetime(2025, 3, 3, 5, 0))
    assert not applies_at(night, datetime(2025, 3, 3, 12, 0))


def test_pick_policy_prefers_priority_then_narrow_scope():
    company = _policy(name="company", priority=5)
    employee = _policy(name="employee", scope=PolicyScope.EMPLOYEE, scope_ids=("e",), priority=5)
    shift = _policy(name="shift", scope=PolicyScope.SHIFT, scope_ids=("s",), priority=1)
    assert pick_policy([company, employee, shift], MONDAY_9AM).name == "employee"
    assert pick_policy([shift, _policy(name="off", require_wifi=False, priority=9)], MONDAY_9AM).name == "shift"


def test_match_network_prefers_bssid():
    generic = WifiNetwork(network_id="1", ssid="Office")
    ap = WifiNetwork(network_id="2", ssid="Office", bssid="AA:BB:CC:DD:EE:FF")
    assert match_network([generic, ap], "Office", "aa:bb:cc:dd:ee:ff").network_id == "2"
    assert match_network([generic, ap], "Office", "11:22:33:44:55:66").network_id == "1"
    assert match_network([generic], "Guest", None) is None


def _setup():
    c = fake_container()
    manager = c.repos.employees.add("Meera Manager", Role.MANAGER)
    worker = c.repos.employees.add("Ravi Kumar", manager_id=manager.employee_id, department="Engineering")
    office = c.repos.wifi_networks.create_network({"ssid": "Office"})
    c.repos.wifi_policies.create_policy(
        {"name": "Engineering", "scope": PolicyScope.DEPARTMENT, "scope_ids": ["Engineering"], "allowed_networks": [office]}
    )
    return c, manager, worker


def test_validate_requires_allowed_network():
    c, _, worker = _setup()
    service = c.wifi_validation_service

    assert not service.validate(worker, None, at=MONDAY_9AM).allowed
    wrong = service.validate(worker, WifiConnection(connected=True, ssid="Cafe"), at=MONDAY_9AM)
    assert not wrong.allowed
    assert wrong.message == 'Connected WiFi "Cafe" is not in the allowed list for your policy.'
    assert [n.ssid for n in wrong.allowed_networks] == ["Office"]
    ok = service.validate(worker, WifiConnection(connected=True, ssid="Office"), at=MONDAY_9AM)
    assert ok.allowed
    assert ok.policy_scope == PolicyScope.DEPARTMENT


def test_no_policy_allows_everything():
    c = fake_container()
    worker = c.repos.employees.add("Asha")
    assert c.wifi_validation_service.validate(worker, None, at=MONDAY_9AM).allowed


def test_approved_override_bypasses_policy_and_counts_usage():
    c, manager, worker = _setup()
    requested = c.override_service.create(
        actor(worker),
        {
            "type": "temporary",
            "reason": "Working from client site",
            "valid_from": datetime(2025, 3, 3, 0, 0),
            "valid_to": datetime(2025, 3, 4, 0, 0),
        },
    )
    assert requested.status == OverrideStatus.PENDING
    assert not c.wifi_validation_service.validate(worker, None, at=MONDAY_9AM).allowed

    c.override_service.decide(actor(manager), requested.override_id, approve=True)
    result = c.wifi_validation_service.validate(worker, None, at=MONDAY_9AM)

    assert result.allowed
    assert result.override_id == requested.override_id
    assert c.repos.overrides.get_by_id(requested.override_id).times_used == 1
    with pytest.raises(ValidationError):
        c.override_service.decide(actor(role=Role.HR), requested.override_id, approve=False)


def test_override_rules():
    c, _, worker = _setup()
    other = c.repos.employees.add("Other Person")
    window = {"type": "temporary", "reason": "x", "valid_from": MONDAY_9AM, "valid_to": datetime(2025, 3, 3, 18, 0)}

    with pytest.raises(ValidationError):
        c.override_service.create(actor(worker), {**window, "valid_to": MONDAY_9AM})
    with pytest.raises(AuthorizationError):
        c.override_service.create(actor(worker), {**window, "employee_id": other.employee_id})
    created = c.override_service.create(actor(role=Role.HR), {**window, "employee_id": other.employee_id})
    assert created.status == OverrideStatus.APPROVED
    pending = c.override_service.create(actor(other), window)
    with pytest.raises(AuthorizationError):
        c.override_service.decide(actor(worker), pending.override_id, approve=True)


def test_admin_network_and_policy_checks():
    c, _, _ = _setup()
    admin = actor(role=Role.SUPER_ADMIN)
    with pytest.raises(ConflictError):
        c.wifi_admin_service.create_network(admin, {"ssid": "Office"})
    with pytest.raises(ValidationError, match="scopeIds"):
        c.wifi_admin_service.create_policy(admin, {"name": "x", "scope": PolicyScope.EMPLOYEE})
    with pytest.raises(ValidationError, match="do not exist"):
        c.wifi_admin_service.create_policy(admin, {"name": "x", "scope": PolicyScope.COMPANY, "allowed_networks": ["missing"]})


def test_preview_does_not_consume_override():
    c, _, worker = _setup()
    created = c.override_service.create(
        actor(role=Role.HR),
        {
            "employee_id": worker.employee_id,
            "type": "temporary",
            "reason": "Client visit",
            "valid_from": datetime(2025, 3, 3, 0, 0),
            "valid_to": datetime(2025, 3, 4, 0, 0),
        },
    )

    for _ in range(3):
        assert c.wifi_validation_service.validate(worker, None, at=MONDAY_9AM, record_usage=False).allowed
    assert c.repos.overrides.get_by_id(created.override_id).times_used == 0

    c.wifi_validation_service.validate(worker, None, at=MONDAY_9AM)
    assert c.repos.overrides.get_by_id(created.override_id).times_used == 1
