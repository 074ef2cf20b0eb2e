from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.permissions import ensure_admin, is_admin, require_employee_id
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..shifts.resolver import ShiftResolver
from ..users.model import SessionUser
from .model import (
    AttendanceOverride,
    OverrideStatus,
    PolicyScope,
    WifiConnection,
    WifiNetwork,
    WifiPolicy,
    WifiValidationResult,
)
from .policy import match_network, pick_policy
from .repository import AttendanceOverrideRepository, WifiNetworkRepository, WifiPolicyRepository

logger = get_logger("hrms.wifi")


class WifiValidationService:
    """Decide whether an attendance attempt is allowed from the reported network."""

    def __init__(
        self,
        networks: WifiNetworkRepository,
        policies: WifiPolicyRepository,
        overrides: AttendanceOverrideRepository,
        resolver: ShiftResolver,
    ):
        self._networks = networks
        self._policies = policies
        self._overrides = overrides
        self._resolver = resolver

    def applicable_policy(self, employee: Employee, at: datetime) -> Optional[WifiPolicy]:
        resolved = self._resolver.resolve(employee.employee_id, at.date(), employee=employee)
        shift_id = resolved.shift.shift_id if resolved else None
        department_keys = {employee.role.value}
        if employee.department:
            department_keys.add(employee.department)

        candidates: list[WifiPolicy] = []
        for policy in self._policies.list_policies(active_only=True):
            if policy.scope == PolicyScope.EMPLOYEE and employee.employee_id in policy.scope_ids:
                candidates.append(policy)
            elif policy.scope == PolicyScope.SHIFT and shift_id and shift_id in policy.scope_ids:
                candidates.append(policy)
            elif policy.scope == PolicyScope.DEPARTMENT and department_keys.intersection(policy.scope_ids):
                candidates.append(policy)
            elif policy.scope == PolicyScope.COMPANY:
                candidates.append(policy)
        return pick_policy(candidates, at)

    def validate(
        self,
        employee: Employee,
        connection: Optional[WifiConnection],
        *,
        at: Optional[datetime] = None,
        record_usage: bool = True,
    ) -> WifiValidationResult:
        """Pass record_usage=False for a preview; only a real punch consumes an override use."""
        at = at or now_local()

        override = self._overrides.find_active(employee.employee_id, at)
        if override:
            if record_usage:
                self._overrides.increment_usage(override.override_id)
            return WifiValidationResult(
                allowed=True,
                message=f"Attendance allowed via override: {override.reason}",
                override_id=override.override_id,
            )

        policy = self.applicable_policy(employee, at)
        if policy is None:
            return WifiValidationResult(allowed=True, message="No WiFi policy configured for this employee.")

        base = dict(policy_applied=True, policy_id=policy.policy_id, policy_scope=policy.scope)
        if connection is None or not connection.connected or connection.is_mobile_data:
            message = (
                "Mobile data detected. Please connect to office WiFi to mark attendance."
                if connection is not None and connection.is_mobile_data
                else "WiFi not connected. Please connect to office WiFi to mark attendance."
            )
            return WifiValidationResult(allowed=False, message=message, **base)

        if not connection.ssid:
            return WifiValidationResult(
                allowed=False,
                message="WiFi network name not detected. Please ensure you are connected to office WiFi.",
                **base,
            )

        if policy.allowed_networks:
            allowed = self._networks.list_networks(active_only=True, ids=list(policy.allowed_networks))
        else:
            allowed = self._networks.find_by_ssid(connection.ssid)
        network = match_network(allowed, connection.ssid, connection.bssid)
        if network is None:
            return WifiValidationResult(
                allowed=False,
                message=f'Connected WiFi "{connection.ssid}" is not in the allowed list for your policy.',
                allowed_networks=tuple(allowed),
                **base,
            )

        return WifiValidationResult(allowed=True, message="WiFi validation passed.", network_id=network.network_id, **base)


class WifiAdminService:
    """Use case: HR manages networks and policies."""

    def __init__(self, networks: WifiNetworkRepository, policies: WifiPolicyRepository):
        self._networks = networks
        self._policies = policies

    def list_networks(self, actor: SessionUser, *, active_only: bool = False) -> Sequence[WifiNetwork]:
        ensure_admin(actor)
        return self._networks.list_networks(active_only=active_only)

    def create_network(self, actor: SessionUser, data: dict) -> WifiNetwork:
        ensure_admin(actor)
        for existing in self._networks.find_by_ssid(data["ssid"]):
            if (existing.bssid or None) == ((data.get("bssid") or "").upper() or None):
                raise ConflictError("WiFi network already registered")
        network_id = self._networks.create_network(data, created_by=actor.user_id)
        logger.info("wifi network created id=%s ssid=%s", network_id, data["ssid"])
        return self._networks.get_by_id(network_id)

    def update_network(self, actor: SessionUser, network_id: str, fields: dict) -> WifiNetwork:
        ensure_admin(actor)
        if not self._networks.update_network(network_id, fields):
            raise NotFoundError("WiFi network not found")
        return self._networks.get_by_id(network_id)

    def delete_network(self, actor: SessionUser, network_id: str) -> None:
        ensure_admin(actor)
        if not self._networks.delete_network(network_id):
            raise NotFoundError("WiFi network not found")

    def list_policies(self, actor: SessionUser) -> Sequence[WifiPolicy]:
        ensure_admin(actor)
        return self._policies.list_policies()

    def _check_policy(self, data: dict) -> None:
        if data.get("effective_from") and data.get("effective_to") and data["effective_to"] < data["effective_from"]:
            raise ValidationError("effectiveTo cannot be before effectiveFrom")
        scope = data.get("scope")
        if scope is not None and PolicyScope(scope) != PolicyScope.COMPANY and not data.get("scope_ids"):
            raise ValidationError("scopeIds are required for non-company policies")
        networks = data.get("allowed_networks")
        if networks:
            found = self._networks.list_networks(ids=list(networks))
            if len(found) != len(set(networks)):
                raise ValidationError("One or more allowed networks do not exist")

    def create_policy(self, actor: SessionUser, data: dict) -> WifiPolicy:
        ensure_admin(actor)
        self._check_policy(data)
        policy_id = self._policies.create_policy(data, created_by=actor.user_id)
        logger.info("wifi policy created id=%s scope=%s", policy_id, data["scope"])
        return self._policies.get_by_id(policy_id)

    def update_policy(self, actor: SessionUser, policy_id: str, fields: dict) -> WifiPolicy:
        ensure_admin(actor)
        current = self._policies.get_by_id(policy_id)
        if not current:
            raise NotFoundError("WiFi policy not found")
        merged = {"scope": current.scope, "scope_ids": current.scope_ids, **fields}
        self._check_policy(merged)
        self._policies.update_policy(policy_id, fields)
        return self._policies.get_by_id(policy_id)

    def delete_policy(self, actor: SessionUser, policy_id: str) -> None:
        ensure_admin(actor)
        if not self._policies.delete_policy(policy_id):
            raise NotFoundError("WiFi policy not found")


class AttendanceOverrideService:
    """Use case: request and approve temporary exemptions from WiFi policy."""

    def __init__(self, overrides: AttendanceOverrideRepository, employees: EmployeeRepository):
        self._overrides = overrides
        self._employees = employees

    def get(self, override_id: str) -> AttendanceOverride:
        override = self._overrides.get_by_id(override_id)
        if not override:
            raise NotFoundError("Override not found")
        return override

    def list_for(self, actor: SessionUser, *, status: Optional[OverrideStatus] = None) -> Sequence[AttendanceOverride]:
        if is_admin(actor):
            return self._overrides.list_overrides(status=status)
        if actor.role == Role.MANAGER:
            team = [e.employee_id for e in self._employees.list_employees(manager_id=actor.employee_id)]
            return self._overrides.list_overrides(employee_ids=team, status=status)
        return self._overrides.list_overrides(employee_ids=[require_employee_id(actor)], status=status)

    def create(self, actor: SessionUser, data: dict) -> AttendanceOverride:
        if data["valid_to"] <= data["valid_from"]:
            raise ValidationError("validTo must be after validFrom")

        employee_id = data.get("employee_id")
        if is_admin(actor) and employee_id:
            if not self._employees.get_by_id(employee_id):
                raise NotFoundError("Employee not found")
            # HR-created overrides are effective immediately
            data = {**data, "status": OverrideStatus.APPROVED, "approved_by": actor.user_id}
        else:
            own = require_employee_id(actor)
            if employee_id and employee_id != own:
                raise AuthorizationError("You can only request overrides for yourself")
            data = {**data, "employee_id": own, "status": OverrideStatus.PENDING}

        data["requested_by"] = actor.user_id
        override_id = self._overrides.create_override(data)
        logger.info("attendance override %s created for employee=%s status=%s", override_id, data["employee_id"], data["status"].value)
        return self.get(override_id)

    def decide(
        self,
        actor: SessionUser,
        override_id: str,
        *,
        approve: bool,
        rejection_reason: Optional[str] = None,
    ) -> AttendanceOverride:
        override = self.get(override_id)
        if not is_admin(actor):
            employee = self._employees.get_by_id(override.employee_id)
            if actor.role != Role.MANAGER or not employee or employee.manager_id != actor.employee_id:
                raise AuthorizationError("Unauthorized")
        if override.status != OverrideStatus.PENDING:
            raise ValidationError("Override is not pending")
        status = OverrideStatus.APPROVED if approve else OverrideStatus.REJECTED
        if not self._overrides.decide(override_id, status=status, decided_by=actor.user_id, rejection_reason=rejection_reason):
            raise ValidationError("Override is not pending")
        return self.get(override_id)
