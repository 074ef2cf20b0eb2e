from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


class PolicyScope(str, Enum):
    COMPANY = "company"
    DEPARTMENT = "department"
    SHIFT = "shift"
    EMPLOYEE = "employee"


class PolicyStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class OverrideType(str, Enum):
    TEMPORARY = "temporary"
    PERMANENT = "permanent"
    EMERGENCY = "emergency"


class OverrideStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


class ConnectionType(str, Enum):
    WIFI = "wifi"
    MOBILE = "mobile"
    ETHERNET = "ethernet"
    NONE = "none"


@dataclass(frozen=True)
class WifiNetwork:
    network_id: str
    ssid: str
    bssid: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    priority: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class TimeRange:
    start: str
    end: str


@dataclass(frozen=True)
class WifiPolicy:
    """Which networks an employee must be on to record attendance."""

    policy_id: str
    name: str
    scope: PolicyScope
    scope_ids: Tuple[str, ...] = ()
    allowed_networks: Tuple[str, ...] = ()
    require_wifi: bool = True
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    days_of_week: Tuple[int, ...] = ()
    time_range: Optional[TimeRange] = None
    priority: int = 0
    status: PolicyStatus = PolicyStatus.ACTIVE
    is_active: bool = True
    description: Optional[str] = None


@dataclass(frozen=True)
class AttendanceOverride:
    override_id: str
    employee_id: str
    type: OverrideType
    reason: str
    valid_from: datetime
    valid_to: datetime
    status: OverrideStatus = OverrideStatus.PENDING
    requested_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    times_used: int = 0

    def covers(self, at: datetime) -> bool:
        return self.valid_from <= at <= self.valid_to


@dataclass(frozen=True)
class WifiConnection:
    """Network state reported by the client at check-in/out time."""

    connected: bool
    connection_type: ConnectionType = ConnectionType.WIFI
    ssid: Optional[str] = None
    bssid: Optional[str] = None

    @property
    def is_mobile_data(self) -> bool:
        return self.connection_type == ConnectionType.MOBILE


@dataclass(frozen=True)
class WifiValidationResult:
    allowed: bool
    message: str
    policy_applied: bool = False
    policy_id: Optional[str] = None
    policy_scope: Optional[PolicyScope] = None
    network_id: Optional[str] = None
    override_id: Optional[str] = None
    allowed_networks: Tuple[WifiNetwork, ...] = field(default_factory=tuple)
