from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from ..common.schemas import ApiModel
from .model import ConnectionType, OverrideType, PolicyScope, PolicyStatus, TimeRange, WifiConnection

MAC_PATTERN = r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$"
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class NetworkBody(ApiModel):
    ssid: str = Field(min_length=1, max_length=32)
    bssid: Optional[str] = Field(default=None, pattern=MAC_PATTERN)
    location: Optional[str] = None
    description: Optional[str] = None
    priority: int = 0
    is_active: bool = True


class NetworkUpdateBody(ApiModel):
    ssid: Optional[str] = Field(default=None, min_length=1, max_length=32)
    bssid: Optional[str] = Field(default=None, pattern=MAC_PATTERN)
    location: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None


class TimeRangeBody(ApiModel):
    start: str = Field(pattern=HHMM_PATTERN)
    end: str = Field(pattern=HHMM_PATTERN)

    def to_model(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)


class PolicyBody(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    scope: PolicyScope = PolicyScope.COMPANY
    scope_ids: List[str] = Field(default_factory=list)
    allowed_networks: List[str] = Field(default_factory=list)
    require_wifi: bool = Field(default=True, alias="requireWiFi")
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    days_of_week: List[int] = Field(default_factory=list)
    time_range: Optional[TimeRangeBody] = None
    priority: int = 0
    status: PolicyStatus = PolicyStatus.ACTIVE
    is_active: bool = True

    @model_validator(mode="after")
    def check_days(self):
        if any(d < 0 or d > 6 for d in self.days_of_week):
            raise ValueError("daysOfWeek must contain values 0-6 (0 = Sunday)")
        return self

    def data(self, *, partial: bool = False) -> dict:
        out = self.changes() if partial else self.model_dump()
        if "time_range" in out:
            out["time_range"] = self.time_range.to_model() if self.time_range else None
        return out


class PolicyUpdateBody(PolicyBody):
    name: Optional[str] = Field(default=None, min_length=1)
    scope: Optional[PolicyScope] = None


class ConnectionBody(ApiModel):
    connected: bool = False
    connection_type: ConnectionType = ConnectionType.WIFI
    ssid: Optional[str] = None
    bssid: Optional[str] = None

    def to_model(self) -> WifiConnection:
        return WifiConnection(
            connected=self.connected,
            connection_type=self.connection_type,
            ssid=self.ssid,
            bssid=self.bssid.upper() if self.bssid else None,
        )


class ValidateBody(ConnectionBody):
    employee_id: Optional[str] = None


class OverrideBody(ApiModel):
    employee_id: Optional[str] = None
    type: OverrideType = OverrideType.TEMPORARY
    reason: str = Field(min_length=1)
    valid_from: datetime
    valid_to: datetime


class OverrideDecisionBody(ApiModel):
    action: Literal["approve", "reject"]
    rejection_reason: Optional[str] = None
