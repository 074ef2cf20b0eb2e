from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceOverride, OverrideStatus, WifiNetwork, WifiPolicy


class WifiNetworkRepository(Protocol):
    def get_by_id(self, network_id: str) -> Optional[WifiNetwork]:
        raise NotImplementedError

    def list_networks(self, *, active_only: bool = False, ids: Optional[Sequence[str]] = None) -> Sequence[WifiNetwork]:
        raise NotImplementedError

    def find_by_ssid(self, ssid: str) -> Sequence[WifiNetwork]:
        """Active networks with this SSID (any BSSID)."""

        raise NotImplementedError

    def create_network(self, data: dict, *, created_by: Optional[str] = None) -> str:
        raise NotImplementedError

    def update_network(self, network_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def delete_network(self, network_id: str) -> bool:
        raise NotImplementedError


class WifiPolicyRepository(Protocol):
    def get_by_id(self, policy_id: str) -> Optional[WifiPolicy]:
        raise NotImplementedError

    def list_policies(self, *, active_only: bool = False) -> Sequence[WifiPolicy]:
        raise NotImplementedError

    def create_policy(self, data: dict, *, created_by: Optional[str] = None) -> str:
        raise NotImplementedError

    def update_policy(self, policy_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def delete_policy(self, policy_id: str) -> bool:
        raise NotImplementedError


class AttendanceOverrideRepository(Protocol):
    def get_by_id(self, override_id: str) -> Optional[AttendanceOverride]:
        raise NotImplementedError

    def list_overrides(
        self,
        *,
        employee_ids: Optional[Sequence[str]] = None,
        status: Optional[OverrideStatus] = None,
    ) -> Sequence[AttendanceOverride]:
        raise NotImplementedError

    def find_active(self, employee_id: str, at: datetime) -> Optional[AttendanceOverride]:
        """Approved override whose validity window contains `at`."""

        raise NotImplementedError

    def create_override(self, data: dict) -> str:
        raise NotImplementedError

    def decide(
        self,
        override_id: str,
        *,
        status: OverrideStatus,
        decided_by: str,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def increment_usage(self, override_id: str) -> None:
        raise NotImplementedError
