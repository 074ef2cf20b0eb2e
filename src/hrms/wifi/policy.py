"""Pure WiFi policy rules: time applicability and network matching."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import js_weekday, minutes_of_day
from .model import PolicyScope, PolicyStatus, WifiNetwork, WifiPolicy


def is_candidate(policy: WifiPolicy) -> bool:
    return policy.is_active and policy.status == PolicyStatus.ACTIVE and policy.require_wifi


def applies_at(policy: WifiPolicy, at: datetime) -> bool:
    """Effective window, weekday (0 = Sunday) and HH:mm time range."""
    d = at.date()
    if policy.effective_from and d < policy.effective_from:
        return False
    if policy.effective_to and d > policy.effective_to:
        return False
    if policy.days_of_week and js_weekday(d) not in policy.days_of_week:
        return False
    if policy.time_range:
        now = minutes_of_day(at)
        start = minutes_of_day(policy.time_range.start)
        end = minutes_of_day(policy.time_range.end)
        if start <= end:
            if not start <= now <= end:
                return False
        elif end < now < start:
            # overnight window, e.g. 22:00-06:00
            return False
    return True


_SCOPE_RANK = {
    PolicyScope.EMPLOYEE: 3,
    PolicyScope.SHIFT: 2,
    PolicyScope.DEPARTMENT: 1,
    PolicyScope.COMPANY: 0,
}


def pick_policy(policies: Iterable[WifiPolicy], at: datetime) -> Optional[WifiPolicy]:
    """Highest priority applicable policy; on equal priority the narrower scope wins."""
    ordered = sorted(
        (p for p in policies if is_candidate(p)),
        key=lambda p: (p.priority, _SCOPE_RANK[p.scope]),
        reverse=True,
    )
    for policy in ordered:
        if applies_at(policy, at):
            return policy
    return None


def match_network(networks: Sequence[WifiNetwork], ssid: str, bssid: Optional[str]) -> Optional[WifiNetwork]:
    """SSID+BSSID first, then SSID-only networks, then any network with that SSID."""
    ssid = ssid.strip()
    same_ssid = sorted(
        (n for n in networks if n.is_active and n.ssid == ssid),
        key=lambda n: n.priority,
        reverse=True,
    )
    if not same_ssid:
        return None
    if bssid:
        wanted = bssid.strip().upper()
        for network in same_ssid:
            if network.bssid and network.bssid.upper() == wanted:
                return network
    for network in same_ssid:
        if not network.bssid:
            return network
    return same_ssid[0]
