from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none, to_date, to_stored_date
from .model import (
    AttendanceOverride,
    OverrideStatus,
    OverrideType,
    PolicyScope,
    PolicyStatus,
    TimeRange,
    WifiNetwork,
    WifiPolicy,
)
from .repository import AttendanceOverrideRepository, WifiNetworkRepository, WifiPolicyRepository

_NETWORK_FIELDS = {
    "ssid": "ssid",
    "bssid": "bssid",
    "location": "location",
    "description": "description",
    "priority": "priority",
    "is_active": "isActive",
}

_POLICY_FIELDS = {
    "name": "name",
    "description": "description",
    "scope": "scope",
    "scope_ids": "scopeIds",
    "allowed_networks": "allowedNetworks",
    "require_wifi": "requireWiFi",
    "effective_from": "effectiveFrom",
    "effective_to": "effectiveTo",
    "days_of_week": "daysOfWeek",
    "time_range": "timeRange",
    "priority": "priority",
    "status": "status",
    "is_active": "isActive",
}


def _network_doc(data: dict) -> dict:
    doc = {}
    for key, value in data.items():
        if key == "bssid" and value:
            value = value.strip().upper()
        elif key == "ssid" and value:
            value = value.strip()
        doc[_NETWORK_FIELDS[key]] = value
    return doc


def _policy_doc(data: dict) -> dict:
    doc = {}
    for key, value in data.items():
        if key == "allowed_networks":
            value = [oid(v) for v in value or ()]
        elif key == "scope_ids":
            value = [str(v) for v in value or ()]
        elif key in ("effective_from", "effective_to"):
            value = to_stored_date(value)
        elif key == "time_range":
            value = {"start": value.start, "end": value.end} if value else None
        elif key == "days_of_week":
            value = [int(v) for v in value or ()]
        elif hasattr(value, "value"):
            value = value.value
        doc[_POLICY_FIELDS[key]] = value
    return doc


class MongoWifiNetworkRepository(MongoRepository, WifiNetworkRepository):
    collection_name = "wifi_networks"

    @staticmethod
    def _to_model(doc: dict) -> WifiNetwork:
        return WifiNetwork(
            network_id=str(doc["_id"]),
            ssid=doc["ssid"],
            bssid=doc.get("bssid"),
            location=doc.get("location"),
            description=doc.get("description"),
            priority=int(doc.get("priority", 0)),
            is_active=bool(doc.get("isActive", True)),
        )

    def get_by_id(self, network_id: str) -> Optional[WifiNetwork]:
        doc = self._col.find_one({"_id": oid(network_id)})
        return self._to_model(doc) if doc else None

    def list_networks(self, *, active_only: bool = False, ids: Optional[Sequence[str]] = None) -> Sequence[WifiNetwork]:
        query: dict = {}
        if active_only:
            query["isActive"] = True
        if ids is not None:
            query["_id"] = {"$in": [oid(i) for i in ids]}
        return [self._to_model(d) for d in self._col.find(query).sort("priority", -1)]

    def find_by_ssid(self, ssid: str) -> Sequence[WifiNetwork]:
        cursor = self._col.find({"ssid": ssid.strip(), "isActive": True}).sort("priority", -1)
        return [self._to_model(d) for d in cursor]

    def create_network(self, data: dict, *, created_by: Optional[str] = None) -> str:
        doc = _network_doc(data)
        doc.setdefault("isActive", True)
        doc["createdBy"] = oid_or_none(created_by)
        doc["createdAt"] = doc["updatedAt"] = datetime.now()
        return str(self._col.insert_one(doc).inserted_id)

    def update_network(self, network_id: str, fields: dict) -> bool:
        update = _network_doc(fields)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(network_id)}, {"$set": update}).matched_count == 1

    def delete_network(self, network_id: str) -> bool:
        return self._col.delete_one({"_id": oid(network_id)}).deleted_count == 1


class MongoWifiPolicyRepository(MongoRepository, WifiPolicyRepository):
    collection_name = "wifi_policies"

    @staticmethod
    def _to_model(doc: dict) -> WifiPolicy:
        time_range = doc.get("timeRange")
        return WifiPolicy(
            policy_id=str(doc["_id"]),
            name=doc["name"],
            description=doc.get("description"),
            scope=PolicyScope(doc["scope"]),
            scope_ids=tuple(str(s) for s in doc.get("scopeIds") or ()),
            allowed_networks=tuple(str(n) for n in doc.get("allowedNetworks") or ()),
            require_wifi=bool(doc.get("requireWiFi", True)),
            effective_from=to_date(doc.get("effectiveFrom")),
            effective_to=to_date(doc.get("effectiveTo")),
            days_of_week=tuple(int(d) for d in doc.get("daysOfWeek") or ()),
            time_range=TimeRange(start=time_range["start"], end=time_range["end"]) if time_range else None,
            priority=int(doc.get("priority", 0)),
            status=PolicyStatus(doc.get("status", "active")),
            is_active=bool(doc.get("isActive", True)),
        )

    def get_by_id(self, policy_id: str) -> Optional[WifiPolicy]:
        doc = self._col.find_one({"_id": oid(policy_id)})
        return self._to_model(doc) if doc else None

    def list_policies(self, *, active_only: bool = False) -> Sequence[WifiPolicy]:
        query = {"isActive": True, "status": PolicyStatus.ACTIVE.value} if active_only else {}
        return [self._to_model(d) for d in self._col.find(query).sort("priority", -1)]

    def create_policy(self, data: dict, *, created_by: Optional[str] = None) -> str:
        doc = _policy_doc(data)
        doc.setdefault("isActive", True)
        doc.setdefault("status", PolicyStatus.ACTIVE.value)
        doc["createdBy"] = oid_or_none(created_by)
        doc["createdAt"] = doc["updatedAt"] = datetime.now()
        return str(self._col.insert_one(doc).inserted_id)

    def update_policy(self, policy_id: str, fields: dict) -> bool:
        update = _policy_doc(fields)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(policy_id)}, {"$set": update}).matched_count == 1

    def delete_policy(self, policy_id: str) -> bool:
        return self._col.delete_one({"_id": oid(policy_id)}).deleted_count == 1


class MongoAttendanceOverrideRepository(MongoRepository, AttendanceOverrideRepository):
    collection_name = "attendance_overrides"

    @staticmethod
    def _to_model(doc: dict) -> AttendanceOverride:
        return AttendanceOverride(
            override_id=str(doc["_id"]),
            employee_id=str(doc["employeeId"]),
            type=OverrideType(doc["type"]),
            reason=doc.get("reason", ""),
            valid_from=doc["validFrom"],
            valid_to=doc["validTo"],
            status=OverrideStatus(doc.get("status", "pending")),
            requested_by=id_str(doc.get("requestedBy")),
            approved_by=id_str(doc.get("approvedBy")),
            approved_at=doc.get("approvedAt"),
            rejection_reason=doc.get("rejectionReason"),
            times_used=int(doc.get("timesUsed", 0)),
        )

    def get_by_id(self, override_id: str) -> Optional[AttendanceOverride]:
        doc = self._col.find_one({"_id": oid(override_id)})
        return self._to_model(doc) if doc else None

    def list_overrides(
        self,
        *,
        employee_ids: Optional[Sequence[str]] = None,
        status: Optional[OverrideStatus] = None,
    ) -> Sequence[AttendanceOverride]:
        query: dict = {}
        if employee_ids is not None:
            query["employeeId"] = {"$in": [oid(e) for e in employee_ids]}
        if status:
            query["status"] = status.value
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def find_active(self, employee_id: str, at: datetime) -> Optional[AttendanceOverride]:
        doc = self._col.find_one(
            {
                "employeeId": oid(employee_id),
                "status": OverrideStatus.APPROVED.value,
                "validFrom": {"$lte": at},
                "validTo": {"$gte": at},
            },
            sort=[("validFrom", -1)],
        )
        return self._to_model(doc) if doc else None

    def create_override(self, data: dict) -> str:
        now = datetime.now()
        doc = {
            "employeeId": oid(data["employee_id"]),
            "type": data["type"].value,
            "reason": data["reason"],
            "validFrom": data["valid_from"],
            "validTo": data["valid_to"],
            "status": data.get("status", OverrideStatus.PENDING).value,
            "requestedBy": oid_or_none(data.get("requested_by")),
            "approvedBy": oid_or_none(data.get("approved_by")),
            "approvedAt": now if data.get("approved_by") else None,
            "timesUsed": 0,
            "createdAt": now,
        }
        return str(self._col.insert_one(doc).inserted_id)

    def decide(
        self,
        override_id: str,
        *,
        status: OverrideStatus,
        decided_by: str,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        result = self._col.update_one(
            {"_id": oid(override_id), "status": OverrideStatus.PENDING.value},
            {
                "$set": {
                    "status": status.value,
                    "approvedBy": oid(decided_by),
                    "approvedAt": datetime.now(),
                    "rejectionReason": rejection_reason,
                }
            },
        )
        return result.modified_count == 1

    def increment_usage(self, override_id: str) -> None:
        self._col.update_one({"_id": oid(override_id)}, {"$inc": {"timesUsed": 1}})
