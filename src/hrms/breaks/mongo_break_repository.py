from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import end_of_day, start_of_day
from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none, to_date, to_stored_date
from .model import FINISHED_STATUSES, BreakPolicy, BreakScope, BreakSession, BreakStatus, BreakType
from .repository import BreakPolicyRepository, BreakSessionRepository

_POLICY_FIELDS = {
    "name": "name",
    "description": "description",
    "scope": "scope",
    "scope_ids": "scopeIds",
    "allow_breaks": "allowBreaks",
    "allowed_break_types": "allowedBreakTypes",
    "max_breaks_per_day": "maxBreaksPerDay",
    "max_total_break_duration": "maxTotalBreakDuration",
    "max_duration_per_break": "maxDurationPerBreak",
    "min_working_hours_before_first_break": "minWorkingHoursBeforeFirstBreak",
    "grace_period": "gracePeriod",
    "paid_breaks": "paidBreaks",
    "deduct_break_time": "deductBreakTime",
    "allow_break_overrun": "allowBreakOverrun",
    "effective_from": "effectiveFrom",
    "effective_to": "effectiveTo",
    "is_active": "isActive",
    "priority": "priority",
}


def _policy_doc(data: dict) -> dict:
    doc = {}
    for key, value in data.items():
        if key in ("allowed_break_types", "paid_breaks"):
            value = [BreakType(v).value for v in value or ()]
        elif key == "scope_ids":
            value = [str(v) for v in value or ()]
        elif key in ("effective_from", "effective_to"):
            value = to_stored_date(value)
        elif key == "scope":
            value = BreakScope(value).value
        doc[_POLICY_FIELDS[key]] = value
    return doc


class MongoBreakPolicyRepository(MongoRepository, BreakPolicyRepository):
    collection_name = "break_policies"

    @staticmethod
    def _to_model(doc: dict) -> BreakPolicy:
        return BreakPolicy(
            policy_id=str(doc["_id"]),
            name=doc["name"],
            description=doc.get("description"),
            scope=BreakScope(doc.get("scope", "global")),
            scope_ids=tuple(str(s) for s in doc.get("scopeIds") or ()),
            allow_breaks=bool(doc.get("allowBreaks", True)),
            allowed_break_types=tuple(BreakType(t) for t in doc.get("allowedBreakTypes") or ("lunch", "tea", "personal")),
            max_breaks_per_day=int(doc.get("maxBreaksPerDay") or 0),
            max_total_break_duration=int(doc.get("maxTotalBreakDuration") or 0),
            max_duration_per_break=int(doc.get("maxDurationPerBreak") or 0),
            min_working_hours_before_first_break=float(doc.get("minWorkingHoursBeforeFirstBreak") or 0),
            grace_period=int(doc.get("gracePeriod", 5)),
            paid_breaks=tuple(BreakType(t) for t in doc.get("paidBreaks", ["lunch"])),
            deduct_break_time=bool(doc.get("deductBreakTime", True)),
            allow_break_overrun=bool(doc.get("allowBreakOverrun", False)),
            effective_from=to_date(doc.get("effectiveFrom")),
            effective_to=to_date(doc.get("effectiveTo")),
            is_active=bool(doc.get("isActive", True)),
            priority=int(doc.get("priority", 0)),
        )

    def get_by_id(self, policy_id: str) -> Optional[BreakPolicy]:
        doc = self._col.find_one({"_id": oid(policy_id)})
        return self._to_model(doc) if doc else None

    def list_policies(self, *, active_only: bool = False) -> Sequence[BreakPolicy]:
        query = {"isActive": True} if active_only else {}
        return [self._to_model(d) for d in self._col.find(query).sort("priority", -1)]

    def create_policy(self, data: dict, *, created_by: Optional[str] = None) -> str:
        doc = _policy_doc(data)
        doc.setdefault("isActive", True)
        doc["createdBy"] = oid_or_none(created_by)
        doc["createdAt"] = doc["updatedAt"] = datetime.now()
        return str(self._col.insert_one(doc).inserted_id)

    def update_policy(self, policy_id: str, fields: dict) -> bool:
        update = _policy_doc(fields)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(policy_id)}, {"$set": update}).matched_count == 1

    def delete_policy(self, policy_id: str) -> bool:
        return self._col.delete_one({"_id": oid(policy_id)}).deleted_count == 1


class MongoBreakSessionRepository(MongoRepository, BreakSessionRepository):
    collection_name = "break_sessions"

    @staticmethod
    def _to_model(doc: dict) -> BreakSession:
        return BreakSession(
            session_id=str(doc["_id"]),
            employee_id=str(doc["employeeId"]),
            attendance_id=str(doc["attendanceId"]),
            date=to_date(doc["date"]),
            break_type=BreakType(doc["breakType"]),
            start_time=doc["startTime"],
            end_time=doc.get("endTime"),
            duration=int(doc.get("duration") or 0),
            status=BreakStatus(doc.get("status", "active")),
            is_paid=bool(doc.get("isPaid", True)),
            exceeded_duration=bool(doc.get("exceededDuration", False)),
            exceeded_daily_limit=bool(doc.get("exceededDailyLimit", False)),
            violation_reason=doc.get("violationReason"),
            notes=doc.get("notes"),
            policy_id=id_str(doc.get("policyId")),
            corrected_by=id_str(doc.get("correctedBy")),
            corrected_at=doc.get("correctedAt"),
            correction_reason=doc.get("correctionReason"),
        )

    def get_by_id(self, session_id: str) -> Optional[BreakSession]:
        doc = self._col.find_one({"_id": oid(session_id)})
        return self._to_model(doc) if doc else None

    def get_active(self, attendance_id: str) -> Optional[BreakSession]:
        doc = self._col.find_one({"attendanceId": oid(attendance_id), "status": BreakStatus.ACTIVE.value})
        return self._to_model(doc) if doc else None

    def list_for_attendance(self, attendance_id: str) -> Sequence[BreakSession]:
        cursor = self._col.find({"attendanceId": oid(attendance_id)}).sort("startTime", 1)
        return [self._to_model(d) for d in cursor]

    def list_for_employee(self, employee_id: str, *, start_date: date, end_date: date) -> Sequence[BreakSession]:
        query = {
            "employeeId": oid(employee_id),
            "date": {"$gte": start_of_day(start_date), "$lte": end_of_day(end_date)},
        }
        return [self._to_model(d) for d in self._col.find(query).sort("startTime", -1)]

    def list_finished(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[BreakSession]:
        query: dict = {
            "date": {"$gte": start_of_day(start_date), "$lte": end_of_day(end_date)},
            "status": {"$in": [s.value for s in FINISHED_STATUSES]},
        }
        if employee_ids is not None:
            query["employeeId"] = {"$in": [oid(e) for e in employee_ids]}
        return [self._to_model(d) for d in self._col.find(query).sort("startTime", 1)]

    def create_session(
        self,
        *,
        employee_id: str,
        attendance_id: str,
        work_date: date,
        break_type: BreakType,
        start_time: datetime,
        is_paid: bool,
        policy_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        doc = {
            "employeeId": oid(employee_id),
            "attendanceId": oid(attendance_id),
            "date": to_stored_date(work_date),
            "breakType": break_type.value,
            "startTime": start_time,
            "status": BreakStatus.ACTIVE.value,
            "isPaid": is_paid,
            "policyId": oid_or_none(policy_id),
            "notes": notes,
            "duration": 0,
            "createdAt": datetime.now(),
        }
        return str(self._col.insert_one(doc).inserted_id)

    def finish_session(
        self,
        session_id: str,
        *,
        end_time: datetime,
        duration: int,
        status: BreakStatus,
        exceeded_duration: bool = False,
        exceeded_daily_limit: bool = False,
        violation_reason: Optional[str] = None,
    ) -> bool:
        result = self._col.update_one(
            {"_id": oid(session_id), "status": BreakStatus.ACTIVE.value},
            {
                "$set": {
                    "endTime": end_time,
                    "duration": duration,
                    "status": status.value,
                    "exceededDuration": exceeded_duration,
                    "exceededDailyLimit": exceeded_daily_limit,
                    "violationReason": violation_reason,
                }
            },
        )
        return result.modified_count == 1

    def correct_session(
        self,
        session_id: str,
        *,
        start_time: datetime,
        end_time: datetime,
        duration: int,
        corrected_by: str,
        reason: str,
    ) -> bool:
        result = self._col.update_one(
            {"_id": oid(session_id)},
            {
                "$set": {
                    "startTime": start_time,
                    "endTime": end_time,
                    "duration": duration,
                    "status": BreakStatus.COMPLETED.value,
                    "correctedBy": oid(corrected_by),
                    "correctedAt": datetime.now(),
                    "correctionReason": reason,
                }
            },
        )
        return result.matched_count == 1

