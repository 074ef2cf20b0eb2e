from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from pymongo import ReturnDocument

from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none, to_date, to_stored_date
from .model import AssignmentScope, AssignmentType, RosterEntry, Shift, ShiftAssignment, ShiftSwap, ShiftType, SwapStatus
from .repository import RosterRepository, ShiftAssignmentRepository, ShiftRepository, ShiftSwapRepository

_SHIFT_FIELDS = {
    "name": "name",
    "code": "code",
    "shift_type": "shiftType",
    "start_time": "startTime",
    "end_time": "endTime",
    "grace_period": "gracePeriod",
    "early_exit_grace_period": "earlyExitGracePeriod",
    "minimum_working_hours": "minimumWorkingHours",
    "break_duration": "breakDuration",
    "is_break_paid": "isBreakPaid",
    "working_days": "workingDays",
    "is_night_shift": "isNightShift",
    "is_active": "isActive",
    "description": "description",
}

_ASSIGNMENT_FIELDS = {
    "shift_id": "shiftId",
    "assignment_type": "assignmentType",
    "scope": "scope",
    "employee_id": "employeeId",
    "team_manager_id": "teamManagerId",
    "department_role": "departmentRole",
    "effective_date": "effectiveDate",
    "start_date": "startDate",
    "end_date": "endDate",
    "is_active": "isActive",
    "notes": "notes",
}

_ID_FIELDS = {"shiftId", "employeeId", "teamManagerId"}
_DATE_FIELDS = {"effectiveDate", "startDate", "endDate"}


def _to_doc(data: dict, mapping: dict) -> dict:
    doc = {}
    for key, value in data.items():
        name = mapping[key]
        if name in _ID_FIELDS:
            value = oid_or_none(value)
        elif name in _DATE_FIELDS:
            value = to_stored_date(value)
        elif hasattr(value, "value"):
            value = value.value
        elif isinstance(value, tuple):
            value = list(value)
        doc[name] = value
    return doc


class MongoShiftRepository(MongoRepository, ShiftRepository):
    collection_name = "shifts"

    @staticmethod
    def _to_model(doc: dict) -> Shift:
        return Shift(
            shift_id=str(doc["_id"]),
            name=doc["name"],
            code=doc.get("code"),
            shift_type=ShiftType(doc.get("shiftType", "fixed")),
            start_time=doc["startTime"],
            end_time=doc["endTime"],
            grace_period=int(doc.get("gracePeriod", 15)),
            early_exit_grace_period=int(doc.get("earlyExitGracePeriod", 15)),
            minimum_working_hours=int(doc.get("minimumWorkingHours", 480)),
            break_duration=int(doc.get("breakDuration", 60)),
            is_break_paid=bool(doc.get("isBreakPaid", False)),
            working_days=tuple(doc.get("workingDays") or ()),
            is_night_shift=bool(doc.get("isNightShift", False)),
            is_active=bool(doc.get("isActive", True)),
            description=doc.get("description"),
        )

    def get_by_id(self, shift_id: str) -> Optional[Shift]:
        doc = self._col.find_one({"_id": oid(shift_id)})
        return self._to_model(doc) if doc else None

    def get_by_name(self, name: str) -> Optional[Shift]:
        doc = self._col.find_one({"name": name})
        return self._to_model(doc) if doc else None

    def list_shifts(self, *, active_only: bool = False) -> Sequence[Shift]:
        query = {"isActive": True} if active_only else {}
        return [self._to_model(d) for d in self._col.find(query).sort("startTime", 1)]

    def create_shift(self, data: dict, *, created_by: Optional[str] = None) -> str:
        doc = _to_doc(data, _SHIFT_FIELDS)
        doc.setdefault("isActive", True)
        doc["createdBy"] = oid_or_none(created_by)
        doc["createdAt"] = doc["updatedAt"] = datetime.now()
        return str(self._col.insert_one(doc).inserted_id)

    def update_shift(self, shift_id: str, fields: dict) -> bool:
        update = _to_doc(fields, _SHIFT_FIELDS)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(shift_id)}, {"$set": update}).matched_count == 1


class MongoShiftAssignmentRepository(MongoRepository, ShiftAssignmentRepository):
    collection_name = "shift_assignments"

    @staticmethod
    def _to_model(doc: dict) -> ShiftAssignment:
        return ShiftAssignment(
            assignment_id=str(doc["_id"]),
            shift_id=str(doc["shiftId"]),
            assignment_type=AssignmentType(doc["assignmentType"]),
            scope=AssignmentScope(doc["scope"]),
            effective_date=to_date(doc["effectiveDate"]),
            employee_id=id_str(doc.get("employeeId")),
            team_manager_id=id_str(doc.get("teamManagerId")),
            department_role=doc.get("departmentRole"),
            start_date=to_date(doc.get("startDate")),
            end_date=to_date(doc.get("endDate")),
            is_active=bool(doc.get("isActive", True)),
            notes=doc.get("notes"),
        )

    def get_by_id(self, assignment_id: str) -> Optional[ShiftAssignment]:
        doc = self._col.find_one({"_id": oid(assignment_id)})
        return self._to_model(doc) if doc else None

    def create_assignment(self, data: dict, *, created_by: Optional[str] = None) -> str:
        doc = _to_doc(data, _ASSIGNMENT_FIELDS)
        doc.setdefault("isActive", True)
        doc["assignedBy"] = oid_or_none(created_by)
        doc["createdAt"] = datetime.now()
        return str(self._col.insert_one(doc).inserted_id)

    def list_assignments(
        self,
        *,
        employee_id: Optional[str] = None,
        shift_id: Optional[str] = None,
        active_only: bool = True,
    ) -> Sequence[ShiftAssignment]:
        query: dict = {}
        if employee_id:
            query["employeeId"] = oid(employee_id)
        if shift_id:
            query["shiftId"] = oid(shift_id)
        if active_only:
            query["isActive"] = True
        return [self._to_model(d) for d in self._col.find(query).sort("effectiveDate", -1)]

    def list_candidates(
        self,
        *,
        employee_id: str,
        manager_id: Optional[str],
        role: Optional[str],
    ) -> Sequence[ShiftAssignment]:
        clauses: list[dict] = [{"scope": AssignmentScope.EMPLOYEE.value, "employeeId": oid(employee_id)}]
        if manager_id:
            clauses.append({"scope": AssignmentScope.TEAM.value, "teamManagerId": oid(manager_id)})
        if role:
            clauses.append({"scope": AssignmentScope.DEPARTMENT.value, "departmentRole": role})
        cursor = self._col.find({"isActive": True, "$or": clauses})
        return [self._to_model(d) for d in cursor]

    def deactivate(self, assignment_id: str) -> bool:
        result = self._col.update_one({"_id": oid(assignment_id)}, {"$set": {"isActive": False}})
        return result.matched_count == 1


class MongoRosterRepository(MongoRepository, RosterRepository):
    collection_name = "rosters"

    @staticmethod
    def _to_model(doc: dict) -> RosterEntry:
        return RosterEntry(
            roster_id=str(doc["_id"]),
            employee_id=str(doc["employeeId"]),
            shift_id=id_str(doc.get("shiftId")),
            date=to_date(doc["date"]),
            week_number=int(doc.get("weekNumber", 0)),
            month=int(doc["month"]),
            year=int(doc["year"]),
            is_weekly_off=bool(doc.get("isWeeklyOff", False)),
            notes=doc.get("notes"),
            created_by=id_str(doc.get("createdBy")),
        )

    def get_by_id(self, roster_id: str) -> Optional[RosterEntry]:
        doc = self._col.find_one({"_id": oid(roster_id)})
        return self._to_model(doc) if doc else None

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[RosterEntry]:
        doc = self._col.find_one({"employeeId": oid(employee_id), "date": to_stored_date(work_date)})
        return self._to_model(doc) if doc else None

    def list_entries(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[RosterEntry]:
        query: dict = {"date": {"$gte": to_stored_date(start_date), "$lte": to_stored_date(end_date)}}
        if employee_ids is not None:
            query["employeeId"] = {"$in": [oid(e) for e in employee_ids]}
        return [self._to_model(d) for d in self._col.find(query).sort("date", 1)]

    def upsert_entry(
        self,
        *,
        employee_id: str,
        work_date: date,
        shift_id: Optional[str],
        is_weekly_off: bool = False,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> str:
        now = datetime.now()
        doc = self._col.find_one_and_update(
            {"employeeId": oid(employee_id), "date": to_stored_date(work_date)},
            {
                "$set": {
                    "shiftId": oid_or_none(shift_id),
                    "weekNumber": work_date.isocalendar()[1],
                    "month": work_date.month,
                    "year": work_date.year,
                    "isWeeklyOff": bool(is_weekly_off),
                    "notes": notes,
                    "updatedAt": now,
                },
                "$setOnInsert": {"createdBy": oid_or_none(created_by), "createdAt": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return str(doc["_id"])

    def delete_entry(self, roster_id: str) -> bool:
        return self._col.delete_one({"_id": oid(roster_id)}).deleted_count == 1


class MongoShiftSwapRepository(MongoRepository, ShiftSwapRepository):
    collection_name = "shift_swaps"

    @staticmethod
    def _to_model(doc: dict) -> ShiftSwap:
        return ShiftSwap(
            swap_id=str(doc["_id"]),
            requester_id=str(doc["requesterId"]),
            requestee_id=str(doc["requesteeId"]),
            requester_date=to_date(doc["requesterDate"]),
            requestee_date=to_date(doc["requesteeDate"]),
            requester_shift_id=str(doc["requesterShiftId"]),
            requestee_shift_id=str(doc["requesteeShiftId"]),
            reason=doc.get("reason", ""),
            status=SwapStatus(doc.get("status", "pending")),
            reviewed_by=id_str(doc.get("reviewedBy")),
            reviewed_at=doc.get("reviewedAt"),
            rejection_reason=doc.get("rejectionReason"),
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, swap_id: str) -> Optional[ShiftSwap]:
        doc = self._col.find_one({"_id": oid(swap_id)})
        return self._to_model(doc) if doc else None

    def create_swap(
        self,
        *,
        requester_id: str,
        requestee_id: str,
        requester_date: date,
        requestee_date: date,
        requester_shift_id: str,
        requestee_shift_id: str,
        reason: str,
    ) -> str:
        result = self._col.insert_one(
            {
                "requesterId": oid(requester_id),
                "requesteeId": oid(requestee_id),
                "requesterDate": to_stored_date(requester_date),
                "requesteeDate": to_stored_date(requestee_date),
                "requesterShiftId": oid(requester_shift_id),
                "requesteeShiftId": oid(requestee_shift_id),
                "reason": reason,
                "status": SwapStatus.PENDING.value,
                "createdAt": datetime.now(),
            }
        )
        return str(result.inserted_id)

    def list_swaps(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Optional[SwapStatus] = None,
    ) -> Sequence[ShiftSwap]:
        query: dict = {}
        if employee_id:
            query["$or"] = [{"requesterId": oid(employee_id)}, {"requesteeId": oid(employee_id)}]
        if status:
            query["status"] = status.value
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def review_swap(
        self,
        swap_id: str,
        *,
        status: SwapStatus,
        reviewed_by: str,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        result = self._col.update_one(
            {"_id": oid(swap_id), "status": SwapStatus.PENDING.value},
            {
                "$set": {
                    "status": status.value,
                    "reviewedBy": oid(reviewed_by),
                    "reviewedAt": datetime.now(),
                    "rejectionReason": rejection_reason,
                }
            },
        )
        return result.modified_count == 1
