from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none, to_date, to_stored_date
from .model import Leave, LeaveBalance
from .repository import LeaveBalanceRepository, LeaveRepository


class MongoLeaveRepository(MongoRepository, LeaveRepository):
    collection_name = "leaves"

    @staticmethod
    def _to_model(doc: dict) -> Leave:
        return Leave(
            leave_id=str(doc["_id"]),
            employee_id=str(doc["employeeId"]),
            leave_type=LeaveType(doc["leaveType"]),
            start_date=to_date(doc["startDate"]),
            end_date=to_date(doc["endDate"]),
            days=int(doc.get("days", 0)),
            reason=doc.get("reason", ""),
            status=LeaveStatus(doc.get("status", "pending")),
            approved_by=id_str(doc.get("approvedBy")),
            approved_at=doc.get("approvedAt"),
            rejection_reason=doc.get("rejectionReason"),
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, leave_id: str) -> Optional[Leave]:
        doc = self._col.find_one({"_id": oid(leave_id)})
        return self._to_model(doc) if doc else None

    def create_leave(
        self,
        *,
        employee_id: str,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days: int,
        reason: str,
    ) -> str:
        now = datetime.now()
        result = self._col.insert_one(
            {
                "employeeId": oid(employee_id),
                "leaveType": leave_type.value,
                "startDate": to_stored_date(start_date),
                "endDate": to_stored_date(end_date),
                "days": int(days),
                "reason": reason,
                "status": LeaveStatus.PENDING.value,
                "createdAt": now,
                "updatedAt": now,
            }
        )
        return str(result.inserted_id)

    def list_leaves(
        self,
        *,
        employee_ids: Optional[Sequence[str]] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[Leave]:
        query: dict = {}
        if employee_ids is not None:
            query["employeeId"] = {"$in": [oid(e) for e in employee_ids]}
        if status is not None:
            query["status"] = status.value
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def find_overlapping(
        self,
        employee_id: str,
        start_date: date,
        end_date: date,
        *,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[Leave]:
        cursor = self._col.find(
            {
                "employeeId": oid(employee_id),
                "status": {"$in": [s.value for s in statuses]},
                "startDate": {"$lte": to_stored_date(end_date)},
                "endDate": {"$gte": to_stored_date(start_date)},
            }
        ).sort("startDate", 1)
        return [self._to_model(d) for d in cursor]

    def update_status(
        self,
        leave_id: str,
        *,
        expected: LeaveStatus,
        status: LeaveStatus,
        decided_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        now = datetime.now()
        fields: dict = {"status": status.value, "updatedAt": now}
        if status in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            fields["approvedBy"] = oid_or_none(decided_by)
            fields["approvedAt"] = now
        if rejection_reason is not None:
            fields["rejectionReason"] = rejection_reason
        result = self._col.update_one({"_id": oid(leave_id), "status": expected.value}, {"$set": fields})
        return result.modified_count == 1


class MongoLeaveBalanceRepository(MongoRepository, LeaveBalanceRepository):
    collection_name = "leave_balances"

    @staticmethod
    def _to_model(doc: dict) -> LeaveBalance:
        return LeaveBalance(
            employee_id=str(doc["employeeId"]),
            leave_type=LeaveType(doc["leaveType"]),
            year=int(doc["year"]),
            total_days=float(doc.get("totalDays", 0)),
            used_days=float(doc.get("usedDays", 0)),
        )

    def _key(self, employee_id: str, leave_type: LeaveType, year: int) -> dict:
        return {"employeeId": oid(employee_id), "leaveType": leave_type.value, "year": int(year)}

    def get_balance(self, employee_id: str, leave_type: LeaveType, year: int) -> Optional[LeaveBalance]:
        doc = self._col.find_one(self._key(employee_id, leave_type, year))
        return self._to_model(doc) if doc else None

    def list_for_employee(self, employee_id: str, year: int) -> Sequence[LeaveBalance]:
        cursor = self._col.find({"employeeId": oid(employee_id), "year": int(year)}).sort("leaveType", 1)
        return [self._to_model(d) for d in cursor]

    def set_total(self, employee_id: str, leave_type: LeaveType, year: int, total_days: float) -> None:
        self._col.update_one(
            self._key(employee_id, leave_type, year),
            {"$set": {"totalDays": float(total_days)}, "$setOnInsert": {"usedDays": 0.0}},
            upsert=True,
        )

    def add_used(self, employee_id: str, leave_type: LeaveType, year: int, delta: float) -> None:
        self._col.update_one(
            self._key(employee_id, leave_type, year),
            {"$inc": {"usedDays": float(delta)}, "$setOnInsert": {"totalDays": 0.0}},
            upsert=True,
        )
