from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import end_of_day, start_of_day
from ..core.constants import LEAVE_DAY_MINUTES
from ..core.enums import AttendanceStatus
from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none, to_date, to_stored_date
from .model import AttendanceRecord, PolicyViolation
from .repository import AttendanceRepository

_FIELD_MAP = {
    "check_in": "checkIn",
    "check_out": "checkOut",
    "working_minutes": "workingMinutes",
    "is_late": "isLate",
    "is_early_exit": "isEarlyExit",
    "status": "status",
    "notes": "notes",
    "shift_id": "shiftId",
}


class MongoAttendanceRepository(MongoRepository, AttendanceRepository):
    collection_name = "attendance"

    @staticmethod
    def _to_model(doc: dict) -> AttendanceRecord:
        violations = tuple(
            PolicyViolation(
                type=v.get("type", ""),
                message=v.get("message", ""),
                at=v.get("at"),
                reference_id=id_str(v.get("referenceId")),
            )
            for v in doc.get("policyViolations") or []
        )
        return AttendanceRecord(
            attendance_id=str(doc["_id"]),
            employee_id=str(doc["employeeId"]),
            date=to_date(doc["date"]),
            check_in=doc["checkIn"],
            check_out=doc.get("checkOut"),
            working_minutes=doc.get("workingMinutes"),
            is_late=bool(doc.get("isLate", False)),
            is_early_exit=bool(doc.get("isEarlyExit", False)),
            status=AttendanceStatus(doc.get("status", "present")),
            notes=doc.get("notes"),
            shift_id=id_str(doc.get("shiftId")),
            total_break_minutes=int(doc.get("totalBreakMinutes", 0)),
            unpaid_break_minutes=int(doc.get("unpaidBreakMinutes", 0)),
            net_working_minutes=doc.get("netWorkingMinutes"),
            policy_violations=violations,
            corrected_by=id_str(doc.get("correctedBy")),
            corrected_at=doc.get("correctedAt"),
        )

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        doc = self._col.find_one({"_id": oid(attendance_id)})
        return self._to_model(doc) if doc else None

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        doc = self._col.find_one({"employeeId": oid(employee_id), "date": to_stored_date(work_date)})
        return self._to_model(doc) if doc else None

    def list_records(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[AttendanceRecord]:
        query: dict = {"date": {"$gte": start_of_day(start_date), "$lte": end_of_day(end_date)}}
        if employee_ids is not None:
            query["employeeId"] = {"$in": [oid(e) for e in employee_ids]}
        return [self._to_model(d) for d in self._col.find(query).sort("date", -1)]

    def create_checkin(
        self,
        *,
        employee_id: str,
        work_date: date,
        check_in: datetime,
        is_late: bool,
        status: AttendanceStatus,
        shift_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        now = datetime.now()
        result = self._col.insert_one(
            {
                "employeeId": oid(employee_id),
                "date": to_stored_date(work_date),
                "checkIn": check_in,
                "checkOut": None,
                "workingMinutes": None,
                "isLate": bool(is_late),
                "isEarlyExit": False,
                "status": status.value,
                "shiftId": oid_or_none(shift_id),
                "notes": notes,
                "totalBreakMinutes": 0,
                "unpaidBreakMinutes": 0,
                "policyViolations": [],
                "createdAt": now,
                "updatedAt": now,
            }
        )
        return str(result.inserted_id)

    def update_checkout(
        self,
        attendance_id: str,
        *,
        check_out: datetime,
        working_minutes: int,
        is_early_exit: bool,
        status: AttendanceStatus,
    ) -> bool:
        result = self._col.update_one(
            {"_id": oid(attendance_id), "checkOut": None},
            {
                "$set": {
                    "checkOut": check_out,
                    "workingMinutes": int(working_minutes),
                    "isEarlyExit": bool(is_early_exit),
                    "status": status.value,
                    "updatedAt": datetime.now(),
                }
            },
        )
        return result.modified_count == 1

    def correct_record(self, attendance_id: str, fields: dict, *, corrected_by: str) -> bool:
        now = datetime.now()
        update: dict = {"correctedBy": oid(corrected_by), "correctedAt": now, "updatedAt": now}
        for key, value in fields.items():
            if key == "status" and isinstance(value, AttendanceStatus):
                value = value.value
            elif key == "shift_id":
                value = oid_or_none(value)
            update[_FIELD_MAP[key]] = value
        return self._col.update_one({"_id": oid(attendance_id)}, {"$set": update}).matched_count == 1

    def update_break_totals(
        self,
        attendance_id: str,
        *,
        total_break_minutes: int,
        unpaid_break_minutes: int,
        net_working_minutes: Optional[int],
    ) -> bool:
        result = self._col.update_one(
            {"_id": oid(attendance_id)},
            {
                "$set": {
                    "totalBreakMinutes": int(total_break_minutes),
                    "unpaidBreakMinutes": int(unpaid_break_minutes),
                    "netWorkingMinutes": net_working_minutes,
                    "updatedAt": datetime.now(),
                }
            },
        )
        return result.matched_count == 1

    def add_policy_violation(self, attendance_id: str, violation: PolicyViolation) -> bool:
        result = self._col.update_one(
            {"_id": oid(attendance_id)},
            {
                "$push": {
                    "policyViolations": {
                        "type": violation.type,
                        "message": violation.message,
                        "at": violation.at,
                        "referenceId": oid_or_none(violation.reference_id),
                    }
                }
            },
        )
        return result.matched_count == 1

    def create_leave_record(self, *, employee_id: str, work_date: date, leave_type: str) -> str:
        now = datetime.now()
        result = self._col.insert_one(
            {
                "employeeId": oid(employee_id),
                "date": to_stored_date(work_date),
                "checkIn": start_of_day(work_date),
                "checkOut": end_of_day(work_date),
                "workingMinutes": LEAVE_DAY_MINUTES,
                "isLate": False,
                "isEarlyExit": False,
                "status": AttendanceStatus.PRESENT.value,
                "notes": f"On {leave_type} leave",
                "totalBreakMinutes": 0,
                "unpaidBreakMinutes": 0,
                "policyViolations": [],
                "createdAt": now,
                "updatedAt": now,
            }
        )
        return str(result.inserted_id)

    def delete_leave_records(self, *, employee_id: str, start_date: date, end_date: date) -> int:
        result = self._col.delete_many(
            {
                "employeeId": oid(employee_id),
                "date": {"$gte": to_stored_date(start_date), "$lte": to_stored_date(end_date)},
                "notes": {"$regex": "leave", "$options": "i"},
            }
        )
        return result.deleted_count
