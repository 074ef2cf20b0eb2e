from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..core.enums import LeaveType, Role
from ..core.exceptions import ConflictError
from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none, to_date, to_stored_date
from .model import (
    AttendanceSummary,
    Deductions,
    HalfDayDeductionRule,
    Payroll,
    PayrollCalculationResult,
    PayrollStatus,
    Payslip,
    SalaryStructure,
    WorkingDaysRule,
)
from .repository import PayrollRepository, PayslipRepository, SalaryStructureRepository


def _deductions_doc(d: Deductions) -> dict:
    return {"unpaidLeave": d.unpaid_leave, "halfDay": d.half_day, "latePenalty": d.late_penalty, "total": d.total}


def _deductions(doc: Optional[dict]) -> Deductions:
    doc = doc or {}
    return Deductions(
        unpaid_leave=float(doc.get("unpaidLeave", 0)),
        half_day=float(doc.get("halfDay", 0)),
        late_penalty=float(doc.get("latePenalty", 0)),
    )


def _target(employee_id: Optional[str], role: Optional[Role]) -> dict:
    if employee_id:
        return {"employeeId": oid(employee_id)}
    return {"role": Role(role).value, "employeeId": None}


class MongoSalaryStructureRepository(MongoRepository, SalaryStructureRepository):
    collection_name = "salary_structures"

    @staticmethod
    def _to_model(doc: dict) -> SalaryStructure:
        return SalaryStructure(
            structure_id=str(doc["_id"]),
            employee_id=id_str(doc.get("employeeId")),
            role=Role(doc["role"]) if doc.get("role") else None,
            gross_monthly_salary=float(doc["grossMonthlySalary"]),
            working_days_rule=WorkingDaysRule(doc.get("workingDaysRule", "shift_based")),
            fixed_working_days=doc.get("fixedWorkingDays"),
            paid_leave_types=tuple(LeaveType(t) for t in doc.get("paidLeaveTypes", ["paid"])),
            unpaid_leave_types=tuple(LeaveType(t) for t in doc.get("unpaidLeaveTypes", ["unpaid"])),
            half_day_deduction_rule=HalfDayDeductionRule(doc.get("halfDayDeductionRule", "half_day")),
            effective_from=to_date(doc["effectiveFrom"]),
            effective_to=to_date(doc.get("effectiveTo")),
            is_active=bool(doc.get("isActive", True)),
            version=int(doc.get("version", 1)),
            previous_version_id=id_str(doc.get("previousVersionId")),
            created_by=id_str(doc.get("createdBy")),
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, structure_id: str) -> Optional[SalaryStructure]:
        doc = self._col.find_one({"_id": oid(structure_id)})
        return self._to_model(doc) if doc else None

    def list_structures(
        self,
        *,
        employee_id: Optional[str] = None,
        role: Optional[Role] = None,
        active_only: bool = False,
    ) -> Sequence[SalaryStructure]:
        query: dict = {}
        if employee_id:
            query["employeeId"] = oid(employee_id)
        if role:
            query["role"] = Role(role).value
        if active_only:
            query["isActive"] = True
        cursor = self._col.find(query).sort([("effectiveFrom", -1), ("version", -1)])
        return [self._to_model(d) for d in cursor]

    def find_effective(self, *, on: date, employee_id: Optional[str] = None, role: Optional[Role] = None) -> Optional[SalaryStructure]:
        when = to_stored_date(on)
        query = {
            **_target(employee_id, role),
            "isActive": True,
            "effectiveFrom": {"$lte": when},
            "$or": [{"effectiveTo": None}, {"effectiveTo": {"$gte": when}}],
        }
        doc = self._col.find_one(query, sort=[("effectiveFrom", -1)])
        return self._to_model(doc) if doc else None

    def find_current(self, *, employee_id: Optional[str] = None, role: Optional[Role] = None) -> Optional[SalaryStructure]:
        doc = self._col.find_one({**_target(employee_id, role), "isActive": True}, sort=[("version", -1)])
        return self._to_model(doc) if doc else None

    def create_structure(self, data: dict) -> str:
        now = datetime.now()
        doc = {
            "employeeId": oid_or_none(data.get("employee_id")),
            "role": Role(data["role"]).value if data.get("role") else None,
            "grossMonthlySalary": float(data["gross_monthly_salary"]),
            "workingDaysRule": WorkingDaysRule(data.get("working_days_rule", WorkingDaysRule.SHIFT_BASED)).value,
            "fixedWorkingDays": data.get("fixed_working_days"),
            "paidLeaveTypes": [LeaveType(t).value for t in data.get("paid_leave_types") or (LeaveType.PAID,)],
            "unpaidLeaveTypes": [LeaveType(t).value for t in data.get("unpaid_leave_types") or (LeaveType.UNPAID,)],
            "halfDayDeductionRule": HalfDayDeductionRule(
                data.get("half_day_deduction_rule", HalfDayDeductionRule.HALF_DAY)
            ).value,
            "effectiveFrom": to_stored_date(data["effective_from"]),
            "effectiveTo": to_stored_date(data.get("effective_to")),
            "isActive": True,
            "version": int(data.get("version", 1)),
            "previousVersionId": oid_or_none(data.get("previous_version_id")),
            "createdBy": oid_or_none(data.get("created_by")),
            "createdAt": now,
            "updatedAt": now,
        }
        return str(self._col.insert_one(doc).inserted_id)

    def deactivate(self, structure_id: str, *, effective_to: Optional[date]) -> bool:
        update: dict = {"isActive": False, "updatedAt": datetime.now()}
        if effective_to is not None:
            update["effectiveTo"] = to_stored_date(effective_to)
        return self._col.update_one({"_id": oid(structure_id)}, {"$set": update}).matched_count == 1


class MongoPayrollRepository(MongoRepository, PayrollRepository):
    collection_name = "payrolls"

    @staticmethod
    def _to_model(doc: dict) -> Payroll:
        result = PayrollCalculationResult(
            total_working_days=int(doc.get("totalWorkingDays", 0)),
            present_days=int(doc.get("presentDays", 0)),
            absent_days=int(doc.get("absentDays", 0)),
            half_days=int(doc.get("halfDays", 0)),
            paid_leave_days=int(doc.get("paidLeaveDays", 0)),
            unpaid_leave_days=int(doc.get("unpaidLeaveDays", 0)),
            late_arrivals=int(doc.get("lateArrivals", 0)),
            payable_days=float(doc.get("payableDays", 0)),
            per_day_salary=float(doc.get("perDaySalary", 0)),
            gross_payable=float(doc.get("grossPayable", 0)),
            deductions=_deductions(doc.get("deductions")),
            net_payable=float(doc.get("netPayable", 0)),
            anomalies=tuple(doc.get("anomalies") or ()),
        )
        return Payroll(
            payroll_id=str(doc["_id"]),
            employee_id=str(doc["employeeId"]),
            month=int(doc["payrollMonth"]),
            year=int(doc["payrollYear"]),
            salary_structure_id=str(doc["salaryStructureId"]),
            gross_monthly_salary=float(doc["grossMonthlySalary"]),
            result=result,
            status=PayrollStatus(doc.get("status", "draft")),
            processed_at=doc.get("processedAt"),
            processed_by=id_str(doc.get("processedBy")),
            locked_at=doc.get("lockedAt"),
            locked_by=id_str(doc.get("lockedBy")),
            payslip_generated=bool(doc.get("payslipGenerated", False)),
            payslip_generated_at=doc.get("payslipGeneratedAt"),
        )

    def get_by_id(self, payroll_id: str) -> Optional[Payroll]:
        doc = self._col.find_one({"_id": oid(payroll_id)})
        return self._to_model(doc) if doc else None

    def get_for_period(self, employee_id: str, month: int, year: int) -> Optional[Payroll]:
        doc = self._col.find_one({"employeeId": oid(employee_id), "payrollMonth": month, "payrollYear": year})
        return self._to_model(doc) if doc else None

    def list_payrolls(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_ids: Optional[Sequence[str]] = None,
        status: Optional[PayrollStatus] = None,
    ) -> Sequence[Payroll]:
        query: dict = {}
        if month is not None:
            query["payrollMonth"] = month
        if year is not None:
            query["payrollYear"] = year
        if employee_ids is not None:
            query["employeeId"] = {"$in": [oid(e) for e in employee_ids]}
        if status is not None:
            query["status"] = status.value
        cursor = self._col.find(query).sort([("payrollYear", -1), ("payrollMonth", -1)])
        return [self._to_model(d) for d in cursor]

    def save_processed(
        self,
        *,
        employee_id: str,
        month: int,
        year: int,
        structure: SalaryStructure,
        result: PayrollCalculationResult,
        processed_by: str,
    ) -> str:
        now = datetime.now()
        fields = {
            "salaryStructureId": oid(structure.structure_id),
            "grossMonthlySalary": structure.gross_monthly_salary,
            "totalWorkingDays": result.total_working_days,
            "presentDays": result.present_days,
            "absentDays": result.absent_days,
            "halfDays": result.half_days,
            "paidLeaveDays": result.paid_leave_days,
            "unpaidLeaveDays": result.unpaid_leave_days,
            "lateArrivals": result.late_arrivals,
            "payableDays": result.payable_days,
            "perDaySalary": result.per_day_salary,
            "grossPayable": result.gross_payable,
            "deductions": _deductions_doc(result.deductions),
            "netPayable": result.net_payable,
            "anomalies": list(result.anomalies),
            "status": PayrollStatus.PROCESSED.value,
            "processedAt": now,
            "processedBy": oid(processed_by),
            "updatedAt": now,
        }
        try:
            doc = self._col.find_one_and_update(
                {
                    "employeeId": oid(employee_id),
                    "payrollMonth": month,
                    "payrollYear": year,
                    "status": {"$ne": PayrollStatus.LOCKED.value},
                },
                {"$set": fields, "$setOnInsert": {"createdAt": now, "payslipGenerated": False}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            # the period exists and is locked
            raise ConflictError("Payroll already locked for this period") from exc
        return str(doc["_id"])

    def set_status(self, payroll_id: str, *, expected: PayrollStatus, status: PayrollStatus, by: str) -> bool:
        now = datetime.now()
        fields: dict = {"status": status.value, "updatedAt": now}
        if status == PayrollStatus.LOCKED:
            fields.update(lockedAt=now, lockedBy=oid(by))
        else:
            fields.update(lockedAt=None, lockedBy=None)
        result = self._col.update_one({"_id": oid(payroll_id), "status": expected.value}, {"$set": fields})
        return result.modified_count == 1

    def mark_payslip_generated(self, payroll_id: str) -> bool:
        result = self._col.update_one(
            {"_id": oid(payroll_id)},
            {"$set": {"payslipGenerated": True, "payslipGeneratedAt": datetime.now()}},
        )
        return result.matched_count == 1


class MongoPayslipRepository(MongoRepository, PayslipRepository):
    collection_name = "payslips"

    @staticmethod
    def _to_model(doc: dict) -> Payslip:
        attendance = doc.get("attendance") or {}
        return Payslip(
            payslip_id=str(doc["_id"]),
            payroll_id=str(doc["payrollId"]),
            employee_id=str(doc["employeeId"]),
            employee_name=doc.get("employeeName", ""),
            employee_code=doc.get("employeeCode", ""),
            designation=doc.get("designation", ""),
            month=int(doc["payrollMonth"]),
            year=int(doc["payrollYear"]),
            gross_monthly_salary=float(doc.get("grossMonthlySalary", 0)),
            payable_days=float(doc.get("payableDays", 0)),
            per_day_salary=float(doc.get("perDaySalary", 0)),
            gross_payable=float(doc.get("grossPayable", 0)),
            deductions=_deductions(doc.get("deductions")),
            net_payable=float(doc.get("netPayable", 0)),
            attendance=AttendanceSummary(
                total_working_days=int(attendance.get("totalWorkingDays", 0)),
                present_days=int(attendance.get("presentDays", 0)),
                absent_days=int(attendance.get("absentDays", 0)),
                half_days=int(attendance.get("halfDays", 0)),
                paid_leave_days=int(attendance.get("paidLeaveDays", 0)),
                unpaid_leave_days=int(attendance.get("unpaidLeaveDays", 0)),
                late_arrivals=int(attendance.get("lateArrivals", 0)),
            ),
            structure_version=int(doc.get("structureVersion", 1)),
            generated_at=doc.get("generatedAt"),
            generated_by=id_str(doc.get("generatedBy")),
        )

    def get_by_payroll(self, payroll_id: str) -> Optional[Payslip]:
        doc = self._col.find_one({"payrollId": oid(payroll_id)})
        return self._to_model(doc) if doc else None

    def create_payslip(self, payslip: Payslip) -> str:
        a = payslip.attendance
        doc = {
            "employeeId": oid(payslip.employee_id),
            "employeeName": payslip.employee_name,
            "employeeCode": payslip.employee_code,
            "designation": payslip.designation,
            "payrollMonth": payslip.month,
            "payrollYear": payslip.year,
            "grossMonthlySalary": payslip.gross_monthly_salary,
            "payableDays": payslip.payable_days,
            "perDaySalary": payslip.per_day_salary,
            "grossPayable": payslip.gross_payable,
            "deductions": _deductions_doc(payslip.deductions),
            "netPayable": payslip.net_payable,
            "attendance": {
                "totalWorkingDays": a.total_working_days,
                "presentDays": a.present_days,
                "absentDays": a.absent_days,
                "halfDays": a.half_days,
                "paidLeaveDays": a.paid_leave_days,
                "unpaidLeaveDays": a.unpaid_leave_days,
                "lateArrivals": a.late_arrivals,
            },
            "structureVersion": payslip.structure_version,
            "generatedAt": payslip.generated_at or datetime.now(),
            "generatedBy": oid_or_none(payslip.generated_by),
        }
        # first writer wins when two readers generate the same payslip
        saved = self._col.find_one_and_update(
            {"payrollId": oid(payslip.payroll_id)},
            {"$setOnInsert": doc},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return str(saved["_id"])
