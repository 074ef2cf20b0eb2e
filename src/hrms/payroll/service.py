from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, now_local
from ..common.permissions import ensure_admin, is_admin, require_employee_id
from ..common.validators import require_range
from ..core.enums import LeaveStatus, Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..leaves.repository import LeaveRepository
from ..notifications.service import AuditService
from ..shifts.resolver import ShiftResolver
from ..users.model import SessionUser
from .calculator.base import PayrollCalculator, PayrollPeriod
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import (
    AttendanceSummary,
    Payroll,
    PayrollCalculationResult,
    PayrollStatus,
    Payslip,
    SalaryStructure,
    WorkingDaysRule,
)
from .repository import PayrollRepository, PayslipRepository, SalaryStructureRepository

logger = get_logger("hrms.payroll")

AUDIT_MODULE = "payroll"


def validate_structure_terms(data: dict) -> None:
    if data.get("gross_monthly_salary") is not None and data["gross_monthly_salary"] < 0:
        raise ValidationError("Gross monthly salary cannot be negative")
    if WorkingDaysRule(data.get("working_days_rule", WorkingDaysRule.SHIFT_BASED)) == WorkingDaysRule.FIXED_DAYS:
        days = data.get("fixed_working_days")
        if days is None or not 1 <= int(days) <= 31:
            raise ValidationError("fixedWorkingDays between 1 and 31 is required for fixed_days rule")
    if data.get("effective_to") and data.get("effective_from") and data["effective_to"] < data["effective_from"]:
        raise ValidationError("effectiveTo cannot be before effectiveFrom")


class SalaryStructureService:
    """Versioned salary structures; a structure is never edited in place."""

    def __init__(self, structures: SalaryStructureRepository, employees: EmployeeRepository, audit: AuditService):
        self._structures = structures
        self._employees = employees
        self._audit = audit

    def get(self, actor: SessionUser, structure_id: str) -> SalaryStructure:
        ensure_admin(actor)
        structure = self._structures.get_by_id(structure_id)
        if not structure:
            raise NotFoundError("Salary structure not found")
        return structure

    def list_structures(
        self,
        actor: SessionUser,
        *,
        employee_id: Optional[str] = None,
        role: Optional[Role] = None,
        active_only: bool = False,
    ) -> Sequence[SalaryStructure]:
        ensure_admin(actor)
        return self._structures.list_structures(employee_id=employee_id, role=role, active_only=active_only)

    def find(self, structure_id: str) -> Optional[SalaryStructure]:
        return self._structures.get_by_id(structure_id)

    def active_for(self, employee: Employee, on: date) -> Optional[SalaryStructure]:
        """Employee-specific structure first, then the structure of the employee's role."""
        structure = self._structures.find_effective(on=on, employee_id=employee.employee_id)
        if structure is None:
            structure = self._structures.find_effective(on=on, role=employee.role)
        return structure

    def create(self, actor: Optional[SessionUser], data: dict) -> SalaryStructure:
        """Create a structure, superseding the target's current one.

        actor is None when the system provisions a structure (onboarding approval).
        """
        if actor is not None:
            ensure_admin(actor)
        employee_id = data.get("employee_id")
        role = data.get("role")
        if not employee_id and not role:
            raise ValidationError("Either employeeId or role must be provided")
        if employee_id and role:
            raise ValidationError("Cannot specify both employeeId and role")
        if employee_id and not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")
        validate_structure_terms(data)

        created_by = data.get("created_by") or (actor.user_id if actor else None)
        previous = self._structures.find_current(employee_id=employee_id, role=role)
        fields = {**data, "version": 1, "previous_version_id": None, "created_by": created_by}
        if previous is not None:
            fields["version"] = previous.version + 1
            fields["previous_version_id"] = previous.structure_id
            self._structures.deactivate(previous.structure_id, effective_to=data["effective_from"])

        structure_id = self._structures.create_structure(fields)
        structure = self._structures.get_by_id(structure_id)
        self._audit.record(
            AUDIT_MODULE,
            "salary_structure_created",
            f"Salary structure created: Version {structure.version}",
            entity_id=structure_id,
            employee_id=employee_id,
            performed_by=created_by,
            metadata={"previousVersionId": fields["previous_version_id"]},
        )
        logger.info("salary structure %s v%d created target=%s", structure_id, structure.version, employee_id or role)
        return structure

    def revise(self, actor: SessionUser, structure_id: str, changes: dict) -> SalaryStructure:
        existing = self.get(actor, structure_id)
        if not existing.is_active:
            raise ValidationError("Only the active salary structure can be revised")

        merged = {
            "employee_id": existing.employee_id,
            "role": existing.role if not existing.employee_id else None,
            "gross_monthly_salary": existing.gross_monthly_salary,
            "working_days_rule": existing.working_days_rule,
            "fixed_working_days": existing.fixed_working_days,
            "paid_leave_types": existing.paid_leave_types,
            "unpaid_leave_types": existing.unpaid_leave_types,
            "half_day_deduction_rule": existing.half_day_deduction_rule,
            "effective_from": existing.effective_from,
            "effective_to": None,
        }
        merged.update({k: v for k, v in changes.items() if v is not None})
        validate_structure_terms(merged)

        self._structures.deactivate(structure_id, effective_to=merged["effective_from"])
        new_id = self._structures.create_structure(
            {
                **merged,
                "version": existing.version + 1,
                "previous_version_id": structure_id,
                "created_by": actor.user_id,
            }
        )
        structure = self._structures.get_by_id(new_id)
        self._audit.record(
            AUDIT_MODULE,
            "salary_structure_updated",
            f"Salary structure updated: Version {structure.version}",
            entity_id=new_id,
            employee_id=existing.employee_id,
            performed_by=actor.user_id,
            metadata={"previousVersionId": structure_id},
        )
        return structure

    def deactivate(self, actor: SessionUser, structure_id: str) -> None:
        structure = self.get(actor, structure_id)
        self._structures.deactivate(structure_id, effective_to=now_local().date())
        self._audit.record(
            AUDIT_MODULE,
            "salary_structure_deactivated",
            "Salary structure deactivated",
            entity_id=structure_id,
            employee_id=structure.employee_id,
            performed_by=actor.user_id,
        )


@dataclass(frozen=True)
class ProcessError:
    employee_id: str
    employee_name: str
    error: str


@dataclass(frozen=True)
class ProcessOutcome:
    payrolls: Sequence[Payroll] = field(default_factory=list)
    errors: Sequence[ProcessError] = field(default_factory=list)

    json_properties = ("processed",)

    @property
    def processed(self) -> int:
        return len(self.payrolls)


class PayrollService:
    def __init__(
        self,
        payrolls: PayrollRepository,
        payslips: PayslipRepository,
        structures: SalaryStructureService,
        attendance: AttendanceRepository,
        leaves: LeaveRepository,
        employees: EmployeeRepository,
        resolver: ShiftResolver,
        audit: AuditService,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payrolls = payrolls
        self._payslips = payslips
        self._structures = structures
        self._attendance = attendance
        self._leaves = leaves
        self._employees = employees
        self._resolver = resolver
        self._audit = audit
        self._calculator = calculator or StandardPayrollCalculator()

    def calculate(self, employee: Employee, month: int, year: int, structure: SalaryStructure) -> PayrollCalculationResult:
        start, end = month_bounds(year, month)
        records = self._attendance.list_records(start_date=start, end_date=end, employee_ids=[employee.employee_id])
        leaves = [
            leave
            for leave in self._leaves.list_leaves(employee_ids=[employee.employee_id], status=LeaveStatus.APPROVED)
            if leave.start_date <= end and leave.end_date >= start
        ]

        def shift_on(d: date):
            resolved = self._resolver.resolve(employee.employee_id, d, employee=employee)
            return resolved.shift if resolved else None

        period = PayrollPeriod(
            employee_id=employee.employee_id,
            month=month,
            year=year,
            structure=structure,
            attendance=records,
            approved_leaves=leaves,
            shift_on=shift_on,
        )
        return self._calculator.calculate(period)

    def process(
        self,
        actor: SessionUser,
        *,
        month: int,
        year: int,
        employee_ids: Optional[Sequence[str]] = None,
    ) -> ProcessOutcome:
        ensure_admin(actor)
        require_range(month, "Month", 1, 12)
        require_range(year, "Year", 2000, 2100)

        if employee_ids:
            employees = [e for e in (self._employees.get_by_id(i) for i in employee_ids) if e and e.is_active]
        else:
            employees = list(self._employees.list_employees(is_active=True))

        period_start, _ = month_bounds(year, month)
        processed: list[Payroll] = []
        errors: list[ProcessError] = []
        for employee in employees:
            try:
                processed.append(self._process_one(actor, employee, month, year, period_start))
            except DomainError as exc:
                errors.append(ProcessError(employee.employee_id, employee.name, str(exc)))
            except Exception as exc:
                logger.exception("payroll %02d/%d failed for employee=%s", month, year, employee.employee_id)
                errors.append(ProcessError(employee.employee_id, employee.name, str(exc) or "Failed to process payroll"))

        logger.info("payroll %02d/%d processed=%d errors=%d", month, year, len(processed), len(errors))
        return ProcessOutcome(payrolls=processed, errors=errors)

    def _process_one(self, actor: SessionUser, employee: Employee, month: int, year: int, on: date) -> Payroll:
        existing = self._payrolls.get_for_period(employee.employee_id, month, year)
        if existing and existing.is_locked:
            raise ValidationError("Payroll already locked for this period")
        structure = self._structures.active_for(employee, on)
        if structure is None:
            raise ValidationError("No active salary structure found")

        result = self.calculate(employee, month, year, structure)
        payroll_id = self._payrolls.save_processed(
            employee_id=employee.employee_id,
            month=month,
            year=year,
            structure=structure,
            result=result,
            processed_by=actor.user_id,
        )
        self._audit.record(
            AUDIT_MODULE,
            "payroll_processed",
            f"Payroll processed for {month}/{year}",
            entity_id=payroll_id,
            employee_id=employee.employee_id,
            performed_by=actor.user_id,
            metadata={"netPayable": result.net_payable, "anomalies": list(result.anomalies)},
        )
        if result.anomalies:
            logger.warning("payroll anomalies employee=%s: %s", employee.employee_id, "; ".join(result.anomalies))
        return self._payrolls.get_by_id(payroll_id)

    def _visible(self, actor: SessionUser, payroll: Payroll) -> bool:
        if is_admin(actor) or actor.employee_id == payroll.employee_id:
            return True
        if actor.role == Role.MANAGER:
            employee = self._employees.get_by_id(payroll.employee_id)
            return bool(employee and employee.manager_id == actor.employee_id)
        return False

    def get(self, actor: SessionUser, payroll_id: str) -> Payroll:
        payroll = self._payrolls.get_by_id(payroll_id)
        if not payroll:
            raise NotFoundError("Payroll not found")
        if not self._visible(actor, payroll):
            raise AuthorizationError("Unauthorized")
        return payroll

    def list_for(
        self,
        actor: SessionUser,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
    ) -> Sequence[Payroll]:
        if is_admin(actor):
            ids = [employee_id] if employee_id else None
        elif actor.role == Role.MANAGER:
            team = [e.employee_id for e in self._employees.list_employees(manager_id=actor.employee_id, is_active=True)]
            if employee_id and employee_id not in team:
                raise AuthorizationError("Unauthorized")
            ids = [employee_id] if employee_id else team
        else:
            ids = [require_employee_id(actor)]
        return self._payrolls.list_payrolls(month=month, year=year, employee_ids=ids, status=status)

    def lock(self, actor: SessionUser, payroll_id: str) -> Payroll:
        ensure_admin(actor)
        payroll = self.get(actor, payroll_id)
        if payroll.is_locked:
            raise ValidationError("Payroll is already locked")
        if not self._payrolls.set_status(payroll_id, expected=payroll.status, status=PayrollStatus.LOCKED, by=actor.user_id):
            raise ValidationError("Payroll is already locked")
        self._audit.record(
            AUDIT_MODULE,
            "payroll_locked",
            f"Payroll locked for {payroll.month}/{payroll.year}",
            entity_id=payroll_id,
            employee_id=payroll.employee_id,
            performed_by=actor.user_id,
        )
        return self._payrolls.get_by_id(payroll_id)

    def unlock(self, actor: SessionUser, payroll_id: str) -> Payroll:
        ensure_admin(actor)
        payroll = self.get(actor, payroll_id)
        if not payroll.is_locked:
            raise ValidationError("Payroll is not locked")
        if not self._payrolls.set_status(payroll_id, expected=PayrollStatus.LOCKED, status=PayrollStatus.PROCESSED, by=actor.user_id):
            raise ValidationError("Payroll is not locked")
        self._audit.record(
            AUDIT_MODULE,
            "payroll_unlocked",
            f"Payroll unlocked for {payroll.month}/{payroll.year}",
            entity_id=payroll_id,
            employee_id=payroll.employee_id,
            performed_by=actor.user_id,
        )
        return self._payrolls.get_by_id(payroll_id)

    def payslip(self, actor: SessionUser, payroll_id: str) -> Payslip:
        """Payslip of a processed payroll, generated the first time it is requested."""
        payroll = self.get(actor, payroll_id)
        existing = self._payslips.get_by_payroll(payroll_id)
        if existing:
            return existing
        if payroll.status == PayrollStatus.DRAFT:
            raise ValidationError("Payroll must be processed before generating payslip")

        employee = self._employees.get_by_id(payroll.employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        structure = self._structures.find(payroll.salary_structure_id)
        r = payroll.result
        payslip = Payslip(
            payslip_id="",
            payroll_id=payroll_id,
            employee_id=employee.employee_id,
            employee_name=employee.name,
            employee_code=employee.code,
            designation=employee.designation or employee.role.value,
            month=payroll.month,
            year=payroll.year,
            gross_monthly_salary=payroll.gross_monthly_salary,
            payable_days=r.payable_days,
            per_day_salary=r.per_day_salary,
            gross_payable=r.gross_payable,
            deductions=r.deductions,
            net_payable=r.net_payable,
            attendance=AttendanceSummary(
                total_working_days=r.total_working_days,
                present_days=r.present_days,
                absent_days=r.absent_days,
                half_days=r.half_days,
                paid_leave_days=r.paid_leave_days,
                unpaid_leave_days=r.unpaid_leave_days,
                late_arrivals=r.late_arrivals,
            ),
            structure_version=structure.version if structure else 1,
            generated_at=now_local(),
            generated_by=actor.user_id,
        )
        payslip_id = self._payslips.create_payslip(payslip)
        self._payrolls.mark_payslip_generated(payroll_id)
        self._audit.record(
            AUDIT_MODULE,
            "payslip_generated",
            f"Payslip generated for {payroll.month}/{payroll.year}",
            entity_id=payslip_id,
            employee_id=payroll.employee_id,
            performed_by=actor.user_id,
        )
        return self._payslips.get_by_payroll(payroll_id)

    def audit_log(self, actor: SessionUser, *, entity_id: Optional[str] = None, limit: int = 200):
        ensure_admin(actor)
        return self._audit.list_entries(module=AUDIT_MODULE, entity_id=entity_id, limit=limit)
