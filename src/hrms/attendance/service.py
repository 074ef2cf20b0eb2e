from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Optional, Sequence

from ..common.datetime_utils import minutes_between, now_local
from ..common.permissions import ensure_admin, ensure_role, is_admin, require_employee_id
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..shifts.model import Shift
from ..shifts.resolver import ShiftResolver
from ..users.model import SessionUser
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository

if TYPE_CHECKING:
    from ..breaks.service import BreakService
    from ..wifi.model import WifiConnection
    from ..wifi.service import WifiValidationService

logger = get_logger("hrms.attendance")


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        resolver: ShiftResolver,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        wifi: "WifiValidationService | None" = None,
        breaks: "BreakService | None" = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._resolver = resolver
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._wifi = wifi
        self._breaks = breaks

    def attach_breaks(self, breaks: "BreakService") -> None:
        self._breaks = breaks

    def _active_employee(self, actor: SessionUser) -> Employee:
        ensure_role(actor, (Role.EMPLOYEE,), "Only employees can record attendance")
        employee_id = require_employee_id(actor)
        employee = self._employees.get_by_id(employee_id)
        if not employee or not employee.is_active:
            raise NotFoundError("Employee not found or inactive")
        return employee

    def _check_network(self, employee: Employee, connection: "WifiConnection | None", now: datetime) -> None:
        if self._wifi is None:
            return
        result = self._wifi.validate(employee, connection, at=now)
        if not result.allowed:
            logger.warning("attendance blocked by wifi policy employee=%s: %s", employee.employee_id, result.message)
            raise AuthorizationError(result.message)

    def check_in(self, actor: SessionUser, *, connection: "WifiConnection | None" = None, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        employee = self._active_employee(actor)

        if self._attendance.get_for_employee_and_date(employee.employee_id, today):
            raise ValidationError("Already checked in today")

        self._check_network(employee, connection, now)

        resolved = self._resolver.resolve(employee.employee_id, today, employee=employee)
        shift = resolved.shift if resolved else None
        strategy = self._factory.for_checkin(now=now, shift=shift)
        decision = strategy.decide_checkin(now=now, shift=shift)

        attendance_id = self._attendance.create_checkin(
            employee_id=employee.employee_id,
            work_date=today,
            check_in=now,
            is_late=decision.is_late,
            status=decision.status,
            shift_id=shift.shift_id if shift else None,
            notes=decision.note,
        )
        logger.info("check-in employee=%s late=%s shift=%s", employee.employee_id, decision.is_late, shift.name if shift else None)
        return self._attendance.get_by_id(attendance_id)

    def check_out(self, actor: SessionUser, *, connection: "WifiConnection | None" = None, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        employee = self._active_employee(actor)

        record = self._attendance.get_for_employee_and_date(employee.employee_id, today)
        if not record:
            raise ValidationError("No check-in found for today")
        if record.check_out is not None:
            raise ValidationError("Already checked out today")

        self._check_network(employee, connection, now)

        if self._breaks is not None:
            self._breaks.auto_end_active(employee.employee_id, now=now)

        working_minutes = max(minutes_between(record.check_in, now), 0)
        shift = None
        if record.shift_id:
            resolved = self._resolver.resolve(employee.employee_id, today, employee=employee)
            shift = resolved.shift if resolved else None
        strategy = self._factory.for_checkout(now=now, check_in=record.check_in, shift=shift, working_minutes=working_minutes)
        decision = strategy.decide_checkout(now=now, check_in=record.check_in, shift=shift, working_minutes=working_minutes)

        if not self._attendance.update_checkout(
            record.attendance_id,
            check_out=now,
            working_minutes=working_minutes,
            is_early_exit=decision.is_early_exit,
            status=decision.status,
        ):
            raise ValidationError("Already checked out today")

        if self._breaks is not None:
            self._breaks.recalculate_totals(record.attendance_id)

        logger.info(
            "check-out employee=%s minutes=%d status=%s early=%s",
            employee.employee_id,
            working_minutes,
            decision.status.value,
            decision.is_early_exit,
        )
        return self._attendance.get_by_id(record.attendance_id)

    def today(self, actor: SessionUser, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        employee_id = require_employee_id(actor)
        return self._attendance.get_for_employee_and_date(employee_id, (now or now_local()).date())

    def list_for(
        self,
        actor: SessionUser,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")

        if is_admin(actor):
            ids = [employee_id] if employee_id else None
        elif actor.role == Role.MANAGER:
            team = [e.employee_id for e in self._employees.list_employees(manager_id=actor.employee_id)]
            if actor.employee_id:
                team.append(actor.employee_id)
            if employee_id and employee_id not in team:
                raise AuthorizationError("You can only view attendance of your team")
            ids = [employee_id] if employee_id else team
        else:
            own = require_employee_id(actor)
            if employee_id and employee_id != own:
                raise AuthorizationError("Unauthorized")
            ids = [own]
        return self._attendance.list_records(start_date=start_date, end_date=end_date, employee_ids=ids)

    def _derive(
        self,
        employee_id: str,
        work_date: date,
        check_in: datetime,
        check_out: Optional[datetime],
        *,
        employee: Optional[Employee] = None,
    ) -> tuple[dict, Optional[Shift]]:
        """Lateness, early exit, worked minutes and status for the given times."""
        resolved = self._resolver.resolve(employee_id, work_date, employee=employee)
        shift = resolved.shift if resolved else None
        checkin = self._factory.for_checkin(now=check_in, shift=shift).decide_checkin(now=check_in, shift=shift)
        fields: dict = {
            "is_late": checkin.is_late,
            "is_early_exit": False,
            "working_minutes": None,
            "status": AttendanceStatus.MISSED_CHECKOUT,
        }
        if check_out is not None:
            working = max(minutes_between(check_in, check_out), 0)
            strategy = self._factory.for_checkout(now=check_out, check_in=check_in, shift=shift, working_minutes=working)
            checkout = strategy.decide_checkout(now=check_out, check_in=check_in, shift=shift, working_minutes=working)
            fields.update(working_minutes=working, is_early_exit=checkout.is_early_exit, status=checkout.status)
        return fields, shift

    def correct(
        self,
        actor: SessionUser,
        attendance_id: str,
        *,
        check_in: Optional[datetime] = None,
        check_out: Optional[datetime] = None,
        status: Optional[AttendanceStatus] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """HR correction. Flags and status are re-derived from times unless status is given."""
        ensure_admin(actor)
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")

        new_in = check_in or record.check_in
        new_out = check_out if check_out is not None else record.check_out
        if new_out is not None and new_out <= new_in:
            raise ValidationError("Check-out must be after check-in")

        fields, _ = self._derive(record.employee_id, record.date, new_in, new_out)
        fields.update(check_in=new_in, check_out=new_out)
        if status is not None:
            fields["status"] = status
        if notes is not None:
            fields["notes"] = notes

        self._attendance.correct_record(attendance_id, fields, corrected_by=actor.user_id)
        if self._breaks is not None:
            self._breaks.recalculate_totals(attendance_id)
        logger.info(
            "attendance %s corrected by user=%s late=%s early=%s",
            attendance_id,
            actor.user_id,
            fields["is_late"],
            fields["is_early_exit"],
        )
        return self._attendance.get_by_id(attendance_id)

    def create_manual(
        self,
        actor: SessionUser,
        *,
        employee_id: str,
        work_date: date,
        check_in: datetime,
        check_out: Optional[datetime] = None,
        status: Optional[AttendanceStatus] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """HR-entered record for a day the employee did not punch."""
        ensure_admin(actor)
        employee = self._employees.get_by_id(employee_id)
        if not employee or not employee.is_active:
            raise NotFoundError("Employee not found or inactive")
        if self._attendance.get_for_employee_and_date(employee_id, work_date):
            raise ValidationError("Attendance record already exists for this date")
        if check_out is not None and check_out <= check_in:
            raise ValidationError("Check-out must be after check-in")

        fields, shift = self._derive(employee_id, work_date, check_in, check_out, employee=employee)
        if status is not None and check_out is not None:
            fields["status"] = status
        attendance_id = self._attendance.create_checkin(
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            is_late=fields["is_late"],
            status=fields["status"],
            shift_id=shift.shift_id if shift else None,
            notes=notes,
        )
        fields["check_out"] = check_out
        self._attendance.correct_record(attendance_id, fields, corrected_by=actor.user_id)
        logger.info(
            "manual attendance employee=%s date=%s status=%s by user=%s",
            employee_id,
            work_date.isoformat(),
            fields["status"].value,
            actor.user_id,
        )
        return self._attendance.get_by_id(attendance_id)
