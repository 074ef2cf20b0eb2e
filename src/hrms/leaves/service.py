from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import is_weekend, iter_days, now_local
from ..common.permissions import ensure_admin, ensure_role, is_admin, require_employee_id
from ..core.enums import LeaveStatus, LeaveType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..notifications.model import NotificationType
from ..notifications.service import NotificationService
from ..users.model import SessionUser
from .model import Leave, LeaveBalance
from .repository import LeaveBalanceRepository, LeaveRepository

logger = get_logger("hrms.leaves")

_BLOCKING = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


def working_days(start: date, end: date) -> int:
    """Days in [start, end] excluding Saturday and Sunday."""
    return sum(1 for d in iter_days(start, end) if not is_weekend(d))


class LeaveService:
    def __init__(
        self,
        leaves: LeaveRepository,
        balances: LeaveBalanceRepository,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        notifications: Optional[NotificationService] = None,
    ):
        self._leaves = leaves
        self._balances = balances
        self._attendance = attendance
        self._employees = employees
        self._notifications = notifications

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee or not employee.is_active:
            raise NotFoundError("Employee not found or inactive")
        return employee

    def _leave(self, leave_id: str) -> Leave:
        leave = self._leaves.get_by_id(leave_id)
        if not leave:
            raise NotFoundError("Leave not found")
        return leave

    def apply(
        self,
        actor: SessionUser,
        *,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        today: Optional[date] = None,
    ) -> Leave:
        ensure_role(actor, (Role.EMPLOYEE,), "Only employees can apply for leave")
        employee = self._employee(require_employee_id(actor))
        today = today or now_local().date()

        if not reason or not reason.strip():
            raise ValidationError("Leave type, start date, end date, and reason are required")
        if start_date < today:
            raise ValidationError("Start date cannot be in the past")
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")
        days = working_days(start_date, end_date)
        if days == 0:
            raise ValidationError("Leave must include at least one working day")

        if self._leaves.find_overlapping(employee.employee_id, start_date, end_date, statuses=_BLOCKING):
            raise ValidationError("You already have a leave request for these dates")

        if leave_type != LeaveType.UNPAID:
            balance = self._balances.get_balance(employee.employee_id, leave_type, start_date.year)
            available = balance.available_days if balance else 0
            if available < days:
                raise ValidationError(
                    f"Insufficient leave balance. Available: {available:g} days, Required: {days} days"
                )

        leave_id = self._leaves.create_leave(
            employee_id=employee.employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days=days,
            reason=reason.strip(),
        )
        logger.info("leave %s applied employee=%s type=%s days=%d", leave_id, employee.employee_id, leave_type.value, days)
        return self._leaves.get_by_id(leave_id)

    def get_for(self, actor: SessionUser, leave_id: str) -> Leave:
        leave = self._leave(leave_id)
        if is_admin(actor) or actor.employee_id == leave.employee_id:
            return leave
        if actor.role == Role.MANAGER:
            employee = self._employees.get_by_id(leave.employee_id)
            if employee and employee.manager_id == actor.employee_id:
                return leave
        raise AuthorizationError("Unauthorized")

    def list_for(self, actor: SessionUser, *, status: Optional[LeaveStatus] = None) -> Sequence[Leave]:
        if is_admin(actor):
            return self._leaves.list_leaves(status=status)
        if actor.role == Role.MANAGER:
            team = [e.employee_id for e in self._employees.list_employees(manager_id=actor.employee_id)]
            return self._leaves.list_leaves(employee_ids=team, status=status)
        return self._leaves.list_leaves(employee_ids=[require_employee_id(actor)], status=status)

    def _ensure_can_decide(self, actor: SessionUser, leave: Leave) -> None:
        ensure_role(actor, (Role.MANAGER, Role.HR, Role.SUPER_ADMIN), "Only managers can approve/reject leaves")
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("Only pending leaves can be approved/rejected")
        if actor.role == Role.MANAGER:
            employee = self._employees.get_by_id(leave.employee_id)
            if not employee or employee.manager_id != actor.employee_id:
                raise AuthorizationError("You can only approve/reject leaves for your team members")

    def approve(self, actor: SessionUser, leave_id: str) -> Leave:
        leave = self._leave(leave_id)
        self._ensure_can_decide(actor, leave)
        if not self._leaves.update_status(
            leave_id, expected=LeaveStatus.PENDING, status=LeaveStatus.APPROVED, decided_by=actor.user_id
        ):
            raise ValidationError("Only pending leaves can be approved/rejected")

        if leave.leave_type != LeaveType.UNPAID:
            self._balances.add_used(leave.employee_id, leave.leave_type, leave.start_date.year, leave.days)
        created = self._create_attendance(leave)
        logger.info("leave %s approved by user=%s attendance_days=%d", leave_id, actor.user_id, created)
        self._notify(leave, "approved")
        return self._leaves.get_by_id(leave_id)

    def reject(self, actor: SessionUser, leave_id: str, *, reason: Optional[str] = None) -> Leave:
        leave = self._leave(leave_id)
        self._ensure_can_decide(actor, leave)
        if not self._leaves.update_status(
            leave_id,
            expected=LeaveStatus.PENDING,
            status=LeaveStatus.REJECTED,
            decided_by=actor.user_id,
            rejection_reason=reason,
        ):
            raise ValidationError("Only pending leaves can be approved/rejected")
        logger.info("leave %s rejected by user=%s", leave_id, actor.user_id)
        self._notify(leave, "rejected")
        return self._leaves.get_by_id(leave_id)

    def cancel(self, actor: SessionUser, leave_id: str) -> Leave:
        """Applicants cancel pending leaves; HR may also cancel approved ones."""
        leave = self._leave(leave_id)
        if leave.status == LeaveStatus.APPROVED and is_admin(actor):
            if not self._leaves.update_status(leave_id, expected=LeaveStatus.APPROVED, status=LeaveStatus.CANCELLED):
                raise ValidationError("Only pending leaves can be cancelled")
            if leave.leave_type != LeaveType.UNPAID:
                self._balances.add_used(leave.employee_id, leave.leave_type, leave.start_date.year, -leave.days)
            removed = self._attendance.delete_leave_records(
                employee_id=leave.employee_id, start_date=leave.start_date, end_date=leave.end_date
            )
            logger.info("approved leave %s cancelled by user=%s, %d attendance records removed", leave_id, actor.user_id, removed)
            return self._leaves.get_by_id(leave_id)

        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("Only pending leaves can be cancelled")
        if actor.employee_id != leave.employee_id:
            raise AuthorizationError("Unauthorized to cancel this leave")
        if not self._leaves.update_status(leave_id, expected=LeaveStatus.PENDING, status=LeaveStatus.CANCELLED):
            raise ValidationError("Only pending leaves can be cancelled")
        return self._leaves.get_by_id(leave_id)

    def _create_attendance(self, leave: Leave) -> int:
        created = 0
        for day in iter_days(leave.start_date, leave.end_date):
            if is_weekend(day):
                continue
            if self._attendance.get_for_employee_and_date(leave.employee_id, day):
                continue
            self._attendance.create_leave_record(employee_id=leave.employee_id, work_date=day, leave_type=leave.leave_type.value)
            created += 1
        return created

    def _notify(self, leave: Leave, outcome: str) -> None:
        if self._notifications is None:
            return
        self._notifications.notify_employee(
            leave.employee_id,
            NotificationType.LEAVE_DECIDED,
            f"Leave {outcome}",
            f"Your {leave.leave_type.value} leave from {leave.start_date.isoformat()} to {leave.end_date.isoformat()} was {outcome}.",
            related_id=leave.leave_id,
        )

    def balances_for(self, actor: SessionUser, *, year: int, employee_id: Optional[str] = None) -> Sequence[LeaveBalance]:
        if is_admin(actor):
            if not employee_id:
                raise ValidationError("Employee ID is required")
            target = employee_id
        elif actor.role == Role.MANAGER and employee_id and employee_id != actor.employee_id:
            employee = self._employees.get_by_id(employee_id)
            if not employee or employee.manager_id != actor.employee_id:
                raise AuthorizationError("Unauthorized")
            target = employee_id
        else:
            target = require_employee_id(actor)

        stored = {b.leave_type: b for b in self._balances.list_for_employee(target, year)}
        return [
            stored.get(t) or LeaveBalance(employee_id=target, leave_type=t, year=year, total_days=0, used_days=0)
            for t in LeaveType
        ]

    def set_balance(
        self,
        actor: SessionUser,
        *,
        employee_id: str,
        leave_type: LeaveType,
        year: int,
        total_days: float,
    ) -> LeaveBalance:
        ensure_admin(actor)
        self._employee(employee_id)
        if total_days < 0:
            raise ValidationError("Total days cannot be negative")
        self._balances.set_total(employee_id, leave_type, year, total_days)
        logger.info("leave balance set employee=%s type=%s year=%d total=%s", employee_id, leave_type.value, year, total_days)
        return self._balances.get_balance(employee_id, leave_type, year)
