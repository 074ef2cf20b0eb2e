from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import weekday_name
from ..common.permissions import ensure_admin, is_admin, require_employee_id
from ..core.enums import LeaveStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..leaves.repository import LeaveRepository
from ..notifications.model import NotificationType
from ..notifications.service import NotificationService
from ..users.model import SessionUser
from .model import (
    AssignmentScope,
    AssignmentType,
    ResolvedShift,
    RosterEntry,
    Shift,
    ShiftAssignment,
    ShiftConflict,
    ShiftSwap,
    SwapStatus,
)
from .repository import RosterRepository, ShiftAssignmentRepository, ShiftRepository, ShiftSwapRepository
from .resolver import ShiftResolver
from .rules import validate_shift_times, works_on

logger = get_logger("hrms.shifts")


class ShiftService:
    """Use case: manage shift templates (HR)."""

    def __init__(self, shifts: ShiftRepository):
        self._shifts = shifts

    def get(self, shift_id: str) -> Shift:
        shift = self._shifts.get_by_id(shift_id)
        if not shift:
            raise NotFoundError("Shift not found")
        return shift

    def list_shifts(self, *, active_only: bool = False) -> Sequence[Shift]:
        return self._shifts.list_shifts(active_only=active_only)

    def create(self, actor: SessionUser, data: dict) -> Shift:
        ensure_admin(actor)
        validate_shift_times(data["start_time"], data["end_time"], bool(data.get("is_night_shift", False)))
        if self._shifts.get_by_name(data["name"]):
            raise ConflictError("Shift with this name already exists")
        shift_id = self._shifts.create_shift(data, created_by=actor.user_id)
        logger.info("shift created id=%s name=%s", shift_id, data["name"])
        return self.get(shift_id)

    def update(self, actor: SessionUser, shift_id: str, fields: dict) -> Shift:
        ensure_admin(actor)
        current = self.get(shift_id)
        validate_shift_times(
            fields.get("start_time", current.start_time),
            fields.get("end_time", current.end_time),
            bool(fields.get("is_night_shift", current.is_night_shift)),
        )
        if "name" in fields and fields["name"] != current.name:
            other = self._shifts.get_by_name(fields["name"])
            if other and other.shift_id != shift_id:
                raise ConflictError("Shift with this name already exists")
        if fields:
            self._shifts.update_shift(shift_id, fields)
        return self.get(shift_id)

    def deactivate(self, actor: SessionUser, shift_id: str) -> Shift:
        """Shifts are referenced by history, so delete is a soft deactivate."""
        ensure_admin(actor)
        self.get(shift_id)
        self._shifts.update_shift(shift_id, {"is_active": False})
        return self.get(shift_id)


class ShiftAssignmentService:
    def __init__(self, assignments: ShiftAssignmentRepository, shifts: ShiftRepository, employees: EmployeeRepository):
        self._assignments = assignments
        self._shifts = shifts
        self._employees = employees

    def list_assignments(self, actor: SessionUser, *, employee_id: Optional[str] = None, shift_id: Optional[str] = None):
        if not is_admin(actor) and actor.role != Role.MANAGER:
            employee_id = require_employee_id(actor)
        return self._assignments.list_assignments(employee_id=employee_id, shift_id=shift_id)

    def create(self, actor: SessionUser, data: dict) -> ShiftAssignment:
        ensure_admin(actor)
        shift = self._shifts.get_by_id(data["shift_id"])
        if not shift or not shift.is_active:
            raise NotFoundError("Shift not found or inactive")

        scope = AssignmentScope(data["scope"])
        if scope == AssignmentScope.EMPLOYEE:
            if not data.get("employee_id") or not self._employees.get_by_id(data["employee_id"]):
                raise ValidationError("A valid employeeId is required for employee assignments")
        elif scope == AssignmentScope.TEAM:
            if not data.get("team_manager_id") or not self._employees.get_by_id(data["team_manager_id"]):
                raise ValidationError("A valid teamManagerId is required for team assignments")
        elif not data.get("department_role"):
            raise ValidationError("departmentRole is required for department assignments")

        if AssignmentType(data["assignment_type"]) == AssignmentType.TEMPORARY:
            if not data.get("start_date") or not data.get("end_date"):
                raise ValidationError("Temporary assignments require startDate and endDate")
            if data["end_date"] < data["start_date"]:
                raise ValidationError("End date cannot be before start date")
            data.setdefault("effective_date", data["start_date"])

        assignment_id = self._assignments.create_assignment(data, created_by=actor.user_id)
        logger.info("shift assignment created id=%s scope=%s shift=%s", assignment_id, scope.value, shift.shift_id)
        return self._assignments.get_by_id(assignment_id)

    def deactivate(self, actor: SessionUser, assignment_id: str) -> None:
        ensure_admin(actor)
        if not self._assignments.deactivate(assignment_id):
            raise NotFoundError("Assignment not found")


class RosterService:
    """Use case: day-level roster with conflict detection."""

    def __init__(
        self,
        roster: RosterRepository,
        shifts: ShiftRepository,
        employees: EmployeeRepository,
        leaves: LeaveRepository,
        resolver: ShiftResolver,
    ):
        self._roster = roster
        self._shifts = shifts
        self._employees = employees
        self._leaves = leaves
        self._resolver = resolver

    def _ensure_can_manage(self, actor: SessionUser, employee: Employee) -> None:
        if is_admin(actor):
            return
        if actor.role == Role.MANAGER and employee.manager_id == actor.employee_id:
            return
        raise AuthorizationError("You can only manage the roster of your own team")

    def check_conflicts(self, employee_id: str, shift: Shift, work_date: date) -> ShiftConflict:
        conflicts: list[str] = []
        leaves = self._leaves.find_overlapping(
            employee_id, work_date, work_date, statuses=(LeaveStatus.PENDING, LeaveStatus.APPROVED)
        )
        if leaves:
            conflicts.append(f"Employee has {leaves[0].status.value} leave on {work_date.isoformat()}")
        if not works_on(shift, work_date):
            conflicts.append(f"Shift {shift.name} is not active on {weekday_name(work_date).capitalize()}")
        existing = self._roster.get_for_employee_and_date(employee_id, work_date)
        if existing and existing.shift_id and existing.shift_id != shift.shift_id:
            conflicts.append(f"Employee already has a different shift rostered on {work_date.isoformat()}")
        return ShiftConflict(has_conflict=bool(conflicts), conflicts=tuple(conflicts))

    def list_entries(self, actor: SessionUser, *, start_date: date, end_date: date, employee_id: Optional[str] = None):
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")
        if is_admin(actor):
            ids = [employee_id] if employee_id else None
        elif actor.role == Role.MANAGER:
            team = [e.employee_id for e in self._employees.list_employees(manager_id=actor.employee_id)]
            team.append(require_employee_id(actor))
            ids = [employee_id] if employee_id in team else team
        else:
            ids = [require_employee_id(actor)]
        return self._roster.list_entries(start_date=start_date, end_date=end_date, employee_ids=ids)

    def assign(
        self,
        actor: SessionUser,
        *,
        employee_id: str,
        dates: Sequence[date],
        shift_id: Optional[str],
        is_weekly_off: bool = False,
        notes: Optional[str] = None,
        replace_existing: bool = False,
    ) -> list[RosterEntry]:
        employee = self._employees.get_by_id(employee_id)
        if not employee or not employee.is_active:
            raise NotFoundError("Employee not found or inactive")
        self._ensure_can_manage(actor, employee)

        shift = None
        if not is_weekly_off:
            if not shift_id:
                raise ValidationError("shiftId is required unless the day is a weekly off")
            shift = self._shifts.get_by_id(shift_id)
            if not shift or not shift.is_active:
                raise NotFoundError("Shift not found or inactive")

        if shift is not None:
            problems: list[str] = []
            for work_date in dates:
                result = self.check_conflicts(employee_id, shift, work_date)
                problems.extend(
                    c for c in result.conflicts if not (replace_existing and "different shift" in c)
                )
            if problems:
                raise ValidationError("; ".join(problems))

        entries = []
        for work_date in dates:
            roster_id = self._roster.upsert_entry(
                employee_id=employee_id,
                work_date=work_date,
                shift_id=shift.shift_id if shift else None,
                is_weekly_off=is_weekly_off,
                notes=notes,
                created_by=actor.user_id,
            )
            entries.append(self._roster.get_by_id(roster_id))
        logger.info("roster updated employee=%s days=%d by=%s", employee_id, len(entries), actor.user_id)
        return entries

    def delete(self, actor: SessionUser, roster_id: str) -> None:
        entry = self._roster.get_by_id(roster_id)
        if not entry:
            raise NotFoundError("Roster entry not found")
        employee = self._employees.get_by_id(entry.employee_id)
        if employee:
            self._ensure_can_manage(actor, employee)
        elif not is_admin(actor):
            raise AuthorizationError("Unauthorized")
        self._roster.delete_entry(roster_id)

    def resolve(self, actor: SessionUser, employee_id: str, work_date: date) -> Optional[ResolvedShift]:
        if not is_admin(actor) and actor.role != Role.MANAGER and employee_id != actor.employee_id:
            raise AuthorizationError("Unauthorized")
        return self._resolver.resolve(employee_id, work_date)


class ShiftSwapService:
    def __init__(
        self,
        swaps: ShiftSwapRepository,
        roster: RosterRepository,
        employees: EmployeeRepository,
        resolver: ShiftResolver,
        notifications: NotificationService,
    ):
        self._swaps = swaps
        self._roster = roster
        self._employees = employees
        self._resolver = resolver
        self._notifications = notifications

    def get(self, swap_id: str) -> ShiftSwap:
        swap = self._swaps.get_by_id(swap_id)
        if not swap:
            raise NotFoundError("Swap request not found")
        return swap

    def list_swaps(self, actor: SessionUser, *, status: Optional[SwapStatus] = None) -> Sequence[ShiftSwap]:
        if is_admin(actor) or actor.role == Role.MANAGER:
            return self._swaps.list_swaps(status=status)
        return self._swaps.list_swaps(employee_id=require_employee_id(actor), status=status)

    def request(
        self,
        actor: SessionUser,
        *,
        requestee_id: str,
        requester_date: date,
        requestee_date: date,
        reason: str,
    ) -> ShiftSwap:
        requester_id = require_employee_id(actor)
        if requestee_id == requester_id:
            raise ValidationError("Cannot swap shifts with yourself")
        requestee = self._employees.get_by_id(requestee_id)
        if not requestee or not requestee.is_active:
            raise NotFoundError("Requestee not found or inactive")

        mine = self._resolver.resolve(requester_id, requester_date)
        theirs = self._resolver.resolve(requestee_id, requestee_date, employee=requestee)
        if not mine:
            raise ValidationError("You have no shift assigned on the requested date")
        if not theirs:
            raise ValidationError("The requested colleague has no shift assigned on that date")

        swap_id = self._swaps.create_swap(
            requester_id=requester_id,
            requestee_id=requestee_id,
            requester_date=requester_date,
            requestee_date=requestee_date,
            requester_shift_id=mine.shift.shift_id,
            requestee_shift_id=theirs.shift.shift_id,
            reason=reason,
        )
        self._notifications.notify_employee(
            requestee_id,
            NotificationType.SHIFT_SWAP,
            "Shift Swap Request",
            f"{actor.name or 'A colleague'} requested to swap shifts with you.",
            related_id=swap_id,
        )
        return self.get(swap_id)

    def review(
        self,
        actor: SessionUser,
        swap_id: str,
        *,
        status: SwapStatus,
        rejection_reason: Optional[str] = None,
    ) -> ShiftSwap:
        swap = self.get(swap_id)
        if status == SwapStatus.CANCELLED:
            if swap.requester_id != actor.employee_id:
                raise AuthorizationError("Only requester can cancel swap request")
        elif status in (SwapStatus.APPROVED, SwapStatus.REJECTED):
            if not is_admin(actor) and actor.role != Role.MANAGER and swap.requestee_id != actor.employee_id:
                raise AuthorizationError("Unauthorized to review this swap")
        else:
            raise ValidationError("Invalid swap status")

        if swap.status != SwapStatus.PENDING:
            raise ValidationError("Swap request is not pending")

        if not self._swaps.review_swap(
            swap_id, status=status, reviewed_by=actor.user_id, rejection_reason=rejection_reason
        ):
            raise ValidationError("Swap request is not pending")

        if status == SwapStatus.APPROVED:
            self._roster.upsert_entry(
                employee_id=swap.requester_id,
                work_date=swap.requester_date,
                shift_id=swap.requestee_shift_id,
                created_by=actor.user_id,
            )
            self._roster.upsert_entry(
                employee_id=swap.requestee_id,
                work_date=swap.requestee_date,
                shift_id=swap.requester_shift_id,
                created_by=actor.user_id,
            )
        logger.info("shift swap %s %s by user=%s", swap_id, status.value, actor.user_id)

        if status != SwapStatus.CANCELLED:
            self._notifications.notify_employee(
                swap.requester_id,
                NotificationType.SHIFT_SWAP,
                f"Shift Swap {status.value.capitalize()}",
                f"Your shift swap request for {swap.requester_date.isoformat()} was {status.value}.",
                related_id=swap_id,
            )
        return self.get(swap_id)
