from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord, PolicyViolation
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import minutes_between, now_local
from ..common.permissions import ensure_admin, is_admin, require_employee_id
from ..core.constants import UNLIMITED_REMAINING
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..users.model import SessionUser
from .model import (
    BreakAnalytics,
    BreakPolicy,
    BreakScope,
    BreakSession,
    BreakStatus,
    BreakSummary,
    BreakTotals,
    BreakType,
    BreakViolation,
)
from .repository import BreakPolicyRepository, BreakSessionRepository

logger = get_logger("hrms.breaks")

_SCOPE_ORDER = (BreakScope.EMPLOYEE, BreakScope.ROLE, BreakScope.GLOBAL)


def select_policy(policies: Sequence[BreakPolicy], employee: Employee, on: date) -> Optional[BreakPolicy]:
    """Most specific effective policy: employee, then role, then global."""
    for scope in _SCOPE_ORDER:
        matching = [
            p
            for p in policies
            if p.scope == scope and p.effective_on(on) and _matches(p, employee)
        ]
        if matching:
            return max(matching, key=lambda p: p.priority)
    return None


def _matches(policy: BreakPolicy, employee: Employee) -> bool:
    if policy.scope == BreakScope.EMPLOYEE:
        return employee.employee_id in policy.scope_ids
    if policy.scope == BreakScope.ROLE:
        return employee.role.value in policy.scope_ids
    return True


def _used(sessions: Sequence[BreakSession]) -> tuple[int, int]:
    finished = [s for s in sessions if s.is_finished]
    return len(finished), sum(s.duration for s in finished)


class BreakService:
    """Break sessions taken during an attendance day, checked against the effective policy."""

    def __init__(
        self,
        sessions: BreakSessionRepository,
        policies: BreakPolicyRepository,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
    ):
        self._sessions = sessions
        self._policies = policies
        self._attendance = attendance
        self._employees = employees

    def effective_policy(self, employee: Employee, on: date) -> Optional[BreakPolicy]:
        return select_policy(self._policies.list_policies(active_only=True), employee, on)

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _open_attendance(self, employee_id: str, now: datetime) -> AttendanceRecord:
        record = self._attendance.get_for_employee_and_date(employee_id, now.date())
        if not record:
            raise ValidationError("You must check in before taking a break")
        if record.check_out is not None:
            raise ValidationError("Cannot take break after check out")
        return record

    def start_break(
        self,
        actor: SessionUser,
        break_type: BreakType,
        *,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BreakSession:
        now = now or now_local()
        employee = self._employee(require_employee_id(actor))
        record = self._open_attendance(employee.employee_id, now)

        if self._sessions.get_active(record.attendance_id):
            raise ValidationError("You are already on a break. Please end current break first.")

        policy = self.effective_policy(employee, now.date())
        if break_type != BreakType.EMERGENCY:
            self._check_allowed(policy, break_type, record, now)

        is_paid = break_type in policy.paid_breaks if policy else True
        session_id = self._sessions.create_session(
            employee_id=employee.employee_id,
            attendance_id=record.attendance_id,
            work_date=record.date,
            break_type=break_type,
            start_time=now,
            is_paid=is_paid,
            policy_id=policy.policy_id if policy else None,
            notes=notes,
        )
        logger.info("break started employee=%s type=%s paid=%s", employee.employee_id, break_type.value, is_paid)
        return self._sessions.get_by_id(session_id)

    def _check_allowed(
        self,
        policy: Optional[BreakPolicy],
        break_type: BreakType,
        record: AttendanceRecord,
        now: datetime,
    ) -> None:
        if policy is None or not policy.allow_breaks:
            raise ValidationError("Breaks are not allowed for your role")
        if break_type not in policy.allowed_break_types:
            raise ValidationError(f"{break_type.value} break is not allowed")

        count, minutes = _used(self._sessions.list_for_attendance(record.attendance_id))
        if policy.max_breaks_per_day and count >= policy.max_breaks_per_day:
            raise ValidationError(f"Maximum {policy.max_breaks_per_day} breaks per day allowed")
        if policy.max_total_break_duration and minutes >= policy.max_total_break_duration:
            raise ValidationError(f"Daily break limit of {policy.max_total_break_duration} minutes reached")
        if policy.min_working_hours_before_first_break and count == 0:
            worked_hours = minutes_between(record.check_in, now) / 60
            if worked_hours < policy.min_working_hours_before_first_break:
                hours = f"{policy.min_working_hours_before_first_break:g}"
                raise ValidationError(f"You must work at least {hours} hours before taking first break")

    def end_break(self, actor: SessionUser, *, now: Optional[datetime] = None) -> BreakSession:
        now = now or now_local()
        employee = self._employee(require_employee_id(actor))
        record = self._attendance.get_for_employee_and_date(employee.employee_id, now.date())
        if not record:
            raise ValidationError("No attendance record found")
        session = self._sessions.get_active(record.attendance_id)
        if not session:
            raise ValidationError("No active break found")

        self._finish(session, employee, record, now, BreakStatus.COMPLETED)
        self.recalculate_totals(record.attendance_id)
        return self._sessions.get_by_id(session.session_id)

    def _finish(
        self,
        session: BreakSession,
        employee: Employee,
        record: AttendanceRecord,
        now: datetime,
        status: BreakStatus,
    ) -> None:
        duration = max(minutes_between(session.start_time, now), 0)
        exceeded_duration = False
        exceeded_daily = False
        reason = None

        policy = self.effective_policy(employee, record.date)
        if policy:
            limit = policy.max_duration_per_break
            if limit and duration > limit + policy.grace_period:
                exceeded_duration = True
                reason = f"Break duration exceeded limit of {limit} minutes"
                if not policy.allow_break_overrun:
                    self._attendance.add_policy_violation(
                        record.attendance_id,
                        PolicyViolation(
                            type="break_overrun",
                            message=f"Break duration exceeded: {duration} minutes",
                            at=now,
                            reference_id=session.session_id,
                        ),
                    )
            previous = [s for s in self._sessions.list_for_attendance(record.attendance_id) if s.session_id != session.session_id]
            _, used = _used(previous)
            if policy.max_total_break_duration and used + duration > policy.max_total_break_duration:
                exceeded_daily = True

        if not self._sessions.finish_session(
            session.session_id,
            end_time=now,
            duration=duration,
            status=status,
            exceeded_duration=exceeded_duration,
            exceeded_daily_limit=exceeded_daily,
            violation_reason=reason,
        ):
            raise ValidationError("No active break found")
        if exceeded_duration or exceeded_daily:
            logger.warning(
                "break policy exceeded employee=%s duration=%d daily=%s",
                employee.employee_id,
                duration,
                exceeded_daily,
            )

    def auto_end_active(self, employee_id: str, *, now: Optional[datetime] = None) -> Optional[BreakSession]:
        """Close a break left open at check-out."""
        now = now or now_local()
        record = self._attendance.get_for_employee_and_date(employee_id, now.date())
        if not record:
            return None
        session = self._sessions.get_active(record.attendance_id)
        if not session:
            return None
        self._finish(session, self._employee(employee_id), record, now, BreakStatus.AUTO_COMPLETED)
        self.recalculate_totals(record.attendance_id)
        logger.info("break %s auto-completed at check-out", session.session_id)
        return self._sessions.get_by_id(session.session_id)

    def recalculate_totals(self, attendance_id: str) -> None:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            return
        finished = [s for s in self._sessions.list_for_attendance(attendance_id) if s.is_finished]
        total = sum(s.duration for s in finished)
        unpaid = sum(s.duration for s in finished if not s.is_paid)

        net = None
        if record.check_out is not None:
            worked = minutes_between(record.check_in, record.check_out)
            employee = self._employees.get_by_id(record.employee_id)
            policy = self.effective_policy(employee, record.date) if employee else None
            net = worked - unpaid if policy and policy.deduct_break_time else worked

        self._attendance.update_break_totals(
            attendance_id,
            total_break_minutes=total,
            unpaid_break_minutes=unpaid,
            net_working_minutes=net,
        )

    def today_summary(self, actor: SessionUser, *, now: Optional[datetime] = None) -> Optional[BreakSummary]:
        now = now or now_local()
        employee = self._employee(require_employee_id(actor))
        record = self._attendance.get_for_employee_and_date(employee.employee_id, now.date())
        if not record:
            return None

        sessions = tuple(self._sessions.list_for_attendance(record.attendance_id))
        active = next((s for s in sessions if s.status == BreakStatus.ACTIVE), None)
        count, minutes = _used(sessions)
        policy = self.effective_policy(employee, now.date())

        remaining_breaks = UNLIMITED_REMAINING
        remaining_minutes = UNLIMITED_REMAINING
        if policy and policy.max_breaks_per_day:
            remaining_breaks = max(policy.max_breaks_per_day - count, 0)
        if policy and policy.max_total_break_duration:
            remaining_minutes = max(policy.max_total_break_duration - minutes, 0)

        return BreakSummary(
            active_break=active,
            sessions=sessions,
            breaks_taken=count,
            total_break_minutes=minutes,
            remaining_breaks=remaining_breaks,
            remaining_minutes=remaining_minutes,
            policy=policy,
        )

    def list_for_employee(
        self,
        actor: SessionUser,
        employee_id: str,
        *,
        start_date: date,
        end_date: date,
    ) -> Sequence[BreakSession]:
        employee = self._employee(employee_id)
        if not is_admin(actor):
            if actor.role != Role.MANAGER or employee.manager_id != actor.employee_id:
                raise AuthorizationError("Unauthorized")
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")
        return self._sessions.list_for_employee(employee_id, start_date=start_date, end_date=end_date)

    def analytics(
        self,
        actor: SessionUser,
        *,
        start_date: date,
        end_date: date,
        department: Optional[str] = None,
    ) -> BreakAnalytics:
        ensure_admin(actor)
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")

        employees = {e.employee_id: e for e in self._employees.list_employees()}
        employee_ids = None
        if department:
            employee_ids = [e.employee_id for e in employees.values() if e.department == department]
        sessions = self._sessions.list_finished(start_date=start_date, end_date=end_date, employee_ids=employee_ids)

        by_type: dict[str, int] = {}
        by_department: dict[str, BreakTotals] = {}
        by_date: dict[str, BreakTotals] = {}
        violations: list[BreakViolation] = []
        for s in sessions:
            employee = employees.get(s.employee_id)
            by_type[s.break_type.value] = by_type.get(s.break_type.value, 0) + 1
            dept = (employee.department if employee else None) or "unknown"
            for bucket, key in ((by_department, dept), (by_date, s.date.isoformat())):
                current = bucket.get(key, BreakTotals())
                bucket[key] = BreakTotals(current.count + 1, current.total_minutes + s.duration)
            if s.exceeded_duration or s.exceeded_daily_limit:
                violations.append(
                    BreakViolation(
                        session_id=s.session_id,
                        employee_id=s.employee_id,
                        employee_name=employee.name if employee else "Unknown",
                        date=s.date,
                        break_type=s.break_type,
                        duration=s.duration,
                        exceeded_duration=s.exceeded_duration,
                        exceeded_daily_limit=s.exceeded_daily_limit,
                        violation_reason=s.violation_reason,
                    )
                )

        total_minutes = sum(s.duration for s in sessions)
        return BreakAnalytics(
            start_date=start_date,
            end_date=end_date,
            total_breaks=len(sessions),
            total_break_minutes=total_minutes,
            average_break_minutes=int(total_minutes / len(sessions) + 0.5) if sessions else 0,
            by_type=by_type,
            by_department=by_department,
            by_date=by_date,
            violations=tuple(violations),
        )

    def correct(
        self,
        actor: SessionUser,
        session_id: str,
        *,
        start_time: datetime,
        end_time: datetime,
        reason: str,
    ) -> BreakSession:
        ensure_admin(actor)
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError("Break session not found")
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")
        if not reason or not reason.strip():
            raise ValidationError("Correction reason is required")

        self._sessions.correct_session(
            session_id,
            start_time=start_time,
            end_time=end_time,
            duration=minutes_between(start_time, end_time),
            corrected_by=actor.user_id,
            reason=reason.strip(),
        )
        self.recalculate_totals(session.attendance_id)
        logger.info("break %s corrected by user=%s", session_id, actor.user_id)
        return self._sessions.get_by_id(session_id)


class BreakPolicyService:
    def __init__(self, policies: BreakPolicyRepository):
        self._policies = policies

    def list_policies(self, actor: SessionUser) -> Sequence[BreakPolicy]:
        ensure_admin(actor)
        return self._policies.list_policies()

    @staticmethod
    def _check(data: dict) -> None:
        if data.get("effective_from") and data.get("effective_to") and data["effective_to"] < data["effective_from"]:
            raise ValidationError("effectiveTo cannot be before effectiveFrom")
        scope = data.get("scope")
        if scope is not None and BreakScope(scope) != BreakScope.GLOBAL and not data.get("scope_ids"):
            raise ValidationError("scopeIds are required for role and employee policies")

    def create_policy(self, actor: SessionUser, data: dict) -> BreakPolicy:
        ensure_admin(actor)
        self._check(data)
        policy_id = self._policies.create_policy(data, created_by=actor.user_id)
        logger.info("break policy created id=%s scope=%s", policy_id, data.get("scope"))
        return self._policies.get_by_id(policy_id)

    def update_policy(self, actor: SessionUser, policy_id: str, fields: dict) -> BreakPolicy:
        ensure_admin(actor)
        current = self._policies.get_by_id(policy_id)
        if not current:
            raise NotFoundError("Break policy not found")
        self._check({"scope": current.scope, "scope_ids": current.scope_ids, **fields})
        self._policies.update_policy(policy_id, fields)
        return self._policies.get_by_id(policy_id)

    def delete_policy(self, actor: SessionUser, policy_id: str) -> None:
        ensure_admin(actor)
        if not self._policies.delete_policy(policy_id):
            raise NotFoundError("Break policy not found")
