from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import BreakPolicy, BreakSession, BreakStatus, BreakType


class BreakPolicyRepository(Protocol):
    def get_by_id(self, policy_id: str) -> Optional[BreakPolicy]:
        raise NotImplementedError

    def list_policies(self, *, active_only: bool = False) -> Sequence[BreakPolicy]:
        raise NotImplementedError

    def create_policy(self, data: dict, *, created_by: Optional[str] = None) -> str:
        raise NotImplementedError

    def update_policy(self, policy_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def delete_policy(self, policy_id: str) -> bool:
        raise NotImplementedError


class BreakSessionRepository(Protocol):
    def get_by_id(self, session_id: str) -> Optional[BreakSession]:
        raise NotImplementedError

    def get_active(self, attendance_id: str) -> Optional[BreakSession]:
        raise NotImplementedError

    def list_for_attendance(self, attendance_id: str) -> Sequence[BreakSession]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: str, *, start_date: date, end_date: date) -> Sequence[BreakSession]:
        raise NotImplementedError

    def list_finished(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[BreakSession]:
        """Completed and auto-completed sessions dated within the range."""

        raise NotImplementedError

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
        raise NotImplementedError

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
        """Close an active session. Returns False when it was not active."""

        raise NotImplementedError

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
        raise NotImplementedError
