from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import Leave, LeaveBalance


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: str) -> Optional[Leave]:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        employee_ids: Optional[Sequence[str]] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[Leave]:
        raise NotImplementedError

    def find_overlapping(
        self,
        employee_id: str,
        start_date: date,
        end_date: date,
        *,
        statuses: Iterable[LeaveStatus],
    ) -> Sequence[Leave]:
        raise NotImplementedError

    def update_status(
        self,
        leave_id: str,
        *,
        expected: LeaveStatus,
        status: LeaveStatus,
        decided_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Compare-and-set on status; returns False when the leave was not in `expected`."""

        raise NotImplementedError


class LeaveBalanceRepository(Protocol):
    def get_balance(self, employee_id: str, leave_type: LeaveType, year: int) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: str, year: int) -> Sequence[LeaveBalance]:
        raise NotImplementedError

    def set_total(self, employee_id: str, leave_type: LeaveType, year: int, total_days: float) -> None:
        raise NotImplementedError

    def add_used(self, employee_id: str, leave_type: LeaveType, year: int, delta: float) -> None:
        raise NotImplementedError
