from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import RosterEntry, Shift, ShiftAssignment, ShiftSwap, SwapStatus


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: str) -> Optional[Shift]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Shift]:
        raise NotImplementedError

    def list_shifts(self, *, active_only: bool = False) -> Sequence[Shift]:
        raise NotImplementedError

    def create_shift(self, data: dict, *, created_by: Optional[str] = None) -> str:
        """data uses Shift attribute names."""

        raise NotImplementedError

    def update_shift(self, shift_id: str, fields: dict) -> bool:
        raise NotImplementedError


class ShiftAssignmentRepository(Protocol):
    def get_by_id(self, assignment_id: str) -> Optional[ShiftAssignment]:
        raise NotImplementedError

    def create_assignment(self, data: dict, *, created_by: Optional[str] = None) -> str:
        raise NotImplementedError

    def list_assignments(
        self,
        *,
        employee_id: Optional[str] = None,
        shift_id: Optional[str] = None,
        active_only: bool = True,
    ) -> Sequence[ShiftAssignment]:
        raise NotImplementedError

    def list_candidates(
        self,
        *,
        employee_id: str,
        manager_id: Optional[str],
        role: Optional[str],
    ) -> Sequence[ShiftAssignment]:
        """Active assignments that may apply to the employee at any scope."""

        raise NotImplementedError

    def deactivate(self, assignment_id: str) -> bool:
        raise NotImplementedError


class RosterRepository(Protocol):
    def get_by_id(self, roster_id: str) -> Optional[RosterEntry]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: str, work_date: date) -> Optional[RosterEntry]:
        raise NotImplementedError

    def list_entries(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[RosterEntry]:
        raise NotImplementedError

    def upsert_entry(
        self,
        *,
        employee_id: str,
        work_date: date,
        shift_id: Optional[str],
        is_weekly_off: bool = False,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def delete_entry(self, roster_id: str) -> bool:
        raise NotImplementedError


class ShiftSwapRepository(Protocol):
    def get_by_id(self, swap_id: str) -> Optional[ShiftSwap]:
        raise NotImplementedError

    def create_swap(
        self,
        *,
        requester_id: str,
        requestee_id: str,
        requester_date: date,
        requestee_date: date,
        requester_shift_id: str,
        requestee_shift_id: str,
        reason: str,
    ) -> str:
        raise NotImplementedError

    def list_swaps(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Optional[SwapStatus] = None,
    ) -> Sequence[ShiftSwap]:
        raise NotImplementedError

    def review_swap(
        self,
        swap_id: str,
        *,
        status: SwapStatus,
        reviewed_by: str,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Only transitions a pending swap; returns False otherwise."""

        raise NotImplementedError
