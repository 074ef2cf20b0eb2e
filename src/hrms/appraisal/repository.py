from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import AppraisalCycle, CycleStatus, ManagerReview, SelfReview


class CycleRepository(Protocol):
    def get_by_id(self, cycle_id: str) -> Optional[AppraisalCycle]:
        raise NotImplementedError

    def list_cycles(self, *, statuses: Optional[Iterable[CycleStatus]] = None) -> Sequence[AppraisalCycle]:
        raise NotImplementedError

    def create_cycle(self, data: dict, *, created_by: str) -> str:
        raise NotImplementedError

    def update_cycle(self, cycle_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def delete_cycle(self, cycle_id: str) -> bool:
        raise NotImplementedError


class SelfReviewRepository(Protocol):
    def get(self, cycle_id: str, employee_id: str) -> Optional[SelfReview]:
        raise NotImplementedError

    def list_reviews(
        self,
        *,
        employee_ids: Optional[Sequence[str]] = None,
        cycle_id: Optional[str] = None,
    ) -> Sequence[SelfReview]:
        raise NotImplementedError

    def save(self, review: SelfReview) -> str:
        """Upsert keyed by (cycle, employee)."""

        raise NotImplementedError


class ManagerReviewRepository(Protocol):
    def get(self, cycle_id: str, employee_id: str) -> Optional[ManagerReview]:
        raise NotImplementedError

    def list_reviews(
        self,
        *,
        manager_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        cycle_id: Optional[str] = None,
    ) -> Sequence[ManagerReview]:
        raise NotImplementedError

    def save(self, review: ManagerReview) -> str:
        raise NotImplementedError
