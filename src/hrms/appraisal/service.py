from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.permissions import ensure_admin, is_admin, require_employee_id
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..employees.repository import EmployeeRepository
from ..notifications.model import NotificationType
from ..notifications.service import NotificationService
from ..users.model import SessionUser
from .model import (
    AppraisalCycle,
    CompetencyType,
    CycleStatus,
    ManagerReview,
    ReviewStatus,
    SelfReview,
)
from .repository import CycleRepository, ManagerReviewRepository, SelfReviewRepository

logger = get_logger("hrms.appraisal")

_STATUS_NOTICES = {
    CycleStatus.OPEN_SELF_REVIEW: (
        NotificationType.CYCLE_STARTED,
        "New Appraisal Cycle Started",
        'The appraisal cycle "{name}" is now open for self-review. Please submit your self-assessment.',
    ),
    CycleStatus.OPEN_MANAGER_REVIEW: (
        NotificationType.REVIEW_PENDING,
        "Manager Review Phase Started",
        'The appraisal cycle "{name}" is now open for manager review. Please review your team members.',
    ),
    CycleStatus.CLOSED: (
        NotificationType.CYCLE_CLOSED,
        "Appraisal Cycle Closed",
        'The appraisal cycle "{name}" has been closed. View your final ratings.',
    ),
}

_VISIBLE_BY_ROLE = {
    Role.EMPLOYEE: (CycleStatus.OPEN_SELF_REVIEW, CycleStatus.CLOSED),
    Role.MANAGER: (CycleStatus.OPEN_MANAGER_REVIEW, CycleStatus.CLOSED),
}


def check_ratings(cycle: AppraisalCycle, ratings: Dict[str, Any]) -> None:
    """Rating competencies take whole numbers from 1 to their max rating."""
    for competency in cycle.competencies:
        if competency.type != CompetencyType.RATING or competency.name not in ratings:
            continue
        value = ratings[competency.name]
        top = competency.max_rating or 5
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 1 <= value <= top:
            raise ValidationError(f"Rating for {competency.name} must be between 1 and {top}")


class CycleService:
    def __init__(self, cycles: CycleRepository, notifications: NotificationService):
        self._cycles = cycles
        self._notifications = notifications

    def get(self, cycle_id: str) -> AppraisalCycle:
        cycle = self._cycles.get_by_id(cycle_id)
        if not cycle:
            raise NotFoundError("Cycle not found")
        return cycle

    def list_cycles(self, actor: SessionUser) -> Sequence[AppraisalCycle]:
        ensure_admin(actor)
        return self._cycles.list_cycles()

    def active(self, actor: SessionUser, *, status: Optional[CycleStatus] = None) -> Sequence[AppraisalCycle]:
        if status is not None:
            return self._cycles.list_cycles(statuses=[status])
        return self._cycles.list_cycles(statuses=_VISIBLE_BY_ROLE.get(actor.role))

    def create(self, actor: SessionUser, data: dict) -> AppraisalCycle:
        ensure_admin(actor)
        if data["end_date"] < data["start_date"]:
            raise ValidationError("End date must be on or after start date")
        cycle_id = self._cycles.create_cycle(data, created_by=actor.user_id)
        cycle = self.get(cycle_id)
        logger.info("appraisal cycle %s created status=%s", cycle_id, cycle.status.value)
        if cycle.status != CycleStatus.DRAFT:
            self._announce(cycle)
        return cycle

    def update(self, actor: SessionUser, cycle_id: str, fields: dict) -> AppraisalCycle:
        ensure_admin(actor)
        current = self.get(cycle_id)
        start = fields.get("start_date") or current.start_date
        end = fields.get("end_date") or current.end_date
        if end < start:
            raise ValidationError("End date must be on or after start date")
        self._cycles.update_cycle(cycle_id, fields)
        cycle = self.get(cycle_id)
        if cycle.status != current.status:
            logger.info("appraisal cycle %s status %s -> %s", cycle_id, current.status.value, cycle.status.value)
            self._announce(cycle)
        return cycle

    def delete(self, actor: SessionUser, cycle_id: str) -> None:
        ensure_admin(actor)
        if not self._cycles.delete_cycle(cycle_id):
            raise NotFoundError("Cycle not found")

    def _announce(self, cycle: AppraisalCycle) -> None:
        notice = _STATUS_NOTICES.get(cycle.status)
        if notice is None:
            return
        type_, title, message = notice
        sent = self._notifications.notify_all_active(type_, title, message.format(name=cycle.name), related_id=cycle.cycle_id)
        logger.info("cycle %s announced to %d users", cycle.cycle_id, sent)


class ReviewService:
    def __init__(
        self,
        cycles: CycleRepository,
        self_reviews: SelfReviewRepository,
        manager_reviews: ManagerReviewRepository,
        employees: EmployeeRepository,
        notifications: NotificationService,
    ):
        self._cycles = cycles
        self._self = self_reviews
        self._manager = manager_reviews
        self._employees = employees
        self._notifications = notifications

    def _cycle(self, cycle_id: str) -> AppraisalCycle:
        cycle = self._cycles.get_by_id(cycle_id)
        if not cycle:
            raise NotFoundError("Cycle not found")
        return cycle

    def my_self_reviews(self, actor: SessionUser, *, cycle_id: Optional[str] = None) -> Sequence[SelfReview]:
        return self._self.list_reviews(employee_ids=[require_employee_id(actor)], cycle_id=cycle_id)

    def save_self_review(
        self,
        actor: SessionUser,
        *,
        cycle_id: str,
        ratings: Dict[str, Any],
        comments: str = "",
        submit: bool = False,
        now: Optional[datetime] = None,
    ) -> SelfReview:
        employee_id = require_employee_id(actor)
        cycle = self._cycle(cycle_id)
        if submit and cycle.status != CycleStatus.OPEN_SELF_REVIEW:
            raise ValidationError("Cycle is not open for self review")
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        existing = self._self.get(cycle_id, employee_id)
        if existing and existing.status == ReviewStatus.SUBMITTED:
            raise ValidationError("Cannot edit submitted review")
        check_ratings(cycle, ratings)

        review = SelfReview(
            review_id=existing.review_id if existing else "",
            cycle_id=cycle_id,
            employee_id=employee_id,
            ratings=dict(ratings),
            comments=(comments or "").strip(),
            status=ReviewStatus.SUBMITTED if submit else ReviewStatus.DRAFT,
            submitted_at=(now or now_local()) if submit else None,
        )
        self._self.save(review)
        if submit:
            logger.info("self review submitted cycle=%s employee=%s", cycle_id, employee_id)
            self._notifications.notify_employee(
                employee.manager_id,
                NotificationType.REVIEW_SUBMITTED,
                "Self Review Submitted",
                f"{employee.name} submitted a self review for {cycle.name}.",
                related_id=cycle_id,
            )
        return self._self.get(cycle_id, employee_id)

    def team_self_reviews(self, actor: SessionUser, *, cycle_id: str) -> Sequence[SelfReview]:
        if not cycle_id:
            raise ValidationError("Cycle ID is required")
        if is_admin(actor):
            return self._self.list_reviews(cycle_id=cycle_id)
        if actor.role != Role.MANAGER:
            raise AuthorizationError("Unauthorized")
        manager_id = require_employee_id(actor)
        team = [e.employee_id for e in self._employees.list_employees(manager_id=manager_id, is_active=True)]
        return self._self.list_reviews(employee_ids=team, cycle_id=cycle_id)

    def manager_reviews(
        self,
        actor: SessionUser,
        *,
        cycle_id: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> Sequence[ManagerReview]:
        """Managers see the reviews they wrote; employees see their own once the cycle is closed."""
        if is_admin(actor):
            return self._manager.list_reviews(employee_id=employee_id, cycle_id=cycle_id)
        own_id = require_employee_id(actor)
        if actor.role == Role.MANAGER:
            return self._manager.list_reviews(manager_id=own_id, employee_id=employee_id, cycle_id=cycle_id)
        reviews = self._manager.list_reviews(employee_id=own_id, cycle_id=cycle_id)
        closed = {c.cycle_id for c in self._cycles.list_cycles(statuses=[CycleStatus.CLOSED])}
        return [r for r in reviews if r.status == ReviewStatus.SUBMITTED and r.cycle_id in closed]

    def save_manager_review(
        self,
        actor: SessionUser,
        *,
        cycle_id: str,
        employee_id: str,
        ratings: Dict[str, Any],
        final_rating: Optional[int] = None,
        manager_comments: str = "",
        submit: bool = False,
        now: Optional[datetime] = None,
    ) -> ManagerReview:
        if actor.role not in (Role.MANAGER, Role.HR, Role.SUPER_ADMIN):
            raise AuthorizationError("Unauthorized")
        cycle = self._cycle(cycle_id)
        if submit and cycle.status != CycleStatus.OPEN_MANAGER_REVIEW:
            raise ValidationError("Cycle is not open for manager review")

        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        if not is_admin(actor) and employee.manager_id != actor.employee_id:
            raise AuthorizationError("You are not the manager of this employee")

        if final_rating is not None and not 1 <= final_rating <= 5:
            raise ValidationError("Final rating must be between 1 and 5")
        comments = (manager_comments or "").strip()
        if submit and (final_rating is None or not comments):
            raise ValidationError("Final rating and manager comments are required to submit")

        existing = self._manager.get(cycle_id, employee_id)
        if existing and existing.status == ReviewStatus.SUBMITTED:
            raise ValidationError("Cannot edit submitted review")
        check_ratings(cycle, ratings)

        reviewer = actor.employee_id or employee.manager_id
        if not reviewer:
            raise ValidationError("Employee has no manager assigned")
        review = ManagerReview(
            review_id=existing.review_id if existing else "",
            cycle_id=cycle_id,
            employee_id=employee_id,
            manager_id=reviewer,
            ratings=dict(ratings),
            final_rating=final_rating,
            manager_comments=comments,
            status=ReviewStatus.SUBMITTED if submit else ReviewStatus.DRAFT,
            submitted_at=(now or now_local()) if submit else None,
        )
        self._manager.save(review)
        if submit:
            logger.info("manager review submitted cycle=%s employee=%s by=%s", cycle_id, employee_id, actor.user_id)
        return self._manager.get(cycle_id, employee_id)
