from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class CycleStatus(str, Enum):
    DRAFT = "draft"
    OPEN_SELF_REVIEW = "open_self_review"
    OPEN_MANAGER_REVIEW = "open_manager_review"
    CLOSED = "closed"


class CompetencyType(str, Enum):
    RATING = "rating"
    TEXT = "text"


class ReviewStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class Competency:
    name: str
    type: CompetencyType
    max_rating: Optional[int] = None


@dataclass(frozen=True)
class AppraisalCycle:
    cycle_id: str
    name: str
    start_date: date
    end_date: date
    status: CycleStatus = CycleStatus.DRAFT
    competencies: Tuple[Competency, ...] = ()
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SelfReview:
    review_id: str
    cycle_id: str
    employee_id: str
    ratings: Dict[str, Any] = field(default_factory=dict)
    comments: str = ""
    status: ReviewStatus = ReviewStatus.DRAFT
    submitted_at: Optional[datetime] = None


@dataclass(frozen=True)
class ManagerReview:
    review_id: str
    cycle_id: str
    employee_id: str
    manager_id: str
    ratings: Dict[str, Any] = field(default_factory=dict)
    final_rating: Optional[int] = None
    manager_comments: str = ""
    status: ReviewStatus = ReviewStatus.DRAFT
    submitted_at: Optional[datetime] = None
