from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


class RequisitionStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    ON_HOLD = "on_hold"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class CandidateStatus(str, Enum):
    """Hiring pipeline stage of a candidate."""

    APPLIED = "applied"
    SCREENING = "screening"
    SHORTLISTED = "shortlisted"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_IN_PROGRESS = "interview_in_progress"
    INTERVIEW_COMPLETED = "interview_completed"
    OFFER_PENDING = "offer_pending"
    OFFER_SENT = "offer_sent"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_REJECTED = "offer_rejected"
    OFFER_EXPIRED = "offer_expired"
    SELECTED = "selected"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class InterviewStatus(str, Enum):
    SCHEDULED = "scheduled"
    RESCHEDULED = "rescheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


BUSY_INTERVIEW_STATUSES = (InterviewStatus.SCHEDULED, InterviewStatus.RESCHEDULED, InterviewStatus.IN_PROGRESS)


class InterviewMode(str, Enum):
    IN_PERSON = "in_person"
    VIDEO = "video"
    PHONE = "phone"


class Recommendation(str, Enum):
    HIRE = "hire"
    MAYBE = "maybe"
    REJECT = "reject"


class OfferStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    WITHDRAWN = "withdrawn"


ACTIVE_OFFER_STATUSES = (OfferStatus.DRAFT, OfferStatus.PENDING_APPROVAL, OfferStatus.APPROVED, OfferStatus.SENT)


@dataclass(frozen=True)
class EvaluationCriterion:
    name: str
    weightage: Optional[float] = None


@dataclass(frozen=True)
class InterviewRound:
    name: str
    order: int
    round_type: str = "technical"
    duration_minutes: int = 60
    criteria: Tuple[EvaluationCriterion, ...] = ()


@dataclass(frozen=True)
class JobRequisition:
    requisition_id: str
    code: str
    job_title: str
    department: str
    location: str = ""
    employment_type: str = "full_time"
    description: str = ""
    requirements: Tuple[str, ...] = ()
    required_skills: Tuple[str, ...] = ()
    hiring_manager_id: Optional[str] = None
    number_of_positions: int = 1
    positions_filled: int = 0
    interview_rounds: Tuple[InterviewRound, ...] = ()
    status: RequisitionStatus = RequisitionStatus.DRAFT
    public_token: Optional[str] = None
    allow_public_applications: bool = False
    public_application_deadline: Optional[date] = None
    expected_start_date: Optional[date] = None
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def round(self, order: int) -> Optional[InterviewRound]:
        return next((r for r in self.interview_rounds if r.order == order), None)


@dataclass(frozen=True)
class StatusChange:
    status: CandidateStatus
    changed_at: datetime
    changed_by: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    candidate_id: str
    code: str
    first_name: str
    last_name: str
    email: str
    requisition_id: str
    applied_position: str
    phone: str = ""
    source: str = "direct"
    status: CandidateStatus = CandidateStatus.APPLIED
    current_stage: Optional[str] = None
    overall_score: Optional[int] = None
    total_experience: Optional[float] = None
    current_company: Optional[str] = None
    expected_ctc: Optional[float] = None
    notice_period_days: Optional[int] = None
    status_history: Tuple[StatusChange, ...] = ()
    onboarding_request_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Interview:
    interview_id: str
    code: str
    candidate_id: str
    requisition_id: str
    round_name: str
    round_order: int
    round_type: str
    start_time: datetime
    end_time: datetime
    mode: InterviewMode
    interviewers: Tuple[str, ...]
    primary_interviewer_id: Optional[str] = None
    location: Optional[str] = None
    interview_link: Optional[str] = None
    status: InterviewStatus = InterviewStatus.SCHEDULED
    reschedule_count: int = 0
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    feedback_submitted_by: Tuple[str, ...] = ()
    scheduled_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def has_interviewer(self, user_id: str) -> bool:
        return user_id in self.interviewers or user_id == self.primary_interviewer_id


@dataclass(frozen=True)
class CriterionRating:
    criterion: str
    rating: int
    weightage: Optional[float] = None
    comments: Optional[str] = None


@dataclass(frozen=True)
class Feedback:
    feedback_id: str
    interview_id: str
    candidate_id: str
    interviewer_id: str
    requisition_id: str
    round_name: str
    round_order: int
    criterion_ratings: Tuple[CriterionRating, ...]
    recommendation: Recommendation
    overall_score: int
    overall_comments: str = ""
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    is_submitted: bool = False
    submitted_at: Optional[datetime] = None
    version: int = 1


@dataclass(frozen=True)
class Compensation:
    annual_ctc: float
    base_salary: Optional[float] = None
    variable_pay: Optional[float] = None
    joining_bonus: Optional[float] = None
    currency: str = "INR"


@dataclass(frozen=True)
class Offer:
    offer_id: str
    code: str
    candidate_id: str
    requisition_id: str
    job_title: str
    department: str
    compensation: Compensation
    start_date: date
    valid_until: date
    offer_token: str
    status: OfferStatus = OfferStatus.DRAFT
    location: Optional[str] = None
    employment_type: str = "full_time"
    created_by: Optional[str] = None
    created_for: Optional[str] = None
    approved_by: Optional[str] = None
    sent_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    candidate_comments: Optional[str] = None
    withdrawn_reason: Optional[str] = None
    onboarding_request_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_OFFER_STATUSES
