from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import (
    Candidate,
    CandidateStatus,
    Feedback,
    Interview,
    InterviewStatus,
    JobRequisition,
    Offer,
    OfferStatus,
    RequisitionStatus,
    StatusChange,
)


class JobRequisitionRepository(Protocol):
    def get_by_id(self, requisition_id: str) -> Optional[JobRequisition]:
        raise NotImplementedError

    def get_by_token(self, public_token: str) -> Optional[JobRequisition]:
        raise NotImplementedError

    def list_requisitions(
        self,
        *,
        status: Optional[RequisitionStatus] = None,
        hiring_manager_id: Optional[str] = None,
    ) -> Sequence[JobRequisition]:
        """Active requisitions only, newest first."""

        raise NotImplementedError

    def create_requisition(self, data: dict, *, code: str, public_token: str, created_by: str) -> str:
        raise NotImplementedError

    def update_requisition(self, requisition_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def increment_filled(self, requisition_id: str) -> None:
        raise NotImplementedError


class CandidateRepository(Protocol):
    def get_by_id(self, candidate_id: str) -> Optional[Candidate]:
        raise NotImplementedError

    def find_application(self, requisition_id: str, email: str) -> Optional[Candidate]:
        raise NotImplementedError

    def list_candidates(
        self,
        *,
        requisition_ids: Optional[Sequence[str]] = None,
        status: Optional[CandidateStatus] = None,
    ) -> Sequence[Candidate]:
        raise NotImplementedError

    def create_candidate(self, data: dict, *, code: str) -> str:
        raise NotImplementedError

    def update_candidate(self, candidate_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def change_status(self, candidate_id: str, *, expected: CandidateStatus, change: StatusChange) -> bool:
        """Compare-and-set the status and append the change to the history."""

        raise NotImplementedError


class InterviewRepository(Protocol):
    def get_by_id(self, interview_id: str) -> Optional[Interview]:
        raise NotImplementedError

    def list_interviews(
        self,
        *,
        candidate_ids: Optional[Sequence[str]] = None,
        interviewer_id: Optional[str] = None,
        status: Optional[InterviewStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Interview]:
        raise NotImplementedError

    def find_conflicts(
        self,
        interviewer_ids: Iterable[str],
        start: datetime,
        end: datetime,
        *,
        exclude_id: Optional[str] = None,
    ) -> Sequence[Interview]:
        """Busy interviews of any of the interviewers overlapping [start, end)."""

        raise NotImplementedError

    def create_interview(self, data: dict, *, code: str, scheduled_by: str) -> str:
        raise NotImplementedError

    def update_interview(self, interview_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def add_feedback_submitter(self, interview_id: str, user_id: str) -> None:
        raise NotImplementedError


class FeedbackRepository(Protocol):
    def get(self, interview_id: str, interviewer_id: str) -> Optional[Feedback]:
        raise NotImplementedError

    def list_feedback(
        self,
        *,
        candidate_id: Optional[str] = None,
        interview_id: Optional[str] = None,
        interviewer_id: Optional[str] = None,
        submitted_only: bool = False,
    ) -> Sequence[Feedback]:
        raise NotImplementedError

    def save(self, feedback: Feedback) -> str:
        """Upsert keyed on (interview, interviewer)."""

        raise NotImplementedError


class OfferRepository(Protocol):
    def get_by_id(self, offer_id: str) -> Optional[Offer]:
        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[Offer]:
        raise NotImplementedError

    def list_offers(
        self,
        *,
        candidate_id: Optional[str] = None,
        status: Optional[OfferStatus] = None,
    ) -> Sequence[Offer]:
        raise NotImplementedError

    def find_active(self, candidate_id: str) -> Optional[Offer]:
        raise NotImplementedError

    def create_offer(self, data: dict, *, code: str, token: str, created_by: str) -> str:
        raise NotImplementedError

    def update_offer(self, offer_id: str, fields: dict) -> bool:
        raise NotImplementedError
