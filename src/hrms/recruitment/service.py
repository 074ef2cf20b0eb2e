from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.identifiers import generate_token, yearly_code
from ..common.permissions import ensure_admin, is_admin
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..database.repository import SequenceRepository
from ..employees.repository import EmployeeRepository
from ..notifications.model import NotificationType
from ..notifications.service import AuditService, NotificationService
from ..onboarding.service import OnboardingService
from ..users.model import SessionUser
from ..users.repository import UserRepository
from . import state_machine
from .model import (
    Candidate,
    CandidateStatus,
    Compensation,
    CriterionRating,
    EvaluationCriterion,
    Feedback,
    Interview,
    InterviewMode,
    InterviewRound,
    InterviewStatus,
    JobRequisition,
    Offer,
    OfferStatus,
    Recommendation,
    RequisitionStatus,
    StatusChange,
)
from .repository import (
    CandidateRepository,
    FeedbackRepository,
    InterviewRepository,
    JobRequisitionRepository,
    OfferRepository,
)
from .scoring import candidate_score, feedback_score

logger = get_logger("hrms.recruitment")

AUDIT_MODULE = "recruitment"


def next_code(sequences: SequenceRepository, prefix: str, year: int) -> str:
    return yearly_code(prefix, year, sequences.next_value(f"{prefix.lower()}-{year}"))


def build_rounds(raw: Iterable[dict]) -> tuple:
    rounds = tuple(
        InterviewRound(
            name=r["name"],
            order=int(r["order"]),
            round_type=r.get("round_type") or "technical",
            duration_minutes=int(r.get("duration_minutes") or 60),
            criteria=tuple(EvaluationCriterion(c["name"], c.get("weightage")) for c in r.get("criteria") or ()),
        )
        for r in raw
    )
    orders = sorted(r.order for r in rounds)
    if orders != list(range(1, len(orders) + 1)):
        raise ValidationError("Interview rounds must have sequential order starting from 1")
    return rounds


class JobRequisitionService:
    """Use case: HR opens positions, hiring managers follow their own."""

    def __init__(
        self,
        requisitions: JobRequisitionRepository,
        employees: EmployeeRepository,
        sequences: SequenceRepository,
        audit: AuditService,
    ):
        self._requisitions = requisitions
        self._employees = employees
        self._sequences = sequences
        self._audit = audit

    def find(self, requisition_id: str) -> JobRequisition:
        requisition = self._requisitions.get_by_id(requisition_id)
        if not requisition or not requisition.is_active:
            raise NotFoundError("Job requisition not found or inactive")
        return requisition

    def get_for(self, actor: SessionUser, requisition_id: str) -> JobRequisition:
        requisition = self.find(requisition_id)
        if is_admin(actor) or (actor.employee_id and requisition.hiring_manager_id == actor.employee_id):
            return requisition
        raise AuthorizationError("Unauthorized")

    def list_for(self, actor: SessionUser, *, status: Optional[RequisitionStatus] = None) -> Sequence[JobRequisition]:
        if is_admin(actor):
            return self._requisitions.list_requisitions(status=status)
        if actor.role == Role.MANAGER and actor.employee_id:
            return self._requisitions.list_requisitions(status=status, hiring_manager_id=actor.employee_id)
        raise AuthorizationError("Unauthorized")

    def _check_manager(self, manager_id: Optional[str]) -> None:
        if not manager_id:
            return
        manager = self._employees.get_by_id(manager_id)
        if not manager or not manager.is_active:
            raise ValidationError("Hiring manager not found or inactive")

    def create(self, actor: SessionUser, data: dict) -> JobRequisition:
        ensure_admin(actor)
        data = dict(data)
        self._check_manager(data.get("hiring_manager_id"))
        data["interview_rounds"] = build_rounds(data.get("interview_rounds") or ())
        code = next_code(self._sequences, "REQ", now_local().year)
        requisition_id = self._requisitions.create_requisition(
            data, code=code, public_token=generate_token(), created_by=actor.user_id
        )
        self._audit.record(
            AUDIT_MODULE,
            "requisition_created",
            f"Job requisition {code} created for {data['job_title']}",
            entity_id=requisition_id,
            performed_by=actor.user_id,
        )
        logger.info("job requisition %s created id=%s", code, requisition_id)
        return self.find(requisition_id)

    def update(self, actor: SessionUser, requisition_id: str, fields: dict) -> JobRequisition:
        ensure_admin(actor)
        current = self.find(requisition_id)
        fields = dict(fields)
        if "hiring_manager_id" in fields:
            self._check_manager(fields["hiring_manager_id"])
        if "interview_rounds" in fields:
            fields["interview_rounds"] = build_rounds(fields["interview_rounds"] or ())
        if fields:
            self._requisitions.update_requisition(requisition_id, fields)
        if "status" in fields and RequisitionStatus(fields["status"]) != current.status:
            self._audit.record(
                AUDIT_MODULE,
                "requisition_status_changed",
                f"Job requisition {current.code} moved to {RequisitionStatus(fields['status']).value}",
                entity_id=requisition_id,
                performed_by=actor.user_id,
                metadata={"from": current.status.value},
            )
        return self.find(requisition_id)

    def delete(self, actor: SessionUser, requisition_id: str) -> None:
        ensure_admin(actor)
        self.find(requisition_id)
        self._requisitions.update_requisition(requisition_id, {"is_active": False})
        logger.info("job requisition %s deactivated by user=%s", requisition_id, actor.user_id)

    def record_hire(self, requisition: JobRequisition) -> None:
        self._requisitions.increment_filled(requisition.requisition_id)
        if requisition.positions_filled + 1 >= requisition.number_of_positions:
            self._requisitions.update_requisition(requisition.requisition_id, {"status": RequisitionStatus.CLOSED})
            logger.info("job requisition %s filled and closed", requisition.code)


class CandidateService:
    """Candidate records and every pipeline status change."""

    def __init__(
        self,
        candidates: CandidateRepository,
        requisitions: JobRequisitionService,
        sequences: SequenceRepository,
        audit: AuditService,
    ):
        self._candidates = candidates
        self._requisitions = requisitions
        self._sequences = sequences
        self._audit = audit

    def find(self, candidate_id: str) -> Candidate:
        candidate = self._candidates.get_by_id(candidate_id)
        if not candidate:
            raise NotFoundError("Candidate not found")
        return candidate

    def _visible(self, actor: SessionUser, candidate: Candidate) -> bool:
        if is_admin(actor):
            return True
        requisition = self._requisitions.find(candidate.requisition_id)
        return bool(actor.employee_id) and requisition.hiring_manager_id == actor.employee_id

    def get_for(self, actor: SessionUser, candidate_id: str) -> Candidate:
        candidate = self.find(candidate_id)
        if not self._visible(actor, candidate):
            raise AuthorizationError("Unauthorized")
        return candidate

    def list_for(
        self,
        actor: SessionUser,
        *,
        requisition_id: Optional[str] = None,
        status: Optional[CandidateStatus] = None,
    ) -> Sequence[Candidate]:
        if requisition_id:
            self._requisitions.get_for(actor, requisition_id)
            return self._candidates.list_candidates(requisition_ids=[requisition_id], status=status)
        if is_admin(actor):
            return self._candidates.list_candidates(status=status)
        own = [r.requisition_id for r in self._requisitions.list_for(actor)]
        return self._candidates.list_candidates(requisition_ids=own, status=status)

    def register(self, requisition: JobRequisition, data: dict, *, source: str) -> Candidate:
        """Create a candidate for an application; one application per email and requisition."""
        if self._candidates.find_application(requisition.requisition_id, data["email"]):
            raise ConflictError("Candidate with this email already applied for this position")
        data = {
            **data,
            "email": data["email"].lower(),
            "requisition_id": requisition.requisition_id,
            "applied_position": requisition.job_title,
            "source": source,
        }
        code = next_code(self._sequences, "CAN", now_local().year)
        candidate_id = self._candidates.create_candidate(data, code=code)
        logger.info("candidate %s applied for requisition=%s source=%s", code, requisition.code, source)
        return self.find(candidate_id)

    def create(self, actor: SessionUser, data: dict) -> Candidate:
        ensure_admin(actor)
        requisition = self._requisitions.find(data["requisition_id"])
        if requisition.status != RequisitionStatus.OPEN:
            raise ValidationError("Job requisition is not open for applications")
        data = {k: v for k, v in data.items() if k != "requisition_id"}
        source = data.pop("source", None) or "direct"
        candidate = self.register(requisition, data, source=source)
        self._audit.record(
            AUDIT_MODULE,
            "candidate_created",
            f"Candidate {candidate.code} added to {requisition.code}",
            entity_id=candidate.candidate_id,
            performed_by=actor.user_id,
        )
        return candidate

    def update(self, actor: SessionUser, candidate_id: str, fields: dict) -> Candidate:
        ensure_admin(actor)
        self.find(candidate_id)
        fields = {k: v for k, v in fields.items() if k not in ("status", "requisition_id", "email")}
        if fields:
            self._candidates.update_candidate(candidate_id, fields)
        return self.find(candidate_id)

    def move(
        self,
        candidate: Candidate,
        target: CandidateStatus,
        *,
        by: Optional[str],
        notes: Optional[str] = None,
        checked: bool = True,
    ) -> Candidate:
        """Apply a status change. checked=False is for moves already authorized by a pipeline guard."""
        if candidate.status == target:
            return candidate
        if checked:
            state_machine.transition(candidate.status, target)
        change = StatusChange(status=target, changed_at=now_local(), changed_by=by, notes=notes)
        if not self._candidates.change_status(candidate.candidate_id, expected=candidate.status, change=change):
            raise ConflictError("Candidate status changed concurrently, please retry")
        logger.info("candidate %s %s -> %s", candidate.code, candidate.status.value, target.value)
        return self.find(candidate.candidate_id)

    def change_status(
        self,
        actor: SessionUser,
        candidate_id: str,
        status: CandidateStatus,
        *,
        notes: Optional[str] = None,
    ) -> Candidate:
        candidate = self.get_for(actor, candidate_id)
        updated = self.move(candidate, status, by=actor.user_id, notes=notes)
        self._audit.record(
            AUDIT_MODULE,
            "candidate_status_changed",
            f"Candidate {candidate.code} moved from {candidate.status.value} to {status.value}",
            entity_id=candidate_id,
            performed_by=actor.user_id,
            metadata={"from": candidate.status.value, "to": status.value, "notes": notes},
        )
        return updated

    def set_score(self, candidate_id: str, score: Optional[int]) -> None:
        self._candidates.update_candidate(candidate_id, {"overall_score": score})

    def set_stage(self, candidate_id: str, stage: str) -> None:
        self._candidates.update_candidate(candidate_id, {"current_stage": stage})

    def link_onboarding(self, candidate_id: str, request_id: Optional[str]) -> None:
        self._candidates.update_candidate(candidate_id, {"onboarding_request_id": request_id})


class InterviewService:
    def __init__(
        self,
        interviews: InterviewRepository,
        candidates: CandidateService,
        requisitions: JobRequisitionService,
        users: UserRepository,
        sequences: SequenceRepository,
        audit: AuditService,
        notifications: NotificationService,
    ):
        self._interviews = interviews
        self._candidates = candidates
        self._requisitions = requisitions
        self._users = users
        self._sequences = sequences
        self._audit = audit
        self._notifications = notifications

    def find(self, interview_id: str) -> Interview:
        interview = self._interviews.get_by_id(interview_id)
        if not interview:
            raise NotFoundError("Interview not found")
        return interview

    def get_for(self, actor: SessionUser, interview_id: str) -> Interview:
        interview = self.find(interview_id)
        if interview.has_interviewer(actor.user_id):
            return interview
        self._candidates.get_for(actor, interview.candidate_id)
        return interview

    def list_for(
        self,
        actor: SessionUser,
        *,
        candidate_id: Optional[str] = None,
        status: Optional[InterviewStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Interview]:
        if candidate_id:
            self._candidates.get_for(actor, candidate_id)
            return self._interviews.list_interviews(candidate_ids=[candidate_id], status=status, start=start, end=end)
        if is_admin(actor):
            return self._interviews.list_interviews(status=status, start=start, end=end)
        if actor.role == Role.MANAGER:
            owned = [c.candidate_id for c in self._candidates.list_for(actor)]
            by_candidate = self._interviews.list_interviews(candidate_ids=owned, status=status, start=start, end=end)
            on_panel = self._interviews.list_interviews(interviewer_id=actor.user_id, status=status, start=start, end=end)
            merged = {i.interview_id: i for i in (*by_candidate, *on_panel)}
            return sorted(merged.values(), key=lambda i: i.start_time)
        return self._interviews.list_interviews(interviewer_id=actor.user_id, status=status, start=start, end=end)

    def _check_panel(self, interviewers: Sequence[str], primary: Optional[str]) -> None:
        for user_id in interviewers:
            user = self._users.get_by_id(user_id)
            if not user or not user.is_active:
                raise ValidationError("One or more interviewers not found")
        if primary and primary not in interviewers:
            raise ValidationError("Primary interviewer must be in interviewers list")

    def _check_conflicts(self, interviewers: Sequence[str], start: datetime, end: datetime, exclude_id: Optional[str] = None) -> None:
        if self._interviews.find_conflicts(interviewers, start, end, exclude_id=exclude_id):
            raise ValidationError("One or more interviewers have a scheduling conflict")

    def schedule(self, actor: SessionUser, data: dict) -> Interview:
        ensure_admin(actor)
        candidate = self._candidates.find(data["candidate_id"])
        requisition = self._requisitions.find(candidate.requisition_id)
        if not state_machine.can_schedule_interview(candidate.status):
            raise ValidationError(f"Cannot schedule interview for candidate in status {candidate.status.value}")

        rnd = requisition.round(int(data["round_order"]))
        if rnd is None or rnd.name != data["round_name"]:
            raise ValidationError("Invalid interview round")
        start, end = data["start_time"], data["end_time"]
        if end <= start:
            raise ValidationError("Interview end time must be after start time")

        interviewers = list(dict.fromkeys(data["interviewers"]))
        if not interviewers:
            raise ValidationError("At least one interviewer is required")
        primary = data.get("primary_interviewer_id") or interviewers[0]
        self._check_panel(interviewers, primary)
        self._check_conflicts(interviewers, start, end)

        code = next_code(self._sequences, "INT", start.year)
        fields = {
            "candidate_id": candidate.candidate_id,
            "requisition_id": requisition.requisition_id,
            "round_name": rnd.name,
            "round_order": rnd.order,
            "round_type": data.get("round_type") or rnd.round_type,
            "start_time": start,
            "end_time": end,
            "mode": InterviewMode(data.get("mode") or InterviewMode.VIDEO),
            "interviewers": interviewers,
            "primary_interviewer_id": primary,
            "location": data.get("location"),
            "interview_link": data.get("interview_link"),
            "notes": data.get("notes"),
        }
        interview_id = self._interviews.create_interview(fields, code=code, scheduled_by=actor.user_id)

        if candidate.status in state_machine.SCHEDULABLE:
            self._candidates.move(
                candidate, CandidateStatus.INTERVIEW_SCHEDULED, by=actor.user_id, notes=f"{rnd.name} scheduled", checked=False
            )
        self._candidates.set_stage(candidate.candidate_id, rnd.name)

        self._audit.record(
            AUDIT_MODULE,
            "interview_scheduled",
            f"{rnd.name} scheduled for {candidate.full_name} at {start:%Y-%m-%d %H:%M}",
            entity_id=interview_id,
            performed_by=actor.user_id,
            metadata={"candidateId": candidate.candidate_id},
        )
        self._notifications.notify_many(
            interviewers,
            NotificationType.INTERVIEW_SCHEDULED,
            "Interview Scheduled",
            f"You are on the panel for {candidate.full_name} ({rnd.name}) on {start:%Y-%m-%d %H:%M}.",
            related_id=interview_id,
        )
        logger.info("interview %s scheduled candidate=%s round=%s", code, candidate.code, rnd.order)
        return self.find(interview_id)

    def reschedule(self, actor: SessionUser, interview_id: str, start: datetime, end: datetime, *, reason: Optional[str] = None) -> Interview:
        ensure_admin(actor)
        interview = self.find(interview_id)
        if interview.status not in (InterviewStatus.SCHEDULED, InterviewStatus.RESCHEDULED):
            raise ValidationError("Only scheduled interviews can be rescheduled")
        if end <= start:
            raise ValidationError("Interview end time must be after start time")
        self._check_conflicts(interview.interviewers, start, end, exclude_id=interview_id)
        self._interviews.update_interview(
            interview_id,
            {
                "start_time": start,
                "end_time": end,
                "status": InterviewStatus.RESCHEDULED,
                "reschedule_count": interview.reschedule_count + 1,
                "reschedule_reason": reason,
            },
        )
        self._audit.record(
            AUDIT_MODULE,
            "interview_rescheduled",
            f"Interview rescheduled from {interview.start_time:%Y-%m-%d %H:%M} to {start:%Y-%m-%d %H:%M}",
            entity_id=interview_id,
            performed_by=actor.user_id,
        )
        return self.find(interview_id)

    def update_status(
        self,
        actor: SessionUser,
        interview_id: str,
        status: InterviewStatus,
        *,
        reason: Optional[str] = None,
    ) -> Interview:
        interview = self.find(interview_id)
        if not is_admin(actor) and not interview.has_interviewer(actor.user_id):
            raise AuthorizationError("Unauthorized")
        if interview.status == status:
            return interview
        if interview.status in (InterviewStatus.COMPLETED, InterviewStatus.CANCELLED):
            raise ValidationError(f"Interview is already {interview.status.value}")

        fields: dict = {"status": status}
        if status == InterviewStatus.CANCELLED:
            fields["cancellation_reason"] = reason
        elif status == InterviewStatus.NO_SHOW:
            fields["no_show_reason"] = reason
        self._interviews.update_interview(interview_id, fields)

        candidate = self._candidates.find(interview.candidate_id)
        if status == InterviewStatus.IN_PROGRESS and candidate.status == CandidateStatus.INTERVIEW_SCHEDULED:
            self._candidates.move(candidate, CandidateStatus.INTERVIEW_IN_PROGRESS, by=actor.user_id)
        elif status == InterviewStatus.COMPLETED and candidate.status in (
            CandidateStatus.INTERVIEW_SCHEDULED,
            CandidateStatus.INTERVIEW_IN_PROGRESS,
        ):
            self._candidates.move(
                candidate, CandidateStatus.INTERVIEW_COMPLETED, by=actor.user_id, notes=interview.round_name, checked=False
            )

        self._audit.record(
            AUDIT_MODULE,
            f"interview_{status.value}",
            f"Interview {interview.code} marked {status.value}" + (f": {reason}" if reason else ""),
            entity_id=interview_id,
            performed_by=actor.user_id,
        )
        return self.find(interview_id)

    def mark_feedback(self, interview_id: str, user_id: str) -> None:
        self._interviews.add_feedback_submitter(interview_id, user_id)


class FeedbackService:
    """Panel feedback: one record per interviewer, editable until submitted."""

    def __init__(self, feedback: FeedbackRepository, interviews: InterviewService, candidates: CandidateService):
        self._feedback = feedback
        self._interviews = interviews
        self._candidates = candidates

    def list_for(
        self,
        actor: SessionUser,
        *,
        interview_id: Optional[str] = None,
        candidate_id: Optional[str] = None,
    ) -> Sequence[Feedback]:
        if interview_id:
            interview = self._interviews.get_for(actor, interview_id)
            if not is_admin(actor) and interview.has_interviewer(actor.user_id):
                return self._feedback.list_feedback(interview_id=interview_id, interviewer_id=actor.user_id)
            return self._feedback.list_feedback(interview_id=interview_id)
        if candidate_id:
            self._candidates.get_for(actor, candidate_id)
            return self._feedback.list_feedback(candidate_id=candidate_id)
        if is_admin(actor):
            return self._feedback.list_feedback()
        return self._feedback.list_feedback(interviewer_id=actor.user_id)

    def save(self, actor: SessionUser, data: dict) -> Feedback:
        interview = self._interviews.find(data["interview_id"])
        if not interview.has_interviewer(actor.user_id):
            raise AuthorizationError("You are not assigned as an interviewer for this interview")
        existing = self._feedback.get(interview.interview_id, actor.user_id)
        if existing and existing.is_submitted:
            raise ValidationError("Feedback has already been submitted and cannot be modified")

        ratings = tuple(
            CriterionRating(
                criterion=r["criterion"],
                rating=int(r["rating"]),
                weightage=r.get("weightage"),
                comments=r.get("comments"),
            )
            for r in data["criterion_ratings"]
        )
        if not ratings:
            raise ValidationError("At least one criterion rating is required")
        for r in ratings:
            if not 1 <= r.rating <= 5:
                raise ValidationError(f"Rating for {r.criterion} must be between 1 and 5")

        submit = bool(data.get("submit"))
        now = now_local()
        feedback = Feedback(
            feedback_id=existing.feedback_id if existing else "",
            interview_id=interview.interview_id,
            candidate_id=interview.candidate_id,
            interviewer_id=actor.user_id,
            requisition_id=interview.requisition_id,
            round_name=interview.round_name,
            round_order=interview.round_order,
            criterion_ratings=ratings,
            recommendation=Recommendation(data["recommendation"]),
            overall_score=feedback_score(ratings),
            overall_comments=data.get("overall_comments") or "",
            strengths=data.get("strengths"),
            weaknesses=data.get("weaknesses"),
            is_submitted=submit,
            submitted_at=now if submit else None,
            version=(existing.version + 1) if existing else 1,
        )
        self._feedback.save(feedback)

        if submit:
            self._interviews.mark_feedback(interview.interview_id, actor.user_id)
            scores = [f.overall_score for f in self._feedback.list_feedback(candidate_id=interview.candidate_id, submitted_only=True)]
            self._candidates.set_score(interview.candidate_id, candidate_score(scores))
            logger.info("feedback submitted interview=%s by user=%s score=%s", interview.code, actor.user_id, feedback.overall_score)
        return self._feedback.get(interview.interview_id, actor.user_id)


class OfferService:
    def __init__(
        self,
        offers: OfferRepository,
        candidates: CandidateService,
        requisitions: JobRequisitionService,
        employees: EmployeeRepository,
        interviews: InterviewRepository,
        users: UserRepository,
        sequences: SequenceRepository,
        audit: AuditService,
        notifications: NotificationService,
        onboarding: OnboardingService,
    ):
        self._offers = offers
        self._candidates = candidates
        self._requisitions = requisitions
        self._employees = employees
        self._interviews = interviews
        self._users = users
        self._sequences = sequences
        self._audit = audit
        self._notifications = notifications
        self._onboarding = onboarding

    def find(self, offer_id: str) -> Offer:
        offer = self._offers.get_by_id(offer_id)
        if not offer:
            raise NotFoundError("Offer not found")
        return offer

    def get_for(self, actor: SessionUser, offer_id: str) -> Offer:
        offer = self.find(offer_id)
        self._candidates.get_for(actor, offer.candidate_id)
        return offer

    def list_for(
        self,
        actor: SessionUser,
        *,
        candidate_id: Optional[str] = None,
        status: Optional[OfferStatus] = None,
    ) -> Sequence[Offer]:
        if candidate_id:
            self._candidates.get_for(actor, candidate_id)
            return self._offers.list_offers(candidate_id=candidate_id, status=status)
        ensure_admin(actor)
        return self._offers.list_offers(status=status)

    def by_token(self, token: str) -> Offer:
        offer = self._offers.get_by_token(token)
        if not offer:
            raise NotFoundError("Invalid offer token")
        return offer

    def _record(self, offer: Offer, action: str, description: str, *, by: Optional[str], **metadata) -> None:
        self._audit.record(
            AUDIT_MODULE,
            action,
            description,
            entity_id=offer.offer_id,
            performed_by=by,
            metadata={"candidateId": offer.candidate_id, **metadata},
        )

    def create(self, actor: SessionUser, data: dict) -> Offer:
        ensure_admin(actor)
        candidate = self._candidates.find(data["candidate_id"])
        if not state_machine.can_create_offer(candidate.status):
            raise ValidationError(f"Candidate is not eligible for offer. Current status: {candidate.status.value}")
        if self._offers.find_active(candidate.candidate_id):
            raise ConflictError("An active offer already exists for this candidate")
        requisition = self._requisitions.find(candidate.requisition_id)
        if not requisition.hiring_manager_id:
            raise ValidationError("Job requisition does not have a hiring manager assigned")
        manager = self._employees.get_by_id(requisition.hiring_manager_id)
        if not manager or not manager.is_active:
            raise ValidationError("Hiring manager not found or inactive")
        if data["valid_until"] < now_local().date():
            raise ValidationError("Offer validity date cannot be in the past")

        comp = data["compensation"]
        fields = {
            "candidate_id": candidate.candidate_id,
            "requisition_id": requisition.requisition_id,
            "job_title": data.get("job_title") or requisition.job_title,
            "department": data.get("department") or requisition.department,
            "location": data.get("location") or requisition.location,
            "employment_type": data.get("employment_type") or requisition.employment_type,
            "start_date": data["start_date"],
            "valid_until": data["valid_until"],
            "compensation": Compensation(
                annual_ctc=float(comp["annual_ctc"]),
                base_salary=comp.get("base_salary"),
                variable_pay=comp.get("variable_pay"),
                joining_bonus=comp.get("joining_bonus"),
                currency=comp.get("currency") or "INR",
            ),
            "created_for": manager.employee_id,
            "status": OfferStatus.PENDING_APPROVAL if data.get("requires_approval") else OfferStatus.APPROVED,
        }
        code = next_code(self._sequences, "OFF", now_local().year)
        offer_id = self._offers.create_offer(fields, code=code, token=generate_token(), created_by=actor.user_id)

        if candidate.status == CandidateStatus.INTERVIEW_COMPLETED:
            self._candidates.move(candidate, CandidateStatus.OFFER_PENDING, by=actor.user_id, notes=code)
        offer = self.find(offer_id)
        self._record(offer, "offer_created", f"Offer {code} created for {candidate.full_name}", by=actor.user_id)
        logger.info("offer %s created candidate=%s status=%s", code, candidate.code, offer.status.value)
        return offer

    def approve(self, actor: SessionUser, offer_id: str) -> Offer:
        offer = self.find(offer_id)
        if not is_admin(actor) and actor.employee_id != offer.created_for:
            raise AuthorizationError("Only HR or the hiring manager can approve this offer")
        if offer.status != OfferStatus.PENDING_APPROVAL:
            raise ValidationError("Offer is not pending approval")
        self._offers.update_offer(offer_id, {"status": OfferStatus.APPROVED, "approved_by": actor.employee_id})
        self._record(offer, "offer_approved", "Offer approved", by=actor.user_id)
        return self.find(offer_id)

    def send(self, actor: SessionUser, offer_id: str) -> Offer:
        ensure_admin(actor)
        offer = self.find(offer_id)
        if offer.status != OfferStatus.APPROVED:
            raise ValidationError("Offer must be approved before sending")
        candidate = self._candidates.find(offer.candidate_id)
        self._candidates.move(candidate, CandidateStatus.OFFER_SENT, by=actor.user_id, notes=offer.code)
        self._offers.update_offer(offer_id, {"status": OfferStatus.SENT, "sent_at": now_local()})
        self._record(offer, "offer_sent", "Offer sent to candidate", by=actor.user_id)
        logger.info("offer %s sent to candidate=%s", offer.code, candidate.code)
        return self.find(offer_id)

    def withdraw(self, actor: SessionUser, offer_id: str, *, reason: Optional[str] = None) -> Offer:
        ensure_admin(actor)
        offer = self.find(offer_id)
        if offer.status in (OfferStatus.WITHDRAWN, OfferStatus.REJECTED, OfferStatus.EXPIRED):
            raise ValidationError(f"Offer is already {offer.status.value}")
        self._offers.update_offer(offer_id, {"status": OfferStatus.WITHDRAWN, "withdrawn_reason": reason})

        candidate = self._candidates.find(offer.candidate_id)
        if not state_machine.is_terminal(candidate.status):
            self._candidates.move(candidate, CandidateStatus.REJECTED, by=actor.user_id, notes="Offer withdrawn", checked=False)
        if offer.onboarding_request_id:
            self._onboarding.discard(offer.onboarding_request_id, performed_by=actor.user_id, reason="Offer withdrawn")
            self._candidates.link_onboarding(candidate.candidate_id, None)
            self._offers.update_offer(offer_id, {"onboarding_request_id": None})

        self._record(offer, "offer_withdrawn", f"Offer withdrawn: {reason}" if reason else "Offer withdrawn", by=actor.user_id)
        return self.find(offer_id)

    def respond(self, token: str, response: str, *, comments: Optional[str] = None, today: Optional[date] = None) -> Offer:
        """Candidate answer from the offer link (no login)."""
        offer = self.by_token(token)
        today = today or now_local().date()
        if offer.status != OfferStatus.SENT:
            raise ValidationError(f"Offer cannot be answered in status {offer.status.value}")
        candidate = self._candidates.find(offer.candidate_id)

        if today > offer.valid_until:
            self._offers.update_offer(offer.offer_id, {"status": OfferStatus.EXPIRED})
            if state_machine.can_transition(candidate.status, CandidateStatus.OFFER_EXPIRED):
                self._candidates.move(candidate, CandidateStatus.OFFER_EXPIRED, by=None)
            self._record(offer, "offer_expired", "Offer expired before the candidate responded", by=None)
            raise ValidationError("Offer has expired")

        if response == "accepted":
            return self._accept(offer, candidate, comments)
        if response == "rejected":
            self._offers.update_offer(
                offer.offer_id,
                {"status": OfferStatus.REJECTED, "candidate_comments": comments, "responded_at": now_local()},
            )
            self._candidates.move(candidate, CandidateStatus.OFFER_REJECTED, by=None, notes=comments)
            self._record(offer, "offer_rejected", "Offer rejected by candidate", by=None)
            self._notify_creator(offer, f"{candidate.full_name} rejected offer {offer.code}.")
            return self.find(offer.offer_id)
        raise ValidationError("Response must be accepted or rejected")

    def _accept(self, offer: Offer, candidate: Candidate, comments: Optional[str]) -> Offer:
        if not state_machine.can_accept_offer(candidate.status):
            raise ValidationError(f"Offer cannot be accepted while candidate is {candidate.status.value}")
        self._offers.update_offer(
            offer.offer_id,
            {"status": OfferStatus.ACCEPTED, "candidate_comments": comments, "responded_at": now_local()},
        )
        candidate = self._candidates.move(candidate, CandidateStatus.OFFER_ACCEPTED, by=None, notes=comments)

        requisition = self._requisitions.find(offer.requisition_id)
        request_id = self._onboarding.invite_from_offer(
            candidate=candidate,
            offer=offer,
            requisition=requisition,
            work_location=self._work_location(offer, candidate, requisition),
        )
        self._candidates.link_onboarding(candidate.candidate_id, request_id)
        self._offers.update_offer(offer.offer_id, {"onboarding_request_id": request_id})
        self._candidates.move(candidate, CandidateStatus.SELECTED, by=None, notes="Converted to onboarding")
        self._requisitions.record_hire(requisition)

        self._record(offer, "offer_accepted", "Offer accepted by candidate", by=None, onboardingRequestId=request_id)
        self._notify_creator(offer, f"{candidate.full_name} accepted offer {offer.code}.")
        logger.info("offer %s accepted, onboarding request=%s", offer.code, request_id)
        return self.find(offer.offer_id)

    def _work_location(self, offer: Offer, candidate: Candidate, requisition: JobRequisition) -> str:
        """Offer location, else the first in-person interview venue, else the requisition's."""
        if offer.location:
            return offer.location
        for interview in self._interviews.list_interviews(candidate_ids=[candidate.candidate_id]):
            if interview.mode == InterviewMode.IN_PERSON and interview.location:
                return interview.location
        return requisition.location or ""

    def _notify_creator(self, offer: Offer, message: str) -> None:
        self._notifications.notify(
            offer.created_by, NotificationType.OFFER_RESPONSE, "Offer Response", message, related_id=offer.offer_id
        )


class PublicJobService:
    """Token-addressed job pages and applications, no login."""

    def __init__(self, requisitions: JobRequisitionRepository, candidates: CandidateService):
        self._requisitions = requisitions
        self._candidates = candidates

    def view(self, token: str) -> JobRequisition:
        requisition = self._requisitions.get_by_token(token)
        if not requisition:
            raise NotFoundError("Invalid token. Job not found.")
        return requisition

    def apply(self, token: str, data: dict, *, today: Optional[date] = None) -> Candidate:
        requisition = self.view(token)
        today = today or now_local().date()
        if requisition.status != RequisitionStatus.OPEN:
            raise ValidationError(f"Applications are closed. Job status: {requisition.status.value}")
        if not requisition.allow_public_applications:
            raise ValidationError("Public applications are not enabled for this job")
        if requisition.public_application_deadline and today > requisition.public_application_deadline:
            raise ValidationError("Application deadline has passed")
        try:
            return self._candidates.register(requisition, data, source="public_link")
        except ConflictError as exc:
            raise ConflictError("You have already applied for this position") from exc
