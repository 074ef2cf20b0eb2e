from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from pymongo import ReturnDocument

from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none, to_date, to_stored_date
from .model import (
    ACTIVE_OFFER_STATUSES,
    BUSY_INTERVIEW_STATUSES,
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

_ID_FIELDS = {
    "hiring_manager_id",
    "requisition_id",
    "candidate_id",
    "primary_interviewer_id",
    "created_for",
    "approved_by",
    "onboarding_request_id",
}
_DATE_FIELDS = {"public_application_deadline", "expected_start_date", "start_date", "valid_until"}

_RENAMES = {
    "requisition_id": "jobRequisitionId",
    "start_time": "scheduledStartTime",
    "end_time": "scheduledEndTime",
    "valid_until": "offerValidUntil",
    "notes": "interviewNotes",
    "candidate_comments": "candidateResponseComments",
    "onboarding_request_id": "onboardingRequestId",
    "phone": "phoneNumber",
}


def _camel(key: str) -> str:
    if key in _RENAMES:
        return _RENAMES[key]
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _round_doc(r: InterviewRound) -> dict:
    return {
        "roundName": r.name,
        "roundOrder": r.order,
        "roundType": r.round_type,
        "duration": r.duration_minutes,
        "evaluationCriteria": [{"criterion": c.name, "weightage": c.weightage} for c in r.criteria],
    }


def _to_round(doc: dict) -> InterviewRound:
    return InterviewRound(
        name=doc["roundName"],
        order=int(doc["roundOrder"]),
        round_type=doc.get("roundType", "technical"),
        duration_minutes=int(doc.get("duration", 60)),
        criteria=tuple(
            EvaluationCriterion(name=c["criterion"], weightage=c.get("weightage"))
            for c in doc.get("evaluationCriteria") or ()
        ),
    )


def _compensation_doc(c: Compensation) -> dict:
    return {
        "annualCTC": c.annual_ctc,
        "baseSalary": c.base_salary,
        "variablePay": c.variable_pay,
        "joiningBonus": c.joining_bonus,
        "currency": c.currency,
    }


def _to_doc(data: dict) -> dict:
    """Model attribute names to stored camelCase values."""
    doc = {}
    for key, value in data.items():
        if key in _ID_FIELDS:
            value = oid_or_none(value)
        elif key in _DATE_FIELDS:
            value = to_stored_date(value)
        elif key == "interview_rounds":
            value = [_round_doc(r) for r in value]
        elif key == "interviewers":
            value = [oid(v) for v in value]
        elif key == "compensation":
            value = _compensation_doc(value)
        elif key in ("requirements", "required_skills"):
            value = list(value)
        elif hasattr(value, "value"):
            value = value.value
        doc[_camel(key)] = value
    return doc


class MongoJobRequisitionRepository(MongoRepository, JobRequisitionRepository):
    collection_name = "job_requisitions"

    @staticmethod
    def _to_model(doc: dict) -> JobRequisition:
        return JobRequisition(
            requisition_id=str(doc["_id"]),
            code=doc["requisitionId"],
            job_title=doc["jobTitle"],
            department=doc.get("department", ""),
            location=doc.get("location", ""),
            employment_type=doc.get("employmentType", "full_time"),
            description=doc.get("description", ""),
            requirements=tuple(doc.get("requirements") or ()),
            required_skills=tuple(doc.get("requiredSkills") or ()),
            hiring_manager_id=id_str(doc.get("hiringManagerId")),
            number_of_positions=int(doc.get("numberOfPositions", 1)),
            positions_filled=int(doc.get("positionsFilled", 0)),
            interview_rounds=tuple(_to_round(r) for r in doc.get("interviewRounds") or ()),
            status=RequisitionStatus(doc.get("status", "draft")),
            public_token=doc.get("publicToken"),
            allow_public_applications=bool(doc.get("allowPublicApplications", False)),
            public_application_deadline=to_date(doc.get("publicApplicationDeadline")),
            expected_start_date=to_date(doc.get("expectedStartDate")),
            is_active=bool(doc.get("isActive", True)),
            created_by=id_str(doc.get("createdBy")),
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, requisition_id: str) -> Optional[JobRequisition]:
        doc = self._col.find_one({"_id": oid(requisition_id)})
        return self._to_model(doc) if doc else None

    def get_by_token(self, public_token: str) -> Optional[JobRequisition]:
        doc = self._col.find_one({"publicToken": public_token, "isActive": True})
        return self._to_model(doc) if doc else None

    def list_requisitions(
        self,
        *,
        status: Optional[RequisitionStatus] = None,
        hiring_manager_id: Optional[str] = None,
    ) -> Sequence[JobRequisition]:
        query: dict = {"isActive": True}
        if status is not None:
            query["status"] = status.value
        if hiring_manager_id:
            query["hiringManagerId"] = oid(hiring_manager_id)
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def create_requisition(self, data: dict, *, code: str, public_token: str, created_by: str) -> str:
        doc = _to_doc(data)
        doc.setdefault("status", RequisitionStatus.DRAFT.value)
        now = datetime.now()
        doc.update(
            {
                "requisitionId": code,
                "publicToken": public_token,
                "positionsFilled": 0,
                "isActive": True,
                "createdBy": oid(created_by),
                "createdAt": now,
                "updatedAt": now,
            }
        )
        return str(self._col.insert_one(doc).inserted_id)

    def update_requisition(self, requisition_id: str, fields: dict) -> bool:
        update = _to_doc(fields)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(requisition_id)}, {"$set": update}).matched_count == 1

    def increment_filled(self, requisition_id: str) -> None:
        self._col.update_one(
            {"_id": oid(requisition_id)},
            {"$inc": {"positionsFilled": 1}, "$set": {"updatedAt": datetime.now()}},
        )


class MongoCandidateRepository(MongoRepository, CandidateRepository):
    collection_name = "candidates"

    @staticmethod
    def _to_model(doc: dict) -> Candidate:
        return Candidate(
            candidate_id=str(doc["_id"]),
            code=doc["candidateId"],
            first_name=doc["firstName"],
            last_name=doc.get("lastName", ""),
            email=doc["email"],
            requisition_id=str(doc["jobRequisitionId"]),
            applied_position=doc.get("appliedPosition", ""),
            phone=doc.get("phoneNumber", ""),
            source=doc.get("source", "direct"),
            status=CandidateStatus(doc.get("status", "applied")),
            current_stage=doc.get("currentStage"),
            overall_score=doc.get("overallScore"),
            total_experience=doc.get("totalExperience"),
            current_company=doc.get("currentCompany"),
            expected_ctc=doc.get("expectedCtc"),
            notice_period_days=doc.get("noticePeriodDays"),
            status_history=tuple(
                StatusChange(
                    status=CandidateStatus(h["status"]),
                    changed_at=h["changedAt"],
                    changed_by=id_str(h.get("changedBy")),
                    notes=h.get("notes"),
                )
                for h in doc.get("statusHistory") or ()
            ),
            onboarding_request_id=id_str(doc.get("onboardingRequestId")),
            is_active=bool(doc.get("isActive", True)),
            created_at=doc.get("createdAt"),
        )

    @staticmethod
    def _history_doc(change: StatusChange) -> dict:
        return {
            "status": change.status.value,
            "changedAt": change.changed_at,
            "changedBy": oid_or_none(change.changed_by),
            "notes": change.notes,
        }

    def get_by_id(self, candidate_id: str) -> Optional[Candidate]:
        doc = self._col.find_one({"_id": oid(candidate_id)})
        return self._to_model(doc) if doc else None

    def find_application(self, requisition_id: str, email: str) -> Optional[Candidate]:
        doc = self._col.find_one({"jobRequisitionId": oid(requisition_id), "email": email.lower()})
        return self._to_model(doc) if doc else None

    def list_candidates(
        self,
        *,
        requisition_ids: Optional[Sequence[str]] = None,
        status: Optional[CandidateStatus] = None,
    ) -> Sequence[Candidate]:
        query: dict = {"isActive": True}
        if requisition_ids is not None:
            query["jobRequisitionId"] = {"$in": [oid(r) for r in requisition_ids]}
        if status is not None:
            query["status"] = status.value
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def create_candidate(self, data: dict, *, code: str) -> str:
        doc = _to_doc(data)
        doc["email"] = doc["email"].lower()
        now = datetime.now()
        doc.update(
            {
                "candidateId": code,
                "status": CandidateStatus.APPLIED.value,
                "statusHistory": [self._history_doc(StatusChange(CandidateStatus.APPLIED, now))],
                "isActive": True,
                "createdAt": now,
                "lastActivityAt": now,
            }
        )
        return str(self._col.insert_one(doc).inserted_id)

    def update_candidate(self, candidate_id: str, fields: dict) -> bool:
        update = _to_doc(fields)
        update["lastActivityAt"] = datetime.now()
        return self._col.update_one({"_id": oid(candidate_id)}, {"$set": update}).matched_count == 1

    def change_status(self, candidate_id: str, *, expected: CandidateStatus, change: StatusChange) -> bool:
        result = self._col.update_one(
            {"_id": oid(candidate_id), "status": expected.value},
            {
                "$set": {"status": change.status.value, "lastActivityAt": change.changed_at},
                "$push": {"statusHistory": self._history_doc(change)},
            },
        )
        return result.modified_count == 1


class MongoInterviewRepository(MongoRepository, InterviewRepository):
    collection_name = "interviews"

    @staticmethod
    def _to_model(doc: dict) -> Interview:
        return Interview(
            interview_id=str(doc["_id"]),
            code=doc["interviewId"],
            candidate_id=str(doc["candidateId"]),
            requisition_id=str(doc["jobRequisitionId"]),
            round_name=doc["roundName"],
            round_order=int(doc["roundOrder"]),
            round_type=doc.get("roundType", "technical"),
            start_time=doc["scheduledStartTime"],
            end_time=doc["scheduledEndTime"],
            mode=InterviewMode(doc.get("mode", "video")),
            interviewers=tuple(str(i) for i in doc.get("interviewers") or ()),
            primary_interviewer_id=id_str(doc.get("primaryInterviewerId")),
            location=doc.get("location"),
            interview_link=doc.get("interviewLink"),
            status=InterviewStatus(doc.get("status", "scheduled")),
            reschedule_count=int(doc.get("rescheduleCount", 0)),
            cancellation_reason=doc.get("cancellationReason"),
            notes=doc.get("interviewNotes"),
            feedback_submitted_by=tuple(str(u) for u in doc.get("feedbackSubmittedBy") or ()),
            scheduled_by=id_str(doc.get("scheduledBy")),
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, interview_id: str) -> Optional[Interview]:
        doc = self._col.find_one({"_id": oid(interview_id)})
        return self._to_model(doc) if doc else None

    @staticmethod
    def _panel_query(user_ids: Iterable[str]) -> dict:
        ids = [oid(u) for u in user_ids]
        return {"$or": [{"primaryInterviewerId": {"$in": ids}}, {"interviewers": {"$in": ids}}]}

    def list_interviews(
        self,
        *,
        candidate_ids: Optional[Sequence[str]] = None,
        interviewer_id: Optional[str] = None,
        status: Optional[InterviewStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Interview]:
        query: dict = {}
        if candidate_ids is not None:
            query["candidateId"] = {"$in": [oid(c) for c in candidate_ids]}
        if interviewer_id:
            query.update(self._panel_query([interviewer_id]))
        if status is not None:
            query["status"] = status.value
        if start or end:
            window: dict = {}
            if start:
                window["$gte"] = start
            if end:
                window["$lte"] = end
            query["scheduledStartTime"] = window
        return [self._to_model(d) for d in self._col.find(query).sort("scheduledStartTime", 1).limit(200)]

    def find_conflicts(
        self,
        interviewer_ids: Iterable[str],
        start: datetime,
        end: datetime,
        *,
        exclude_id: Optional[str] = None,
    ) -> Sequence[Interview]:
        query = self._panel_query(interviewer_ids)
        query["status"] = {"$in": [s.value for s in BUSY_INTERVIEW_STATUSES]}
        query["scheduledStartTime"] = {"$lt": end}
        query["scheduledEndTime"] = {"$gt": start}
        if exclude_id:
            query["_id"] = {"$ne": oid(exclude_id)}
        return [self._to_model(d) for d in self._col.find(query)]

    def create_interview(self, data: dict, *, code: str, scheduled_by: str) -> str:
        doc = _to_doc(data)
        now = datetime.now()
        doc.update(
            {
                "interviewId": code,
                "status": InterviewStatus.SCHEDULED.value,
                "rescheduleCount": 0,
                "feedbackSubmittedBy": [],
                "scheduledBy": oid(scheduled_by),
                "createdAt": now,
                "updatedAt": now,
            }
        )
        return str(self._col.insert_one(doc).inserted_id)

    def update_interview(self, interview_id: str, fields: dict) -> bool:
        update = _to_doc(fields)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(interview_id)}, {"$set": update}).matched_count == 1

    def add_feedback_submitter(self, interview_id: str, user_id: str) -> None:
        self._col.update_one({"_id": oid(interview_id)}, {"$addToSet": {"feedbackSubmittedBy": oid(user_id)}})


class MongoFeedbackRepository(MongoRepository, FeedbackRepository):
    collection_name = "interview_feedback"

    @staticmethod
    def _to_model(doc: dict) -> Feedback:
        return Feedback(
            feedback_id=str(doc["_id"]),
            interview_id=str(doc["interviewId"]),
            candidate_id=str(doc["candidateId"]),
            interviewer_id=str(doc["interviewerId"]),
            requisition_id=str(doc["jobRequisitionId"]),
            round_name=doc.get("roundName", ""),
            round_order=int(doc.get("roundOrder", 1)),
            criterion_ratings=tuple(
                CriterionRating(
                    criterion=c["criterion"],
                    rating=int(c["rating"]),
                    weightage=c.get("weightage"),
                    comments=c.get("comments"),
                )
                for c in doc.get("criterionRatings") or ()
            ),
            recommendation=Recommendation(doc["recommendation"]),
            overall_score=int(doc.get("overallScore", 0)),
            overall_comments=doc.get("overallComments", ""),
            strengths=doc.get("strengths"),
            weaknesses=doc.get("weaknesses"),
            is_submitted=bool(doc.get("isSubmitted", False)),
            submitted_at=doc.get("submittedAt"),
            version=int(doc.get("version", 1)),
        )

    def get(self, interview_id: str, interviewer_id: str) -> Optional[Feedback]:
        doc = self._col.find_one({"interviewId": oid(interview_id), "interviewerId": oid(interviewer_id)})
        return self._to_model(doc) if doc else None

    def list_feedback(
        self,
        *,
        candidate_id: Optional[str] = None,
        interview_id: Optional[str] = None,
        interviewer_id: Optional[str] = None,
        submitted_only: bool = False,
    ) -> Sequence[Feedback]:
        query: dict = {}
        if candidate_id:
            query["candidateId"] = oid(candidate_id)
        if interview_id:
            query["interviewId"] = oid(interview_id)
        if interviewer_id:
            query["interviewerId"] = oid(interviewer_id)
        if submitted_only:
            query["isSubmitted"] = True
        return [self._to_model(d) for d in self._col.find(query).sort([("roundOrder", 1), ("submittedAt", 1)])]

    def save(self, feedback: Feedback) -> str:
        key = {"interviewId": oid(feedback.interview_id), "interviewerId": oid(feedback.interviewer_id)}
        doc = self._col.find_one_and_update(
            key,
            {
                "$set": {
                    "candidateId": oid(feedback.candidate_id),
                    "jobRequisitionId": oid(feedback.requisition_id),
                    "roundName": feedback.round_name,
                    "roundOrder": feedback.round_order,
                    "criterionRatings": [
                        {"criterion": c.criterion, "rating": c.rating, "weightage": c.weightage, "comments": c.comments}
                        for c in feedback.criterion_ratings
                    ],
                    "recommendation": feedback.recommendation.value,
                    "overallScore": feedback.overall_score,
                    "overallComments": feedback.overall_comments,
                    "strengths": feedback.strengths,
                    "weaknesses": feedback.weaknesses,
                    "isSubmitted": feedback.is_submitted,
                    "submittedAt": feedback.submitted_at,
                    "version": feedback.version,
                    "lastSavedAt": datetime.now(),
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return str(doc["_id"])


class MongoOfferRepository(MongoRepository, OfferRepository):
    collection_name = "offers"

    @staticmethod
    def _to_model(doc: dict) -> Offer:
        comp = doc.get("compensation") or {}
        return Offer(
            offer_id=str(doc["_id"]),
            code=doc["offerId"],
            candidate_id=str(doc["candidateId"]),
            requisition_id=str(doc["jobRequisitionId"]),
            job_title=doc.get("jobTitle", ""),
            department=doc.get("department", ""),
            compensation=Compensation(
                annual_ctc=float(comp.get("annualCTC", 0)),
                base_salary=comp.get("baseSalary"),
                variable_pay=comp.get("variablePay"),
                joining_bonus=comp.get("joiningBonus"),
                currency=comp.get("currency", "INR"),
            ),
            start_date=to_date(doc["startDate"]),
            valid_until=to_date(doc["offerValidUntil"]),
            offer_token=doc["offerToken"],
            status=OfferStatus(doc.get("status", "draft")),
            location=doc.get("location"),
            employment_type=doc.get("employmentType", "full_time"),
            created_by=id_str(doc.get("createdBy")),
            created_for=id_str(doc.get("createdFor")),
            approved_by=id_str(doc.get("approvedBy")),
            sent_at=doc.get("sentAt"),
            responded_at=doc.get("respondedAt"),
            candidate_comments=doc.get("candidateResponseComments"),
            withdrawn_reason=doc.get("withdrawnReason"),
            onboarding_request_id=id_str(doc.get("onboardingRequestId")),
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, offer_id: str) -> Optional[Offer]:
        doc = self._col.find_one({"_id": oid(offer_id)})
        return self._to_model(doc) if doc else None

    def get_by_token(self, token: str) -> Optional[Offer]:
        doc = self._col.find_one({"offerToken": token})
        return self._to_model(doc) if doc else None

    def list_offers(
        self,
        *,
        candidate_id: Optional[str] = None,
        status: Optional[OfferStatus] = None,
    ) -> Sequence[Offer]:
        query: dict = {}
        if candidate_id:
            query["candidateId"] = oid(candidate_id)
        if status is not None:
            query["status"] = status.value
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def find_active(self, candidate_id: str) -> Optional[Offer]:
        doc = self._col.find_one(
            {"candidateId": oid(candidate_id), "status": {"$in": [s.value for s in ACTIVE_OFFER_STATUSES]}}
        )
        return self._to_model(doc) if doc else None

    def create_offer(self, data: dict, *, code: str, token: str, created_by: str) -> str:
        doc = _to_doc(data)
        now = datetime.now()
        doc.update(
            {
                "offerId": code,
                "offerToken": token,
                "createdBy": oid(created_by),
                "createdAt": now,
                "updatedAt": now,
            }
        )
        doc.setdefault("status", OfferStatus.DRAFT.value)
        return str(self._col.insert_one(doc).inserted_id)

    def update_offer(self, offer_id: str, fields: dict) -> bool:
        update = _to_doc(fields)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(offer_id)}, {"$set": update}).matched_count == 1
