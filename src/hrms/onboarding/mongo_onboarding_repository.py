from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from pymongo import ReturnDocument

from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none, to_date, to_stored_date
from .model import ACTIVE_STATUSES, OnboardingRequest, OnboardingStatus, OnboardingStep, OnboardingSubmission
from .repository import OnboardingRequestRepository, OnboardingSubmissionRepository

_FIELD_MAP = {
    "email": "email",
    "first_name": "firstName",
    "last_name": "lastName",
    "date_of_joining": "dateOfJoining",
    "department": "department",
    "designation": "designation",
    "reporting_manager_id": "reportingManagerId",
    "requires_manager_ack": "requiresManagerAck",
    "work_location": "workLocation",
    "mobile_number": "mobileNumber",
    "expiry_date": "expiryDate",
    "token": "token",
    "token_expiry": "tokenExpiry",
    "status": "status",
    "progress": "progressPercentage",
    "candidate_id": "candidateId",
    "employee_id": "employeeId",
    "hr_comments": "hrComments",
    "rejection_reason": "rejectionReason",
    "invited_by": "invitedBy",
    "invited_at": "invitedAt",
    "started_at": "startedAt",
    "submitted_at": "submittedAt",
    "reviewed_by": "reviewedBy",
    "reminder_count": "reminderCount",
    "last_reminder_sent_at": "lastReminderSentAt",
}

_ID_FIELDS = ("reporting_manager_id", "candidate_id", "employee_id", "invited_by", "reviewed_by")


def _to_doc(data: dict) -> dict:
    doc = {}
    for key, value in data.items():
        if key in _ID_FIELDS:
            value = oid_or_none(value)
        elif key in ("date_of_joining", "expiry_date"):
            value = to_stored_date(value)
        elif key == "status":
            value = OnboardingStatus(value).value
        elif key == "email":
            value = value.lower()
        doc[_FIELD_MAP[key]] = value
    return doc


class MongoOnboardingRequestRepository(MongoRepository, OnboardingRequestRepository):
    collection_name = "onboarding_requests"

    @staticmethod
    def _to_model(doc: dict) -> OnboardingRequest:
        return OnboardingRequest(
            request_id=str(doc["_id"]),
            code=doc["onboardingId"],
            email=doc["email"],
            first_name=doc["firstName"],
            last_name=doc.get("lastName", ""),
            date_of_joining=to_date(doc["dateOfJoining"]),
            department=doc.get("department", ""),
            designation=doc.get("designation", ""),
            token=doc["token"],
            token_expiry=doc["tokenExpiry"],
            expiry_date=to_date(doc.get("expiryDate")),
            status=OnboardingStatus(doc.get("status", "invited")),
            progress=int(doc.get("progressPercentage", 0)),
            reporting_manager_id=id_str(doc.get("reportingManagerId")),
            requires_manager_ack=bool(doc.get("requiresManagerAck", False)),
            work_location=doc.get("workLocation", ""),
            mobile_number=doc.get("mobileNumber"),
            candidate_id=id_str(doc.get("candidateId")),
            employee_id=id_str(doc.get("employeeId")),
            hr_comments=doc.get("hrComments"),
            rejection_reason=doc.get("rejectionReason"),
            invited_by=id_str(doc.get("invitedBy")),
            invited_at=doc.get("invitedAt"),
            started_at=doc.get("startedAt"),
            submitted_at=doc.get("submittedAt"),
            reviewed_by=id_str(doc.get("reviewedBy")),
            reminder_count=int(doc.get("reminderCount", 0)),
            last_reminder_sent_at=doc.get("lastReminderSentAt"),
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, request_id: str) -> Optional[OnboardingRequest]:
        doc = self._col.find_one({"_id": oid(request_id)})
        return self._to_model(doc) if doc else None

    def get_by_token(self, token: str) -> Optional[OnboardingRequest]:
        doc = self._col.find_one({"token": token})
        return self._to_model(doc) if doc else None

    def find_active_by_email(self, email: str) -> Optional[OnboardingRequest]:
        doc = self._col.find_one(
            {"email": email.lower(), "status": {"$in": [s.value for s in ACTIVE_STATUSES]}}
        )
        return self._to_model(doc) if doc else None

    def list_requests(
        self,
        *,
        status: Optional[OnboardingStatus] = None,
        reporting_manager_id: Optional[str] = None,
    ) -> Sequence[OnboardingRequest]:
        query: dict = {}
        if status is not None:
            query["status"] = status.value
        if reporting_manager_id:
            query["reportingManagerId"] = oid(reporting_manager_id)
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def create_request(self, data: dict, *, code: str, token: str, token_expiry: datetime) -> str:
        doc = _to_doc(data)
        now = datetime.now()
        doc.update(
            {
                "onboardingId": code,
                "token": token,
                "tokenExpiry": token_expiry,
                "createdAt": now,
                "updatedAt": now,
            }
        )
        doc.setdefault("status", OnboardingStatus.INVITED.value)
        doc.setdefault("progressPercentage", 0)
        doc.setdefault("invitedAt", now)
        return str(self._col.insert_one(doc).inserted_id)

    def update_request(self, request_id: str, fields: dict) -> bool:
        update = _to_doc(fields)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(request_id)}, {"$set": update}).matched_count == 1

    def delete_request(self, request_id: str) -> bool:
        return self._col.delete_one({"_id": oid(request_id)}).deleted_count == 1


class MongoOnboardingSubmissionRepository(MongoRepository, OnboardingSubmissionRepository):
    collection_name = "onboarding_submissions"

    @staticmethod
    def _to_model(doc: dict) -> OnboardingSubmission:
        flags = doc.get("stepsCompleted") or {}
        return OnboardingSubmission(
            submission_id=str(doc["_id"]),
            request_id=str(doc["onboardingRequestId"]),
            steps={s.value: doc[s.value] for s in OnboardingStep if s.value in doc},
            completed=frozenset(s for s in OnboardingStep if flags.get(s.value)),
            is_draft=bool(doc.get("isDraft", True)),
            submitted_at=doc.get("submittedAt"),
            employee_id=id_str(doc.get("employeeId")),
            last_saved_at=doc.get("lastSavedAt"),
        )

    def get_for_request(self, request_id: str) -> Optional[OnboardingSubmission]:
        doc = self._col.find_one({"onboardingRequestId": oid(request_id)})
        return self._to_model(doc) if doc else None

    def save_step(self, request_id: str, step: OnboardingStep, data: Any) -> OnboardingSubmission:
        doc = self._col.find_one_and_update(
            {"onboardingRequestId": oid(request_id)},
            {
                "$set": {step.value: data, f"stepsCompleted.{step.value}": True, "lastSavedAt": datetime.now()},
                "$setOnInsert": {"isDraft": True},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(doc)

    def set_draft(self, request_id: str, *, is_draft: bool, submitted_at: Optional[datetime]) -> None:
        self._col.update_one(
            {"onboardingRequestId": oid(request_id)},
            {"$set": {"isDraft": is_draft, "submittedAt": submitted_at}},
        )

    def link_employee(self, request_id: str, employee_id: str) -> None:
        self._col.update_one({"onboardingRequestId": oid(request_id)}, {"$set": {"employeeId": oid(employee_id)}})

    def delete_for_request(self, request_id: str) -> None:
        self._col.delete_one({"onboardingRequestId": oid(request_id)})
