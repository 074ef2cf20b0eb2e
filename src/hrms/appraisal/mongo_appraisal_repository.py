from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from pymongo import ReturnDocument

from ..database.mongo_base import MongoRepository, oid, to_date, to_stored_date
from .model import (
    AppraisalCycle,
    Competency,
    CompetencyType,
    CycleStatus,
    ManagerReview,
    ReviewStatus,
    SelfReview,
)
from .repository import CycleRepository, ManagerReviewRepository, SelfReviewRepository


def _competency_doc(c: Competency) -> dict:
    doc = {"name": c.name, "type": c.type.value}
    if c.type == CompetencyType.RATING:
        doc["maxRating"] = c.max_rating or 5
    return doc


def _cycle_doc(data: dict) -> dict:
    doc = {}
    if "name" in data:
        doc["name"] = data["name"].strip()
    if "start_date" in data:
        doc["startDate"] = to_stored_date(data["start_date"])
    if "end_date" in data:
        doc["endDate"] = to_stored_date(data["end_date"])
    if "status" in data:
        doc["status"] = CycleStatus(data["status"]).value
    if "competencies" in data:
        doc["competencies"] = [_competency_doc(c) for c in data["competencies"]]
    return doc


class MongoCycleRepository(MongoRepository, CycleRepository):
    collection_name = "appraisal_cycles"

    @staticmethod
    def _to_model(doc: dict) -> AppraisalCycle:
        return AppraisalCycle(
            cycle_id=str(doc["_id"]),
            name=doc["name"],
            start_date=to_date(doc["startDate"]),
            end_date=to_date(doc["endDate"]),
            status=CycleStatus(doc.get("status", "draft")),
            competencies=tuple(
                Competency(name=c["name"], type=CompetencyType(c["type"]), max_rating=c.get("maxRating"))
                for c in doc.get("competencies") or ()
            ),
            created_by=str(doc["createdBy"]) if doc.get("createdBy") else None,
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, cycle_id: str) -> Optional[AppraisalCycle]:
        doc = self._col.find_one({"_id": oid(cycle_id)})
        return self._to_model(doc) if doc else None

    def list_cycles(self, *, statuses: Optional[Iterable[CycleStatus]] = None) -> Sequence[AppraisalCycle]:
        query: dict = {}
        if statuses is not None:
            query["status"] = {"$in": [CycleStatus(s).value for s in statuses]}
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def create_cycle(self, data: dict, *, created_by: str) -> str:
        doc = _cycle_doc(data)
        doc.setdefault("status", CycleStatus.DRAFT.value)
        doc["createdBy"] = oid(created_by)
        doc["createdAt"] = doc["updatedAt"] = datetime.now()
        return str(self._col.insert_one(doc).inserted_id)

    def update_cycle(self, cycle_id: str, fields: dict) -> bool:
        update = _cycle_doc(fields)
        update["updatedAt"] = datetime.now()
        return self._col.update_one({"_id": oid(cycle_id)}, {"$set": update}).matched_count == 1

    def delete_cycle(self, cycle_id: str) -> bool:
        return self._col.delete_one({"_id": oid(cycle_id)}).deleted_count == 1


class MongoSelfReviewRepository(MongoRepository, SelfReviewRepository):
    collection_name = "self_reviews"

    @staticmethod
    def _to_model(doc: dict) -> SelfReview:
        return SelfReview(
            review_id=str(doc["_id"]),
            cycle_id=str(doc["cycleId"]),
            employee_id=str(doc["employeeId"]),
            ratings=dict(doc.get("ratings") or {}),
            comments=doc.get("comments", ""),
            status=ReviewStatus(doc.get("status", "draft")),
            submitted_at=doc.get("submittedAt"),
        )

    def get(self, cycle_id: str, employee_id: str) -> Optional[SelfReview]:
        doc = self._col.find_one({"cycleId": oid(cycle_id), "employeeId": oid(employee_id)})
        return self._to_model(doc) if doc else None

    def list_reviews(
        self,
        *,
        employee_ids: Optional[Sequence[str]] = None,
        cycle_id: Optional[str] = None,
    ) -> Sequence[SelfReview]:
        query: dict = {}
        if employee_ids is not None:
            query["employeeId"] = {"$in": [oid(e) for e in employee_ids]}
        if cycle_id:
            query["cycleId"] = oid(cycle_id)
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def save(self, review: SelfReview) -> str:
        now = datetime.now()
        doc = self._col.find_one_and_update(
            {"cycleId": oid(review.cycle_id), "employeeId": oid(review.employee_id)},
            {
                "$set": {
                    "ratings": review.ratings,
                    "comments": review.comments,
                    "status": review.status.value,
                    "submittedAt": review.submitted_at,
                    "updatedAt": now,
                },
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return str(doc["_id"])


class MongoManagerReviewRepository(MongoRepository, ManagerReviewRepository):
    collection_name = "manager_reviews"

    @staticmethod
    def _to_model(doc: dict) -> ManagerReview:
        return ManagerReview(
            review_id=str(doc["_id"]),
            cycle_id=str(doc["cycleId"]),
            employee_id=str(doc["employeeId"]),
            manager_id=str(doc["managerId"]),
            ratings=dict(doc.get("ratings") or {}),
            final_rating=doc.get("finalRating"),
            manager_comments=doc.get("managerComments", ""),
            status=ReviewStatus(doc.get("status", "draft")),
            submitted_at=doc.get("submittedAt"),
        )

    def get(self, cycle_id: str, employee_id: str) -> Optional[ManagerReview]:
        doc = self._col.find_one({"cycleId": oid(cycle_id), "employeeId": oid(employee_id)})
        return self._to_model(doc) if doc else None

    def list_reviews(
        self,
        *,
        manager_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        cycle_id: Optional[str] = None,
    ) -> Sequence[ManagerReview]:
        query: dict = {}
        if manager_id:
            query["managerId"] = oid(manager_id)
        if employee_id:
            query["employeeId"] = oid(employee_id)
        if cycle_id:
            query["cycleId"] = oid(cycle_id)
        return [self._to_model(d) for d in self._col.find(query).sort("createdAt", -1)]

    def save(self, review: ManagerReview) -> str:
        now = datetime.now()
        doc = self._col.find_one_and_update(
            {"cycleId": oid(review.cycle_id), "employeeId": oid(review.employee_id)},
            {
                "$set": {
                    "managerId": oid(review.manager_id),
                    "ratings": review.ratings,
                    "finalRating": review.final_rating,
                    "managerComments": review.manager_comments,
                    "status": review.status.value,
                    "submittedAt": review.submitted_at,
                    "updatedAt": now,
                },
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return str(doc["_id"])
