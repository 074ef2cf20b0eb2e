from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from ..common.schemas import ApiModel
from .model import Competency, CompetencyType, CycleStatus


class CompetencyBody(ApiModel):
    name: str = Field(min_length=1)
    type: CompetencyType = CompetencyType.RATING
    max_rating: Optional[int] = Field(default=None, ge=1, le=10)

    def to_model(self) -> Competency:
        max_rating = (self.max_rating or 5) if self.type == CompetencyType.RATING else None
        return Competency(name=self.name.strip(), type=self.type, max_rating=max_rating)


class CycleBody(ApiModel):
    name: str = Field(min_length=1)
    start_date: date
    end_date: date
    status: CycleStatus = CycleStatus.DRAFT
    competencies: List[CompetencyBody] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self

    def data(self) -> dict:
        return {
            "name": self.name,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "status": self.status,
            "competencies": [c.to_model() for c in self.competencies],
        }


class CycleUpdateBody(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[CycleStatus] = None
    competencies: Optional[List[CompetencyBody]] = None

    def data(self) -> dict:
        out = self.changes()
        if self.competencies is not None:
            out["competencies"] = [c.to_model() for c in self.competencies]
        return {k: v for k, v in out.items() if v is not None}


class SelfReviewBody(ApiModel):
    cycle_id: str
    ratings: Dict[str, Any] = Field(default_factory=dict)
    comments: str = ""
    submit: bool = False


class ManagerReviewBody(ApiModel):
    cycle_id: str
    employee_id: str
    ratings: Dict[str, Any] = Field(default_factory=dict)
    final_rating: Optional[int] = Field(default=None, ge=1, le=5)
    manager_comments: str = ""
    submit: bool = False
