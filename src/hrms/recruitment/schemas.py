from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, EmailStr, Field, model_validator

from ..common.schemas import ApiModel
from .model import CandidateStatus, InterviewMode, InterviewStatus, Recommendation, RequisitionStatus


class CriterionBody(ApiModel):
    name: str = Field(min_length=1)
    weightage: Optional[float] = Field(default=None, ge=0, le=100)


class RoundBody(ApiModel):
    name: str = Field(min_length=1)
    order: int = Field(ge=1)
    round_type: str = "technical"
    duration_minutes: int = Field(default=60, ge=15, le=480)
    criteria: List[CriterionBody] = Field(default_factory=list)


class RequisitionBody(ApiModel):
    job_title: str = Field(min_length=1, max_length=200)
    department: str = Field(min_length=1)
    location: str = ""
    employment_type: Literal["full_time", "part_time", "contract", "internship"] = "full_time"
    description: str = ""
    requirements: List[str] = Field(default_factory=list)
    required_skills: List[str] = Field(default_factory=list)
    hiring_manager_id: Optional[str] = None
    number_of_positions: int = Field(default=1, ge=1)
    interview_rounds: List[RoundBody] = Field(default_factory=list)
    status: RequisitionStatus = RequisitionStatus.DRAFT
    allow_public_applications: bool = False
    public_application_deadline: Optional[date] = None
    expected_start_date: Optional[date] = None


class RequisitionUpdateBody(RequisitionBody):
    job_title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    department: Optional[str] = Field(default=None, min_length=1)
    status: Optional[RequisitionStatus] = None


class CandidateBody(ApiModel):
    first_name: str = Field(min_length=1)
    last_name: str = ""
    email: EmailStr
    phone: str = Field(default="", validation_alias=AliasChoices("phone", "phoneNumber"))
    total_experience: Optional[float] = Field(default=None, ge=0)
    current_company: Optional[str] = None
    expected_ctc: Optional[float] = Field(default=None, ge=0, alias="expectedCTC")
    notice_period_days: Optional[int] = Field(default=None, ge=0)


class NewCandidateBody(CandidateBody):
    requisition_id: str = Field(validation_alias=AliasChoices("jobRequisitionId", "requisitionId"))
    source: str = "direct"


class CandidateUpdateBody(ApiModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = None
    phone: Optional[str] = Field(default=None, validation_alias=AliasChoices("phone", "phoneNumber"))
    total_experience: Optional[float] = Field(default=None, ge=0)
    current_company: Optional[str] = None
    expected_ctc: Optional[float] = Field(default=None, ge=0, alias="expectedCTC")
    notice_period_days: Optional[int] = Field(default=None, ge=0)


class CandidateStatusBody(ApiModel):
    status: CandidateStatus
    notes: Optional[str] = None


class InterviewBody(ApiModel):
    candidate_id: str
    round_name: str = Field(min_length=1)
    round_order: int = Field(ge=1)
    round_type: Optional[str] = None
    start_time: datetime = Field(validation_alias=AliasChoices("scheduledStartTime", "startTime"))
    end_time: datetime = Field(validation_alias=AliasChoices("scheduledEndTime", "endTime"))
    mode: InterviewMode = InterviewMode.VIDEO
    interviewers: List[str] = Field(min_length=1)
    primary_interviewer_id: Optional[str] = None
    location: Optional[str] = None
    interview_link: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("Interview end time must be after start time")
        if self.mode == InterviewMode.IN_PERSON and not self.location:
            raise ValueError("Location is required for in-person interviews")
        return self


class RescheduleBody(ApiModel):
    start_time: datetime = Field(validation_alias=AliasChoices("scheduledStartTime", "startTime"))
    end_time: datetime = Field(validation_alias=AliasChoices("scheduledEndTime", "endTime"))
    reason: Optional[str] = None


class InterviewStatusBody(ApiModel):
    status: InterviewStatus
    reason: Optional[str] = None


class RatingBody(ApiModel):
    criterion: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    weightage: Optional[float] = Field(default=None, ge=0, le=100)
    comments: Optional[str] = None


class FeedbackBody(ApiModel):
    interview_id: str
    criterion_ratings: List[RatingBody] = Field(min_length=1)
    recommendation: Recommendation
    overall_comments: str = ""
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    submit: bool = False


class CompensationBody(ApiModel):
    annual_ctc: float = Field(gt=0, alias="annualCTC")
    base_salary: Optional[float] = Field(default=None, ge=0)
    variable_pay: Optional[float] = Field(default=None, ge=0)
    joining_bonus: Optional[float] = Field(default=None, ge=0)
    currency: str = "INR"


class OfferBody(ApiModel):
    candidate_id: str
    job_title: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    compensation: CompensationBody
    start_date: date
    valid_until: date = Field(validation_alias=AliasChoices("offerValidUntil", "validUntil"))
    requires_approval: bool = False


class OfferActionBody(ApiModel):
    action: Literal["approve", "send", "withdraw"]
    reason: Optional[str] = None


class OfferResponseBody(ApiModel):
    response: Literal["accepted", "rejected"]
    comments: Optional[str] = Field(default=None, max_length=1000)
