from __future__ import annotations

from datetime import date
from typing import Any, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from ..common.schemas import ApiModel
from .model import OnboardingStep
from .validators import is_valid_mobile


class OnboardingBody(ApiModel):
    email: EmailStr
    first_name: str = Field(min_length=1)
    last_name: str = ""
    date_of_joining: date
    department: str = Field(min_length=1)
    designation: str = Field(min_length=1)
    reporting_manager_id: Optional[str] = None
    requires_manager_ack: bool = False
    work_location: str = ""
    mobile_number: Optional[str] = None
    expiry_days: int = Field(default=30, ge=1, le=90)

    @field_validator("mobile_number")
    @classmethod
    def check_mobile(cls, value: Optional[str]) -> Optional[str]:
        if value and not is_valid_mobile(value):
            raise ValueError("Invalid mobile number")
        return value


REVIEW_FIELDS = ("action", "rejection_reason", "comments", "expiry_days")


class OnboardingUpdateBody(ApiModel):
    """Either an HR review action or an edit of the invitation details."""

    action: Optional[Literal["approve", "reject", "request_changes", "regenerate_token"]] = None
    rejection_reason: Optional[str] = None
    comments: Optional[str] = None
    expiry_days: Optional[int] = Field(default=None, ge=1, le=90)
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = None
    date_of_joining: Optional[date] = None
    department: Optional[str] = Field(default=None, min_length=1)
    designation: Optional[str] = Field(default=None, min_length=1)
    reporting_manager_id: Optional[str] = None
    requires_manager_ack: Optional[bool] = None
    work_location: Optional[str] = None

    def details(self) -> dict:
        return {k: v for k, v in self.changes().items() if k not in REVIEW_FIELDS}


class StepBody(ApiModel):
    step: OnboardingStep
    data: Any = None

