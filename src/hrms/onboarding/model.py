from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from ..employees.model import Employee


class OnboardingStatus(str, Enum):
    INVITED = "invited"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    CHANGES_REQUESTED = "changes_requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


ACTIVE_STATUSES = (
    OnboardingStatus.INVITED,
    OnboardingStatus.IN_PROGRESS,
    OnboardingStatus.SUBMITTED,
    OnboardingStatus.CHANGES_REQUESTED,
)

LOCKED_STATUSES = (
    OnboardingStatus.SUBMITTED,
    OnboardingStatus.APPROVED,
    OnboardingStatus.REJECTED,
    OnboardingStatus.COMPLETED,
)


class OnboardingStep(str, Enum):
    """Sections of the self-service form, in display order."""

    PERSONAL_DETAILS = "personalDetails"
    ADDRESS_DETAILS = "addressDetails"
    IDENTITY_KYC = "identityKYC"
    EMPLOYMENT_DETAILS = "employmentDetails"
    COMPENSATION_PAYROLL = "compensationPayroll"
    STATUTORY_TAX = "statutoryTax"
    EDUCATION_DETAILS = "educationDetails"
    PREVIOUS_EMPLOYMENT = "previousEmployment"
    EMERGENCY_CONTACT = "emergencyContact"
    POLICIES_DECLARATIONS = "policiesDeclarations"


def progress_of(completed: FrozenSet[OnboardingStep]) -> int:
    return int(len(completed) * 100 / len(OnboardingStep) + 0.5)


@dataclass(frozen=True)
class OnboardingRequest:
    request_id: str
    code: str
    email: str
    first_name: str
    last_name: str
    date_of_joining: date
    department: str
    designation: str
    token: str
    token_expiry: datetime
    expiry_date: date
    status: OnboardingStatus = OnboardingStatus.INVITED
    progress: int = 0
    reporting_manager_id: Optional[str] = None
    requires_manager_ack: bool = False
    work_location: str = ""
    mobile_number: Optional[str] = None
    candidate_id: Optional[str] = None
    employee_id: Optional[str] = None
    hr_comments: Optional[str] = None
    rejection_reason: Optional[str] = None
    invited_by: Optional[str] = None
    invited_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reminder_count: int = 0
    last_reminder_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def token_expired(self, at: datetime) -> bool:
        return at > self.token_expiry

    @property
    def is_editable(self) -> bool:
        return self.status not in LOCKED_STATUSES


@dataclass(frozen=True)
class OnboardingSubmission:
    submission_id: str
    request_id: str
    steps: Dict[str, Any] = field(default_factory=dict)
    completed: FrozenSet[OnboardingStep] = frozenset()
    is_draft: bool = True
    submitted_at: Optional[datetime] = None
    employee_id: Optional[str] = None
    last_saved_at: Optional[datetime] = None

    json_properties = ("progress", "is_complete")

    @property
    def progress(self) -> int:
        return progress_of(self.completed)

    @property
    def is_complete(self) -> bool:
        return len(self.completed) == len(OnboardingStep)

    def step(self, step: OnboardingStep) -> Any:
        return self.steps.get(step.value) or {}


@dataclass(frozen=True)
class ApprovalResult:
    request: OnboardingRequest
    employee: Employee
    is_new_employee: bool
    default_password: Optional[str] = None
