from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class NotificationType(str, Enum):
    CYCLE_STARTED = "cycle_started"
    REVIEW_PENDING = "review_pending"
    REVIEW_SUBMITTED = "review_submitted"
    CYCLE_CLOSED = "cycle_closed"
    REMINDER = "reminder"
    LEAVE_DECIDED = "leave_decided"
    SHIFT_SWAP = "shift_swap"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    OFFER_RESPONSE = "offer_response"
    ONBOARDING_INVITED = "onboarding_invited"
    ONBOARDING_SUBMITTED = "onboarding_submitted"
    ONBOARDING_APPROVED = "onboarding_approved"
    ONBOARDING_REJECTED = "onboarding_rejected"
    ONBOARDING_CHANGES_REQUESTED = "onboarding_changes_requested"


@dataclass(frozen=True)
class Notification:
    notification_id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    related_id: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AuditEntry:
    """Append-only audit trail row (payroll, onboarding, recruitment...)."""

    audit_id: str
    module: str
    action: str
    description: str
    entity_id: Optional[str] = None
    employee_id: Optional[str] = None
    performed_by: Optional[str] = None
    performed_at: Optional[datetime] = None
    metadata: dict = field(default_factory=dict)
