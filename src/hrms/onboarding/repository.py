from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from .model import OnboardingRequest, OnboardingStatus, OnboardingStep, OnboardingSubmission


class OnboardingRequestRepository(Protocol):
    def get_by_id(self, request_id: str) -> Optional[OnboardingRequest]:
        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[OnboardingRequest]:
        raise NotImplementedError

    def find_active_by_email(self, email: str) -> Optional[OnboardingRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[OnboardingStatus] = None,
        reporting_manager_id: Optional[str] = None,
    ) -> Sequence[OnboardingRequest]:
        raise NotImplementedError

    def create_request(self, data: dict, *, code: str, token: str, token_expiry: datetime) -> str:
        raise NotImplementedError

    def update_request(self, request_id: str, fields: dict) -> bool:
        """Fields use model attribute names."""

        raise NotImplementedError

    def delete_request(self, request_id: str) -> bool:
        raise NotImplementedError


class OnboardingSubmissionRepository(Protocol):
    def get_for_request(self, request_id: str) -> Optional[OnboardingSubmission]:
        raise NotImplementedError

    def save_step(self, request_id: str, step: OnboardingStep, data: Any) -> OnboardingSubmission:
        """Store one step's payload, mark it complete, create the submission on first save."""

        raise NotImplementedError

    def set_draft(self, request_id: str, *, is_draft: bool, submitted_at: Optional[datetime]) -> None:
        raise NotImplementedError

    def link_employee(self, request_id: str, employee_id: str) -> None:
        raise NotImplementedError

    def delete_for_request(self, request_id: str) -> None:
        raise NotImplementedError
