from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AuditEntry, Notification, NotificationType


class NotificationRepository(Protocol):
    def create(
        self,
        *,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        link: Optional[str] = None,
        related_id: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        raise NotImplementedError

    def count_unread(self, user_id: str) -> int:
        raise NotImplementedError

    def mark_read(self, user_id: str, notification_ids: Optional[Sequence[str]] = None) -> int:
        """Mark the given notifications (or all when None) as read; returns modified count."""

        raise NotImplementedError


class AuditRepository(Protocol):
    def record(
        self,
        *,
        module: str,
        action: str,
        description: str,
        entity_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        performed_by: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> str:
        raise NotImplementedError

    def list_entries(
        self,
        *,
        module: Optional[str] = None,
        entity_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[AuditEntry]:
        raise NotImplementedError
