from __future__ import annotations

from typing import Iterable, Optional, Sequence

from pymongo.errors import PyMongoError

from ..core.logging import get_logger
from ..users.model import SessionUser
from ..users.repository import UserRepository
from .model import Notification, NotificationType
from .repository import AuditRepository, NotificationRepository

logger = get_logger("hrms.notifications")


class NotificationService:
    """In-app notifications.

    Delivery is best-effort: a failed insert is logged and never fails the
    business operation that triggered it.
    """

    def __init__(self, notifications: NotificationRepository, users: UserRepository):
        self._notifications = notifications
        self._users = users

    def notify(
        self,
        user_id: Optional[str],
        type: NotificationType,
        title: str,
        message: str,
        *,
        link: Optional[str] = None,
        related_id: Optional[str] = None,
    ) -> None:
        if not user_id:
            return
        try:
            self._notifications.create(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                link=link,
                related_id=related_id,
            )
        except PyMongoError:
            logger.exception("failed to create notification type=%s user=%s", type.value, user_id)

    def notify_employee(self, employee_id: Optional[str], type: NotificationType, title: str, message: str, **kwargs) -> None:
        if not employee_id:
            return
        user = self._users.get_by_employee_id(employee_id)
        if user and user.is_active:
            self.notify(user.user_id, type, title, message, **kwargs)

    def notify_many(self, user_ids: Iterable[str], type: NotificationType, title: str, message: str, **kwargs) -> int:
        count = 0
        for user_id in user_ids:
            self.notify(user_id, type, title, message, **kwargs)
            count += 1
        return count

    def notify_all_active(self, type: NotificationType, title: str, message: str, **kwargs) -> int:
        return self.notify_many((u.user_id for u in self._users.list_active()), type, title, message, **kwargs)

    def list_for(self, actor: SessionUser, *, unread_only: bool = False) -> Sequence[Notification]:
        return self._notifications.list_for_user(actor.user_id, unread_only=unread_only)

    def unread_count(self, actor: SessionUser) -> int:
        return self._notifications.count_unread(actor.user_id)

    def mark_read(self, actor: SessionUser, notification_ids: Optional[Sequence[str]] = None) -> int:
        return self._notifications.mark_read(actor.user_id, notification_ids)


class AuditService:
    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def record(
        self,
        module: str,
        action: str,
        description: str,
        *,
        entity_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        performed_by: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> str:
        logger.debug("audit %s.%s entity=%s", module, action, entity_id)
        return self._audit.record(
            module=module,
            action=action,
            description=description,
            entity_id=entity_id,
            employee_id=employee_id,
            performed_by=performed_by,
            metadata=metadata,
        )

    def list_entries(self, *, module: Optional[str] = None, entity_id: Optional[str] = None, limit: int = 200):
        return self._audit.list_entries(module=module, entity_id=entity_id, limit=limit)
