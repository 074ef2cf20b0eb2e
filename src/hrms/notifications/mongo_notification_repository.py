from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none
from .model import AuditEntry, Notification, NotificationType
from .repository import AuditRepository, NotificationRepository


class MongoNotificationRepository(MongoRepository, NotificationRepository):
    collection_name = "notifications"

    @staticmethod
    def _to_model(doc: dict) -> Notification:
        return Notification(
            notification_id=str(doc["_id"]),
            user_id=str(doc["userId"]),
            type=NotificationType(doc["type"]),
            title=doc["title"],
            message=doc["message"],
            link=doc.get("link"),
            related_id=id_str(doc.get("relatedId")),
            is_read=bool(doc.get("isRead", False)),
            created_at=doc.get("createdAt"),
        )

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
        result = self._col.insert_one(
            {
                "userId": oid(user_id),
                "type": type.value,
                "title": title,
                "message": message,
                "link": link,
                "relatedId": oid_or_none(related_id),
                "isRead": False,
                "createdAt": datetime.now(),
            }
        )
        return str(result.inserted_id)

    def list_for_user(self, user_id: str, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        query: dict = {"userId": oid(user_id)}
        if unread_only:
            query["isRead"] = False
        cursor = self._col.find(query).sort("createdAt", -1).limit(int(limit))
        return [self._to_model(d) for d in cursor]

    def count_unread(self, user_id: str) -> int:
        return self._col.count_documents({"userId": oid(user_id), "isRead": False})

    def mark_read(self, user_id: str, notification_ids: Optional[Sequence[str]] = None) -> int:
        query: dict = {"userId": oid(user_id), "isRead": False}
        if notification_ids is not None:
            query["_id"] = {"$in": [oid(n) for n in notification_ids]}
        result = self._col.update_many(query, {"$set": {"isRead": True}})
        return result.modified_count


class MongoAuditRepository(MongoRepository, AuditRepository):
    collection_name = "audit_logs"

    @staticmethod
    def _to_model(doc: dict) -> AuditEntry:
        return AuditEntry(
            audit_id=str(doc["_id"]),
            module=doc["module"],
            action=doc["action"],
            description=doc.get("description", ""),
            entity_id=id_str(doc.get("entityId")),
            employee_id=id_str(doc.get("employeeId")),
            performed_by=id_str(doc.get("performedBy")),
            performed_at=doc.get("performedAt"),
            metadata=doc.get("metadata") or {},
        )

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
        result = self._col.insert_one(
            {
                "module": module,
                "action": action,
                "description": description,
                "entityId": oid_or_none(entity_id),
                "employeeId": oid_or_none(employee_id),
                "performedBy": oid_or_none(performed_by),
                "performedAt": datetime.now(),
                "metadata": metadata or {},
            }
        )
        return str(result.inserted_id)

    def list_entries(
        self,
        *,
        module: Optional[str] = None,
        entity_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[AuditEntry]:
        query: dict = {}
        if module:
            query["module"] = module
        if entity_id:
            query["entityId"] = oid(entity_id)
        cursor = self._col.find(query).sort("performedAt", -1).limit(int(limit))
        return [self._to_model(d) for d in cursor]
