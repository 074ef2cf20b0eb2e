from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none
from .model import User
from .repository import UserRepository


class MongoUserRepository(MongoRepository, UserRepository):
    collection_name = "users"

    @staticmethod
    def _to_model(doc: dict) -> User:
        return User(
            user_id=str(doc["_id"]),
            email=doc["email"],
            password_hash=doc["password"],
            role=Role(doc["role"]),
            employee_id=id_str(doc.get("employeeId")),
            is_active=bool(doc.get("isActive", True)),
            created_at=doc.get("createdAt"),
        )

    def get_by_id(self, user_id: str) -> Optional[User]:
        doc = self._col.find_one({"_id": oid(user_id)})
        return self._to_model(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[User]:
        doc = self._col.find_one({"email": email.strip().lower()})
        return self._to_model(doc) if doc else None

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        doc = self._col.find_one({"employeeId": oid(employee_id)})
        return self._to_model(doc) if doc else None

    def create_user(self, *, email: str, password_hash: str, role: Role, employee_id: Optional[str]) -> str:
        now = datetime.now()
        result = self._col.insert_one(
            {
                "email": email.strip().lower(),
                "password": password_hash,
                "role": role.value,
                "employeeId": oid_or_none(employee_id),
                "isActive": True,
                "createdAt": now,
                "updatedAt": now,
            }
        )
        return str(result.inserted_id)

    def _set(self, user_id: str, fields: dict) -> bool:
        fields["updatedAt"] = datetime.now()
        result = self._col.update_one({"_id": oid(user_id)}, {"$set": fields})
        return result.matched_count == 1

    def update_password(self, user_id: str, *, password_hash: str) -> bool:
        return self._set(user_id, {"password": password_hash})

    def update_role(self, user_id: str, *, role: Role) -> bool:
        return self._set(user_id, {"role": role.value})

    def set_active(self, user_id: str, *, is_active: bool) -> bool:
        return self._set(user_id, {"isActive": bool(is_active)})

    def link_employee(self, user_id: str, employee_id: str) -> bool:
        return self._set(user_id, {"employeeId": oid(employee_id)})

    def list_users(self) -> Sequence[User]:
        return [self._to_model(d) for d in self._col.find().sort("createdAt", -1)]

    def list_active(self) -> Sequence[User]:
        return [self._to_model(d) for d in self._col.find({"isActive": True})]
