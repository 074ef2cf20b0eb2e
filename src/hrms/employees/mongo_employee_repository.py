from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.mongo_base import MongoRepository, id_str, oid, oid_or_none
from .model import Employee
from .repository import EmployeeRepository

_FIELD_MAP = {
    "code": "employeeId",
    "name": "name",
    "email": "email",
    "role": "role",
    "manager_id": "managerId",
    "department": "department",
    "designation": "designation",
    "is_active": "isActive",
}


class MongoEmployeeRepository(MongoRepository, EmployeeRepository):
    collection_name = "employees"

    @staticmethod
    def _to_model(doc: dict) -> Employee:
        return Employee(
            employee_id=str(doc["_id"]),
            code=doc["employeeId"],
            name=doc["name"],
            email=doc["email"],
            role=Role(doc["role"]),
            manager_id=id_str(doc.get("managerId")),
            department=doc.get("department"),
            designation=doc.get("designation"),
            is_active=bool(doc.get("isActive", True)),
        )

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        doc = self._col.find_one({"_id": oid(employee_id)})
        return self._to_model(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[Employee]:
        doc = self._col.find_one({"email": email.strip().lower()})
        return self._to_model(doc) if doc else None

    def get_by_code(self, code: str) -> Optional[Employee]:
        doc = self._col.find_one({"employeeId": code})
        return self._to_model(doc) if doc else None

    def list_employees(
        self,
        *,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        manager_id: Optional[str] = None,
    ) -> Sequence[Employee]:
        query: dict = {}
        if role is not None:
            query["role"] = role.value
        if is_active is not None:
            query["isActive"] = is_active
        if manager_id is not None:
            query["managerId"] = oid(manager_id)
        return [self._to_model(d) for d in self._col.find(query).sort("name", 1)]

    def create_employee(
        self,
        *,
        code: str,
        name: str,
        email: str,
        role: Role,
        manager_id: Optional[str],
        department: Optional[str] = None,
        designation: Optional[str] = None,
    ) -> str:
        now = datetime.now()
        result = self._col.insert_one(
            {
                "employeeId": code,
                "name": name,
                "email": email.strip().lower(),
                "role": role.value,
                "managerId": oid_or_none(manager_id),
                "department": department,
                "designation": designation,
                "isActive": True,
                "createdAt": now,
                "updatedAt": now,
            }
        )
        return str(result.inserted_id)

    def update_employee(self, employee_id: str, fields: dict) -> bool:
        update: dict = {"updatedAt": datetime.now()}
        for key, value in fields.items():
            if key == "manager_id":
                value = oid_or_none(value)
            elif key == "role" and isinstance(value, Role):
                value = value.value
            elif key == "email" and value:
                value = value.strip().lower()
            update[_FIELD_MAP[key]] = value
        result = self._col.update_one({"_id": oid(employee_id)}, {"$set": update})
        return result.matched_count == 1

    def set_active(self, employee_id: str, *, is_active: bool) -> bool:
        return self.update_employee(employee_id, {"is_active": bool(is_active)})
