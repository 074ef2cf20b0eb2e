from __future__ import annotations

from datetime import datetime
from typing import Iterable, Tuple

from pymongo import ASCENDING, IndexModel
from pymongo.database import Database
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from ..core.logging import get_logger

logger = get_logger("hrms.database")

UNIQUE_INDEXES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("users", ("email",)),
    ("employees", ("email",)),
    ("employees", ("employeeId",)),
    ("attendance", ("employeeId", "date")),
    ("rosters", ("employeeId", "date")),
    ("leave_balances", ("employeeId", "leaveType", "year")),
    ("payrolls", ("employeeId", "payrollMonth", "payrollYear")),
    ("self_reviews", ("cycleId", "employeeId")),
    ("manager_reviews", ("cycleId", "employeeId")),
    ("onboarding_requests", ("token",)),
)

LOOKUP_INDEXES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("leaves", ("employeeId", "startDate")),
    ("break_sessions", ("employeeId", "date")),
    ("break_sessions", ("date", "status")),
    ("notifications", ("userId", "createdAt")),
    ("audit_logs", ("module", "createdAt")),
    ("candidates", ("email",)),
    ("interviews", ("candidateId",)),
)


def _models(specs: Iterable[Tuple[str, Tuple[str, ...]]], *, unique: bool) -> dict:
    grouped: dict = {}
    for collection, keys in specs:
        grouped.setdefault(collection, []).append(
            IndexModel([(k, ASCENDING) for k in keys], unique=unique, name="_".join(keys) + ("_uniq" if unique else ""))
        )
    return grouped


def ensure_indexes(db: Database) -> None:
    """Create the indexes the application relies on. Safe to run repeatedly."""
    for unique, specs in ((True, UNIQUE_INDEXES), (False, LOOKUP_INDEXES)):
        for collection, models in _models(specs, unique=unique).items():
            db[collection].create_indexes(models)
    logger.info("indexes ready on database=%s", db.name)


def ensure_demo_admin(db: Database, *, email: str = "admin@hrms.local", password: str = "admin123") -> None:
    """Upsert a super admin employee plus login so a fresh database is usable."""
    email = email.strip().lower()
    now = datetime.now()

    employees = db["employees"]
    employee = employees.find_one({"email": email})
    if employee is None:
        employee_id = employees.insert_one(
            {
                "employeeId": "EMP000",
                "name": "System Administrator",
                "email": email,
                "role": Role.SUPER_ADMIN.value,
                "managerId": None,
                "isActive": True,
                "createdAt": now,
                "updatedAt": now,
            }
        ).inserted_id
    else:
        employee_id = employee["_id"]

    db["users"].update_one(
        {"email": email},
        {
            "$set": {
                "password": generate_password_hash(password),
                "role": Role.SUPER_ADMIN.value,
                "employeeId": employee_id,
                "isActive": True,
                "updatedAt": now,
            },
            "$setOnInsert": {"createdAt": now},
        },
        upsert=True,
    )
    logger.info("demo admin ready email=%s", email)
