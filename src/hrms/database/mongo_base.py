from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.database import Database

from ..core.exceptions import ValidationError


def oid(value: Any) -> ObjectId:
    """Convert a hex string to ObjectId, raising a domain error when malformed."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError) as exc:
        raise ValidationError("Invalid id") from exc


def oid_or_none(value: Any) -> Optional[ObjectId]:
    return oid(value) if value else None


def id_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def to_stored_date(value: Optional[date]) -> Optional[datetime]:
    """BSON has no date type, dates are stored as midnight datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


class MongoRepository:
    """Base class holding the database handle and one collection."""

    collection_name: str = ""

    def __init__(self, db: Database):
        self._db = db
        self._col = db[self.collection_name]


class MongoSequenceRepository:
    """Monotonic counters backing human readable codes (CAN-2025-001, EMP007...)."""

    def __init__(self, db: Database):
        self._col = db["counters"]

    def next_value(self, key: str) -> int:
        doc = self._col.find_one_and_update(
            {"_id": key},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])
