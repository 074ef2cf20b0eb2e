from __future__ import annotations

from datetime import date
from typing import Any, Optional, Type, TypeVar

from flask import jsonify, request
from pydantic import BaseModel

from ..common.datetime_utils import parse_iso_date
from ..core.exceptions import ValidationError
from .serialization import to_json

M = TypeVar("M", bound=BaseModel)


def parse_body(schema: Type[M]) -> M:
    """Validate the JSON body; pydantic errors surface as 400 via the error handlers."""
    return schema.model_validate(request.get_json(silent=True) or {})


def ok(value: Any = None, status: int = 200, **extra: Any):
    payload = to_json(value) if value is not None else {}
    if extra:
        if not isinstance(payload, dict):
            payload = {"data": payload}
        payload.update({k: to_json(v) for k, v in extra.items()})
    return jsonify(payload), status


def message(text: str, status: int = 200, **extra: Any):
    return ok(None, status, message=text, **extra)


def query_date(name: str, default: Optional[date] = None) -> Optional[date]:
    raw = request.args.get(name)
    return parse_iso_date(raw) if raw else default


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def query_bool(name: str) -> Optional[bool]:
    raw = request.args.get(name)
    if raw is None:
        return None
    return raw.lower() in ("1", "true", "yes")
