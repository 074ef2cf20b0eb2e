"""Turn domain objects into JSON-ready structures.

Dataclass fields become camelCase keys. A dataclass may list computed
properties in `json_properties` and hidden fields in `json_exclude`.
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, time
from enum import Enum
from typing import Any


def camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_json(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        excluded = set(getattr(value, "json_exclude", ()))
        out = {
            camel(f.name): to_json(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if f.name not in excluded
        }
        for prop in getattr(value, "json_properties", ()):
            out[camel(prop)] = to_json(getattr(value, prop))
        return out
    if isinstance(value, dict):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [to_json(v) for v in value]
        return sorted(items) if isinstance(value, (set, frozenset)) and all(isinstance(i, str) for i in items) else items
    raise TypeError(f"Cannot serialize {type(value).__name__}")
