from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from ..common.schemas import ApiModel
from .model import BreakScope, BreakType


class StartBreakBody(ApiModel):
    break_type: BreakType = BreakType.PERSONAL
    notes: Optional[str] = Field(default=None, max_length=500)


class BreakPolicyBody(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    scope: BreakScope = BreakScope.GLOBAL
    scope_ids: List[str] = Field(default_factory=list)
    allow_breaks: bool = True
    allowed_break_types: List[BreakType] = Field(
        default_factory=lambda: [BreakType.LUNCH, BreakType.TEA, BreakType.PERSONAL]
    )
    max_breaks_per_day: int = Field(default=0, ge=0)
    max_total_break_duration: int = Field(default=0, ge=0)
    max_duration_per_break: int = Field(default=0, ge=0)
    min_working_hours_before_first_break: float = Field(default=0, ge=0)
    grace_period: int = Field(default=5, ge=0)
    paid_breaks: List[BreakType] = Field(default_factory=lambda: [BreakType.LUNCH])
    deduct_break_time: bool = True
    allow_break_overrun: bool = False
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    is_active: bool = True
    priority: int = 0


class BreakPolicyUpdateBody(BreakPolicyBody):
    name: Optional[str] = Field(default=None, min_length=1)
    scope: Optional[BreakScope] = None


class CorrectBreakBody(ApiModel):
    start_time: datetime
    end_time: datetime
    reason: str = Field(min_length=1)
