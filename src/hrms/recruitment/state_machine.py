"""Candidate pipeline transitions.

Every status change of a candidate goes through ``transition`` so the
history only ever records moves listed in ``VALID_TRANSITIONS``.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

from ..core.exceptions import ValidationError
from .model import CandidateStatus as S

VALID_TRANSITIONS: Dict[S, Tuple[S, ...]] = {
    S.APPLIED: (S.SCREENING, S.SHORTLISTED, S.REJECTED, S.WITHDRAWN, S.ON_HOLD),
    S.SCREENING: (S.SHORTLISTED, S.REJECTED, S.WITHDRAWN, S.ON_HOLD),
    S.SHORTLISTED: (S.INTERVIEW_SCHEDULED, S.REJECTED, S.WITHDRAWN, S.ON_HOLD),
    S.INTERVIEW_SCHEDULED: (S.INTERVIEW_IN_PROGRESS, S.REJECTED, S.WITHDRAWN, S.ON_HOLD, S.CANCELLED),
    S.INTERVIEW_IN_PROGRESS: (S.INTERVIEW_COMPLETED, S.REJECTED, S.WITHDRAWN, S.ON_HOLD),
    S.INTERVIEW_COMPLETED: (S.OFFER_PENDING, S.REJECTED, S.ON_HOLD),
    S.OFFER_PENDING: (S.OFFER_SENT, S.REJECTED, S.WITHDRAWN, S.ON_HOLD),
    S.OFFER_SENT: (S.OFFER_ACCEPTED, S.OFFER_REJECTED, S.OFFER_EXPIRED, S.REJECTED, S.WITHDRAWN),
    S.OFFER_ACCEPTED: (S.SELECTED,),
    S.OFFER_REJECTED: (S.REJECTED,),
    S.OFFER_EXPIRED: (S.REJECTED, S.ON_HOLD),
    S.ON_HOLD: (S.SCREENING, S.SHORTLISTED, S.INTERVIEW_SCHEDULED, S.REJECTED, S.WITHDRAWN),
    S.SELECTED: (),
    S.REJECTED: (),
    S.WITHDRAWN: (),
    S.CANCELLED: (),
}

TERMINAL: FrozenSet[S] = frozenset(status for status, nxt in VALID_TRANSITIONS.items() if not nxt)


def can_transition(current: S, target: S) -> bool:
    return target in VALID_TRANSITIONS.get(current, ())


def transition(current: S, target: S) -> S:
    if not can_transition(current, target):
        allowed = ", ".join(s.value for s in VALID_TRANSITIONS.get(current, ())) or "none"
        raise ValidationError(
            f"Invalid status transition from {current.value} to {target.value}. Valid next states: {allowed}"
        )
    return target


def is_terminal(status: S) -> bool:
    return status in TERMINAL


SCHEDULABLE: FrozenSet[S] = frozenset({S.SHORTLISTED, S.SCREENING, S.ON_HOLD})
INTERVIEW_STAGES: FrozenSet[S] = frozenset({S.INTERVIEW_SCHEDULED, S.INTERVIEW_IN_PROGRESS, S.INTERVIEW_COMPLETED})


def can_schedule_interview(status: S) -> bool:
    """First round from the screening stages, later rounds while interviews are under way."""
    return status in SCHEDULABLE or status in INTERVIEW_STAGES


def can_create_offer(status: S) -> bool:
    return status in (S.INTERVIEW_COMPLETED, S.OFFER_PENDING)


def can_accept_offer(status: S) -> bool:
    return status == S.OFFER_SENT
