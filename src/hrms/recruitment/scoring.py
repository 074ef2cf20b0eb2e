from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

from .model import CriterionRating


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_rating(rating: int) -> float:
    """Map a 1-5 rating onto 0-100 (1 -> 0, 3 -> 50, 5 -> 100)."""
    return (rating - 1) / 4 * 100


def feedback_score(ratings: Sequence[CriterionRating]) -> int:
    """Weighted average when every criterion carries a weightage, plain average otherwise."""
    if not ratings:
        return 0
    if all(r.weightage for r in ratings):
        total_weight = sum(r.weightage for r in ratings)
        weighted = sum(normalize_rating(r.rating) * r.weightage for r in ratings)
        return round_half_up(weighted / total_weight)
    return round_half_up(sum(normalize_rating(r.rating) for r in ratings) / len(ratings))


def candidate_score(scores: Iterable[int]) -> Optional[int]:
    scores = list(scores)
    if not scores:
        return None
    return round_half_up(sum(scores) / len(scores))
