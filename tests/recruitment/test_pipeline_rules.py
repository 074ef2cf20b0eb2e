import pytest

from hrms.core.exceptions import ValidationError
from hrms.recruitment import state_machine
from hrms.recruitment.model import CandidateStatus as S
from hrms.recruitment.model import CriterionRating
from hrms.recruitment.scoring import candidate_score, feedback_score, normalize_rating, round_half_up


def test_transition_accepts_listed_moves_only():
    assert state_machine.transition(S.APPLIED, S.SHORTLISTED) == S.SHORTLISTED
    with pytest.raises(ValidationError) as exc:
        state_machine.transition(S.APPLIED, S.OFFER_SENT)
    assert "Valid next states: screening, shortlisted" in str(exc.value)


def test_terminal_statuses_have_no_exit():
    for status in (S.SELECTED, S.REJECTED, S.WITHDRAWN, S.CANCELLED):
        assert state_machine.is_terminal(status)
    assert not state_machine.is_terminal(S.ON_HOLD)
    with pytest.raises(ValidationError) as exc:
        state_machine.transition(S.REJECTED, S.SCREENING)
    assert str(exc.value).endswith("none")


def test_pipeline_guards():
    assert state_machine.can_schedule_interview(S.SHORTLISTED)
    assert state_machine.can_schedule_interview(S.INTERVIEW_COMPLETED)
    assert not state_machine.can_schedule_interview(S.APPLIED)
    assert state_machine.can_create_offer(S.OFFER_PENDING)
    assert not state_machine.can_create_offer(S.INTERVIEW_SCHEDULED)
    assert state_machine.can_accept_offer(S.OFFER_SENT)
    assert not state_machine.can_accept_offer(S.OFFER_PENDING)


def test_ratings_normalize_to_percent():
    assert [normalize_rating(r) for r in (1, 3, 5)] == [0, 50, 100]
    assert round_half_up(62.5) == 63
    assert round_half_up(62.49) == 62


def test_feedback_score_is_weighted_when_every_criterion_has_weight():
    ratings = [CriterionRating("Coding", 5, weightage=60), CriterionRating("Design", 3, weightage=40)]
    assert feedback_score(ratings) == 80


def test_feedback_score_falls_back_to_plain_average():
    ratings = [CriterionRating("Coding", 4, weightage=60), CriterionRating("Design", 2)]
    assert feedback_score(ratings) == 50
    assert feedback_score([]) == 0


def test_candidate_score_averages_rounds():
    assert candidate_score([80, 45]) == 63
    assert candidate_score([]) is None
