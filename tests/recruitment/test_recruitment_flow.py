from datetime import datetime, timedelta

import pytest

from hrms.common.datetime_utils import now_local
from hrms.core.enums import Role
from hrms.core.exceptions import AuthorizationError, ConflictError, ValidationError
from hrms.onboarding.model import OnboardingStatus
from hrms.recruitment.model import (
    CandidateStatus,
    InterviewStatus,
    OfferStatus,
    RequisitionStatus,
)

from fakes import actor, fake_container

HR = actor(role=Role.HR)


def _setup(**requisition):
    c = fake_container()
    manager = c.repos.employees.add("Meera Manager", Role.MANAGER)
    panel_user = c.repos.users.add(
        email=manager.email, password_hash="x", role=Role.MANAGER, employee_id=manager.employee_id
    )
    req = c.requisition_service.create(
        HR,
        {
            "job_title": "Backend Engineer",
            "department": "Engineering",
            "location": "Pune",
            "hiring_manager_id": manager.employee_id,
            "status": RequisitionStatus.OPEN,
            "allow_public_applications": True,
            "interview_rounds": [
                {
                    "name": "Technical",
                    "order": 1,
                    "criteria": [{"name": "Coding", "weightage": 60}, {"name": "Design", "weightage": 40}],
                },
                {"name": "HR", "order": 2, "round_type": "hr"},
            ],
            **requisition,
        },
    )
    candidate = c.candidate_service.create(
        HR,
        {
            "requisition_id": req.requisition_id,
            "first_name": "Asha",
            "last_name": "Rao",
            "email": "Asha.Rao@Example.com",
            "phone": "9876543210",
        },
    )
    return c, manager, panel_user, req, candidate


def _schedule(c, candidate, panel_user, start=datetime(2025, 3, 12, 10, 0)):
    return c.interview_service.schedule(
        HR,
        {
            "candidate_id": candidate.candidate_id,
            "round_order": 1,
            "round_name": "Technical",
            "start_time": start,
            "end_time": start + timedelta(hours=1),
            "interviewers": [panel_user.user_id],
        },
    )


def _interviewed(c, manager, panel_user, candidate):
    c.candidate_service.change_status(HR, candidate.candidate_id, CandidateStatus.SHORTLISTED)
    interview = _schedule(c, candidate, panel_user)
    c.interview_service.update_status(
        actor(manager, user_id=panel_user.user_id), interview.interview_id, InterviewStatus.COMPLETED
    )
    return interview


def test_requisition_rounds_must_be_sequential():
    c = fake_container()
    with pytest.raises(ValidationError):
        c.requisition_service.create(
            HR,
            {"job_title": "QA", "department": "Engineering", "interview_rounds": [{"name": "Tech", "order": 2}]},
        )


def test_requisition_visibility():
    c, manager, _, req, _ = _setup()
    assert req.code.startswith("REQ-")
    assert [r.requisition_id for r in c.requisition_service.list_for(actor(manager))] == [req.requisition_id]
    worker = c.repos.employees.add("Ravi Kumar", manager_id=manager.employee_id)
    with pytest.raises(AuthorizationError):
        c.requisition_service.list_for(actor(worker))
    with pytest.raises(AuthorizationError):
        c.candidate_service.list_for(actor(worker))


def test_candidate_email_is_unique_per_requisition():
    c, _, _, req, candidate = _setup()
    assert candidate.email == "asha.rao@example.com"
    assert candidate.status == CandidateStatus.APPLIED
    assert candidate.source == "direct"
    with pytest.raises(ConflictError):
        c.candidate_service.create(
            HR, {"requisition_id": req.requisition_id, "first_name": "A", "last_name": "R", "email": "ASHA.RAO@example.com"}
        )


def test_candidate_needs_open_requisition():
    c = fake_container()
    draft = c.requisition_service.create(HR, {"job_title": "QA", "department": "Engineering"})
    assert draft.status == RequisitionStatus.DRAFT
    with pytest.raises(ValidationError):
        c.candidate_service.create(
            HR, {"requisition_id": draft.requisition_id, "first_name": "A", "last_name": "B", "email": "a@b.com"}
        )


def test_change_status_follows_pipeline_and_is_audited():
    c, _, _, _, candidate = _setup()
    with pytest.raises(ValidationError):
        c.candidate_service.change_status(HR, candidate.candidate_id, CandidateStatus.OFFER_SENT)
    moved = c.candidate_service.change_status(HR, candidate.candidate_id, CandidateStatus.SCREENING, notes="cv ok")
    assert moved.status == CandidateStatus.SCREENING
    assert moved.status_history[-1].notes == "cv ok"
    assert "candidate_status_changed" in c.repos.audit.actions("recruitment")


def test_schedule_moves_candidate_and_blocks_panel_conflicts():
    c, _, panel_user, _, candidate = _setup()
    with pytest.raises(ValidationError):
        _schedule(c, candidate, panel_user)

    c.candidate_service.change_status(HR, candidate.candidate_id, CandidateStatus.SHORTLISTED)
    interview = _schedule(c, candidate, panel_user)
    assert interview.primary_interviewer_id == panel_user.user_id
    refreshed = c.candidate_service.find(candidate.candidate_id)
    assert refreshed.status == CandidateStatus.INTERVIEW_SCHEDULED
    assert refreshed.current_stage == "Technical"
    assert c.repos.notifications.count_unread(panel_user.user_id) == 1

    with pytest.raises(ValidationError) as exc:
        _schedule(c, candidate, panel_user, start=datetime(2025, 3, 12, 10, 30))
    assert "conflict" in str(exc.value)


def test_schedule_rejects_unknown_round_and_interviewer():
    c, _, panel_user, _, candidate = _setup()
    c.candidate_service.change_status(HR, candidate.candidate_id, CandidateStatus.SHORTLISTED)
    data = {
        "candidate_id": candidate.candidate_id,
        "round_order": 1,
        "round_name": "Culture",
        "start_time": datetime(2025, 3, 12, 10),
        "end_time": datetime(2025, 3, 12, 11),
        "interviewers": [panel_user.user_id],
    }
    with pytest.raises(ValidationError):
        c.interview_service.schedule(HR, data)
    with pytest.raises(ValidationError):
        c.interview_service.schedule(HR, {**data, "round_name": "Technical", "interviewers": ["nobody"]})


def test_feedback_scores_candidate_and_locks_after_submit():
    c, manager, panel_user, _, candidate = _setup()
    interview = _interviewed(c, manager, panel_user, candidate)
    assert c.candidate_service.find(candidate.candidate_id).status == CandidateStatus.INTERVIEW_COMPLETED

    panel = actor(manager, user_id=panel_user.user_id)
    data = {
        "interview_id": interview.interview_id,
        "criterion_ratings": [
            {"criterion": "Coding", "rating": 5, "weightage": 60},
            {"criterion": "Design", "rating": 3, "weightage": 40},
        ],
        "recommendation": "hire",
        "submit": True,
    }
    feedback = c.feedback_service.save(panel, data)
    assert feedback.overall_score == 80
    assert feedback.is_submitted
    assert c.candidate_service.find(candidate.candidate_id).overall_score == 80
    assert c.interview_service.find(interview.interview_id).feedback_submitted_by == (panel_user.user_id,)

    with pytest.raises(ValidationError):
        c.feedback_service.save(panel, data)
    with pytest.raises(AuthorizationError):
        c.feedback_service.save(HR, data)


def test_feedback_rating_range():
    c, manager, panel_user, _, candidate = _setup()
    interview = _interviewed(c, manager, panel_user, candidate)
    with pytest.raises(ValidationError):
        c.feedback_service.save(
            actor(manager, user_id=panel_user.user_id),
            {
                "interview_id": interview.interview_id,
                "criterion_ratings": [{"criterion": "Coding", "rating": 6}],
                "recommendation": "maybe",
            },
        )


def _offer(c, candidate, **extra):
    today = now_local().date()
    return c.offer_service.create(
        HR,
        {
            "candidate_id": candidate.candidate_id,
            "start_date": today + timedelta(days=30),
            "valid_until": today + timedelta(days=7),
            "compensation": {"annual_ctc": 1200000},
            **extra,
        },
    )


def test_offer_requires_completed_interviews():
    c, _, _, _, candidate = _setup()
    with pytest.raises(ValidationError):
        _offer(c, candidate)


def test_accepted_offer_converts_candidate_to_onboarding():
    c, manager, panel_user, req, candidate = _setup()
    _interviewed(c, manager, panel_user, candidate)

    offer = _offer(c, candidate)
    assert offer.status == OfferStatus.APPROVED
    assert offer.created_for == manager.employee_id
    assert offer.location == "Pune"
    assert c.candidate_service.find(candidate.candidate_id).status == CandidateStatus.OFFER_PENDING
    with pytest.raises(ConflictError):
        _offer(c, candidate)

    sent = c.offer_service.send(HR, offer.offer_id)
    assert sent.status == OfferStatus.SENT
    accepted = c.offer_service.respond(sent.offer_token, "accepted", comments="Happy to join")
    assert accepted.status == OfferStatus.ACCEPTED

    final = c.candidate_service.find(candidate.candidate_id)
    assert final.status == CandidateStatus.SELECTED
    assert final.onboarding_request_id == accepted.onboarding_request_id
    request = c.onboarding_service.find(accepted.onboarding_request_id)
    assert request.email == "asha.rao@example.com"
    assert request.status == OnboardingStatus.INVITED
    assert request.reporting_manager_id == manager.employee_id
    assert request.work_location == "Pune"

    closed = c.requisition_service.find(req.requisition_id)
    assert closed.positions_filled == 1
    assert closed.status == RequisitionStatus.CLOSED
    assert "offer_accepted" in c.repos.audit.actions("recruitment")


def test_offer_approval_and_rejection():
    c, manager, panel_user, _, candidate = _setup()
    _interviewed(c, manager, panel_user, candidate)
    offer = _offer(c, candidate, requires_approval=True)
    assert offer.status == OfferStatus.PENDING_APPROVAL
    with pytest.raises(ValidationError):
        c.offer_service.send(HR, offer.offer_id)

    approved = c.offer_service.approve(actor(manager), offer.offer_id)
    assert approved.approved_by == manager.employee_id
    sent = c.offer_service.send(HR, offer.offer_id)
    rejected = c.offer_service.respond(sent.offer_token, "rejected", comments="Counter offer")
    assert rejected.status == OfferStatus.REJECTED
    assert c.candidate_service.find(candidate.candidate_id).status == CandidateStatus.OFFER_REJECTED


def test_expired_offer_is_marked_before_failing():
    c, manager, panel_user, _, candidate = _setup()
    _interviewed(c, manager, panel_user, candidate)
    offer = c.offer_service.send(HR, _offer(c, candidate).offer_id)
    with pytest.raises(ValidationError):
        c.offer_service.respond(offer.offer_token, "accepted", today=offer.valid_until + timedelta(days=1))
    assert c.offer_service.find(offer.offer_id).status == OfferStatus.EXPIRED
    assert c.candidate_service.find(candidate.candidate_id).status == CandidateStatus.OFFER_EXPIRED


def test_public_application():
    c, _, _, req, _ = _setup()
    assert c.public_job_service.view(req.public_token).job_title == "Backend Engineer"
    applicant = {"first_name": "Kiran", "last_name": "S", "email": "kiran@example.com"}
    candidate = c.public_job_service.apply(req.public_token, applicant)
    assert candidate.source == "public_link"
    assert candidate.applied_position == "Backend Engineer"
    with pytest.raises(ConflictError) as exc:
        c.public_job_service.apply(req.public_token, applicant)
    assert str(exc.value) == "You have already applied for this position"


def test_public_application_closed_after_deadline():
    today = now_local().date()
    c, _, _, req, _ = _setup(public_application_deadline=today)
    with pytest.raises(ValidationError):
        c.public_job_service.apply(
            req.public_token,
            {"first_name": "Kiran", "last_name": "S", "email": "kiran@example.com"},
            today=today + timedelta(days=1),
        )
