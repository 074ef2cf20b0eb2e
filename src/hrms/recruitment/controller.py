from __future__ import annotations

from flask import Flask, request

from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import message, ok, parse_body
from .model import CandidateStatus, InterviewStatus, OfferStatus, RequisitionStatus
from .schemas import (
    CandidateBody,
    CandidateStatusBody,
    CandidateUpdateBody,
    FeedbackBody,
    InterviewBody,
    InterviewStatusBody,
    NewCandidateBody,
    OfferActionBody,
    OfferBody,
    OfferResponseBody,
    RequisitionBody,
    RequisitionUpdateBody,
    RescheduleBody,
)

ADMINS = (Role.SUPER_ADMIN, Role.HR)
STAFF = (Role.SUPER_ADMIN, Role.HR, Role.MANAGER)


def _status(enum, name: str = "status"):
    raw = request.args.get(name)
    return enum(raw) if raw else None


def register(app: Flask, container: Container) -> None:
    requisitions = container.requisition_service
    candidates = container.candidate_service
    interviews = container.interview_service
    feedback = container.feedback_service
    offers = container.offer_service
    public = container.public_job_service

    # ---- job requisitions ----------------------------------------------

    @app.route("/api/interviews/job-requisitions", methods=["GET"], endpoint="list_requisitions")
    @roles_required(*STAFF)
    def list_requisitions():
        return ok(requisitions.list_for(current_actor(), status=_status(RequisitionStatus)))

    @app.route("/api/interviews/job-requisitions", methods=["POST"], endpoint="create_requisition")
    @roles_required(*ADMINS)
    def create_requisition():
        body = parse_body(RequisitionBody)
        return ok(requisitions.create(current_actor(), body.model_dump()), 201)

    @app.route("/api/interviews/job-requisitions/<requisition_id>", methods=["GET"], endpoint="get_requisition")
    @roles_required(*STAFF)
    def get_requisition(requisition_id: str):
        return ok(requisitions.get_for(current_actor(), requisition_id))

    @app.route("/api/interviews/job-requisitions/<requisition_id>", methods=["PUT"], endpoint="update_requisition")
    @roles_required(*ADMINS)
    def update_requisition(requisition_id: str):
        body = parse_body(RequisitionUpdateBody)
        return ok(requisitions.update(current_actor(), requisition_id, body.changes()))

    @app.route("/api/interviews/job-requisitions/<requisition_id>", methods=["DELETE"], endpoint="delete_requisition")
    @roles_required(*ADMINS)
    def delete_requisition(requisition_id: str):
        requisitions.delete(current_actor(), requisition_id)
        return message("Job requisition deleted")

    # ---- candidates ----------------------------------------------------

    @app.route("/api/interviews/candidates", methods=["GET"], endpoint="list_candidates")
    @roles_required(*STAFF)
    def list_candidates():
        return ok(
            candidates.list_for(
                current_actor(),
                requisition_id=request.args.get("jobRequisitionId") or None,
                status=_status(CandidateStatus),
            )
        )

    @app.route("/api/interviews/candidates", methods=["POST"], endpoint="create_candidate")
    @roles_required(*ADMINS)
    def create_candidate():
        body = parse_body(NewCandidateBody)
        return ok(candidates.create(current_actor(), body.model_dump()), 201)

    @app.route("/api/interviews/candidates/<candidate_id>", methods=["GET"], endpoint="get_candidate")
    @roles_required(*STAFF)
    def get_candidate(candidate_id: str):
        return ok(candidates.get_for(current_actor(), candidate_id))

    @app.route("/api/interviews/candidates/<candidate_id>", methods=["PUT"], endpoint="update_candidate")
    @roles_required(*ADMINS)
    def update_candidate(candidate_id: str):
        body = parse_body(CandidateUpdateBody)
        return ok(candidates.update(current_actor(), candidate_id, body.changes()))

    @app.route("/api/interviews/candidates/<candidate_id>/status", methods=["PUT"], endpoint="candidate_status")
    @roles_required(*ADMINS)
    def candidate_status(candidate_id: str):
        body = parse_body(CandidateStatusBody)
        return ok(candidates.change_status(current_actor(), candidate_id, body.status, notes=body.notes))

    # ---- interviews ----------------------------------------------------

    @app.route("/api/interviews/interviews", methods=["GET"], endpoint="list_interviews")
    @login_required
    def list_interviews():
        return ok(
            interviews.list_for(
                current_actor(),
                candidate_id=request.args.get("candidateId") or None,
                status=_status(InterviewStatus),
            )
        )

    @app.route("/api/interviews/interviews", methods=["POST"], endpoint="schedule_interview")
    @roles_required(*ADMINS)
    def schedule_interview():
        body = parse_body(InterviewBody)
        return ok(interviews.schedule(current_actor(), body.model_dump()), 201)

    @app.route("/api/interviews/interviews/<interview_id>", methods=["GET"], endpoint="get_interview")
    @login_required
    def get_interview(interview_id: str):
        return ok(interviews.get_for(current_actor(), interview_id))

    @app.route("/api/interviews/interviews/<interview_id>", methods=["PUT"], endpoint="reschedule_interview")
    @roles_required(*ADMINS)
    def reschedule_interview(interview_id: str):
        body = parse_body(RescheduleBody)
        return ok(interviews.reschedule(current_actor(), interview_id, body.start_time, body.end_time, reason=body.reason))

    @app.route("/api/interviews/interviews/<interview_id>/status", methods=["PUT"], endpoint="interview_status")
    @login_required
    def interview_status(interview_id: str):
        body = parse_body(InterviewStatusBody)
        return ok(interviews.update_status(current_actor(), interview_id, body.status, reason=body.reason))

    # ---- feedback ------------------------------------------------------

    @app.route("/api/interviews/feedback", methods=["GET"], endpoint="list_feedback")
    @login_required
    def list_feedback():
        return ok(
            feedback.list_for(
                current_actor(),
                interview_id=request.args.get("interviewId") or None,
                candidate_id=request.args.get("candidateId") or None,
            )
        )

    @app.route("/api/interviews/feedback", methods=["POST"], endpoint="save_feedback")
    @login_required
    def save_feedback():
        body = parse_body(FeedbackBody)
        saved = feedback.save(current_actor(), body.model_dump())
        return ok(saved, message="Feedback submitted" if body.submit else "Feedback saved")

    # ---- offers --------------------------------------------------------

    @app.route("/api/interviews/offers", methods=["GET"], endpoint="list_offers")
    @roles_required(*STAFF)
    def list_offers():
        return ok(
            offers.list_for(
                current_actor(),
                candidate_id=request.args.get("candidateId") or None,
                status=_status(OfferStatus),
            )
        )

    @app.route("/api/interviews/offers", methods=["POST"], endpoint="create_offer")
    @roles_required(*ADMINS)
    def create_offer():
        body = parse_body(OfferBody)
        return ok(offers.create(current_actor(), body.model_dump()), 201)

    @app.route("/api/interviews/offers/<offer_id>", methods=["GET"], endpoint="get_offer")
    @roles_required(*STAFF)
    def get_offer(offer_id: str):
        return ok(offers.get_for(current_actor(), offer_id))

    @app.route("/api/interviews/offers/<offer_id>", methods=["PUT"], endpoint="update_offer")
    @roles_required(*STAFF)
    def update_offer(offer_id: str):
        actor = current_actor()
        body = parse_body(OfferActionBody)
        if body.action == "approve":
            return ok(offers.approve(actor, offer_id), message="Offer approved")
        if body.action == "send":
            return ok(offers.send(actor, offer_id), message="Offer sent")
        return ok(offers.withdraw(actor, offer_id, reason=body.reason), message="Offer withdrawn")

    # ---- public (token) ------------------------------------------------

    @app.route("/api/public/jobs/<token>", methods=["GET"], endpoint="public_job")
    def public_job(token: str):
        return ok(public.view(token))

    @app.route("/api/public/jobs/<token>/apply", methods=["POST"], endpoint="public_apply")
    def public_apply(token: str):
        body = parse_body(CandidateBody)
        candidate = public.apply(token, body.model_dump())
        return ok({"candidateId": candidate.code}, 201, message="Application submitted successfully")

    @app.route("/api/public/offers/<token>", methods=["GET"], endpoint="public_offer")
    def public_offer(token: str):
        return ok(offers.by_token(token))

    @app.route("/api/public/offers/<token>/respond", methods=["POST"], endpoint="respond_offer")
    def respond_offer(token: str):
        body = parse_body(OfferResponseBody)
        return ok(offers.respond(token, body.response, comments=body.comments))
