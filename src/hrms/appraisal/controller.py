from __future__ import annotations

from flask import Flask, request

from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import message, ok, parse_body
from .model import CycleStatus
from .schemas import CycleBody, CycleUpdateBody, ManagerReviewBody, SelfReviewBody

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    cycles = container.cycle_service
    reviews = container.review_service

    @app.route("/api/cycles", methods=["GET"], endpoint="list_cycles")
    @roles_required(*ADMINS)
    def list_cycles():
        return ok(cycles.list_cycles(current_actor()))

    @app.route("/api/cycles", methods=["POST"], endpoint="create_cycle")
    @roles_required(*ADMINS)
    def create_cycle():
        body = parse_body(CycleBody)
        return ok(cycles.create(current_actor(), body.data()), 201)

    @app.route("/api/cycles/active", methods=["GET"], endpoint="active_cycles")
    @login_required
    def active_cycles():
        status = request.args.get("status")
        return ok(cycles.active(current_actor(), status=CycleStatus(status) if status else None))

    @app.route("/api/cycles/<cycle_id>", methods=["PUT"], endpoint="update_cycle")
    @roles_required(*ADMINS)
    def update_cycle(cycle_id: str):
        body = parse_body(CycleUpdateBody)
        return ok(cycles.update(current_actor(), cycle_id, body.data()))

    @app.route("/api/cycles/<cycle_id>", methods=["DELETE"], endpoint="delete_cycle")
    @roles_required(*ADMINS)
    def delete_cycle(cycle_id: str):
        cycles.delete(current_actor(), cycle_id)
        return message("Cycle deleted")

    @app.route("/api/reviews/self", methods=["GET"], endpoint="my_self_reviews")
    @login_required
    def my_self_reviews():
        return ok(reviews.my_self_reviews(current_actor(), cycle_id=request.args.get("cycleId") or None))

    @app.route("/api/reviews/self", methods=["POST"], endpoint="save_self_review")
    @login_required
    def save_self_review():
        body = parse_body(SelfReviewBody)
        review = reviews.save_self_review(
            current_actor(), cycle_id=body.cycle_id, ratings=body.ratings, comments=body.comments, submit=body.submit
        )
        return ok(review, message="Self review submitted" if body.submit else "Self review saved")

    @app.route("/api/reviews/team-self", methods=["GET"], endpoint="team_self_reviews")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def team_self_reviews():
        return ok(reviews.team_self_reviews(current_actor(), cycle_id=request.args.get("cycleId") or ""))

    @app.route("/api/reviews/manager", methods=["GET"], endpoint="manager_reviews")
    @login_required
    def manager_reviews():
        return ok(
            reviews.manager_reviews(
                current_actor(),
                cycle_id=request.args.get("cycleId") or None,
                employee_id=request.args.get("employeeId") or None,
            )
        )

    @app.route("/api/reviews/manager", methods=["POST"], endpoint="save_manager_review")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def save_manager_review():
        body = parse_body(ManagerReviewBody)
        review = reviews.save_manager_review(
            current_actor(),
            cycle_id=body.cycle_id,
            employee_id=body.employee_id,
            ratings=body.ratings,
            final_rating=body.final_rating,
            manager_comments=body.manager_comments,
            submit=body.submit,
        )
        return ok(review, message="Manager review submitted" if body.submit else "Manager review saved")
