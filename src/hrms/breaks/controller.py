from __future__ import annotations

from datetime import timedelta

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import message, ok, parse_body, query_date
from .schemas import BreakPolicyBody, BreakPolicyUpdateBody, CorrectBreakBody, StartBreakBody

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    breaks = container.break_service
    policies = container.break_policy_service

    @app.route("/api/attendance/break/start", methods=["POST"], endpoint="start_break")
    @login_required
    def start_break():
        body = parse_body(StartBreakBody)
        session = breaks.start_break(current_actor(), body.break_type, notes=body.notes)
        return ok(session, 201, message="Break started")

    @app.route("/api/attendance/break/end", methods=["POST"], endpoint="end_break")
    @login_required
    def end_break():
        return ok(breaks.end_break(current_actor()), message="Break ended")

    @app.route("/api/attendance/break/today", methods=["GET"], endpoint="break_today")
    @login_required
    def break_today():
        return ok({"summary": breaks.today_summary(current_actor())})

    @app.route("/api/breaks/policies", methods=["GET"], endpoint="list_break_policies")
    @roles_required(*ADMINS)
    def list_break_policies():
        return ok(policies.list_policies(current_actor()))

    @app.route("/api/breaks/policies", methods=["POST"], endpoint="create_break_policy")
    @roles_required(*ADMINS)
    def create_break_policy():
        body = parse_body(BreakPolicyBody)
        return ok(policies.create_policy(current_actor(), body.model_dump()), 201)

    @app.route("/api/breaks/policies/<policy_id>", methods=["PUT"], endpoint="update_break_policy")
    @roles_required(*ADMINS)
    def update_break_policy(policy_id: str):
        body = parse_body(BreakPolicyUpdateBody)
        return ok(policies.update_policy(current_actor(), policy_id, body.changes()))

    @app.route("/api/breaks/policies/<policy_id>", methods=["DELETE"], endpoint="delete_break_policy")
    @roles_required(*ADMINS)
    def delete_break_policy(policy_id: str):
        policies.delete_policy(current_actor(), policy_id)
        return message("Break policy deleted")

    @app.route("/api/breaks/employee/<employee_id>", methods=["GET"], endpoint="employee_breaks")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def employee_breaks(employee_id: str):
        end = query_date("endDate", now_local().date())
        start = query_date("startDate", end - timedelta(days=30))
        return ok(breaks.list_for_employee(current_actor(), employee_id, start_date=start, end_date=end))

    @app.route("/api/breaks/analytics", methods=["GET"], endpoint="break_analytics")
    @roles_required(*ADMINS)
    def break_analytics():
        today = now_local().date()
        return ok(
            breaks.analytics(
                current_actor(),
                start_date=query_date("startDate", today),
                end_date=query_date("endDate", today),
                department=request.args.get("department") or None,
            )
        )

    @app.route("/api/breaks/<session_id>/correct", methods=["POST"], endpoint="correct_break")
    @roles_required(*ADMINS)
    def correct_break(session_id: str):
        body = parse_body(CorrectBreakBody)
        return ok(
            breaks.correct(
                current_actor(),
                session_id,
                start_time=body.start_time,
                end_time=body.end_time,
                reason=body.reason,
            )
        )
