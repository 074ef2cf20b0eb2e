from __future__ import annotations

from datetime import timedelta

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import message, ok, parse_body, query_bool, query_date
from .model import SwapStatus
from .schemas import AssignmentBody, RosterBody, ShiftBody, ShiftUpdateBody, SwapRequestBody, SwapReviewBody

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    shifts = container.shift_service
    assignments = container.shift_assignment_service
    roster = container.roster_service
    swaps = container.shift_swap_service

    @app.route("/api/shifts", methods=["GET"], endpoint="list_shifts")
    @login_required
    def list_shifts():
        return ok(shifts.list_shifts(active_only=bool(query_bool("activeOnly"))))

    @app.route("/api/shifts", methods=["POST"], endpoint="create_shift")
    @roles_required(*ADMINS)
    def create_shift():
        body = parse_body(ShiftBody)
        return ok(shifts.create(current_actor(), body.model_dump()), 201)

    @app.route("/api/shifts/assignments", methods=["GET"], endpoint="list_shift_assignments")
    @login_required
    def list_shift_assignments():
        return ok(
            assignments.list_assignments(
                current_actor(),
                employee_id=request.args.get("employeeId") or None,
                shift_id=request.args.get("shiftId") or None,
            )
        )

    @app.route("/api/shifts/assignments", methods=["POST"], endpoint="create_shift_assignment")
    @roles_required(*ADMINS)
    def create_shift_assignment():
        body = parse_body(AssignmentBody)
        return ok(assignments.create(current_actor(), body.model_dump()), 201)

    @app.route("/api/shifts/assignments/<assignment_id>", methods=["DELETE"], endpoint="delete_shift_assignment")
    @roles_required(*ADMINS)
    def delete_shift_assignment(assignment_id: str):
        assignments.deactivate(current_actor(), assignment_id)
        return message("Assignment removed")

    @app.route("/api/shifts/roster", methods=["GET"], endpoint="list_roster")
    @login_required
    def list_roster():
        start = query_date("startDate", now_local().date())
        end = query_date("endDate", start + timedelta(days=6))
        return ok(
            roster.list_entries(
                current_actor(), start_date=start, end_date=end, employee_id=request.args.get("employeeId") or None
            )
        )

    @app.route("/api/shifts/roster", methods=["POST"], endpoint="assign_roster")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def assign_roster():
        body = parse_body(RosterBody)
        entries = roster.assign(
            current_actor(),
            employee_id=body.employee_id,
            dates=body.dates,
            shift_id=body.shift_id,
            is_weekly_off=body.is_weekly_off,
            notes=body.notes,
            replace_existing=body.replace_existing,
        )
        return ok(entries, 201)

    @app.route("/api/shifts/roster/<roster_id>", methods=["DELETE"], endpoint="delete_roster")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def delete_roster(roster_id: str):
        roster.delete(current_actor(), roster_id)
        return message("Roster entry deleted")

    @app.route("/api/shifts/swaps", methods=["GET"], endpoint="list_swaps")
    @login_required
    def list_swaps():
        status = request.args.get("status")
        return ok(swaps.list_swaps(current_actor(), status=SwapStatus(status) if status else None))

    @app.route("/api/shifts/swaps", methods=["POST"], endpoint="request_swap")
    @login_required
    def request_swap():
        body = parse_body(SwapRequestBody)
        swap = swaps.request(
            current_actor(),
            requestee_id=body.requestee_id,
            requester_date=body.requester_date,
            requestee_date=body.requestee_date,
            reason=body.reason,
        )
        return ok(swap, 201)

    @app.route("/api/shifts/swaps/<swap_id>", methods=["PUT"], endpoint="review_swap")
    @login_required
    def review_swap(swap_id: str):
        body = parse_body(SwapReviewBody)
        return ok(
            swaps.review(
                current_actor(), swap_id, status=SwapStatus(body.status), rejection_reason=body.rejection_reason
            )
        )

    @app.route("/api/shifts/resolve", methods=["GET"], endpoint="resolve_shift")
    @login_required
    def resolve_shift():
        actor = current_actor()
        employee_id = request.args.get("employeeId") or actor.employee_id
        if not employee_id:
            raise ValidationError("employeeId is required")
        on = query_date("date", now_local().date())
        return ok({"resolved": roster.resolve(actor, employee_id, on)})

    @app.route("/api/shifts/<shift_id>", methods=["GET"], endpoint="get_shift")
    @login_required
    def get_shift(shift_id: str):
        return ok(shifts.get(shift_id))

    @app.route("/api/shifts/<shift_id>", methods=["PUT"], endpoint="update_shift")
    @roles_required(*ADMINS)
    def update_shift(shift_id: str):
        body = parse_body(ShiftUpdateBody)
        return ok(shifts.update(current_actor(), shift_id, body.changes()))

    @app.route("/api/shifts/<shift_id>", methods=["DELETE"], endpoint="delete_shift")
    @roles_required(*ADMINS)
    def delete_shift(shift_id: str):
        shifts.deactivate(current_actor(), shift_id)
        return message("Shift deactivated")
