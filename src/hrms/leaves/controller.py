from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..container import Container
from ..core.enums import LeaveStatus, Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import ok, parse_body, query_int
from .schemas import ApplyLeaveBody, LeaveActionBody, SetBalanceBody


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    @app.route("/api/leaves", methods=["GET"], endpoint="list_leaves")
    @login_required
    def list_leaves():
        status = request.args.get("status")
        return ok(service.list_for(current_actor(), status=LeaveStatus(status) if status else None))

    @app.route("/api/leaves", methods=["POST"], endpoint="apply_leave")
    @roles_required(Role.EMPLOYEE)
    def apply_leave():
        body = parse_body(ApplyLeaveBody)
        leave = service.apply(
            current_actor(),
            leave_type=body.leave_type,
            start_date=body.start_date,
            end_date=body.end_date,
            reason=body.reason,
        )
        return ok(leave, 201, message="Leave request submitted")

    @app.route("/api/leaves/balance", methods=["GET"], endpoint="leave_balance")
    @login_required
    def leave_balance():
        year = query_int("year", now_local().year)
        return ok(service.balances_for(current_actor(), year=year, employee_id=request.args.get("employeeId") or None))

    @app.route("/api/leaves/balance", methods=["POST"], endpoint="set_leave_balance")
    @roles_required(Role.SUPER_ADMIN, Role.HR)
    def set_leave_balance():
        body = parse_body(SetBalanceBody)
        return ok(
            service.set_balance(
                current_actor(),
                employee_id=body.employee_id,
                leave_type=body.leave_type,
                year=body.year,
                total_days=body.total_days,
            )
        )

    @app.route("/api/leaves/<leave_id>", methods=["GET"], endpoint="get_leave")
    @login_required
    def get_leave(leave_id: str):
        return ok(service.get_for(current_actor(), leave_id))

    @app.route("/api/leaves/<leave_id>", methods=["PUT"], endpoint="update_leave")
    @login_required
    def update_leave(leave_id: str):
        actor = current_actor()
        body = parse_body(LeaveActionBody)
        if body.action == "approve":
            return ok(service.approve(actor, leave_id), message="Leave approved")
        if body.action == "reject":
            return ok(service.reject(actor, leave_id, reason=body.rejection_reason), message="Leave rejected")
        return ok(service.cancel(actor, leave_id), message="Leave cancelled")
