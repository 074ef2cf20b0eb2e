from __future__ import annotations

from datetime import timedelta

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import ok, parse_body, query_date
from .schemas import CorrectAttendanceBody, ManualAttendanceBody, PunchBody

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _connection(body: PunchBody):
        return body.wifi.to_model() if body.wifi else None

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="check_in")
    @roles_required(Role.EMPLOYEE)
    def check_in():
        body = parse_body(PunchBody)
        return ok(service.check_in(current_actor(), connection=_connection(body)), 201, message="Checked in successfully")

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="check_out")
    @roles_required(Role.EMPLOYEE)
    def check_out():
        body = parse_body(PunchBody)
        return ok(service.check_out(current_actor(), connection=_connection(body)), message="Checked out successfully")

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def attendance_today():
        record = service.today(current_actor())
        return ok({"attendance": record})

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    @login_required
    def list_attendance():
        today = now_local().date()
        end = query_date("endDate", today)
        start = query_date("startDate", end - timedelta(days=30))
        return ok(
            service.list_for(
                current_actor(),
                start_date=start,
                end_date=end,
                employee_id=request.args.get("employeeId") or None,
            )
        )

    @app.route("/api/attendance", methods=["POST"], endpoint="create_attendance")
    @roles_required(*ADMINS)
    def create_attendance():
        body = parse_body(ManualAttendanceBody)
        record = service.create_manual(
            current_actor(),
            employee_id=body.employee_id,
            work_date=body.work_date,
            check_in=body.check_in,
            check_out=body.check_out,
            status=body.status,
            notes=body.notes,
        )
        return ok(record, 201)

    @app.route("/api/attendance/<attendance_id>", methods=["PUT"], endpoint="correct_attendance")
    @roles_required(*ADMINS)
    def correct_attendance(attendance_id: str):
        body = parse_body(CorrectAttendanceBody)
        return ok(
            service.correct(
                current_actor(),
                attendance_id,
                check_in=body.check_in,
                check_out=body.check_out,
                status=body.status,
                notes=body.notes,
            )
        )
