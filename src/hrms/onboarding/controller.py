from __future__ import annotations

from flask import Flask, request

from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, roles_required
from ..web.http import message, ok, parse_body
from .model import ApprovalResult, OnboardingStatus
from .schemas import OnboardingBody, OnboardingUpdateBody, StepBody

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    service = container.onboarding_service

    @app.route("/api/onboarding", methods=["GET"], endpoint="list_onboarding")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def list_onboarding():
        status = request.args.get("status")
        return ok(service.list_for(current_actor(), status=OnboardingStatus(status) if status else None))

    @app.route("/api/onboarding", methods=["POST"], endpoint="create_onboarding")
    @roles_required(*ADMINS)
    def create_onboarding():
        body = parse_body(OnboardingBody)
        created = service.create(current_actor(), body.model_dump())
        return ok(created, 201, message="Onboarding request created")

    @app.route("/api/onboarding/<request_id>", methods=["GET"], endpoint="get_onboarding")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def get_onboarding(request_id: str):
        onboarding, submission = service.get_for(current_actor(), request_id)
        return ok({"request": onboarding, "submission": submission})

    @app.route("/api/onboarding/<request_id>", methods=["PUT"], endpoint="update_onboarding")
    @roles_required(*ADMINS)
    def update_onboarding(request_id: str):
        body = parse_body(OnboardingUpdateBody)
        if not body.action:
            return ok(service.update(current_actor(), request_id, body.details()))
        result = service.review(current_actor(), request_id, body.action, body.model_dump())
        if isinstance(result, ApprovalResult):
            return ok(
                {
                    "request": result.request,
                    "employee": result.employee,
                    "isNewEmployee": result.is_new_employee,
                    "credentials": {"email": result.employee.email, "defaultPassword": result.default_password}
                    if result.default_password
                    else None,
                },
                message="Onboarding approved",
            )
        return ok(result)

    @app.route("/api/onboarding/<request_id>", methods=["DELETE"], endpoint="delete_onboarding")
    @roles_required(*ADMINS)
    def delete_onboarding(request_id: str):
        service.delete(current_actor(), request_id)
        return message("Onboarding request deleted")

    @app.route("/api/onboarding/<request_id>/hr-update", methods=["POST"], endpoint="onboarding_hr_update")
    @roles_required(*ADMINS)
    def onboarding_hr_update(request_id: str):
        body = parse_body(StepBody)
        submission = service.edit_submission(current_actor(), request_id, body.step, body.data)
        return ok(submission, message="Step updated successfully")

    @app.route("/api/onboarding/<request_id>/reminder", methods=["POST"], endpoint="onboarding_reminder")
    @roles_required(*ADMINS)
    def onboarding_reminder(request_id: str):
        onboarding = service.send_reminder(current_actor(), request_id)
        return ok(
            onboarding,
            message="Reminder sent successfully",
            reminderCount=onboarding.reminder_count,
        )

    # ---- public (token) ------------------------------------------------

    @app.route("/api/onboarding/token/<token>", methods=["GET"], endpoint="onboarding_by_token")
    def onboarding_by_token(token: str):
        onboarding, submission = service.open_by_token(token)
        return ok({"request": onboarding, "submission": submission})

    @app.route("/api/onboarding/token/<token>", methods=["PUT"], endpoint="save_onboarding_step")
    def save_onboarding_step(token: str):
        body = parse_body(StepBody)
        submission = service.save_step(token, body.step, body.data)
        return ok(submission, message="Step saved")

    @app.route("/api/onboarding/token/<token>/submit", methods=["POST"], endpoint="submit_onboarding")
    def submit_onboarding(token: str):
        return ok(service.submit(token), message="Onboarding submitted for review")
