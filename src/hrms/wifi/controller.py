from __future__ import annotations

from flask import Flask, request

from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import message, ok, parse_body, query_bool
from .model import OverrideStatus
from .schemas import (
    NetworkBody,
    NetworkUpdateBody,
    OverrideBody,
    OverrideDecisionBody,
    PolicyBody,
    PolicyUpdateBody,
    ValidateBody,
)

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    admin = container.wifi_admin_service
    overrides = container.override_service

    @app.route("/api/wifi/networks", methods=["GET"], endpoint="list_wifi_networks")
    @roles_required(*ADMINS)
    def list_wifi_networks():
        return ok(admin.list_networks(current_actor(), active_only=bool(query_bool("activeOnly"))))

    @app.route("/api/wifi/networks", methods=["POST"], endpoint="create_wifi_network")
    @roles_required(*ADMINS)
    def create_wifi_network():
        body = parse_body(NetworkBody)
        return ok(admin.create_network(current_actor(), body.model_dump()), 201)

    @app.route("/api/wifi/networks/<network_id>", methods=["PUT"], endpoint="update_wifi_network")
    @roles_required(*ADMINS)
    def update_wifi_network(network_id: str):
        body = parse_body(NetworkUpdateBody)
        return ok(admin.update_network(current_actor(), network_id, body.changes()))

    @app.route("/api/wifi/networks/<network_id>", methods=["DELETE"], endpoint="delete_wifi_network")
    @roles_required(*ADMINS)
    def delete_wifi_network(network_id: str):
        admin.delete_network(current_actor(), network_id)
        return message("WiFi network deleted")

    @app.route("/api/wifi/policies", methods=["GET"], endpoint="list_wifi_policies")
    @roles_required(*ADMINS)
    def list_wifi_policies():
        return ok(admin.list_policies(current_actor()))

    @app.route("/api/wifi/policies", methods=["POST"], endpoint="create_wifi_policy")
    @roles_required(*ADMINS)
    def create_wifi_policy():
        body = parse_body(PolicyBody)
        return ok(admin.create_policy(current_actor(), body.data()), 201)

    @app.route("/api/wifi/policies/<policy_id>", methods=["PUT"], endpoint="update_wifi_policy")
    @roles_required(*ADMINS)
    def update_wifi_policy(policy_id: str):
        body = parse_body(PolicyUpdateBody)
        return ok(admin.update_policy(current_actor(), policy_id, body.data(partial=True)))

    @app.route("/api/wifi/policies/<policy_id>", methods=["DELETE"], endpoint="delete_wifi_policy")
    @roles_required(*ADMINS)
    def delete_wifi_policy(policy_id: str):
        admin.delete_policy(current_actor(), policy_id)
        return message("WiFi policy deleted")

    @app.route("/api/wifi/overrides", methods=["GET"], endpoint="list_overrides")
    @login_required
    def list_overrides():
        status = request.args.get("status")
        return ok(overrides.list_for(current_actor(), status=OverrideStatus(status) if status else None))

    @app.route("/api/wifi/overrides", methods=["POST"], endpoint="create_override")
    @login_required
    def create_override():
        body = parse_body(OverrideBody)
        return ok(overrides.create(current_actor(), body.model_dump()), 201)

    @app.route("/api/wifi/overrides/<override_id>", methods=["PUT"], endpoint="decide_override")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def decide_override(override_id: str):
        body = parse_body(OverrideDecisionBody)
        return ok(
            overrides.decide(
                current_actor(),
                override_id,
                approve=body.action == "approve",
                rejection_reason=body.rejection_reason,
            )
        )

    @app.route("/api/wifi/validate", methods=["POST"], endpoint="validate_wifi")
    @login_required
    def validate_wifi():
        actor = current_actor()
        body = parse_body(ValidateBody)
        employee_id = body.employee_id or actor.employee_id
        if not employee_id:
            return ok({"allowed": True, "message": "No employee record linked to this account."})
        employee = container.employee_service.get_for(actor, employee_id)
        return ok(container.wifi_validation_service.validate(employee, body.to_model(), record_usage=False))
