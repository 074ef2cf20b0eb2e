from __future__ import annotations

from flask import Flask, request

from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.http import ok, parse_body, query_bool
from .schemas import CreateEmployeeBody, EmployeeStatusBody, UpdateEmployeeBody

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    @roles_required(Role.SUPER_ADMIN, Role.HR, Role.MANAGER)
    def list_employees():
        role = request.args.get("role")
        return ok(
            service.list_for(current_actor(), role=Role(role) if role else None, is_active=query_bool("isActive"))
        )

    @app.route("/api/employees", methods=["POST"], endpoint="create_employee")
    @roles_required(*ADMINS)
    def create_employee():
        actor = current_actor()
        body = parse_body(CreateEmployeeBody)
        employee = service.create(
            actor,
            name=body.name,
            email=body.email,
            role=body.role,
            code=body.employee_code,
            manager_id=body.manager_id,
            department=body.department,
            designation=body.designation,
        )
        if body.password:
            container.user_service.create_account(
                email=employee.email,
                password=body.password,
                role=employee.role,
                employee_id=employee.employee_id,
                actor=actor,
            )
        return ok(employee, 201)

    @app.route("/api/employees/me", methods=["GET"], endpoint="my_employee")
    @login_required
    def my_employee():
        return ok(service.me(current_actor()))

    @app.route("/api/employees/team", methods=["GET"], endpoint="my_team")
    @login_required
    def my_team():
        return ok(service.team(current_actor()))

    @app.route("/api/employees/<employee_id>", methods=["GET"], endpoint="get_employee")
    @login_required
    def get_employee(employee_id: str):
        return ok(service.get_for(current_actor(), employee_id))

    @app.route("/api/employees/<employee_id>", methods=["PUT"], endpoint="update_employee")
    @roles_required(*ADMINS)
    def update_employee(employee_id: str):
        body = parse_body(UpdateEmployeeBody)
        return ok(service.update(current_actor(), employee_id, body.changes()))

    @app.route("/api/employees/<employee_id>/status", methods=["PATCH"], endpoint="employee_status")
    @roles_required(*ADMINS)
    def employee_status(employee_id: str):
        body = parse_body(EmployeeStatusBody)
        return ok(service.set_status(current_actor(), employee_id, is_active=body.is_active))
