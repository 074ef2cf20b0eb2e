from __future__ import annotations

from flask import Flask

from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, login_user, logout_user, roles_required
from ..web.http import message, ok, parse_body
from .schemas import ChangePasswordBody, CreateUserBody, LoginBody, UserStatusBody

ADMINS = (Role.SUPER_ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = parse_body(LoginBody)
        user = container.auth_service.authenticate(body.email, body.password)
        login_user(user)
        container.audit_service.record("auth", "login", f"User {user.email} logged in", entity_id=user.user_id, performed_by=user.user_id)
        return ok(user, message="Login successful")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        logout_user()
        return message("Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return ok(current_actor())

    @app.route("/api/users/change-password", methods=["POST"], endpoint="change_password")
    @login_required
    def change_password():
        body = parse_body(ChangePasswordBody)
        container.user_service.change_password(
            current_actor(), current_password=body.current_password, new_password=body.new_password
        )
        return message("Password changed successfully")

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @roles_required(*ADMINS)
    def list_users():
        return ok(container.user_service.list_users(current_actor()))

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @roles_required(*ADMINS)
    def create_user():
        body = parse_body(CreateUserBody)
        user = container.user_service.create_account(
            email=body.email,
            password=body.password,
            role=body.role,
            employee_id=body.employee_id,
            actor=current_actor(),
        )
        return ok(user, 201)

    @app.route("/api/users/<user_id>/status", methods=["PATCH"], endpoint="user_status")
    @roles_required(*ADMINS)
    def user_status(user_id: str):
        body = parse_body(UserStatusBody)
        return ok(container.user_service.set_active(current_actor(), user_id, is_active=body.is_active))
