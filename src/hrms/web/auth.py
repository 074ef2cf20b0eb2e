from __future__ import annotations

from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..users.model import SessionUser


def login_user(user: SessionUser) -> None:
    session.clear()
    session.permanent = True
    session["user_id"] = user.user_id
    session["email"] = user.email
    session["role"] = user.role.value
    session["employee_id"] = user.employee_id
    session["name"] = user.name


def logout_user() -> None:
    session.clear()


def current_actor() -> SessionUser:
    return SessionUser(
        user_id=session["user_id"],
        email=session.get("email", ""),
        role=Role(session["role"]),
        employee_id=session.get("employee_id"),
        name=session.get("name", ""),
    )


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    """Like login_required, and the session role must be one of `roles`."""
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "Unauthorized"}), 401
            if session.get("role") not in allowed:
                return jsonify({"error": "Forbidden - Insufficient permissions"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator
