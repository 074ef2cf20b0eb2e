from __future__ import annotations

from flask import Flask

from ..container import Container
from ..web.auth import current_actor, login_required
from ..web.http import ok, parse_body, query_bool
from .schemas import MarkReadBody


def register(app: Flask, container: Container) -> None:
    service = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="list_notifications")
    @login_required
    def list_notifications():
        actor = current_actor()
        items = service.list_for(actor, unread_only=bool(query_bool("unreadOnly")))
        return ok({"notifications": items, "unreadCount": service.unread_count(actor)})

    @app.route("/api/notifications", methods=["PUT"], endpoint="mark_notifications")
    @login_required
    def mark_notifications():
        body = parse_body(MarkReadBody)
        updated = service.mark_read(current_actor(), body.notification_ids)
        return ok({"updated": updated})
