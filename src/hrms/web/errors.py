from __future__ import annotations

import pydantic
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError
from ..core.logging import get_logger

logger = get_logger("hrms.web")


def _issue(error: dict) -> dict:
    return {
        "field": ".".join(str(p) for p in error.get("loc", ())),
        "message": error.get("msg", ""),
    }


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify({"error": str(e)}), e.status_code

    @app.errorhandler(pydantic.ValidationError)
    def handle_schema_error(e: pydantic.ValidationError):
        issues = [_issue(err) for err in e.errors()]
        message = issues[0]["message"] if issues else "Invalid request body"
        return jsonify({"error": message, "issues": issues}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error: %s", e)
        return jsonify({"error": "Internal server error"}), 500
