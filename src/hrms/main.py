from __future__ import annotations

import importlib
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .config import get_settings_module
from .container import Container, build_container
from .core.logging import configure, get_logger
from .database.bootstrap import ensure_demo_admin, ensure_indexes
from .web.errors import register_error_handlers

from .appraisal.controller import register as register_appraisal
from .attendance.controller import register as register_attendance
from .breaks.controller import register as register_breaks
from .employees.controller import register as register_employees
from .leaves.controller import register as register_leaves
from .notifications.controller import register as register_notifications
from .onboarding.controller import register as register_onboarding
from .payroll.controller import register as register_payroll
from .recruitment.controller import register as register_recruitment
from .shifts.controller import register as register_shifts
from .users.controller import register as register_users
from .wifi.controller import register as register_wifi

logger = get_logger("hrms")


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app. Pass a prebuilt container to skip MongoDB wiring."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=int(getattr(settings, "SESSION_DAYS", 7)))
    configure(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        mongo_config = getattr(settings, "MONGO_CONFIG")
        container = build_container(mongo_config=mongo_config)
        logger.info("settings=%s database=%s", settings_module, mongo_config.get("database"))

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            ensure_indexes(container.conn.db)
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_admin(container.conn.db)

    app.extensions["hrms.container"] = container
    register_error_handlers(app)

    register_users(app, container)
    register_employees(app, container)
    register_attendance(app, container)
    register_wifi(app, container)
    register_breaks(app, container)
    register_leaves(app, container)
    register_shifts(app, container)
    register_payroll(app, container)
    register_appraisal(app, container)
    register_notifications(app, container)
    register_recruitment(app, container)
    register_onboarding(app, container)

    return app
