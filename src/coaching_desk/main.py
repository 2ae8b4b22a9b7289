from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from .assessments.controller import register as register_assessments
from .attendance.controller import register as register_attendance
from .common.web import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import ensure_indexes
from .management.controller import register as register_management
from .roster.controller import register as register_roster
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    secret_key = getattr(settings, "SECRET_KEY", None)
    if not secret_key:
        raise RuntimeError(f"SECRET_KEY is not set for {settings_module}")
    app.secret_key = secret_key
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        mongo_config = getattr(settings, "MONGO_CONFIG")
        container = build_container(
            mongo_config=mongo_config,
            secret_key=app.secret_key,
            use_transactions=bool(getattr(settings, "MONGO_USE_TRANSACTIONS", False)),
            cookie_secure=bool(getattr(settings, "SESSION_COOKIE_SECURE", False)),
        )
        logger.info("settings=%s db=%s", settings_module, mongo_config.get("database"))

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            ensure_indexes(container.conn.db)

    register_error_handlers(app)
    register_users(app, container)
    register_management(app, container)
    register_roster(app, container)
    register_attendance(app, container)
    register_assessments(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    return app
