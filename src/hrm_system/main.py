from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .api.errors import register_error_handlers
from .assessments.controller import register as register_assessments
from .auth.controller import register as register_auth
from .common.logging_setup import setup_logging
from .competencies.controller import register as register_competencies
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_admin_user, list_tables
from .emails.controller import register as register_emails
from .emails.sender import EmailSender, LoggingEmailSender, SmtpEmailSender
from .profile_requests.controller import register as register_profile_requests
from .requests.controller import register as register_requests
from .teams.controller import register as register_teams
from .timesheet.controller import register as register_timesheet
from .timesheet.holiday_provider import NagerHolidayProvider
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def _email_sender(settings) -> EmailSender:
    host = getattr(settings, "MAIL_HOST", "")
    if not host:
        return LoggingEmailSender()
    return SmtpEmailSender(
        host=host,
        port=int(getattr(settings, "MAIL_PORT", 587)),
        user=getattr(settings, "MAIL_USER", ""),
        password=getattr(settings, "MAIL_PASSWORD", ""),
        sender=getattr(settings, "MAIL_SENDER", ""),
    )


def register_routes(app: Flask, container: Container) -> None:
    register_auth(app, container)
    register_users(app, container)
    register_teams(app, container)
    register_competencies(app, container)
    register_assessments(app, container)
    register_requests(app, container)
    register_timesheet(app, container)
    register_emails(app, container)
    register_profile_requests(app, container)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
            admin_email = getattr(settings, "ADMIN_EMAIL", "")
            admin_password = getattr(settings, "ADMIN_PASSWORD", "")
            if admin_email and admin_password:
                ensure_admin_user(db_config, email=admin_email, password=admin_password)

        holiday_url = getattr(settings, "HOLIDAY_API_URL", "")
        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            token_max_age=int(getattr(settings, "TOKEN_MAX_AGE_SECONDS")),
            app_url=getattr(settings, "APP_URL", ""),
            email_sender=_email_sender(settings),
            holiday_provider=NagerHolidayProvider(holiday_url) if holiday_url else None,
            holiday_country=getattr(settings, "HOLIDAY_COUNTRY", "VN"),
        )

    register_error_handlers(app)
    register_routes(app, container)
    app.extensions["hrm_container"] = container
    return app
