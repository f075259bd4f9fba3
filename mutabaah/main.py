from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mutabaah.content import ContentProviders
from mutabaah.db import filters as _filters  # noqa: F401  (register SQLAlchemy scope filters)
from mutabaah.db.init_db import init_db
from mutabaah.errors import register_error_handlers
from mutabaah.logging_config import configure_app_logging
from mutabaah.routers import (
    activities,
    admin,
    announcements,
    attendance,
    auth,
    content,
    employees,
    health,
    hospitals,
    manual_requests,
    monthly_activities,
    notifications,
    supervision,
    tadarus,
    team_attendance,
)
from mutabaah.security.config import load_security_config
from mutabaah.security.gate import request_gate
from mutabaah.settings import get_settings
from mutabaah.tokens import TokenCodec

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning environment=%s", settings.environment)

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())

        # Raises ConfigurationError in production without JWT_SECRET: refuse to start.
        app.state.token_codec = TokenCodec.from_settings(settings)

        app.state.content = ContentProviders.from_settings(settings)

        init_db()
        logger.info("Database initialized (tables ensured + seed if enabled)")

        yield
        # Shutdown (nothing to clean up)

    app = FastAPI(title="Mutabaah", lifespan=lifespan)

    register_error_handlers(app)
    # Coarse allow / deny / redirect before any route runs.
    app.middleware("http")(request_gate)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(employees.router)
    app.include_router(admin.router)
    app.include_router(hospitals.router)
    app.include_router(activities.router)
    app.include_router(team_attendance.router)
    app.include_router(attendance.router)
    app.include_router(notifications.router)
    app.include_router(announcements.router)
    app.include_router(monthly_activities.router)
    app.include_router(tadarus.router)
    app.include_router(manual_requests.router)
    app.include_router(supervision.router)
    app.include_router(content.router)

    return app


app = create_app()
