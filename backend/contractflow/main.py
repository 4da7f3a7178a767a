from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session

from contractflow.config import settings
from contractflow.db import get_db
from contractflow.routers import blueprints, contracts, lifecycle
from contractflow.exceptions import (
    AppException,
    app_exception_handler,
    request_validation_exception_handler,
    general_exception_handler
)
from contractflow.rate_limit import limiter, rate_limit_exceeded_handler
from contractflow.middleware.request_id import RequestIDMiddleware
from contractflow.middleware.body_limit import BodySizeLimitMiddleware
from contractflow.middleware.security_headers import SecurityHeadersMiddleware
from contractflow.utils.logging import configure_logging

import os
import logging
from alembic import command
from alembic.config import Config

configure_logging(logging.getLevelName(settings.LOG_LEVEL.upper()))
logger = logging.getLogger(__name__)

# Sentry integration (optional)
if settings.SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        environment=settings.ENVIRONMENT,
    )
    logger.info("Sentry error tracking initialized")

VERSION = "1.0.0"


def run_migrations():
    """Run Alembic migrations (upgrade head)"""
    try:
        logger.info("Running DB migrations...")

        # backend/contractflow/main.py -> backend/
        current_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        alembic_cfg = Config(os.path.join(current_dir, "alembic.ini"))
        alembic_cfg.set_main_option("script_location", os.path.join(current_dir, "alembic"))
        # Keep the JSON log handlers installed by configure_logging
        alembic_cfg.attributes["configure_logger"] = False

        command.upgrade(alembic_cfg, "head")
        logger.info("DB migrations completed successfully")
    except Exception as e:
        logger.error(f"Failed to run DB migrations: {e}", exc_info=True)


app = FastAPI(
    title=settings.APP_NAME,
    description="Blueprints, contracts and the contract approval/signing lifecycle",
    version=VERSION
)

app.state.limiter = limiter

# Register exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_SIZE)
app.add_middleware(SecurityHeadersMiddleware)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.APP_NAME}...")
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        run_migrations()


app.include_router(blueprints.router)
app.include_router(contracts.router)
app.include_router(lifecycle.router)


@app.get("/")
def read_root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": VERSION,
        "status": "running"
    }


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check with database verification"""
    health_status = {"status": "ok", "checks": {}}
    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "ok"
    except Exception as e:
        health_status["checks"]["database"] = "error"
        health_status["status"] = "degraded"
        logger.error(f"Database health check failed: {e}")
    return health_status
