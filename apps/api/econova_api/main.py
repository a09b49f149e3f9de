"""Econova API - Main FastAPI application."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from econova_api.accounting import errors
from econova_api.middleware.correlation import CorrelationIDMiddleware
from econova_api.routes import admin, entries, ledger, summaries
from econova_api.routes.schemas import ErrorResponse
from econova_api.settings import get_settings

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    errors.ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    errors.PreconditionError: status.HTTP_409_CONFLICT,
    errors.ImmutableLedgerError: status.HTTP_409_CONFLICT,
    errors.BridgeError: status.HTTP_503_SERVICE_UNAVAILABLE,
    errors.TenantNotFoundError: status.HTTP_404_NOT_FOUND,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Econova API...")
    try:
        settings.validate_production_settings()
    except ValueError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise ValueError(f"Invalid configuration: {e}") from e

    yield
    logger.info("Shutting down Econova API...")


# Create FastAPI app
app = FastAPI(
    title="Econova API",
    description="Waste-diversion accounting: daily entries, monthly close and official ledger",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)
app.add_middleware(CorrelationIDMiddleware)

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Register routers
app.include_router(admin.router)
app.include_router(entries.router)
app.include_router(summaries.router)
app.include_router(ledger.router)


@app.exception_handler(errors.AccountingError)
async def accounting_error_handler(request: Request, exc: errors.AccountingError):
    """Map accounting failures onto HTTP responses with a stable error code."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.info(
        f"Accounting request rejected: {exc.message}",
        extra={"correlation_id": correlation_id, "error_code": exc.code, "path": request.url.path},
    )
    body = ErrorResponse(
        detail=exc.message,
        error_code=exc.code,
        context={key: value for key, value in exc.context.items() if isinstance(value, (str, int, float))},
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.get("/health")
async def health_check():
    """Health check endpoint (basic liveness)."""
    return {
        "status": "healthy",
        "service": "econova-api",
        "version": "0.1.0",
    }


@app.get("/ready")
async def readiness_check():
    """Readiness check endpoint (verifies dependencies)."""
    from econova_api.db.session import SessionLocal
    from sqlalchemy import text

    checks = {
        "database": False,
        "migrations": False,
    }

    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error(f"Database check failed: {e}")
    finally:
        db.close()

    if checks["database"]:
        try:
            import os

            from alembic.config import Config
            from alembic.runtime.migration import MigrationContext
            from alembic.script import ScriptDirectory

            db = SessionLocal()
            try:
                context = MigrationContext.configure(db.connection())
                current_rev = context.get_current_revision()

                alembic_ini_path = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
                alembic_cfg = Config(alembic_ini_path)
                alembic_cfg.set_main_option("script_location", os.path.join(os.path.dirname(__file__), "..", "alembic"))
                head_rev = ScriptDirectory.from_config(alembic_cfg).get_current_head()

                if current_rev == head_rev:
                    checks["migrations"] = True
                else:
                    logger.warning(f"Migrations not at head: current={current_rev}, head={head_rev}")
            finally:
                db.close()
        except Exception as e:
            logger.error(f"Migration check failed: {e}")

    all_ready = all(checks.values())
    return JSONResponse(
        content={
            "status": "ready" if all_ready else "not_ready",
            "checks": checks,
        },
        status_code=200 if all_ready else 503,
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Econova API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
