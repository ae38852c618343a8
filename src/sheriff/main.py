"""
Sheriff's Office - record management service

FastAPI application entry point with security hardening.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from sheriff import __version__
from sheriff.config import Settings, settings as default_settings
from sheriff.exceptions import LoginThrottledError, SheriffError, ValidationError
from sheriff.jobs import PeriodicJob
from sheriff.models import format_timestamp, utcnow
from sheriff.security.auth import hash_password
from sheriff.security.lockout import LoginThrottle
from sheriff.security.sessions import SessionManager
from sheriff.storage import AuditRecorder, EntityStore, SnapshotService

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Referrer policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Case photos are embedded as data URLs
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "img-src 'self' data:; "
            "frame-ancestors 'none';"
        )

        # HSTS (only in production with HTTPS)
        if request.app.state.settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        if "server" in response.headers:
            del response.headers["server"]

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log requests for security auditing."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()

        request_id = request.headers.get("X-Request-ID", f"req_{int(time.time() * 1000)}")

        # Session tokens and admin keys are never logged
        logger.info(
            f"Request: {request.method} {request.url.path} "
            f"[{request_id}] from {request.client.host if request.client else 'unknown'}"
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"[{request_id}] status={response.status_code} time={process_time:.3f}s"
        )

        return response


def _build_jobs(app: FastAPI) -> list[PeriodicJob]:
    cfg: Settings = app.state.settings
    jobs = []
    if cfg.session_sweep_interval_seconds > 0:
        jobs.append(
            PeriodicJob(
                "session-sweep",
                cfg.session_sweep_interval_seconds,
                app.state.sessions.purge_expired,
            )
        )
    if cfg.autosave_interval_seconds > 0:
        jobs.append(
            PeriodicJob("autosave", cfg.autosave_interval_seconds, app.state.snapshots.save_now)
        )
    return jobs


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Sheriff's Office service...")

    jobs = _build_jobs(app)
    for job in jobs:
        job.start()
    app.state.jobs = jobs

    logger.info("Sheriff's Office service started successfully")

    yield

    logger.info("Shutting down Sheriff's Office service...")
    for job in jobs:
        await job.stop()

    if app.state.settings.autosave_interval_seconds > 0:
        try:
            await asyncio.to_thread(app.state.snapshots.save_now)
        except OSError:
            logger.exception("Final snapshot save failed")
    logger.info("Sheriff's Office service shutdown complete")


def _init_state(app: FastAPI, cfg: Settings) -> None:
    """Create the store and services and load the initial data."""
    store = EntityStore()
    app.state.settings = cfg
    app.state.store = store
    app.state.audit = AuditRecorder(store)
    app.state.sessions = SessionManager(ttl=timedelta(hours=cfg.session_ttl_hours))
    app.state.login_throttle = LoginThrottle(
        max_failures=cfg.login_max_failures,
        window=timedelta(seconds=cfg.login_lockout_seconds),
    )
    app.state.snapshots = SnapshotService(
        store,
        cfg.snapshot_path,
        seed_file=cfg.seed_file,
        seed_username=cfg.seed_admin_username,
        seed_password_hash=hash_password(cfg.seed_admin_password),
    )
    app.state.jobs = []

    loaded = cfg.load_snapshot_on_startup and app.state.snapshots.load_from_disk()
    if not loaded:
        app.state.snapshots.reset_to_seed()


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SheriffError)
    async def sheriff_error_handler(request: Request, exc: SheriffError) -> JSONResponse:
        """Map service errors to their status and a client-safe body."""
        headers = None
        if isinstance(exc, LoginThrottledError):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request bodies as 400 with itemized errors."""
        errors = [
            f"{'.'.join(str(p) for p in err['loc'] if p != 'body') or 'body'}: {err['msg']}"
            for err in exc.errors()
        ]
        error = ValidationError(errors=errors)
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Handle rate limit exceeded errors."""
        return JSONResponse(
            status_code=429,
            content={"message": "Zu viele Anfragen. Bitte später erneut versuchen."},
            headers={"Retry-After": str(app.state.settings.rate_limit_window_seconds)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions securely."""
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": "Server-Fehler"})


def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        cfg: Settings to use; defaults to the environment-derived settings

    Returns:
        A configured FastAPI app with its store already populated
    """
    cfg = cfg or default_settings

    logging.basicConfig(
        level=getattr(logging, cfg.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title="Sheriff's Office",
        description="Record management for a roleplay sheriff's office",
        version=__version__,
        lifespan=lifespan,
        # Disable docs in production
        docs_url="/docs" if not cfg.is_production else None,
        redoc_url="/redoc" if not cfg.is_production else None,
        openapi_url="/openapi.json" if not cfg.is_production else None,
    )

    _init_state(app, cfg)

    # Rate limiting
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{cfg.rate_limit_requests}/{cfg.rate_limit_window_seconds}seconds"],
        enabled=cfg.rate_limit_enabled,
    )
    if cfg.rate_limit_enabled:
        app.add_middleware(SlowAPIMiddleware)

    # Security headers middleware (must be added before CORS)
    app.add_middleware(SecurityHeadersMiddleware)

    # Request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "X-Request-ID",
            "X-Session-Token",
            "X-Admin-Key",
        ],
        expose_headers=["X-Request-ID", "X-Process-Time"],
        max_age=600,  # Cache preflight for 10 minutes
    )

    _register_exception_handlers(app)
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    from sheriff.api.routes import (
        admin_router,
        audit_router,
        auth_router,
        cases_router,
        dashboard_router,
        fines_router,
        jail_router,
        laws_router,
        notes_router,
        persons_router,
        tasks_router,
        users_router,
        weapons_router,
    )

    app.include_router(auth_router, prefix="/api", tags=["authentication"])
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(cases_router, prefix="/api/cases", tags=["cases"])
    app.include_router(persons_router, prefix="/api/persons", tags=["persons"])
    app.include_router(jail_router, prefix="/api/jail", tags=["jail"])
    app.include_router(fines_router, prefix="/api/fines", tags=["fines"])
    app.include_router(laws_router, prefix="/api/laws", tags=["laws"])
    app.include_router(weapons_router, prefix="/api/weapons", tags=["weapons"])
    app.include_router(tasks_router, prefix="/api/tasks", tags=["tasks"])
    app.include_router(notes_router, prefix="/api/notes", tags=["notes"])
    app.include_router(audit_router, prefix="/api/audit", tags=["audit"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["dashboard"])
    app.include_router(admin_router, prefix="/api/admin/storage", tags=["admin"])

    @app.get("/health")
    async def health_check(request: Request) -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": format_timestamp(utcnow()),
            "version": __version__,
            "sessions": request.app.state.sessions.count(),
            "snapshot": request.app.state.snapshots.status(),
        }

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": "Sheriff's Office",
            "description": "Record management for a roleplay sheriff's office",
            "version": __version__,
            "health": "/health",
        }


app = create_app()
