"""
Laundry Order Platform — FastAPI Application

Customer order intake, courier pickup, washing, delivery choice and payment
confirmation, with email notifications and real-time status events.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from domain.responses import error_response
from routes import admin, complaints, health, messages, notifications, orders, realtime, reviews
from services.email_dispatcher import EmailDispatcher
from services.event_bus import EventBus
from services.side_effects import SideEffects

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: validate settings, create DB tables. Shutdown: flush side effects."""
    # Ensure data/ directory exists for SQLite
    os.makedirs("data", exist_ok=True)

    settings.validate_production_settings()

    from database import init_db
    await init_db()
    logger.info("Database initialized")

    if not settings.email_enabled:
        logger.warning("SMTP not configured — emails will be skipped")

    yield  # app runs here

    await app.state.side_effects.drain()
    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="Laundry Order Platform API",
    description="Laundry order lifecycle with courier pickup, delivery choice and payments",
    version="1.0.0",
    lifespan=lifespan,
)

# One event bus and dispatcher per application; routes reach them via deps.get_side_effects.
app.state.event_bus = EventBus()
app.state.side_effects = SideEffects(EmailDispatcher(), app.state.event_bus)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(orders.router)
app.include_router(admin.router)
app.include_router(notifications.router)
app.include_router(notifications.admin_router)
app.include_router(messages.router)
app.include_router(messages.admin_router)
app.include_router(reviews.router)
app.include_router(reviews.admin_router)
app.include_router(complaints.router)
app.include_router(complaints.admin_router)
app.include_router(realtime.router)


# ── Exception Handlers ──────────────────────────────────────────────

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Never return raw exception details to clients; the traceback is logged
    server-side.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_response("internal_server_error", "Internal server error"),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """
    Standardize HTTPException responses for frontend consumers.

    Keeps the original HTTP status code, but wraps the payload.
    """
    # DomainError subclasses carry a stable code, message and details
    code = getattr(exc, "code", None)
    if code and hasattr(exc, "message"):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(code, exc.message, exc.details),
        )

    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            "http_error", message, detail if not isinstance(detail, str) else None
        ),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=error_response("validation_failed", "Request validation failed", {"errors": errors}),
    )


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
