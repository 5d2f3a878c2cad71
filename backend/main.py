# main.py - Playbooks API
# Features:
# - Request IDs, timing and security headers on every response
# - Startup configuration report (secrets, license, database)
# - Playbook error taxonomy rendered as {"detail", "code", "request_id"}
# - Health check with DB verification

import os
import uuid
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text

from database import DATABASE_URL, async_session_maker, close_db, init_db
from exceptions import PlaybookError
from licensing import LicenseChecker
from telemetry import setup_telemetry, SERVICE_VERSION

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger("playbooks")
http_logger = logging.getLogger("playbooks.http")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _check_startup_config() -> None:
    """Log configuration that would make playbook mutations misbehave."""
    warnings = []

    if len(os.getenv("JWT_SECRET_KEY", "")) < 32:
        warnings.append("JWT_SECRET_KEY is missing or shorter than 32 characters")

    license_checker = LicenseChecker.from_env()
    logger.info(
        f"License plan: {license_checker.plan.value} "
        f"(private playbooks {'allowed' if license_checker.playbook_allowed(False) else 'blocked'}, "
        f"public playbooks {'allowed' if license_checker.public_allowed else 'blocked'})"
    )
    if os.getenv("PLAYBOOKS_LICENSE_PLAN", "free").lower() != license_checker.plan.value:
        warnings.append(f"Unknown PLAYBOOKS_LICENSE_PLAN, falling back to {license_checker.plan.value}")

    if ENVIRONMENT == "production" and DATABASE_URL.startswith("sqlite"):
        warnings.append("SQLite database configured in production")

    for w in warnings:
        logger.warning(w)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting playbooks API v{SERVICE_VERSION} ({ENVIRONMENT})")
    await init_db()
    _check_startup_config()
    setup_telemetry(app)
    yield
    logger.info("Shutting down playbooks API")
    await close_db()


app = FastAPI(
    title="Playbooks",
    description="Permission-gated mutations for incident response playbooks",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")],
    allow_credentials=True,
    allow_methods=["PATCH", "POST", "DELETE", "GET", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Correlation-ID"],
    expose_headers=["X-Request-ID", "X-Correlation-ID"],
)


# ============================================================
# MIDDLEWARE
# ============================================================

@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.correlation_id = request.headers.get("X-Correlation-ID") or request.state.request_id

    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    response.headers["X-Request-ID"] = request.state.request_id
    response.headers["X-Correlation-ID"] = request.state.correlation_id
    response.headers["X-Response-Time"] = f"{elapsed:.4f}s"
    response.headers.update(SECURITY_HEADERS)

    http_logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({elapsed:.3f}s) [rid={request.state.request_id[:8]}]"
    )
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


@app.exception_handler(PlaybookError)
async def playbook_error_handler(request: Request, exc: PlaybookError):
    if exc.http_status >= 500:
        logger.error(f"{exc.code} {exc.message}", exc_info=exc)
    else:
        logger.info(f"{exc.code} {exc.message}")
    return JSONResponse(
        status_code=exc.http_status,
        content={**exc.to_dict(), "request_id": _request_id(request)},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Drop pydantic's ctx/url, which may hold non-serialisable values
    errors = [
        {"type": err.get("type"), "loc": list(err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({"detail": errors, "request_id": _request_id(request)}),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": _request_id(request)},
    )


# ============================================================
# ROUTERS
# ============================================================

from routers import playbooks

app.include_router(playbooks.router)


@app.get("/health")
async def health_check():
    """Service health including database reachability"""
    try:
        async with async_session_maker() as db:
            await db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        database = f"error: {str(e)[:100]}"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "version": SERVICE_VERSION,
        "environment": ENVIRONMENT,
        "database": database,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=ENVIRONMENT != "production",
    )
