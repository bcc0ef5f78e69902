"""
SafeStart API application.

Every response body uses the same envelope:
    success: {"success": true, "message"?, "data"?, "pagination"?}
    error:   {"success": false, "message", "errors"?}
"""
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from safestart import __version__
from safestart.api.endpoints import (
    audit_logs,
    auth,
    companies,
    inspections,
    issues,
    notifications,
    templates,
    users,
    vehicles,
)
from safestart.config import get_settings
from safestart.core.exceptions import ValidationFailed
from safestart.database import engine, init_db
from safestart.middleware.rate_limit import RateLimitMiddleware
from safestart.utils.logging import get_logger, setup_logging

settings = get_settings()

setup_logging(log_level=settings.LOG_LEVEL, json_format=settings.ENVIRONMENT == "production")
logger = get_logger(__name__)

ROUTERS = (auth, users, companies, vehicles, templates, inspections, issues, notifications, audit_logs)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"SafeStart API {__version__} starting ({settings.ENVIRONMENT})")

    # Production schemas are managed outside the app
    if settings.ENVIRONMENT == "development":
        logger.warning("Creating database tables (development)")
        init_db()

    yield

    engine.dispose()
    logger.info("SafeStart API stopped")


app = FastAPI(
    title="SafeStart API",
    description="Multi-tenant vehicle inspection management",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

dev_mode = settings.ENVIRONMENT == "development"
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if dev_mode else settings.CORS_ORIGINS,
    allow_credentials=not dev_mode,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def process_time_header(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{time.perf_counter() - started:.4f}"
    return response


app.add_middleware(RateLimitMiddleware)


# --- error envelope ---------------------------------------------------------

def _error_response(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    content = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=headers)


def _request_context(request: Request) -> dict:
    return {
        "path": request.url.path,
        "method": request.method,
        "tenant_id": getattr(request.state, "tenant_id", None),
    }


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """core.exceptions subclasses plus the framework's own 404/405."""
    return _error_response(
        exc.status_code,
        str(exc.detail),
        errors=getattr(exc, "errors", None),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request input: 400 with one entry per offending field."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    failure = ValidationFailed(errors=errors)
    return _error_response(failure.status_code, failure.detail, errors=failure.errors)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error: {type(exc).__name__}", exc_info=True, extra=_request_context(request))
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # Full detail goes to the log only
    logger.error(f"Unhandled {type(exc).__name__}: {exc}", exc_info=True, extra=_request_context(request))
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# --- routes -----------------------------------------------------------------

@app.get("/health", tags=["health"])
async def health_check():
    """Liveness probe. No auth, no database."""
    return {
        "status": "OK",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__,
    }


@app.get("/", tags=["root"], include_in_schema=False)
async def root():
    return {"name": "SafeStart API", "version": __version__, "docs": "/docs", "health": "/health"}


for module in ROUTERS:
    app.include_router(module.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "safestart.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
