"""Main FastAPI application module.

This module initializes the FastAPI application, registers the route
handlers and renders every failure in the common response envelope.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rsams.api.routes import admin, auth
from rsams.config import API_HOST, API_PORT, CORS_ALLOWED_ORIGINS, ENVIRONMENT, validate_settings
from rsams.core.database import init_db
from rsams.core.exceptions import ApiError, InternalError
from rsams.core.logging_config import setup_logging
from rsams.core.results import ErrorKind

logger = logging.getLogger(__name__)

# Setup logging
setup_logging()

# Initialize FastAPI application
app = FastAPI(
    title="RSAMS API",
    description="Role-based student attendance management backend.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(auth.router)
app.include_router(admin.router)


@app.on_event("startup")
def startup_tasks() -> None:
    """Validate configuration and create tables if they do not exist."""
    validate_settings()
    init_db()


def _failure(status_code: int, kind: str, message: str, **extra) -> JSONResponse:
    body = {"success": False, "code": kind, "message": message}
    body.update(extra)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(ApiError)
def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return _failure(exc.status_code, exc.kind.value, exc.message)


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _failure(
        400,
        ErrorKind.VALIDATION_ERROR.value,
        "Validation failed",
        errors=jsonable_encoder(exc.errors()),
    )


@app.exception_handler(StarletteHTTPException)
def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = ErrorKind.NOT_FOUND if exc.status_code == 404 else ErrorKind.VALIDATION_ERROR
    if exc.status_code == 401:
        kind = ErrorKind.UNAUTHORIZED
    elif exc.status_code == 403:
        kind = ErrorKind.FORBIDDEN
    return _failure(exc.status_code, kind.value, str(exc.detail))


@app.exception_handler(InternalError)
@app.exception_handler(Exception)
def handle_internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    extra = {}
    if ENVIRONMENT != "production":
        cause = exc.__cause__ or exc
        extra["error"] = f"{type(cause).__name__}: {cause}"
    return _failure(500, ErrorKind.INTERNAL_ERROR.value, "Internal server error", **extra)


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """Return API information and documentation links."""
    return {
        "name": "RSAMS API",
        "version": "1.0.0",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok".
    """
    return {"status": "ok"}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    logger.info("Serving RSAMS API on %s (docs: %s/docs)", server_url, server_url)
    uvicorn.run("rsams.app:app", host=API_HOST, port=API_PORT, reload=True)
