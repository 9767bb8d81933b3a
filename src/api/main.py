"""Main module for the FastAPI application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import get_settings
from api.middleware import SecurityHeadersMiddleware, limiter, rate_limit_exception_handler
from api.routers import architecture, auth, components, health, links, questions, users
from core.exceptions import (
    AIEvaluationError,
    AIUnavailableError,
    AuthenticationError,
    DesignBoardError,
    DomainValidationError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

# Load settings
settings = get_settings()

# Initialize the FastAPI application
app = FastAPI(
    title="Design Board",
    description="System design forum with an architecture diagram service",
    debug=settings.debug,
)
app.state.limiter = limiter

# Register the custom exception handler for rate limits
app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)

_ERROR_STATUS: tuple[tuple[type[DesignBoardError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DomainValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AIUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AIEvaluationError, status.HTTP_502_BAD_GATEWAY),
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(DesignBoardError)
async def domain_exception_handler(request: Request, exc: DesignBoardError) -> JSONResponse:
    """Translate domain errors into ``{"error": ...}`` responses."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            return _error(status_code, str(exc))
    logger.exception("Unhandled domain error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first invalid field as a 400, matching the other error responses."""
    errors = exc.errors()
    if not errors:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request")
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return _error(status.HTTP_400_BAD_REQUEST, message)


app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware
allowed_origins = settings.origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials="*" not in allowed_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# Uploaded question images
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

# Include routers for modular endpoints
app.include_router(health)
app.include_router(auth)
app.include_router(questions)
app.include_router(users)
app.include_router(components)
app.include_router(links)
app.include_router(architecture)
