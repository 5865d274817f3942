"""
FastAPI Application Factory
===========================

Creates and configures the FastAPI application with routers, middleware
and the error-to-status mapping.
"""

from __future__ import annotations

import logging
import secrets
from uuid import uuid4

import yaml
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, Response
from fastapi.security import APIKeyHeader

from claimcheck.api.routes import analysis, citations, health
from claimcheck.api.schemas.responses import ErrorResponse
from claimcheck.domain.errors import (
    ClaimCheckError,
    InputValidationError,
    ParseError,
    UpstreamError,
)
from claimcheck.infrastructure.config import get_settings
from claimcheck.infrastructure.dependencies import get_request_id, lifespan_manager

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
GENERIC_ERROR_MESSAGE = "An internal error occurred. Please try again later."

# API Key header
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str | None = Depends(api_key_header)):
    """Verify API key if authentication is enabled."""
    settings = get_settings()

    # If no API key configured, skip auth
    if not settings.api.api_key:
        return True

    if not api_key or not secrets.compare_digest(api_key, settings.api.api_key):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "X-API-Key"},
        )
    return True


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    details: list[dict] | None = None,
) -> ORJSONResponse:
    request_id = get_request_id(request)
    body = ErrorResponse(error=message, request_id=request_id, details=details)
    return ORJSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers={REQUEST_ID_HEADER: request_id},
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        details = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return _error_response(request, status.HTTP_400_BAD_REQUEST, "Invalid request", details)

    @app.exception_handler(InputValidationError)
    async def input_validation_handler(
        request: Request, exc: InputValidationError
    ) -> ORJSONResponse:
        logger.info(
            f"Rejected request: {exc}",
            extra={"request_id": get_request_id(request), "error_type": type(exc).__name__},
        )
        return _error_response(request, status.HTTP_400_BAD_REQUEST, exc.public_message)

    @app.exception_handler(ParseError)
    @app.exception_handler(UpstreamError)
    async def upstream_handler(request: Request, exc: ClaimCheckError) -> ORJSONResponse:
        logger.error(
            f"Upstream failure: {exc}",
            extra={"request_id": get_request_id(request), "error_type": type(exc).__name__},
        )
        return _error_response(request, status.HTTP_502_BAD_GATEWAY, exc.public_message)

    @app.exception_handler(ClaimCheckError)
    async def claimcheck_handler(request: Request, exc: ClaimCheckError) -> ORJSONResponse:
        logger.error(
            f"Unhandled pipeline error: {exc}",
            extra={"request_id": get_request_id(request), "error_type": type(exc).__name__},
        )
        return _error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE
        )

    @app.exception_handler(Exception)
    async def unexpected_handler(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception(
            "Unexpected error",
            extra={"request_id": get_request_id(request), "error_type": type(exc).__name__},
        )
        return _error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE
        )


def create_app(*, enable_lifespan: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        enable_lifespan: Build the service container on startup. Tests
            disable this and set ``app.state.container`` themselves.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api.title,
        version=settings.api.version,
        description=(
            "Claim verification API. Extracts factual claims from text, "
            "retrieves web evidence for each, adjudicates a verdict, proposes "
            "evidence-aligned rewrites and attaches formatted citations."
        ),
        debug=settings.api.debug,
        lifespan=lifespan_manager if enable_lifespan else None,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=ORJSONResponse,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response

    _register_exception_handlers(app)

    # Include routers
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(
        analysis.router,
        prefix="/api/v1",
        tags=["Analysis"],
        dependencies=[Depends(verify_api_key)],
    )
    app.include_router(
        citations.router,
        prefix="/api/v1",
        tags=["Citations"],
        dependencies=[Depends(verify_api_key)],
    )

    @app.get("/openapi.yaml", include_in_schema=False)
    def openapi_yaml() -> Response:
        schema = app.openapi()
        content = yaml.safe_dump(schema, sort_keys=False, allow_unicode=True)
        return Response(content=content, media_type="application/yaml")

    return app
