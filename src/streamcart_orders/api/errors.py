"""
streamcart_orders.api.errors

Boundary mapping from domain/infrastructure exceptions to HTTP responses.

Responsibilities:
- Translate each domain error kind to its status code.
- Return 400 (not 422) for request-shape validation failures.
- Hide storage faults and identity inconsistencies behind a generic 500.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from streamcart_orders.errors import (
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    OrderServiceError,
    UnauthorizedError,
    ValidationError,
)
from streamcart_orders.observability.logging import get_logger

log = get_logger(__name__)

_STATUS_BY_ERROR: dict[type[OrderServiceError], int] = {
    ValidationError: HTTP_400_BAD_REQUEST,
    ConflictError: HTTP_400_BAD_REQUEST,
    InvalidCredentialsError: HTTP_401_UNAUTHORIZED,
    UnauthorizedError: HTTP_401_UNAUTHORIZED,
    ForbiddenError: HTTP_403_FORBIDDEN,
    NotFoundError: HTTP_404_NOT_FOUND,
}


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "detail": "Internal server error"},
    )


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(OrderServiceError)
    async def _domain_error(_: Request, exc: OrderServiceError) -> JSONResponse:
        status = _STATUS_BY_ERROR.get(type(exc))
        if status is None:
            # UnknownIdentityError and anything unmapped: internal consistency fault.
            log.error("domain_error_unmapped", kind=exc.kind, error=exc.message)
            return _internal_error()

        headers = {"WWW-Authenticate": "Bearer"} if status == HTTP_401_UNAUTHORIZED else None
        return JSONResponse(
            status_code=status,
            content={"error": exc.kind, "detail": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content={"error": "validation_error", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def _storage_fault(_: Request, exc: SQLAlchemyError) -> JSONResponse:
        log.error("storage_fault", error_type=type(exc).__name__, error=str(exc))
        return _internal_error()
