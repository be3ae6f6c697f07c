"""Centralized error handling for the presentation layer."""

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..domain.exceptions import (
    AdmissionConflictError,
    DomainError,
    InsufficientCapacityError,
    PictureNotFoundError,
    ShopNotFoundError,
    ValidationError,
)
from .problem_details import (
    ErrorCodes,
    ProblemDetail,
    ProblemDetailFactory,
    problem_response,
)


def handle_domain_error(error: DomainError, request: Request) -> JSONResponse:
    """Convert domain errors to RFC 7807 problem responses."""
    instance = str(request.url.path)

    problem: ProblemDetail
    if isinstance(error, ShopNotFoundError):
        problem = ProblemDetailFactory.resource_not_found(
            resource_type="shop", detail=str(error), instance=instance
        )
    elif isinstance(error, PictureNotFoundError):
        problem = ProblemDetailFactory.resource_not_found(
            resource_type="picture", detail=str(error), instance=instance
        )
    elif isinstance(error, InsufficientCapacityError):
        problem = ProblemDetailFactory.insufficient_capacity(
            shop_id=error.shop_id,
            capacity=error.capacity,
            occupancy=error.occupancy,
            instance=instance,
        )
    elif isinstance(error, ValidationError):
        problem = ProblemDetailFactory.validation_failed(
            detail=str(error),
            instance=instance,
            field_errors=_extract_field_errors(error),
        )
    elif isinstance(error, AdmissionConflictError):
        problem = ProblemDetailFactory.admission_conflict(
            detail=str(error), instance=instance
        )
    else:
        problem = ProblemDetailFactory.internal_server_error(
            detail="An unexpected error occurred. Please try again.",
            instance=instance,
        )

    return problem_response(problem)


def handle_request_validation_error(
    error: RequestValidationError, request: Request
) -> JSONResponse:
    """Convert Pydantic request validation errors to a 400 problem response."""
    field_errors = []
    for item in error.errors():
        field_name = ".".join(str(loc) for loc in item["loc"] if loc != "body")
        field_errors.append(
            {
                "field": field_name or "unknown",
                "code": _pydantic_error_code(item),
                "message": item["msg"],
            }
        )

    problem = ProblemDetailFactory.validation_failed(
        detail="Request validation failed",
        instance=str(request.url.path),
        field_errors=field_errors,
    )
    return problem_response(problem)


def handle_database_error(error: SQLAlchemyError, request: Request) -> JSONResponse:
    """Hide persistence failures behind an opaque 500 problem response."""
    problem = ProblemDetailFactory.internal_server_error(
        detail="A database error occurred. Please try again.",
        instance=str(request.url.path),
    )
    return problem_response(problem)


def handle_unexpected_error(error: Exception, request: Request) -> JSONResponse:
    problem = ProblemDetailFactory.internal_server_error(
        detail="An unexpected error occurred. Please try again.",
        instance=str(request.url.path),
    )
    return problem_response(problem)


def _pydantic_error_code(error: dict[str, Any]) -> str:
    """Map a Pydantic error type to one of our field error codes."""
    error_type = str(error.get("type", ""))
    # An empty string is how a required text field goes missing
    if error_type in ("missing", "string_too_short"):
        return ErrorCodes.FIELD_REQUIRED
    if error_type == "string_too_long":
        return ErrorCodes.FIELD_TOO_LONG
    return ErrorCodes.FIELD_INVALID_VALUE


def _extract_field_errors(error: ValidationError) -> list[dict[str, str]]:
    """Extract field-specific errors from a domain ValidationError."""
    error_msg = str(error).lower()

    if "empty" in error_msg:
        code = ErrorCodes.FIELD_REQUIRED
    elif "longer" in error_msg:
        code = ErrorCodes.FIELD_TOO_LONG
    elif "control characters" in error_msg:
        code = ErrorCodes.FIELD_INVALID_FORMAT
    else:
        code = ErrorCodes.FIELD_INVALID_VALUE

    return [{"field": error.field or "unknown", "code": code, "message": str(error)}]
