"""RFC 7807 Problem Details for API error responses."""

from typing import Final

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..domain.constants import (
    INSUFFICIENT_CAPACITY_CODE,
    INSUFFICIENT_CAPACITY_DETAIL,
    INSUFFICIENT_CAPACITY_TITLE,
)

PROBLEM_MEDIA_TYPE: Final = "application/problem+json"


class ErrorCodes:
    """Machine-readable error codes used in problem details."""

    FIELD_REQUIRED: Final = "field_required"
    FIELD_TOO_LONG: Final = "field_too_long"
    FIELD_INVALID_FORMAT: Final = "field_invalid_format"
    FIELD_INVALID_VALUE: Final = "field_invalid_value"
    VALIDATION_FAILED: Final = "validation_failed"
    RESOURCE_NOT_FOUND: Final = "resource_not_found"
    INSUFFICIENT_CAPACITY: Final = INSUFFICIENT_CAPACITY_CODE
    ADMISSION_CONFLICT: Final = "admission_conflict"
    INTERNAL_ERROR: Final = "internal_error"


def _problem_type(code: str) -> str:
    return f"/problems/{code.replace('_', '-')}"


class FieldError(BaseModel):
    """A single field-level validation failure."""

    field: str
    code: str
    message: str


class ProblemDetail(BaseModel):
    """Problem details object (RFC 7807)."""

    type: str = Field(default="about:blank", description="Problem type URI")
    title: str = Field(description="Short, human-readable summary")
    status: int = Field(description="HTTP status code")
    detail: str | None = Field(default=None, description="Explanation")
    instance: str | None = Field(default=None, description="Request path")
    code: str | None = Field(default=None, description="Machine-readable code")


class ValidationProblemDetail(ProblemDetail):
    errors: list[FieldError] = Field(default_factory=list)


class CapacityProblemDetail(ProblemDetail):
    shop_id: int
    capacity: int
    occupancy: int


class ProblemDetailFactory:
    """Builds the problem details the API answers with."""

    @staticmethod
    def validation_failed(
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, str]] | None = None,
    ) -> ValidationProblemDetail:
        return ValidationProblemDetail(
            type=_problem_type(ErrorCodes.VALIDATION_FAILED),
            title="Validation failed",
            status=400,
            detail=detail,
            instance=instance,
            code=ErrorCodes.VALIDATION_FAILED,
            errors=[FieldError(**error) for error in field_errors or []],
        )

    @staticmethod
    def resource_not_found(
        resource_type: str, detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=_problem_type(ErrorCodes.RESOURCE_NOT_FOUND),
            title=f"{resource_type.title()} not found",
            status=404,
            detail=detail,
            instance=instance,
            code=ErrorCodes.RESOURCE_NOT_FOUND,
        )

    @staticmethod
    def insufficient_capacity(
        shop_id: int, capacity: int, occupancy: int, instance: str | None = None
    ) -> CapacityProblemDetail:
        return CapacityProblemDetail(
            type=_problem_type(ErrorCodes.INSUFFICIENT_CAPACITY),
            title=INSUFFICIENT_CAPACITY_TITLE,
            status=400,
            detail=INSUFFICIENT_CAPACITY_DETAIL,
            instance=instance,
            code=ErrorCodes.INSUFFICIENT_CAPACITY,
            shop_id=shop_id,
            capacity=capacity,
            occupancy=occupancy,
        )

    @staticmethod
    def admission_conflict(detail: str, instance: str | None = None) -> ProblemDetail:
        return ProblemDetail(
            type=_problem_type(ErrorCodes.ADMISSION_CONFLICT),
            title="Concurrent admission conflict",
            status=409,
            detail=detail,
            instance=instance,
            code=ErrorCodes.ADMISSION_CONFLICT,
        )

    @staticmethod
    def internal_server_error(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=_problem_type(ErrorCodes.INTERNAL_ERROR),
            title="Internal server error",
            status=500,
            detail=detail,
            instance=instance,
            code=ErrorCodes.INTERNAL_ERROR,
        )


def problem_response(problem: ProblemDetail) -> JSONResponse:
    """Render a problem as a JSON response with its own status code."""
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )
