"""
RFC 7807 Problem Details error response schemas.

Implements standard error response format for the API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProblemDetails(BaseModel):
    """
    RFC 7807 Problem Details for HTTP APIs.

    Standard error response format that provides machine-readable details
    about errors in a consistent structure.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "type": "https://dash-ops.dev/errors/validation",
                    "title": "Bad Request",
                    "status": 400,
                    "detail": "spec.description: service description is required",
                    "instance": "/api/service-catalog/services",
                    "field": "spec.description",
                },
                {
                    "type": "https://dash-ops.dev/errors/not-found",
                    "title": "Not Found",
                    "status": 404,
                    "detail": "Service 'checkout' not found",
                    "instance": "/api/service-catalog/services/checkout",
                },
                {
                    "type": "https://dash-ops.dev/errors/versioning-unavailable",
                    "title": "Service Unavailable",
                    "status": 503,
                    "detail": "Service versioning is not enabled",
                    "instance": "/api/service-catalog/services/checkout/history",
                },
            ]
        }
    )

    type: str = Field(
        ...,
        description="URI reference that identifies the problem type",
        examples=["https://dash-ops.dev/errors/validation"],
    )
    title: str = Field(..., description="Short, human-readable summary of the problem")
    status: int = Field(..., description="HTTP status code", ge=100, le=599)
    detail: str = Field(
        ..., description="Human-readable explanation specific to this occurrence"
    )
    instance: str = Field(
        ..., description="URI reference that identifies the specific occurrence"
    )
    correlation_id: str | None = Field(
        None, description="Correlation ID for request tracing"
    )
    field: str | None = Field(
        None, description="Field name that caused the error (for validation errors)"
    )
    value: Any | None = Field(
        None, description="Invalid value that caused the error (for validation errors)"
    )
