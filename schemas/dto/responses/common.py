"""
Common response DTOs shared across multiple endpoints.

ErrorResponse   — standard error shape from AppError.to_dict()
HealthResponse  — GET /health
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error JSON body produced by the AppError exception handler."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """Response body for GET /health.

    ``checks`` maps a backing service (mongodb, redis, export_store) to its
    status string.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: str
    checks: dict[str, str]


# Shared ``responses=`` mapping for routes that raise AppErrors
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid parameters"},
    401: {"model": ErrorResponse, "description": "No caller context"},
    403: {"model": ErrorResponse, "description": "Caller may not see this link"},
    404: {"model": ErrorResponse, "description": "Link or export not found"},
    504: {"model": ErrorResponse, "description": "Statistics query timed out"},
}
