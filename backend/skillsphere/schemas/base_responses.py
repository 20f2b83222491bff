"""
Base response schemas for standardized API responses.

Every JSON body carries ``success`` and a human-readable ``message``;
error bodies add a machine-readable ``code`` and ``details``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SuccessResponse(BaseModel):
    """Standard success response for operations."""

    success: bool = Field(default=True, description="Operation success status")
    message: str = Field(description="Human-readable success message")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Optional additional data")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "Operation completed successfully",
                "data": {"updated_count": 3},
            }
        }
    )


class ErrorResponse(BaseModel):
    """Standard error response structure rendered by the app-level handlers."""

    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error message")
    code: str = Field(description="Error code for programmatic handling")
    details: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "message": "This time slot is already booked",
                "code": "BookingConflictException",
                "details": {"mentor_id": "01J...", "date": "2030-01-15", "time": "10:00"},
            }
        }
    )


class HealthCheckResponse(BaseModel):
    """Standard health check response."""

    success: bool = True
    message: str = "Service is healthy"
    status: str = Field(description="Service health status", pattern="^(healthy|degraded|unhealthy)$")
    service: str = Field(description="Service name")
    version: str = Field(description="API version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: Dict[str, bool] = Field(description="Individual component health checks")
