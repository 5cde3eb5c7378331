"""Standardized error response schema."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body shared by every handler in ``backoffice.api.exception_handlers``."""

    detail: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine-readable error code")
    traceback: list[str] | None = Field(
        None, description="Formatted traceback of an unhandled error, only when DEBUG is set"
    )
