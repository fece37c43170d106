"""
Error response models for the endpoint lifecycle.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Body of responses produced when a handler or filter fails unexpectedly."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Internal server error",
                "request_id": "req-123456",
            }
        }
    )

    error: str = Field(
        ...,
        description="Human-readable error message describing what went wrong"
    )

    request_id: Optional[str] = Field(
        None,
        description="Unique identifier for this specific request, when the client sent one"
    )

    def model_dump_json(self, **kwargs):
        """Leave out unset fields by default."""
        kwargs.setdefault('exclude_none', True)
        return super().model_dump_json(**kwargs)
