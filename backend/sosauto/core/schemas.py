"""
backend/sosauto/core/schemas.py

Core Schemas

Defines core Pydantic models used across the application, including:
- Camel-case base model shared by API payloads.
- Generic message response schema.
- Structured validation error response schema.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base schema exposing camelCase field names on the wire
    while keeping snake_case attributes in Python.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    """
    Generic response schema for simple success or informational messages.
    """

    detail: str = Field(..., description="Response message detail")


class FieldError(BaseModel):
    """A single rejected input field."""

    field: str = Field(..., description="Name of the offending field")
    message: str = Field(..., description="Why the value was rejected")


class ValidationErrorResponse(BaseModel):
    """Body returned with HTTP 400 when request validation fails."""

    detail: str = Field("Validation failed", description="Summary message")
    errors: list[FieldError] = Field(..., description="Field-level errors")
