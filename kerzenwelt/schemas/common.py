"""Common Pydantic schemas used across the application."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response envelope for action endpoints."""

    status: str = "success"
    data: T | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    status: str = "error"
    message: str


class CamelSchema(BaseModel):
    """Base schema serialized with camelCase field names on the wire."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
