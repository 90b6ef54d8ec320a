"""Common API response schemas."""

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Consistent JSON envelope for successful API responses."""

    success: Literal[True] = True
    data: T


class ErrorResponse(BaseModel):
    """Failure envelope; exactly one of ``message``/``error`` is normally set."""

    success: Literal[False] = False
    message: str | None = None
    error: str | None = None
