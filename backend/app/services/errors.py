"""Chat failure taxonomy and its mapping to HTTP outcomes.

Every failure that can leave the chat pipeline is one of the ``ChatError``
subclasses below. Each class carries its HTTP status, the public text shown
to the caller, and which envelope field (``message`` or ``error``) holds that
text. ``classify_failure`` folds anything else into ``InternalError``.
"""

from __future__ import annotations

from typing import Literal

from app.schemas.common import ErrorResponse

BodyField = Literal["message", "error"]


class ChatError(RuntimeError):
    """Base class for classified chat failures."""

    status_code: int = 500
    default_message: str = "Internal Server Error"
    body_field: BodyField = "error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(**{self.body_field: self.message})


class Unauthenticated(ChatError):
    """No principal identifier accompanied the request."""

    status_code = 401
    default_message = "User not authenticated."
    body_field = "message"


class InvalidInput(ChatError):
    """The prompt is missing, not text, or blank."""

    status_code = 400
    default_message = "Prompt cannot be empty."
    body_field = "message"


class ConversationNotFound(ChatError):
    """The conversation does not exist or belongs to another principal."""

    status_code = 404
    default_message = "Chat session not found or does not belong to user."
    body_field = "message"


class CompletionError(ChatError):
    """Base class for failures produced by the completion client."""


class EmptyCompletionError(CompletionError):
    """The provider answered, but without usable message content."""

    default_message = "AI returned an empty or invalid response."


class CompletionAPIError(CompletionError):
    """The provider answered with an error status; status and text pass through."""

    default_message = "AI service returned an error."

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class CompletionNetworkError(CompletionError):
    """No response arrived from the provider (connection failure or timeout)."""

    status_code = 504
    default_message = "No response from AI service (network error)."


class CompletionUnavailable(ChatError):
    """No completion client is configured for this deployment."""

    default_message = "AI service is not configured."


class StorageError(ChatError):
    """The conversation could not be read or written."""

    default_message = "Failed to save chat session."


class ConversationConflict(ChatError):
    """Another request persisted the same conversation first."""

    status_code = 409
    default_message = "Chat session was modified by another request."


class RequestBudgetExceeded(ChatError):
    """The request ran past its wall-clock budget before persisting."""

    status_code = 504
    default_message = "Request exceeded its time budget."


class InternalError(ChatError):
    """Catch-all for unexpected failures; the cause is logged, not returned."""


def classify_failure(exc: BaseException) -> ChatError:
    """Return the classified form of ``exc``."""

    if isinstance(exc, ChatError):
        return exc
    error = InternalError()
    error.__cause__ = exc
    return error
