"""Authentication and prompt checks run before any storage or network access."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.services.errors import InvalidInput, Unauthenticated


@dataclass(frozen=True, slots=True)
class ValidatedChatRequest:
    principal_id: str
    prompt: str


def validate_chat_request(principal_id: str | None, prompt: Any) -> ValidatedChatRequest:
    """Return the principal and trimmed prompt, or raise a classified failure."""

    if not principal_id:
        raise Unauthenticated()
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidInput()
    return ValidatedChatRequest(principal_id=principal_id, prompt=prompt.strip())
