"""Schemas for the chat completion endpoint."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatTurnRequest(BaseModel):
    """Request payload for one chat turn.

    Both fields are untyped: a non-text prompt is reported by the chat
    pipeline as a 400 and a non-text ``chatId`` as a 404, after the caller
    has been authenticated, rather than as schema errors.
    """

    model_config = ConfigDict(populate_by_name=True)

    chat_id: Any = Field(default=None, alias="chatId")
    prompt: Any = None
