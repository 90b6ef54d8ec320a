"""Message schemas shared by the store and the API."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict

Role = Literal["user", "assistant", "system"]


class ConversationMessage(BaseModel):
    """One role-tagged turn held in conversation state."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: datetime


class MessageRead(BaseModel):
    """Serialized message with an epoch-millisecond timestamp."""

    role: Role
    content: str
    timestamp: int

    @classmethod
    def from_message(cls, message: ConversationMessage) -> "MessageRead":
        return cls(role=message.role, content=message.content, timestamp=to_epoch_ms(message.timestamp))


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to integer milliseconds since the epoch (naive values are UTC)."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)
