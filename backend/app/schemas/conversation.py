"""In-memory conversation state passed between the store and the chat pipeline."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from app.schemas.message import ConversationMessage, MessageRead, Role


class ConversationState(BaseModel):
    """Loaded conversation plus any turns appended during the current request."""

    id: str
    owner_id: str
    version: int
    messages: list[ConversationMessage] = Field(default_factory=list)

    def append(self, role: Role, content: str, *, now: datetime | None = None) -> ConversationMessage:
        """Append a turn, keeping timestamps non-decreasing within the conversation."""

        timestamp = now or datetime.now(timezone.utc)
        if self.messages and self.messages[-1].timestamp > timestamp:
            timestamp = self.messages[-1].timestamp
        message = ConversationMessage(role=role, content=content, timestamp=timestamp)
        self.messages.append(message)
        return message

    def history(self) -> list[dict[str, str]]:
        """Return the ordered ``{role, content}`` pairs sent to the completion provider."""

        return [{"role": message.role, "content": message.content} for message in self.messages]


class ConversationRead(BaseModel):
    """Serialized conversation."""

    id: str
    messages: list[MessageRead]

    @classmethod
    def from_state(cls, state: ConversationState) -> "ConversationRead":
        return cls(id=state.id, messages=[MessageRead.from_message(m) for m in state.messages])
