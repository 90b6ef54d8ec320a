"""Owner-scoped conversation loading and persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.conversation import Conversation
from app.models.message import Message
from app.schemas.conversation import ConversationState
from app.schemas.message import ConversationMessage
from app.services.errors import ConversationConflict, ConversationNotFound, StorageError


class ConversationStore(Protocol):
    """Storage contract consumed by the chat pipeline."""

    def load(self, conversation_id: str, owner_id: str) -> ConversationState:
        """Return the conversation, or raise ``ConversationNotFound`` if absent or not owned."""

    def persist(self, conversation: ConversationState) -> None:
        """Durably write the conversation's full message sequence."""

    def create(self, owner_id: str) -> ConversationState:
        """Open a new, empty conversation for ``owner_id``."""


@dataclass(slots=True)
class SqlConversationStore:
    """SQLAlchemy-backed store with an optimistic version check on persist."""

    db: Session

    def load(self, conversation_id: str, owner_id: str) -> ConversationState:
        stmt = select(Conversation).where(
            Conversation.id == conversation_id,
            Conversation.owner_id == owner_id,
        )
        try:
            record = self.db.scalars(stmt).one_or_none()
            state = None if record is None else _to_state(record)
            # Hand the connection back before the caller waits on the provider;
            # persist re-checks the version, so no read transaction is needed.
            self.db.rollback()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to load chat session.") from exc
        if state is None:
            raise ConversationNotFound()
        return state

    def persist(self, conversation: ConversationState) -> None:
        try:
            result = self.db.execute(
                update(Conversation)
                .where(
                    Conversation.id == conversation.id,
                    Conversation.owner_id == conversation.owner_id,
                    Conversation.version == conversation.version,
                )
                .values(version=Conversation.version + 1, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                raise ConversationConflict()

            stored_count = self.db.scalar(
                select(func.count()).select_from(Message).where(Message.conversation_id == conversation.id)
            ) or 0
            for position, message in enumerate(conversation.messages[stored_count:], start=stored_count):
                self.db.add(
                    Message(
                        conversation_id=conversation.id,
                        position=position,
                        role=message.role,
                        content=message.content,
                        timestamp=message.timestamp,
                    )
                )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError() from exc
        conversation.version += 1

    def create(self, owner_id: str) -> ConversationState:
        record = Conversation(owner_id=owner_id, version=1)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to create chat session.") from exc
        return _to_state(record)


def _to_state(record: Conversation) -> ConversationState:
    return ConversationState(
        id=record.id,
        owner_id=record.owner_id,
        version=record.version,
        messages=[
            ConversationMessage(
                role=message.role,
                content=message.content,
                timestamp=_as_utc(message.timestamp),
            )
            for message in record.messages
        ],
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
