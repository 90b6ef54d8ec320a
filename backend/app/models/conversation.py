"""Conversation ORM model."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin
from app.models.message import Message


class Conversation(Base, CreatedAtMixin):
    """Owner-scoped chat session."""

    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=lambda: uuid.uuid4().hex)
    owner_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    # Bumped on every persist; writers must present the version they loaded.
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    messages: Mapped[list[Message]] = relationship(
        order_by=Message.position,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
