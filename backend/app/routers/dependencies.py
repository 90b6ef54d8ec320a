"""Request-scoped dependencies for chat routes."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db.dependencies import get_db
from app.services.completions import CompletionClient
from app.services.conversations import ConversationStore, SqlConversationStore


def get_principal_id(request: Request) -> str | None:
    """Return the subject id forwarded by the platform auth layer, if any."""

    value = request.headers.get(get_settings().auth_user_header)
    if value is None or not value.strip():
        return None
    return value.strip()


def get_conversation_store(db: Session = Depends(get_db)) -> ConversationStore:
    return SqlConversationStore(db)


def get_completion_client(request: Request) -> CompletionClient | None:
    """Return the process-wide completion client built at startup, if one was configured."""

    return getattr(request.app.state, "completion_client", None)
