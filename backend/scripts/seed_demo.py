"""Seed a demo user and conversation for local chat testing.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import delete

# Make `app` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import SessionLocal
from app.models.conversation import Conversation
from app.schemas.conversation import ConversationState
from app.schemas.identity import EmailAddress, IdentityEvent, IdentityEventData
from app.services.conversations import SqlConversationStore
from app.services.identity_sync import apply_identity_event


DEFAULT_USER_ID = "user_demo_001"
DEFAULT_CONVERSATION_ID = "chat-demo-001"


def build_demo_history(conversation: ConversationState) -> None:
    """Append a short deterministic exchange to ``conversation``."""

    base = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone.utc)
    payloads = [
        ("user", "What is a good way to structure a FastAPI project?"),
        ("assistant", "Split it into routers, schemas, services and models, and keep I/O in services."),
    ]
    for idx, (role, content) in enumerate(payloads):
        conversation.append(role, content, now=base.replace(minute=idx))


def reset_conversation(db, conversation_id: str) -> None:
    """Remove the demo conversation and its messages."""

    db.execute(delete(Conversation).where(Conversation.id == conversation_id))
    db.commit()


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed a demo user and conversation.")
    parser.add_argument(
        "--user-id",
        default=DEFAULT_USER_ID,
        help=f"Owner subject id (default: {DEFAULT_USER_ID})",
    )
    parser.add_argument(
        "--conversation-id",
        default=DEFAULT_CONVERSATION_ID,
        help=f"Conversation ID to seed (default: {DEFAULT_CONVERSATION_ID})",
    )
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Do not delete the existing conversation before seeding.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    user_id: str = args.user_id
    conversation_id: str = args.conversation_id

    with SessionLocal() as db:
        apply_identity_event(
            db,
            IdentityEvent(
                type="user.created",
                data=IdentityEventData(
                    id=user_id,
                    email_addresses=[EmailAddress(email_address="demo@example.com")],
                    first_name="Demo",
                    last_name="User",
                ),
            ),
        )
        if not args.no_reset:
            reset_conversation(db, conversation_id)
        if db.get(Conversation, conversation_id) is None:
            db.add(Conversation(id=conversation_id, owner_id=user_id, version=1))
            db.commit()

        store = SqlConversationStore(db)
        conversation = store.load(conversation_id, user_id)
        build_demo_history(conversation)
        store.persist(conversation)

    print("Seed complete")
    print(f"user_id={user_id}")
    print(f"conversation_id={conversation_id}")
    print(f"messages={len(conversation.messages)}")
    print()
    print("Try:")
    print(f"  curl -H 'X-User-Id: {user_id}' http://localhost:8000/api/chats/{conversation_id}")
    print(
        f"  curl -H 'X-User-Id: {user_id}' -H 'Content-Type: application/json' "
        f"-d '{{\"chatId\": \"{conversation_id}\", \"prompt\": \"Hello\"}}' http://localhost:8000/api/chat/ai"
    )


if __name__ == "__main__":
    main()
