"""Mirror identity-provider user lifecycle events into the users table."""

from __future__ import annotations

import logging
from typing import Literal

from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.identity import IdentityEvent, IdentityEventData

logger = logging.getLogger(__name__)

SyncAction = Literal["upserted", "deleted", "skipped", "ignored"]


def apply_identity_event(db: Session, event: IdentityEvent) -> SyncAction:
    """Apply one lifecycle event.

    Create and update events upsert the user, or are skipped when the
    subject has no email address. Delete events remove the user by id.
    Events may arrive in any order, so updates for unknown users insert them
    and deletes of unknown users are no-ops.
    """

    data = event.data
    if event.type in {"user.created", "user.updated"}:
        email = _primary_email(data)
        if email is None:
            logger.warning("identity.event_skipped type=%s user_id=%s reason=missing_email", event.type, data.id)
            return "skipped"
        user = db.get(User, data.id)
        if user is None:
            user = User(id=data.id)
            db.add(user)
        user.email = email
        user.name = _display_name(data)
        user.image_url = data.image_url
        db.commit()
        logger.info("identity.user_upserted type=%s user_id=%s", event.type, data.id)
        return "upserted"

    if event.type == "user.deleted":
        user = db.get(User, data.id)
        if user is not None:
            db.delete(user)
            db.commit()
        logger.info("identity.user_deleted user_id=%s existed=%s", data.id, user is not None)
        return "deleted"

    logger.info("identity.event_ignored type=%s", event.type)
    return "ignored"


def _primary_email(data: IdentityEventData) -> str | None:
    if not data.email_addresses:
        return None
    return data.email_addresses[0].email_address or None


def _display_name(data: IdentityEventData) -> str:
    return f"{data.first_name or ''} {data.last_name or ''}".strip()
