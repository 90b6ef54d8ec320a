"""Identity-provider webhook routes."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.schemas.identity import IdentityEvent, IdentityEventAck
from app.services.identity_sync import apply_identity_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/identity")


@router.post("/events", response_model=IdentityEventAck)
def receive_identity_event(event: IdentityEvent, db: Session = Depends(get_db)):
    """Apply a user lifecycle event delivered by the identity provider."""

    try:
        apply_identity_event(db, event)
    except Exception as exc:
        db.rollback()
        logger.exception("identity.event_failed type=%s user_id=%s", event.type, event.data.id)
        return JSONResponse(
            status_code=500,
            content={"message": "Error processing webhook", "error": str(exc)},
        )
    return IdentityEventAck(message="Event received")
