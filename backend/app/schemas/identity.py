"""Schemas for identity-provider lifecycle events."""

from pydantic import BaseModel, Field


class EmailAddress(BaseModel):
    email_address: str | None = None


class IdentityEventData(BaseModel):
    """Subject payload of a lifecycle event; unknown fields are ignored."""

    id: str
    email_addresses: list[EmailAddress] = Field(default_factory=list)
    first_name: str | None = None
    last_name: str | None = None
    image_url: str | None = None


class IdentityEvent(BaseModel):
    """Lifecycle event tagged ``user.created``/``user.updated``/``user.deleted``."""

    type: str
    data: IdentityEventData


class IdentityEventAck(BaseModel):
    message: str
