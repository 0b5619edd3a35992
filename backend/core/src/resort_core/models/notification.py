"""Outbox notification model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import NotificationEventType, NotificationStatus


class Notification(BaseModel):
    """An outbound customer email waiting in (or sent from) the outbox."""

    model_config = ConfigDict(strict=True)

    notification_id: str
    event_type: NotificationEventType
    booking_id: str
    recipient: str
    subject: str
    html: str
    status: NotificationStatus = NotificationStatus.PENDING
    attempts: int = Field(default=0, ge=0)
    last_error: str | None = None
    created_at: datetime
    sent_at: datetime | None = None
