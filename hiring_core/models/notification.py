"""
Notification models.

Notification is the in-app inbox row. NotificationJob is the outbox: a durable
request to deliver a notification (and optionally an email), enqueued after
the originating transaction commits and drained by the notification worker.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from hiring_core.models.base_model import TimestampedModel


class NotificationType:
    STAGE_CHANGED = "STAGE_CHANGED"
    APPLICATION_WITHDRAWN = "APPLICATION_WITHDRAWN"
    OFFER_CREATED = "OFFER_CREATED"
    OFFER_SENT = "OFFER_SENT"
    OFFER_VIEWED = "OFFER_VIEWED"
    OFFER_SIGNED = "OFFER_SIGNED"
    OFFER_WITHDRAWN = "OFFER_WITHDRAWN"
    APPROVAL_PENDING = "APPROVAL_PENDING"
    APPROVAL_APPROVED = "APPROVAL_APPROVED"
    APPROVAL_REJECTED = "APPROVAL_REJECTED"


class NotificationJobStatus:
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class Notification(TimestampedModel):
    """In-app notification shown in an account's inbox."""

    __tablename__ = "notifications"

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[Optional[dict]] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class NotificationJob(TimestampedModel):
    """Outbox entry awaiting delivery by the notification worker."""

    __tablename__ = "notification_jobs"

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[Optional[dict]] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    send_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=NotificationJobStatus.PENDING)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    available_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_notification_jobs_status_available", "status", "available_at"),
    )
