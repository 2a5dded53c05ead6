"""
Repository for in-app notifications and the notification outbox.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.notification import Notification, NotificationJob, NotificationJobStatus


class NotificationRepository:
    """Repository for Notification and NotificationJob rows."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    def add_in_app(
        self,
        account_id: UUID,
        type: str,
        title: str,
        body: str,
        data: Optional[dict] = None,
    ) -> Notification:
        """Add an in-app notification to the current transaction."""
        notification = Notification(
            account_id=account_id,
            type=type,
            title=title,
            body=body,
            data=data,
        )
        self.db.add(notification)
        return notification
    
    def add_job(
        self,
        account_id: UUID,
        type: str,
        title: str,
        body: str,
        data: Optional[dict],
        send_email: bool,
        available_at: datetime,
    ) -> NotificationJob:
        """Add an outbox entry to the current transaction."""
        job = NotificationJob(
            account_id=account_id,
            type=type,
            title=title,
            body=body,
            data=data,
            send_email=send_email,
            status=NotificationJobStatus.PENDING,
            attempts=0,
            available_at=available_at,
        )
        self.db.add(job)
        return job
    
    async def claim_next_job(self, now: datetime) -> Optional[NotificationJob]:
        """
        Lock the oldest deliverable outbox entry.

        Uses SELECT ... FOR UPDATE SKIP LOCKED so concurrent workers never
        claim the same entry. The lock is held until the caller commits.
        """
        result = await self.db.execute(
            select(NotificationJob)
            .where(
                NotificationJob.status == NotificationJobStatus.PENDING,
                or_(NotificationJob.available_at.is_(None), NotificationJob.available_at <= now),
            )
            .order_by(NotificationJob.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        return result.scalar_one_or_none()
