"""
Notification dispatcher.

notify()/notify_many() enqueue outbox entries after the caller's transaction
has committed; the notification worker delivers them with retries, so an
entry survives the request process. Enqueueing is best-effort: a failure is
logged and never fails or rolls back the caller's command.

stage_in_app() writes in-app rows inside the caller's transaction, for the
paths where the inbox must agree with the state change (offer viewed).
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.db.session import rollback_quietly
from hiring_core.models.notification import Notification
from hiring_core.repositories.account_repository import AccountRepository
from hiring_core.repositories.notification_repository import NotificationRepository
from hiring_core.utils.json import json_safe
from hiring_core.utils.time import utc_now

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fire-and-forget notification enqueueing."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = NotificationRepository(db)
        self.accounts = AccountRepository(db)

    async def notify(
        self,
        account_id: UUID,
        type: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        send_email: bool = False,
    ) -> bool:
        return await self.notify_many([account_id], type, title, body, data, send_email)

    async def notify_many(
        self,
        account_ids: Iterable[UUID],
        type: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        send_email: bool = False,
    ) -> bool:
        """Enqueue one outbox entry per recipient. Returns False if nothing was enqueued."""
        recipients = list(dict.fromkeys(account_ids))
        if not recipients:
            return True
        try:
            now = utc_now()
            payload = json_safe(data)
            for account_id in recipients:
                self.repo.add_job(
                    account_id=account_id,
                    type=type,
                    title=title,
                    body=body,
                    data=payload,
                    send_email=send_email,
                    available_at=now,
                )
            await self.db.commit()
            return True
        except Exception:
            logger.warning(
                "Notification enqueue failed (non-blocking) for %s to %d recipient(s)",
                type,
                len(recipients),
                exc_info=True,
            )
            await rollback_quietly(self.db)
            return False

    async def notify_roles(
        self,
        organization_id: UUID,
        roles: List[str],
        type: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        send_email: bool = False,
    ) -> bool:
        """Enqueue for every member of the organization holding one of the roles."""
        try:
            account_ids = await self.accounts.list_account_ids_by_roles(organization_id, roles)
        except Exception:
            logger.warning(
                "Recipient lookup failed (non-blocking) for %s in organization %s",
                type,
                organization_id,
                exc_info=True,
            )
            await rollback_quietly(self.db)
            return False
        return await self.notify_many(account_ids, type, title, body, data, send_email)

    def stage_in_app(
        self,
        account_ids: Iterable[UUID],
        type: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> List[Notification]:
        """Add in-app notification rows to the caller's transaction."""
        payload = json_safe(data)
        return [
            self.repo.add_in_app(account_id, type, title, body, payload)
            for account_id in dict.fromkeys(account_ids)
        ]
