"""
Audit trail.

Two ways to record an entry:
- stage(): inside the caller's transaction, committed (or rolled back) with it.
- append(): after the caller's transaction committed, in a transaction of its
  own. Best-effort: a failure is logged and never reaches the caller.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.db.session import rollback_quietly
from hiring_core.models.audit_log import AuditLog
from hiring_core.repositories.audit_log_repository import AuditLogRepository
from hiring_core.utils.json import json_safe

logger = logging.getLogger(__name__)


class AuditTrail:
    """Append-only audit log writer."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = AuditLogRepository(db)

    def stage(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor_id: Optional[UUID],
        changes: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        organization_id: Optional[UUID] = None,
    ) -> AuditLog:
        return self.repo.add(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_account_id=actor_id,
            organization_id=organization_id,
            changes=json_safe(changes),
            details=json_safe(details),
        )

    async def append(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor_id: Optional[UUID],
        changes: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        organization_id: Optional[UUID] = None,
    ) -> bool:
        """Record an entry in its own transaction. Returns False if it was dropped."""
        try:
            self.stage(action, entity_type, entity_id, actor_id, changes, details, organization_id)
            await self.db.commit()
            return True
        except Exception:
            logger.warning(
                "Audit log failed (non-blocking) for %s %s %s",
                action,
                entity_type,
                entity_id,
                exc_info=True,
            )
            await rollback_quietly(self.db)
            return False

