"""
Repository for AuditLog database operations.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.audit_log import AuditLog


class AuditLogRepository:
    """Append-only access to the audit trail."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    def add(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor_account_id: Optional[UUID],
        organization_id: Optional[UUID] = None,
        changes: Optional[dict] = None,
        details: Optional[dict] = None,
    ) -> AuditLog:
        """Add an entry to the current transaction (flushed with it)."""
        entry = AuditLog(
            organization_id=organization_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_account_id=actor_account_id,
            changes=changes,
            details=details,
        )
        self.db.add(entry)
        return entry
    
    async def list_for_entity(self, entity_type: str, entity_id: UUID) -> List[AuditLog]:
        """Entries for one entity, oldest first."""
        result = await self.db.execute(
            select(AuditLog)
            .where(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
            .order_by(AuditLog.created_at.asc())
        )
        return list(result.scalars().all())
