"""
Offer repository - database operations for offers.
"""

import uuid
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.offer import Offer, OfferStatus
from hiring_core.utils.time import utc_now


class OfferRepository:
    """Repository for Offer database operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, offer_id: UUID) -> Optional[Offer]:
        """Get a non-deleted offer by ID."""
        result = await self.db.execute(
            select(Offer).where(
                Offer.id == offer_id,
                Offer.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()
    
    async def get_active_for_application(self, application_id: UUID) -> Optional[Offer]:
        """Get the single non-deleted offer of an application, if any."""
        result = await self.db.execute(
            select(Offer).where(
                Offer.application_id == application_id,
                Offer.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()
    
    async def create(
        self,
        organization_id: UUID,
        application_id: UUID,
        previous_stage: Optional[str],
        created_by_member_id: Optional[UUID],
    ) -> Offer:
        """Create a new offer at DRAFT."""
        offer = Offer(
            id=uuid.uuid4(),
            organization_id=organization_id,
            application_id=application_id,
            status=OfferStatus.DRAFT,
            previous_stage=previous_stage,
            created_by_member_id=created_by_member_id,
        )
        self.db.add(offer)
        await self.db.flush()
        return offer
    
    async def transition(
        self,
        offer: Offer,
        from_statuses: List[str],
        to_status: str,
        **values,
    ) -> bool:
        """
        Move an offer to to_status only if it is still in one of from_statuses.

        The status check happens in the UPDATE itself, so of two concurrent
        requests racing on the same offer exactly one succeeds. Returns False
        when the offer had already left from_statuses.
        """
        values.setdefault("updated_at", utc_now())
        result = await self.db.execute(
            update(Offer)
            .where(
                Offer.id == offer.id,
                Offer.status.in_(from_statuses),
            )
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            return False
        offer.status = to_status
        for field, value in values.items():
            setattr(offer, field, value)
        return True
