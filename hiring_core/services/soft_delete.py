"""
Soft-delete cascade registry.

Every soft-deletable entity type registers the rules that run when one of its
rows is soft-deleted. Rules run inside the caller's transaction. Soft-deleting
a type nobody registered is a programming error and raises.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.models.application import Application
from hiring_core.models.offer import OfferStatus
from hiring_core.repositories.offer_repository import OfferRepository
from hiring_core.utils.time import utc_now

logger = logging.getLogger(__name__)

CascadeRule = Callable[[AsyncSession, Any, datetime, Optional[str]], Awaitable[None]]

_CASCADE_RULES: Dict[str, List[CascadeRule]] = {}


class UnregisteredEntityType(LookupError):
    """Raised when soft-deleting an entity type with no registered cascade."""


def register(entity_type: str, *rules: CascadeRule) -> None:
    """Register an entity type and its cascade rules (none is valid)."""
    _CASCADE_RULES.setdefault(entity_type, []).extend(rules)


def registered_types() -> List[str]:
    return sorted(_CASCADE_RULES)


async def soft_delete(
    db: AsyncSession,
    entity_type: str,
    entity: Any,
    now: Optional[datetime] = None,
    reason: Optional[str] = None,
) -> None:
    """Stamp deleted_at on the entity and run its cascade rules."""
    rules = _CASCADE_RULES.get(entity_type)
    if rules is None:
        raise UnregisteredEntityType(
            f"No soft-delete cascade registered for '{entity_type}' (known: {', '.join(registered_types())})"
        )

    now = now or utc_now()
    entity.deleted_at = now
    entity.updated_at = now
    for rule in rules:
        await rule(db, entity, now, reason)


async def _withdraw_active_offer(
    db: AsyncSession,
    application: Application,
    now: datetime,
    reason: Optional[str],
) -> None:
    repository = OfferRepository(db)
    offer = await repository.get_active_for_application(application.id)
    if offer is None:
        return

    if offer.status in OfferStatus.WITHDRAWABLE:
        await repository.transition(
            offer,
            OfferStatus.WITHDRAWABLE,
            OfferStatus.WITHDRAWN,
            withdrawn_at=now,
            withdrawal_reason=reason or "application_withdrawn",
        )
    await soft_delete(db, "offer", offer, now, reason)
    logger.info("Offer %s soft-deleted with application %s", offer.id, application.id)


register("application", _withdraw_active_offer)
register("offer")
