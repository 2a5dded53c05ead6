"""
Offer router - offer lifecycle endpoints.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.dependencies import get_auth_context
from hiring_core.db.session import get_db
from hiring_core.schemas.auth import AuthContext
from hiring_core.schemas.offer import (
    OfferCreate,
    OfferRead,
    OfferTransitionResult,
    OfferViewResult,
    OfferWithdrawRequest,
)
from hiring_core.services.offer_service import OfferService

router = APIRouter(prefix="/offers", tags=["offers"])


@router.post("", response_model=OfferTransitionResult, status_code=status.HTTP_201_CREATED)
async def create_offer(
    data: OfferCreate,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Draft an offer; the application moves to the offer stage."""
    service = OfferService(db)
    return await service.create(data.application_id, actor)


@router.post("/{offer_id}/send", response_model=OfferRead)
async def send_offer(
    offer_id: UUID,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    service = OfferService(db)
    return await service.send(offer_id, actor)


@router.post("/{offer_id}/view", response_model=OfferViewResult)
async def view_offer(
    offer_id: UUID,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Record that the candidate opened the offer. Idempotent."""
    service = OfferService(db)
    return await service.record_view(offer_id, actor)


@router.post("/{offer_id}/sign", response_model=OfferRead)
async def sign_offer(
    offer_id: UUID,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    service = OfferService(db)
    return await service.sign(offer_id, actor)


@router.post("/{offer_id}/withdraw", response_model=OfferTransitionResult)
async def withdraw_offer(
    offer_id: UUID,
    data: Optional[OfferWithdrawRequest] = None,
    actor: Optional[AuthContext] = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw an unsigned offer; the application returns to its pre-offer stage."""
    service = OfferService(db)
    return await service.withdraw(offer_id, actor, reason=data.reason if data else None)
