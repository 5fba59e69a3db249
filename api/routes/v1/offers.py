"""
Job offer endpoints.

Offers are normally created by a ``hire`` decision; the POST here covers
offers made outside the decision matrix. Accepting an offer creates the
onboarding task batch and marks the application hired.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_email_service
from api.schemas.workflow import OfferCreate, OfferUpdate
from api.services import offers as offer_service
from database.models import OfferStatus

router = APIRouter(prefix="/job-offers", tags=["offers"])


@router.get("", summary="List Job Offers")
async def list_offers(
    status: Optional[OfferStatus] = Query(None, description="Filter by status"),
    candidate_id: Optional[int] = Query(None, description="Filter by candidate"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await offer_service.list_offers(
        db, status=status, candidate_id=candidate_id, limit=limit, offset=offset
    )


@router.post("", status_code=201, summary="Create Job Offer")
async def create_offer(
    body: OfferCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
    email_service=Depends(get_email_service),
):
    """Create and email an offer. An application can hold only one offer."""
    return await offer_service.create_offer(
        db,
        body.application_id,
        base_salary=body.base_salary,
        start_date=body.start_date,
        notes=body.notes,
        created_by=actor,
        email_service=email_service,
    )


@router.get("/{offer_id}", summary="Get Job Offer")
async def get_offer(
    offer_id: int = Path(..., description="Offer ID"),
    db: AsyncSession = Depends(get_db),
):
    return await offer_service.get_offer(db, offer_id)


@router.put(
    "/{offer_id}",
    summary="Update Job Offer",
    description="Edit a pending offer or record the response (accepted, rejected, expired).",
)
async def update_offer(
    body: OfferUpdate,
    offer_id: int = Path(..., description="Offer ID"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    return await offer_service.update_offer(
        db, offer_id, body.model_dump(exclude_unset=True), email_service=email_service
    )
