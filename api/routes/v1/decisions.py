"""
Decision matrix endpoints.

Recording a decision fires its follow-up once: an offer for ``hire``, the
next interview round for ``proceed`` and a rejection for ``reject``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_email_service
from api.schemas.workflow import DecisionCreate
from api.services import decisions as decision_service
from database.models import DecisionType

router = APIRouter(prefix="/decision-matrix", tags=["decisions"])


@router.get("", summary="List Decisions")
async def list_decisions(
    decision: Optional[DecisionType] = Query(None, description="Filter by decision"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await decision_service.list_decisions(db, decision=decision, limit=limit, offset=offset)


@router.post("", summary="Record Decision")
async def record_decision(
    body: DecisionCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
    email_service=Depends(get_email_service),
):
    """Create or update the application's decision. Repeating the same decision triggers nothing."""
    return await decision_service.record_decision(
        db,
        body.application_id,
        body.decision,
        next_round=body.next_round,
        notes=body.notes,
        decided_by=actor,
        email_service=email_service,
    )


@router.get("/{application_id}", summary="Get Application Decision")
async def get_application_decision(
    application_id: int = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
):
    return await decision_service.get_application_decision(db, application_id)
