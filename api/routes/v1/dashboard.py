"""Recruiter dashboard endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db
from api.services import dashboard as dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/metrics",
    summary="Dashboard Metrics",
    description="Headline counts, applications per pipeline status and the stage funnel.",
)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_metrics(db)
