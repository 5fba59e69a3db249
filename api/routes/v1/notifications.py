"""Notification maintenance endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db
from api.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post(
    "/resend",
    summary="Resend Failed Notifications",
    description="Queue every workflow email whose first delivery failed for redelivery by the email worker.",
)
async def resend_pending(db: AsyncSession = Depends(get_db)):
    return await notification_service.resend_pending(db)
