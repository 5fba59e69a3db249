"""
Candidate-facing screening form endpoints.

The token in the path is the only credential. Unknown and used links are
404; an expired link is 410 so the form can say so.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db, get_email_service
from api.schemas.screening import ScreeningSubmission
from api.services import screening as screening_service

router = APIRouter(prefix="/screening", tags=["screening"])


@router.get("/verify/{token}", summary="Verify Screening Link")
async def verify_screening(
    token: str = Path(..., description="Screening token"),
    db: AsyncSession = Depends(get_db),
):
    """Return the form context: candidate name, job summary and questions."""
    return await screening_service.verify_screening(db, token)


@router.post("/submit/{token}", summary="Submit Screening Answers")
async def submit_screening(
    body: ScreeningSubmission,
    token: str = Path(..., description="Screening token"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    """Score the answers once; the link cannot be reused afterwards."""
    return await screening_service.submit_screening(db, token, body.to_answers(), email_service=email_service)
