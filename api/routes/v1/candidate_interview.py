"""
Candidate-facing AI interview endpoints.

Every route is gated by the interview token in the path. Questions are
generated on first access and fixed for the life of the interview.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_db, get_llm_client
from api.schemas.interviews import AnswerSubmit
from api.services import candidate_interview as interview_service

router = APIRouter(prefix="/candidate/interview", tags=["candidate-interview"])


@router.get("/{token}", summary="Get Interview")
async def get_interview(
    token: str = Path(..., description="Interview token"),
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
):
    """Current progress: questions, answers so far and the next question."""
    return await interview_service.get_interview(db, token, llm_client=llm_client)


@router.post("/{token}/start", summary="Start Interview")
async def start_interview(
    token: str = Path(..., description="Interview token"),
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
):
    return await interview_service.start_interview(db, token, llm_client=llm_client)


@router.post(
    "/{token}/answer",
    summary="Submit Answer",
    description=(
        "Append the answer to the current question. Sending a stale question_index is 409. "
        "The last answer completes the interview and triggers its evaluation."
    ),
)
async def submit_answer(
    body: AnswerSubmit,
    token: str = Path(..., description="Interview token"),
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
):
    return await interview_service.submit_answer(
        db,
        token,
        body.answer,
        duration=body.duration,
        question_index=body.question_index,
        llm_client=llm_client,
    )


@router.post("/{token}/complete", summary="Complete Interview")
async def complete_interview(
    token: str = Path(..., description="Interview token"),
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
):
    """Close the interview and use up the token. Requires every question answered."""
    return await interview_service.complete_interview(db, token, llm_client=llm_client)
