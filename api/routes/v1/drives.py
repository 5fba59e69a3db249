"""
Recruitment drive endpoints.

``/drive-sessions`` and ``/aptitude-questions`` are the recruiter side;
``/drive`` is candidate-facing and gated by registration and test tokens.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_email_service, get_llm_client
from api.schemas.drives import (
    CutoffUpdate,
    DriveCreate,
    QuestionCreate,
    QuestionGenerate,
    QuestionUpdate,
    RegistrationSubmit,
    TestSubmission,
)
from api.services import drives as drive_service
from database.models import DriveCandidateStatus, QualificationStatus

router = APIRouter(prefix="/drive-sessions", tags=["drives"])
candidate_router = APIRouter(prefix="/drive", tags=["drives"])
questions_router = APIRouter(prefix="/aptitude-questions", tags=["drives"])


@router.get("", summary="List Drive Sessions")
async def list_drives(db: AsyncSession = Depends(get_db)):
    """Every drive with registration and qualification counts."""
    return await drive_service.list_drives(db)


@router.post(
    "",
    status_code=201,
    summary="Create Drive Session",
    description="Create a drive and invite its candidates. Invalid or duplicate emails are skipped and reported.",
)
async def create_drive(
    body: DriveCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
    email_service=Depends(get_email_service),
):
    values = body.model_dump(exclude={"candidates"})
    candidates = [c.model_dump() for c in body.candidates]
    return await drive_service.create_drive(
        db, values, candidates, created_by=actor, email_service=email_service
    )


@router.get("/{drive_id}", summary="Get Drive Session")
async def get_drive(
    drive_id: int = Path(..., description="Drive session ID"),
    db: AsyncSession = Depends(get_db),
):
    return await drive_service.get_drive(db, drive_id)


@router.delete("/{drive_id}", summary="Delete Drive Session")
async def delete_drive(
    drive_id: int = Path(..., description="Drive session ID"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await drive_service.delete_drive(db, drive_id, actor=actor)


@router.get("/{drive_id}/candidates", summary="List Drive Candidates")
async def list_drive_candidates(
    drive_id: int = Path(..., description="Drive session ID"),
    status: Optional[DriveCandidateStatus] = Query(None, description="Filter by progress"),
    qualification: Optional[QualificationStatus] = Query(None, description="Filter by qualification"),
    db: AsyncSession = Depends(get_db),
):
    return await drive_service.list_drive_candidates(db, drive_id, status=status, qualification=qualification)


@router.post(
    "/{drive_id}/candidates/import",
    summary="Import Drive Candidates",
    description="CSV upload with name, email and optional phone columns.",
)
async def import_candidates(
    drive_id: int = Path(..., description="Drive session ID"),
    file: UploadFile = File(..., description="CSV file"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    data = await file.read()
    return await drive_service.import_candidates_csv(db, drive_id, data, email_service=email_service)


@router.put(
    "/{drive_id}/cutoffs",
    summary="Update Cutoffs",
    description="Change cutoffs and recompute every candidate's qualification from stored scores.",
)
async def update_cutoffs(
    body: CutoffUpdate,
    drive_id: int = Path(..., description="Drive session ID"),
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await drive_service.update_cutoffs(
        db, drive_id, body.aptitude_cutoff, body.technical_cutoff, actor=actor
    )


@router.post("/{drive_id}/send-next-round", summary="Send Technical Tests")
async def send_next_round(
    drive_id: int = Path(..., description="Drive session ID"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    """Issue technical tests to aptitude finishers who now meet the cutoff."""
    return await drive_service.send_next_round(db, drive_id, email_service=email_service)


@router.post("/{drive_id}/schedule-interviews", summary="Schedule AI Interviews")
async def schedule_interviews(
    drive_id: int = Path(..., description="Drive session ID"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    return await drive_service.schedule_interviews(db, drive_id, email_service=email_service)


# ==================== Candidate-facing ===================== #
@candidate_router.get("/register/{token}", summary="Get Registration")
async def get_registration(
    token: str = Path(..., description="Registration token"),
    db: AsyncSession = Depends(get_db),
):
    return await drive_service.get_registration(db, token)


@candidate_router.post("/register/{token}", summary="Register For Drive")
async def register(
    body: RegistrationSubmit,
    token: str = Path(..., description="Registration token"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    """Complete registration; the aptitude test link is emailed. Works once."""
    return await drive_service.register(db, token, name=body.name, phone=body.phone, email_service=email_service)


@candidate_router.get("/test/{token}", summary="Get Test")
async def get_test(
    token: str = Path(..., description="Test token"),
    db: AsyncSession = Depends(get_db),
):
    """Questions and options, without answers."""
    return await drive_service.get_test(db, token)


@candidate_router.post("/test/{token}/submit", summary="Submit Test")
async def submit_test(
    body: TestSubmission,
    token: str = Path(..., description="Test token"),
    db: AsyncSession = Depends(get_db),
    email_service=Depends(get_email_service),
):
    return await drive_service.submit_test(db, token, body.answers, email_service=email_service)


# ==================== Question bank ===================== #
@questions_router.get("", summary="List Aptitude Questions")
async def list_questions(
    test_round: Optional[int] = Query(None, ge=1, le=2, description="1 aptitude, 2 technical"),
    db: AsyncSession = Depends(get_db),
):
    return await drive_service.list_questions(db, test_round=test_round)


@questions_router.post("", status_code=201, summary="Create Aptitude Question")
async def create_question(body: QuestionCreate, db: AsyncSession = Depends(get_db)):
    return await drive_service.create_question(db, body.model_dump())


@questions_router.post(
    "/generate",
    status_code=201,
    summary="Generate Aptitude Questions",
    description="Generate multiple-choice questions with the LLM (or the built-in bank) and add them to the question bank.",
)
async def generate_questions(
    body: QuestionGenerate,
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
):
    return await drive_service.generate_questions(db, body.model_dump(), llm_client=llm_client)


@questions_router.put("/{question_id}", summary="Update Aptitude Question")
async def update_question(
    body: QuestionUpdate,
    question_id: int = Path(..., description="Question ID"),
    db: AsyncSession = Depends(get_db),
):
    return await drive_service.update_question(db, question_id, body.model_dump(exclude_unset=True))


@questions_router.delete("/{question_id}", summary="Delete Aptitude Question")
async def delete_question(
    question_id: int = Path(..., description="Question ID"),
    db: AsyncSession = Depends(get_db),
):
    return await drive_service.delete_question(db, question_id)
