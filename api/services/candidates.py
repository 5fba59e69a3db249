"""
Candidate service functions.

Candidates are created by hand, from uploaded resumes (single or bulk) and
from recruitment drives. Deleting a candidate removes its applications and
everything downstream through ON DELETE CASCADE.
"""

from typing import Any, Dict, Optional
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import Conflict, ExtractionFailed, NotFound, ValidationFailed
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import now
from core.utils.validators import validate_email
from database.models import Application, Candidate
from lib.document_parser import UnsupportedDocument, extract_resume_text
from lib.matching import estimate_experience_years, find_skills

logger = logging.getLogger(__name__)

CANDIDATE_FIELDS = (
    "name",
    "email",
    "phone",
    "location",
    "linkedin_url",
    "skills",
    "experience_years",
    "summary",
    "resume_text",
)


def _normalize_email(email: str) -> str:
    valid, result = validate_email(email)
    if not valid:
        raise ValidationFailed("Invalid email address", details=[{"field": "email", "message": result}])
    return result.lower()


async def find_candidate_by_email(session: AsyncSession, email: str) -> Optional[Candidate]:
    result = await session.execute(select(Candidate).where(Candidate.email == email.lower()))
    return result.scalar_one_or_none()


async def get_candidate(session: AsyncSession, candidate_id: int) -> Dict[str, Any]:
    """Candidate profile with its applications."""
    candidate = await session.get(Candidate, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found")
    result = await session.execute(
        select(Application).where(Application.candidate_id == candidate_id).order_by(Application.id)
    )
    data = candidate.to_dict()
    data["applications"] = [a.to_dict() for a in result.scalars().all()]
    return data


async def list_candidates(
    session: AsyncSession,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    archived: bool = False,
) -> Dict[str, Any]:
    """
    List candidates with optional name/email search.

    Args:
        session: Database session
        search: Case-insensitive substring matched against name and email
        archived: List archived candidates instead of active ones
        limit: Maximum number of results
        offset: Pagination offset

    Returns:
        Dictionary with candidates list and pagination info
    """
    query = select(Candidate).where(Candidate.archived.is_(archived))
    count_query = select(func.count(Candidate.id)).where(Candidate.archived.is_(archived))
    if search:
        pattern = f"%{search.lower()}%"
        condition = or_(func.lower(Candidate.name).like(pattern), Candidate.email.like(pattern))
        query = query.where(condition)
        count_query = count_query.where(condition)

    total = (await session.execute(count_query)).scalar() or 0
    order = Candidate.archived_at if archived else Candidate.created_at
    result = await session.execute(
        query.order_by(order.desc(), Candidate.id.desc()).limit(limit).offset(offset)
    )
    return {
        "candidates": [c.to_dict(exclude=("resume_text",)) for c in result.scalars().all()],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


async def create_candidate(session: AsyncSession, values: Dict[str, Any]) -> Dict[str, Any]:
    email = _normalize_email(values["email"])
    if await find_candidate_by_email(session, email):
        raise Conflict("A candidate with this email already exists")

    data = {k: v for k, v in values.items() if k in CANDIDATE_FIELDS and v is not None}
    data["email"] = email
    if data.get("resume_text") and not data.get("skills"):
        data["skills"] = find_skills(data["resume_text"])
    candidate = Candidate(**data)
    session.add(candidate)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("A candidate with this email already exists") from exc
    return candidate.to_dict()


async def update_candidate(session: AsyncSession, candidate_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
    candidate = await session.get(Candidate, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found")
    if changes.get("email"):
        email = _normalize_email(changes["email"])
        other = await find_candidate_by_email(session, email)
        if other is not None and other.id != candidate_id:
            raise Conflict("A candidate with this email already exists")
        changes = {**changes, "email": email}
    for field in CANDIDATE_FIELDS:
        if changes.get(field) is not None:
            setattr(candidate, field, changes[field])
    await session.commit()
    return candidate.to_dict()


async def delete_candidate(session: AsyncSession, candidate_id: int, actor: Optional[str] = None) -> Dict[str, Any]:
    candidate = await session.get(Candidate, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found")
    await session.delete(candidate)
    await session.commit()
    log_audit_event(AuditAction.DELETE, ResourceType.CANDIDATE, candidate_id, actor=actor)
    return {"success": True, "id": candidate_id}


async def set_archived(
    session: AsyncSession, candidate_id: int, archived: bool, actor: Optional[str] = None
) -> Dict[str, Any]:
    """Archive or restore a candidate. Applications are left as they are."""
    candidate = await session.get(Candidate, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found")
    if candidate.archived != archived:
        candidate.archived = archived
        candidate.archived_at = now() if archived else None
        await session.commit()
        log_audit_event(
            AuditAction.ARCHIVED if archived else AuditAction.RESTORED,
            ResourceType.CANDIDATE,
            candidate_id,
            actor=actor,
        )
    return candidate.to_dict(exclude=("resume_text",))


async def parse_resume(data: bytes) -> tuple[str, str]:
    """
    Size-check and extract an uploaded resume.

    Returns:
        ``(file_type, text)``

    Raises:
        ExtractionFailed: empty, oversized, unsupported or unreadable file
    """
    if not data:
        raise ExtractionFailed("Uploaded file is empty")
    if len(data) > settings.max_upload_size_mb * 1024 * 1024:
        raise ExtractionFailed(f"File exceeds {settings.max_upload_size_mb} MB")
    try:
        return await extract_resume_text(data)
    except UnsupportedDocument as exc:
        raise ExtractionFailed(str(exc)) from exc


def apply_resume(candidate: Candidate, file_name: str, file_type: str, text: str) -> None:
    candidate.resume_text = text
    candidate.resume_file_name = file_name
    candidate.resume_file_type = file_type
    candidate.skills = sorted(set(candidate.skills or []) | set(find_skills(text)))
    if candidate.experience_years is None:
        candidate.experience_years = estimate_experience_years(text)


async def upload_resume(
    session: AsyncSession, candidate_id: int, file_name: str, data: bytes
) -> Dict[str, Any]:
    """Attach a resume to a candidate. Extraction failures reject the upload."""
    candidate = await session.get(Candidate, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found")

    file_type, text = await parse_resume(data)
    apply_resume(candidate, file_name, file_type, text)
    await session.commit()
    logger.info("Stored %s resume for candidate %s (%d chars)", file_type, candidate_id, len(text))
    return {
        "success": True,
        "candidate_id": candidate_id,
        "file_type": file_type,
        "characters": len(text),
        "skills": candidate.skills,
        "experience_years": candidate.experience_years,
    }
