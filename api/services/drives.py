"""
Recruitment drive service functions.

Flow per candidate: invitation → registration (round 1 test issued) →
aptitude test → technical test → AI interview. Each test sitting is a
TestSession with its own single-use token; submission flips it from
pending to completed with a conditional update so a test is graded once.
"""

from typing import Any, Dict, Iterable, List, Optional
import csv
import io
import logging

from sqlalchemy import select, update, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from agents import registry
from api.services.notifications import candidate_link, invitation_days, notify
from core.config import settings
from core.exceptions import NotFound, TokenInvalid, ValidationFailed
from core.integrations.email import EmailService, EmailTemplates
from core.security import AuditAction, ResourceType, TokenKind, generate_token, log_audit_event
from core.utils.datetime import add_hours, ensure_utc, isoformat, now
from core.utils.validators import validate_email
from core.workflow.drives import (
    APTITUDE_ROUND,
    ROUND_NAMES,
    TECHNICAL_ROUND,
    recompute_qualification,
    score_test,
)
from core.workflow.states import APPLICATION_TRANSITIONS, advance_application, can_transition
from core.workflow.tokens import issue_interview_token
from database.models import (
    Application,
    ApplicationStatus,
    AptitudeQuestion,
    Candidate,
    DriveCandidate,
    DriveCandidateStatus,
    DriveSession,
    Job,
    QualificationStatus,
    RegistrationStatus,
    TestSession,
    TestSessionStatus,
)

logger = logging.getLogger(__name__)

INVALID_REGISTRATION = "Invalid or expired registration link"
INVALID_TEST = "Invalid or expired test link"
DRIVE_FIELDS = (
    "name",
    "description",
    "job_id",
    "aptitude_cutoff",
    "technical_cutoff",
    "question_count",
    "test_duration_minutes",
)


# ==================== Drive sessions ===================== #
async def _require_drive(session: AsyncSession, drive_id: int) -> DriveSession:
    drive = await session.get(DriveSession, drive_id)
    if not drive:
        raise NotFound("Drive session not found")
    return drive


async def _candidate_counts(session: AsyncSession, drive_ids: List[int]) -> Dict[int, Dict[str, int]]:
    result = await session.execute(
        select(
            DriveCandidate.drive_session_id,
            func.count(DriveCandidate.id),
            func.sum(case((DriveCandidate.registration_status == RegistrationStatus.REGISTERED, 1), else_=0)),
            func.sum(case((DriveCandidate.qualification_status == QualificationStatus.QUALIFIED, 1), else_=0)),
            func.sum(case((DriveCandidate.qualification_status == QualificationStatus.NOT_QUALIFIED, 1), else_=0)),
            func.sum(case((DriveCandidate.interview_scheduled.is_(True), 1), else_=0)),
        )
        .where(DriveCandidate.drive_session_id.in_(drive_ids))
        .group_by(DriveCandidate.drive_session_id)
    )
    counts = {}
    for drive_id, total, registered, qualified, not_qualified, interviews in result.all():
        counts[drive_id] = {
            "total_candidates": total or 0,
            "registered": registered or 0,
            "qualified": qualified or 0,
            "not_qualified": not_qualified or 0,
            "interviews_scheduled": interviews or 0,
        }
    return counts


def _empty_counts() -> Dict[str, int]:
    return {
        "total_candidates": 0,
        "registered": 0,
        "qualified": 0,
        "not_qualified": 0,
        "interviews_scheduled": 0,
    }


async def create_drive(
    session: AsyncSession,
    values: Dict[str, Any],
    candidates: Iterable[Dict[str, Any]] = (),
    created_by: Optional[str] = None,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """Create a drive, enrol its candidates and send registration invitations."""
    if values.get("job_id") is not None and not await session.get(Job, values["job_id"]):
        raise NotFound("Job not found")

    drive = DriveSession(
        **{k: v for k, v in values.items() if k in DRIVE_FIELDS and v is not None},
        created_by=created_by,
    )
    session.add(drive)
    await session.flush()

    created, skipped = await _enrol(session, drive, candidates)
    await session.commit()
    log_audit_event(
        AuditAction.STATUS_CHANGED,
        ResourceType.DRIVE,
        drive.id,
        actor=created_by,
        details={"created": True, "candidates": len(created)},
    )

    sent = await _send_invitations(session, drive, created, email_service)
    return {
        "drive_session": drive.to_dict(),
        "candidate_count": len(created),
        "invitations_sent": sent,
        "skipped": skipped,
    }


async def import_candidates_csv(
    session: AsyncSession,
    drive_id: int,
    data: bytes,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """
    Enrol candidates from a CSV with ``name``, ``email`` and optional
    ``phone`` columns (header names are case-insensitive).
    """
    drive = await _require_drive(session, drive_id)
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationFailed("CSV file must be UTF-8 encoded") from exc

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationFailed("CSV file has no header row")
    headers = {name.strip().lower(): name for name in reader.fieldnames if name}
    if "email" not in headers or "name" not in headers:
        raise ValidationFailed("CSV must contain 'name' and 'email' columns")

    phone_column = headers.get("phone")
    rows = [
        {
            "name": (row.get(headers["name"]) or "").strip(),
            "email": (row.get(headers["email"]) or "").strip(),
            "phone": (row.get(phone_column) or "").strip() or None if phone_column else None,
        }
        for row in reader
    ]
    created, skipped = await _enrol(session, drive, rows)
    await session.commit()
    sent = await _send_invitations(session, drive, created, email_service)
    return {"imported": len(created), "invitations_sent": sent, "skipped": skipped}


async def _enrol(
    session: AsyncSession, drive: DriveSession, rows: Iterable[Dict[str, Any]]
) -> tuple[List[DriveCandidate], List[Dict[str, Any]]]:
    existing = await session.execute(
        select(DriveCandidate.email).where(DriveCandidate.drive_session_id == drive.id)
    )
    seen = {email for email in existing.scalars().all()}
    created: List[DriveCandidate] = []
    skipped: List[Dict[str, Any]] = []
    expires_at = add_hours(now(), settings.registration_token_ttl_hours)

    for row in rows:
        name = (row.get("name") or "").strip()
        valid, email = validate_email((row.get("email") or "").strip())
        if not name or not valid:
            skipped.append({"email": row.get("email"), "reason": "invalid name or email"})
            continue
        email = email.lower()
        if email in seen:
            skipped.append({"email": email, "reason": "duplicate"})
            continue
        seen.add(email)
        drive_candidate = DriveCandidate(
            drive_session_id=drive.id,
            name=name,
            email=email,
            phone=row.get("phone"),
            registration_token=generate_token(TokenKind.REGISTRATION),
            registration_expires_at=expires_at,
            registration_status=RegistrationStatus.PENDING,
            status=DriveCandidateStatus.INVITED,
            current_round=APTITUDE_ROUND,
            qualification_status=QualificationStatus.PENDING,
        )
        session.add(drive_candidate)
        created.append(drive_candidate)

    await session.flush()
    return created, skipped


async def _send_invitations(
    session: AsyncSession,
    drive: DriveSession,
    drive_candidates: List[DriveCandidate],
    email_service: Optional[EmailService],
) -> int:
    sent = 0
    for drive_candidate in drive_candidates:
        drive_candidate.notification_sent = await notify(
            email_service,
            drive_candidate.email,
            EmailTemplates.drive_invitation(
                drive_candidate.name,
                drive.name,
                candidate_link("drive_register", drive_candidate.registration_token),
            ),
        )
        sent += int(drive_candidate.notification_sent)
    await session.commit()
    return sent


async def list_drives(session: AsyncSession) -> List[Dict[str, Any]]:
    result = await session.execute(
        select(DriveSession).order_by(DriveSession.created_at.desc(), DriveSession.id.desc())
    )
    drives = list(result.scalars().all())
    counts = await _candidate_counts(session, [d.id for d in drives]) if drives else {}
    return [{**d.to_dict(), **counts.get(d.id, _empty_counts())} for d in drives]


async def get_drive(session: AsyncSession, drive_id: int) -> Dict[str, Any]:
    drive = await _require_drive(session, drive_id)
    counts = await _candidate_counts(session, [drive_id])
    return {**drive.to_dict(), **counts.get(drive_id, _empty_counts())}


async def delete_drive(session: AsyncSession, drive_id: int, actor: Optional[str] = None) -> Dict[str, Any]:
    drive = await _require_drive(session, drive_id)
    await session.delete(drive)
    await session.commit()
    log_audit_event(AuditAction.DELETE, ResourceType.DRIVE, drive_id, actor=actor)
    return {"success": True, "id": drive_id}


async def list_drive_candidates(
    session: AsyncSession,
    drive_id: int,
    status: Optional[DriveCandidateStatus] = None,
    qualification: Optional[QualificationStatus] = None,
) -> List[Dict[str, Any]]:
    await _require_drive(session, drive_id)
    query = select(DriveCandidate).where(DriveCandidate.drive_session_id == drive_id)
    if status is not None:
        query = query.where(DriveCandidate.status == status)
    if qualification is not None:
        query = query.where(DriveCandidate.qualification_status == qualification)
    result = await session.execute(query.order_by(DriveCandidate.id))
    return [dc.to_dict(exclude=("registration_token",)) for dc in result.scalars().all()]


async def update_cutoffs(
    session: AsyncSession,
    drive_id: int,
    aptitude_cutoff: Optional[float] = None,
    technical_cutoff: Optional[float] = None,
    actor: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Change cutoffs and re-derive every candidate's qualification from the
    stored scores. No emails are sent and no rounds are rolled back.
    """
    drive = await _require_drive(session, drive_id)
    for value in (aptitude_cutoff, technical_cutoff):
        if value is not None and not 0 <= value <= 100:
            raise ValidationFailed("Cutoffs must be between 0 and 100")
    if aptitude_cutoff is not None:
        drive.aptitude_cutoff = aptitude_cutoff
    if technical_cutoff is not None:
        drive.technical_cutoff = technical_cutoff

    result = await session.execute(
        select(DriveCandidate).where(DriveCandidate.drive_session_id == drive_id)
    )
    updated = 0
    for drive_candidate in result.scalars().all():
        new_status = recompute_qualification(
            drive_candidate.aptitude_score,
            drive_candidate.technical_score,
            drive.aptitude_cutoff,
            drive.technical_cutoff,
            drive_candidate.qualification_status,
        )
        if new_status != drive_candidate.qualification_status:
            drive_candidate.qualification_status = new_status
            updated += 1

    await session.commit()
    log_audit_event(
        AuditAction.CUTOFFS_CHANGED,
        ResourceType.DRIVE,
        drive_id,
        actor=actor,
        details={
            "aptitude_cutoff": drive.aptitude_cutoff,
            "technical_cutoff": drive.technical_cutoff,
            "candidates_updated": updated,
        },
    )
    return {"drive_session": drive.to_dict(), "candidates_updated": updated}


# ==================== Registration ===================== #
async def _load_registration(session: AsyncSession, token: str) -> DriveCandidate:
    result = await session.execute(
        select(DriveCandidate).where(DriveCandidate.registration_token == token)
    )
    drive_candidate = result.scalar_one_or_none()
    if drive_candidate is None or ensure_utc(drive_candidate.registration_expires_at) <= now():
        raise TokenInvalid(INVALID_REGISTRATION)
    return drive_candidate


async def get_registration(session: AsyncSession, token: str) -> Dict[str, Any]:
    drive_candidate = await _load_registration(session, token)
    drive = await session.get(DriveSession, drive_candidate.drive_session_id)
    job = await session.get(Job, drive.job_id) if drive.job_id else None
    return {
        "candidate": {
            "name": drive_candidate.name,
            "email": drive_candidate.email,
            "phone": drive_candidate.phone,
            "registration_status": drive_candidate.registration_status.value,
        },
        "drive_session": {
            "name": drive.name,
            "description": drive.description,
            "question_count": drive.question_count,
            "test_duration_minutes": drive.test_duration_minutes,
        },
        "job": {"title": job.title, "department": job.department} if job else None,
    }


async def register(
    session: AsyncSession,
    token: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """Complete registration and issue the aptitude test. Works once per link."""
    drive_candidate = await _load_registration(session, token)
    moment = now()
    result = await session.execute(
        update(DriveCandidate)
        .where(
            DriveCandidate.id == drive_candidate.id,
            DriveCandidate.registration_status == RegistrationStatus.PENDING,
        )
        .values(
            registration_status=RegistrationStatus.REGISTERED,
            registered_at=moment,
            status=DriveCandidateStatus.REGISTERED,
            updated_at=moment,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise TokenInvalid(INVALID_REGISTRATION)
    await session.refresh(drive_candidate)

    if name and name.strip():
        drive_candidate.name = name.strip()
    if phone:
        drive_candidate.phone = phone
    drive = await session.get(DriveSession, drive_candidate.drive_session_id)
    test = await _issue_test(session, drive_candidate, drive, APTITUDE_ROUND)
    await session.commit()

    await _send_test_email(session, drive_candidate, drive, test, email_service)
    return {
        "success": True,
        "message": "Registration completed. The test link has been sent to your email.",
        "test_token": test.test_token,
    }


# ==================== Tests ===================== #
async def _issue_test(
    session: AsyncSession,
    drive_candidate: DriveCandidate,
    drive: DriveSession,
    test_round: int,
) -> TestSession:
    """Create a sitting with a fixed question set of min(bank, question_count)."""
    result = await session.execute(
        select(AptitudeQuestion.id)
        .where(AptitudeQuestion.test_round == test_round)
        .order_by(AptitudeQuestion.id)
        .limit(drive.question_count)
    )
    question_ids = list(result.scalars().all())
    test = TestSession(
        drive_candidate_id=drive_candidate.id,
        test_token=generate_token(TokenKind.TEST),
        test_round=test_round,
        question_ids=question_ids,
        total_questions=len(question_ids),
        status=TestSessionStatus.PENDING,
        expires_at=add_hours(now(), settings.test_token_ttl_hours),
    )
    session.add(test)
    await session.flush()
    return test


async def _send_test_email(
    session: AsyncSession,
    drive_candidate: DriveCandidate,
    drive: DriveSession,
    test: TestSession,
    email_service: Optional[EmailService],
) -> None:
    test.notification_sent = await notify(
        email_service,
        drive_candidate.email,
        EmailTemplates.drive_test_invitation(
            drive_candidate.name,
            drive.name,
            ROUND_NAMES[test.test_round],
            candidate_link("drive_test", test.test_token),
            drive.test_duration_minutes,
        ),
    )
    await session.commit()


async def _load_test(session: AsyncSession, token: str) -> TestSession:
    result = await session.execute(select(TestSession).where(TestSession.test_token == token))
    test = result.scalar_one_or_none()
    if (
        test is None
        or test.status != TestSessionStatus.PENDING
        or ensure_utc(test.expires_at) <= now()
    ):
        raise TokenInvalid(INVALID_TEST)
    return test


async def _test_questions(session: AsyncSession, test: TestSession) -> List[AptitudeQuestion]:
    if not test.question_ids:
        return []
    result = await session.execute(
        select(AptitudeQuestion).where(AptitudeQuestion.id.in_(test.question_ids))
    )
    by_id = {q.id: q for q in result.scalars().all()}
    return [by_id[qid] for qid in test.question_ids if qid in by_id]


async def get_test(session: AsyncSession, token: str) -> Dict[str, Any]:
    """Questions for a pending sitting, without their answers."""
    test = await _load_test(session, token)
    drive_candidate = await session.get(DriveCandidate, test.drive_candidate_id)
    drive = await session.get(DriveSession, drive_candidate.drive_session_id)
    questions = await _test_questions(session, test)
    return {
        "test_round": test.test_round,
        "round_name": ROUND_NAMES[test.test_round],
        "drive_name": drive.name,
        "candidate_name": drive_candidate.name,
        "duration_minutes": drive.test_duration_minutes,
        "expires_at": isoformat(test.expires_at),
        "time_remaining_seconds": max(0, int((ensure_utc(test.expires_at) - now()).total_seconds())),
        "total_questions": len(questions),
        "questions": [
            {"id": q.id, "question": q.question, "options": q.options, "category": q.category}
            for q in questions
        ],
    }


async def submit_test(
    session: AsyncSession,
    token: str,
    answers: Dict[str, str],
    email_service: Optional[EmailService] = None,
) -> Dict[str, Any]:
    """
    Grade a sitting and advance the candidate.

    Passing round 1 issues the technical test; passing round 2 creates the
    candidate's application and AI interview invitation. Failing either
    marks the candidate not qualified and sends the rejection email.
    """
    test = await _load_test(session, token)
    moment = now()
    result = await session.execute(
        update(TestSession)
        .where(
            TestSession.id == test.id,
            TestSession.status == TestSessionStatus.PENDING,
            TestSession.expires_at > moment,
        )
        .values(status=TestSessionStatus.COMPLETED, submitted_at=moment, updated_at=moment)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise TokenInvalid(INVALID_TEST)
    await session.refresh(test)

    questions = await _test_questions(session, test)
    correct, score = score_test(questions, answers or {})
    test.score = score
    test.responses = {"answers": dict(answers or {}), "correct": correct}

    drive_candidate = await session.get(DriveCandidate, test.drive_candidate_id)
    drive = await session.get(DriveSession, drive_candidate.drive_session_id)
    cutoff = drive.cutoff_for_round(test.test_round)
    qualified = score >= cutoff

    next_test = None
    interview_token = None
    if test.test_round == APTITUDE_ROUND:
        drive_candidate.aptitude_score = score
        drive_candidate.status = DriveCandidateStatus.APTITUDE_COMPLETED
        if qualified:
            drive_candidate.current_round = TECHNICAL_ROUND
            drive_candidate.qualification_status = QualificationStatus.QUALIFIED
            next_test = await _issue_test(session, drive_candidate, drive, TECHNICAL_ROUND)
    else:
        drive_candidate.technical_score = score
        drive_candidate.status = DriveCandidateStatus.TECHNICAL_COMPLETED
        if qualified:
            interview_token = await _schedule_ai_interview(session, drive_candidate, drive)
    if not qualified:
        drive_candidate.qualification_status = QualificationStatus.NOT_QUALIFIED
    await session.commit()

    round_name = ROUND_NAMES[test.test_round]
    logger.info("Drive %s %s test scored %d (cutoff %s)", drive.id, round_name.lower(), score, cutoff)

    if next_test is not None:
        await _send_test_email(session, drive_candidate, drive, next_test, email_service)
    elif interview_token is not None:
        await _send_interview_email(session, drive_candidate, drive, interview_token, email_service)
    elif not qualified:
        await notify(
            email_service,
            drive_candidate.email,
            EmailTemplates.drive_rejection(drive_candidate.name, drive.name, round_name),
        )

    return {
        "score": score,
        "correct": correct,
        "total_questions": len(questions),
        "qualified": qualified,
        "cutoff": cutoff,
        "next_round": (
            "technical" if next_test is not None
            else "interview" if interview_token is not None
            else None
        ),
    }


async def _schedule_ai_interview(
    session: AsyncSession, drive_candidate: DriveCandidate, drive: DriveSession
):
    """
    Turn a drive candidate into a pipeline candidate with an application
    and an interview token. Drives without a job stop at qualification.
    """
    drive_candidate.current_round = 3
    drive_candidate.qualification_status = QualificationStatus.QUALIFIED
    if drive.job_id is None:
        logger.warning("Drive %s has no job; AI interview not scheduled", drive.id)
        return None

    result = await session.execute(select(Candidate).where(Candidate.email == drive_candidate.email))
    candidate = result.scalar_one_or_none()
    if candidate is None:
        candidate = Candidate(name=drive_candidate.name, email=drive_candidate.email, phone=drive_candidate.phone)
        session.add(candidate)
        await session.flush()

    result = await session.execute(
        select(Application).where(
            Application.candidate_id == candidate.id, Application.job_id == drive.job_id
        )
    )
    application = result.scalar_one_or_none()
    if application is None:
        application = Application(
            candidate_id=candidate.id,
            job_id=drive.job_id,
            status=ApplicationStatus.APPLIED,
            source="drive",
        )
        session.add(application)
        await session.flush()
    if can_transition(APPLICATION_TRANSITIONS, application.status, ApplicationStatus.INTERVIEW_INVITED):
        advance_application(application, ApplicationStatus.INTERVIEW_INVITED)

    token_row = await issue_interview_token(session, application.id)
    drive_candidate.application_id = application.id
    drive_candidate.interview_scheduled = True
    drive_candidate.status = DriveCandidateStatus.INTERVIEW_SCHEDULED
    return token_row


async def _send_interview_email(
    session: AsyncSession,
    drive_candidate: DriveCandidate,
    drive: DriveSession,
    token_row,
    email_service: Optional[EmailService],
) -> None:
    job = await session.get(Job, drive.job_id)
    token_row.notification_sent = await notify(
        email_service,
        drive_candidate.email,
        EmailTemplates.interview_invitation(
            drive_candidate.name,
            job.title if job else drive.name,
            candidate_link("interview", token_row.token),
            invitation_days(),
        ),
    )
    await session.commit()


async def send_next_round(
    session: AsyncSession, drive_id: int, email_service: Optional[EmailService] = None
) -> Dict[str, Any]:
    """
    Issue technical tests to aptitude finishers who meet the current cutoff
    but were not advanced yet (e.g. after the cutoff was lowered).
    """
    drive = await _require_drive(session, drive_id)
    result = await session.execute(
        select(DriveCandidate).where(
            DriveCandidate.drive_session_id == drive_id,
            DriveCandidate.status == DriveCandidateStatus.APTITUDE_COMPLETED,
            DriveCandidate.current_round == APTITUDE_ROUND,
            DriveCandidate.aptitude_score >= drive.aptitude_cutoff,
        )
    )
    eligible = list(result.scalars().all())
    issued = []
    for drive_candidate in eligible:
        drive_candidate.current_round = TECHNICAL_ROUND
        issued.append((drive_candidate, await _issue_test(session, drive_candidate, drive, TECHNICAL_ROUND)))
    await session.commit()

    sent = 0
    for drive_candidate, test in issued:
        await _send_test_email(session, drive_candidate, drive, test, email_service)
        sent += int(test.notification_sent)
    return {"total_qualified": len(eligible), "emails_sent": sent}


async def schedule_interviews(
    session: AsyncSession, drive_id: int, email_service: Optional[EmailService] = None
) -> Dict[str, Any]:
    """Schedule AI interviews for technical finishers who meet the current cutoff."""
    drive = await _require_drive(session, drive_id)
    if drive.job_id is None:
        raise ValidationFailed("Drive session has no job; interviews cannot be scheduled")
    result = await session.execute(
        select(DriveCandidate).where(
            DriveCandidate.drive_session_id == drive_id,
            DriveCandidate.status == DriveCandidateStatus.TECHNICAL_COMPLETED,
            DriveCandidate.technical_score >= drive.technical_cutoff,
            DriveCandidate.interview_scheduled.is_(False),
        )
    )
    eligible = list(result.scalars().all())
    scheduled = []
    for drive_candidate in eligible:
        token_row = await _schedule_ai_interview(session, drive_candidate, drive)
        scheduled.append((drive_candidate, token_row))
    await session.commit()

    for drive_candidate, token_row in scheduled:
        await _send_interview_email(session, drive_candidate, drive, token_row, email_service)
    return {"total_qualified": len(eligible), "interviews_scheduled": len(scheduled)}


# ==================== Question bank ===================== #
def _check_question(options: List[str], correct_answer: str) -> None:
    if len(options) < 2:
        raise ValidationFailed("A question needs at least two options")
    if correct_answer not in options:
        raise ValidationFailed("correct_answer must be one of the options")


async def list_questions(session: AsyncSession, test_round: Optional[int] = None) -> List[Dict[str, Any]]:
    query = select(AptitudeQuestion).order_by(AptitudeQuestion.test_round, AptitudeQuestion.id)
    if test_round is not None:
        query = query.where(AptitudeQuestion.test_round == test_round)
    result = await session.execute(query)
    return [q.to_dict() for q in result.scalars().all()]


async def create_question(session: AsyncSession, values: Dict[str, Any]) -> Dict[str, Any]:
    _check_question(values["options"], values["correct_answer"])
    question = AptitudeQuestion(
        question=values["question"],
        options=values["options"],
        correct_answer=values["correct_answer"],
        test_round=values.get("test_round") or APTITUDE_ROUND,
        category=values.get("category"),
        difficulty=values.get("difficulty"),
    )
    session.add(question)
    await session.commit()
    return question.to_dict()


async def generate_questions(
    session: AsyncSession, values: Dict[str, Any], llm_client: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Generate multiple-choice questions and add them to the bank.

    The LLM writes them when a client is configured; otherwise (or when the
    call fails) they come from the built-in bank for the round.
    """
    job = None
    if values.get("job_id") is not None:
        job = await session.get(Job, values["job_id"])
        if not job:
            raise NotFound("Job not found")

    test_round = values.get("test_round") or APTITUDE_ROUND
    agent = registry.create("aptitude_questions", client=llm_client)
    generated = await agent.process({
        "test_round": test_round,
        "count": values.get("count") or 5,
        "difficulty": values.get("difficulty") or "medium",
        "topics": values.get("topics") or [],
        "job": {"title": job.title, "description": job.description} if job else None,
    })

    category = values.get("category") or ROUND_NAMES.get(test_round)
    questions = [
        AptitudeQuestion(
            question=item["question"],
            options=item["options"],
            correct_answer=item["correct_answer"],
            test_round=test_round,
            category=category,
            difficulty=values.get("difficulty") or "medium",
        )
        for item in generated["questions"]
    ]
    session.add_all(questions)
    await session.commit()
    logger.info("Added %d %s questions to round %s", len(questions), generated["source"], test_round)
    return {
        "questions": [q.to_dict() for q in questions],
        "count": len(questions),
        "source": generated["source"],
    }


async def update_question(session: AsyncSession, question_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
    question = await session.get(AptitudeQuestion, question_id)
    if not question:
        raise NotFound("Question not found")
    for field in ("question", "options", "correct_answer", "test_round", "category", "difficulty"):
        if changes.get(field) is not None:
            setattr(question, field, changes[field])
    _check_question(question.options, question.correct_answer)
    await session.commit()
    return question.to_dict()


async def delete_question(session: AsyncSession, question_id: int) -> Dict[str, Any]:
    question = await session.get(AptitudeQuestion, question_id)
    if not question:
        raise NotFound("Question not found")
    await session.delete(question)
    await session.commit()
    return {"success": True, "id": question_id}
