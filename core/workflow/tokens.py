"""
Token lifecycle for candidate-facing links.

``issue`` creates a single-use, expiring token; ``verify`` looks it up without
changing it; ``consume`` flips ``used`` with a conditional UPDATE so that, no
matter how many requests race, exactly one of them wins.
"""

import logging
from datetime import timedelta
from typing import Type, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import TokenExpired, TokenInvalid
from core.security import (
    AuditAction,
    ResourceType,
    TokenKind,
    generate_token,
    log_audit_event,
)
from core.utils.datetime import ensure_utc, now
from core.utils.formatting import mask_token
from database.models.tokens import InterviewToken, ScreeningToken

logger = logging.getLogger(__name__)

TokenModel = TypeVar("TokenModel", ScreeningToken, InterviewToken)

INVALID_INTERVIEW_TOKEN = "Invalid or expired interview token"
INVALID_SCREENING_TOKEN = "Invalid or expired screening link"


def is_live(token_row: ScreeningToken | InterviewToken) -> bool:
    """A token is usable while unused and before its expiry."""
    return not token_row.used and ensure_utc(token_row.expires_at) > now()


async def issue_screening_token(
    session: AsyncSession,
    candidate_id: int,
    job_id: int,
    application_id: int | None = None,
    ttl: timedelta | None = None,
) -> ScreeningToken:
    ttl = ttl or timedelta(hours=settings.screening_token_ttl_hours)
    row = ScreeningToken(
        token=generate_token(TokenKind.SCREENING),
        candidate_id=candidate_id,
        job_id=job_id,
        application_id=application_id,
        expires_at=now() + ttl,
        used=False,
    )
    session.add(row)
    await session.flush()
    log_audit_event(
        AuditAction.TOKEN_ISSUED,
        ResourceType.SCREENING,
        row.id,
        details={"candidate_id": candidate_id, "job_id": job_id},
    )
    return row


async def issue_interview_token(
    session: AsyncSession,
    application_id: int,
    ttl: timedelta | None = None,
) -> InterviewToken:
    ttl = ttl or timedelta(hours=settings.interview_token_ttl_hours)
    row = InterviewToken(
        token=generate_token(TokenKind.INTERVIEW),
        application_id=application_id,
        expires_at=now() + ttl,
        used=False,
    )
    session.add(row)
    await session.flush()
    log_audit_event(
        AuditAction.TOKEN_ISSUED,
        ResourceType.INTERVIEW,
        row.id,
        details={"application_id": application_id},
    )
    return row


async def _load(session: AsyncSession, model: Type[TokenModel], token: str) -> TokenModel | None:
    if not token:
        return None
    result = await session.execute(select(model).where(model.token == token))
    return result.scalar_one_or_none()


async def verify_interview_token(session: AsyncSession, token: str) -> InterviewToken:
    """Return the live token row; unknown, used and expired all look the same."""
    row = await _load(session, InterviewToken, token)
    if row is None or not is_live(row):
        logger.info("Rejected interview token %s", mask_token(token))
        raise TokenInvalid(INVALID_INTERVIEW_TOKEN)
    return row


async def verify_screening_token(
    session: AsyncSession,
    token: str,
    report_expiry: bool = False,
) -> ScreeningToken:
    """
    Return the live screening token.

    With ``report_expiry`` an expired (but unused) token raises TokenExpired
    so the screening form can answer 410; everything else is TokenInvalid.
    """
    row = await _load(session, ScreeningToken, token)
    if row is None or row.used:
        logger.info("Rejected screening token %s", mask_token(token))
        raise TokenInvalid(INVALID_SCREENING_TOKEN)
    if ensure_utc(row.expires_at) <= now():
        if report_expiry:
            raise TokenExpired("This screening link has expired")
        raise TokenInvalid(INVALID_SCREENING_TOKEN)
    return row


async def _consume(session: AsyncSession, model: Type[TokenModel], token: str) -> bool:
    moment = now()
    result = await session.execute(
        update(model)
        .where(
            model.token == token,
            model.used.is_(False),
            model.expires_at > moment,
        )
        .values(used=True, used_at=moment)
        .execution_options(synchronize_session=False)
    )
    consumed = result.rowcount == 1
    if consumed:
        log_audit_event(
            AuditAction.TOKEN_CONSUMED,
            ResourceType.INTERVIEW if model is InterviewToken else ResourceType.SCREENING,
            mask_token(token),
        )
    return consumed


async def consume_interview_token(session: AsyncSession, token: str) -> bool:
    """True for the single caller that flipped the token to used."""
    return await _consume(session, InterviewToken, token)


async def consume_screening_token(session: AsyncSession, token: str) -> bool:
    return await _consume(session, ScreeningToken, token)


async def refresh_token_row(session: AsyncSession, row: TokenModel) -> TokenModel:
    """Reload a token after a bulk UPDATE touched it behind the ORM's back."""
    await session.refresh(row)
    return row
