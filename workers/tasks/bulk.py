"""Bulk resume processing tasks."""

import asyncio
import logging

from celery import Task
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.services.bulk import process_bulk_file
from core.config import settings
from database.engine import build_engine
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _process(file_id: int) -> dict:
    # each asyncio.run loop needs its own engine
    engine = build_engine(settings.database_url)
    try:
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with session_factory() as session:
            return await process_bulk_file(session, file_id)
    finally:
        await engine.dispose()


@celery_app.task(name="workers.tasks.bulk.process_resume_file", bind=True, max_retries=3)
def process_resume_file(self: Task, file_id: int) -> dict:
    """
    Extract one uploaded resume and attach it to the bulk job's position.

    Args:
        file_id: BulkJobFile id

    Returns:
        The file row with its final status
    """
    logger.info("Processing bulk resume file %s", file_id)
    try:
        return asyncio.run(_process(file_id))
    except Exception as exc:
        logger.error("Bulk resume file %s crashed: %s", file_id, exc)
        raise self.retry(exc=exc, countdown=2**self.request.retries)
