"""Shared fixtures and utilities for tests."""

import os
import tempfile

# Settings are read at import time, so the environment is fixed before any
# application module is imported.
_DB_DIR = tempfile.mkdtemp(prefix="hirestage-tests-")
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/app.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["GOOGLE_API_KEY"] = ""
os.environ["UPLOAD_DIR"] = os.path.join(_DB_DIR, "uploads")
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["PUBLIC_BASE_URL"] = "https://jobs.acme.io"

import json
from io import BytesIO
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from docx import Document
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

import database.models  # noqa: F401
from database.engine import Base


class FakeEmailService:
    """Records templated emails instead of sending them."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent: list[dict] = []

    async def send(self, to_email, subject, body, html=False, reply_to=None) -> bool:
        self.sent.append({"to": to_email, "subject": subject, "body": body})
        return self.deliver

    async def send_template(self, to_email: str, template: dict) -> bool:
        return await self.send(to_email, template["subject"], template["body"], template.get("html", False))

    def to(self, address: str) -> list[dict]:
        return [mail for mail in self.sent if mail["to"] == address]

    def subjects(self) -> list[str]:
        return [mail["subject"] for mail in self.sent]


def make_llm_client(reply=None, error: Exception | None = None):
    """A stand-in for ``google.genai.Client`` whose async generate call is scripted."""
    client = MagicMock()
    if error is not None:
        client.aio.models.generate_content = AsyncMock(side_effect=error)
    else:
        text = reply if isinstance(reply, str) else json.dumps(reply)
        client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text=text))
    return client


@pytest_asyncio.fixture
async def session():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as db:
        yield db
    await engine.dispose()


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def failing_email_service():
    return FakeEmailService(deliver=False)


@pytest.fixture
def app_client(tmp_path, email_service):
    """
    TestClient against the real app with its database on a throwaway file.

    Each request opens its own connection (NullPool), so nothing is shared
    across the event loops TestClient runs requests on.
    """
    from api.dependencies import get_db
    from api.main import create_app

    db_path = tmp_path / "api.db"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with maker() as db:
            yield db

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    app.state.email_service = email_service
    app.state.llm_client = None

    client = TestClient(app, raise_server_exceptions=False)
    client.email_service = email_service
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def simple_docx() -> bytes:
    """A DOCX resume with contact details and a skills line."""
    stream = BytesIO()
    doc = Document()
    doc.add_paragraph("Priya Sharma")
    doc.add_paragraph("priya.sharma@acme.io | +91 98765 43210")
    doc.add_paragraph("Backend engineer with 5 years of experience in Python, FastAPI and PostgreSQL.")
    table = doc.add_table(rows=1, cols=1)
    table.rows[0].cells[0].text = "Skills: Docker, Redis, SQL"
    doc.save(stream)
    return stream.getvalue()
