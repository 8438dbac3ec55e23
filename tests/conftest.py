"""Shared fixtures and utilities for tests."""

import os
import tempfile

# Settings are read at import time, so the environment has to be ready first.
_DB_DIR = tempfile.mkdtemp(prefix="appraisal-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_DIR}/test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-chars-long-for-tests")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("APP_BASE_URL", "http://appraisal.test")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from appraisal.core.email import EmailResult
from appraisal.core.security import create_access_token
from appraisal.database import AsyncSessionLocal, Base, engine
from appraisal.main import app
from appraisal.models.assessment import Assessment, AssessmentStatus
from appraisal.models.rubric import RubricIndicator, RubricSection, RubricTemplate
from appraisal.models.user import User, UserRole
from appraisal.utils.password import hash_password

PASSWORD = "correct-horse"


class FakeMailer:
    """Records every send; fails for addresses listed in ``fail_for``."""

    def __init__(self, fail_for=(), error="SMTP connection refused"):
        self.sent = []
        self.fail_for = set(fail_for)
        self.error = error

    async def send(self, to, subject, html, text=None):
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        if to in self.fail_for:
            return EmailResult(success=False, error=self.error)
        return EmailResult(success=True, message_id="<fake@appraisal.test>")

    @property
    def recipients(self):
        return [m["to"] for m in self.sent]


@pytest_asyncio.fixture
async def db_setup():
    """Create all tables before a test and drop them after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db(db_setup):
    async with AsyncSessionLocal() as session:
        yield session


def _user(email, name, *roles, is_active=True):
    return User(
        email=email,
        name=name,
        hashed_password=hash_password(PASSWORD),
        is_active=is_active,
        roles=[UserRole(role=r) for r in roles],
    )


@pytest_asyncio.fixture
async def users(db):
    """One user per role plus a second admin."""
    people = {
        "staff": _user("staff@example.com", "Sam Staff", "staff"),
        "other_staff": _user("other@example.com", "Olive Other", "staff"),
        "manager": _user("manager@example.com", "Mia Manager", "staff", "manager"),
        "director": _user("director@example.com", "Dan Director", "director"),
        "admin": _user("admin@example.com", "Ada Admin", "admin"),
        "admin2": _user("admin2@example.com", "Alan Admin", "admin"),
    }
    db.add_all(people.values())
    await db.commit()
    for person in people.values():
        await db.refresh(person)
    return people


@pytest_asyncio.fixture
async def template(db):
    """Two weighted sections; one indicator has a custom score scale."""
    tpl = RubricTemplate(
        name="Teaching Staff Framework",
        description="Annual review",
        sections=[
            RubricSection(
                name="Planning",
                weight=60,
                sort_order=1,
                indicators=[
                    RubricIndicator(name="Lesson plans", sort_order=1),
                    RubricIndicator(name="Assessment design", sort_order=2),
                ],
            ),
            RubricSection(
                name="Collaboration",
                weight=40,
                sort_order=2,
                indicators=[
                    RubricIndicator(
                        name="Team work",
                        sort_order=1,
                        score_options=[
                            {"score": 1, "label": "Rarely", "enabled": True},
                            {"score": 2, "label": "Sometimes", "enabled": True},
                            {"score": 3, "label": "Often", "enabled": True},
                            {"score": 4, "label": "Always", "enabled": False},
                        ],
                    ),
                ],
            ),
        ],
    )
    db.add(tpl)
    await db.commit()
    await db.refresh(tpl)
    return tpl


@pytest.fixture
def ids(template):
    """Indicator ids of the test template as score-map keys."""
    return [str(i.id) for s in template.sections for i in s.indicators]


@pytest.fixture
def make_assessment(db, users, template):
    """Factory inserting an assessment directly in the given status."""

    async def _make(status=AssessmentStatus.DRAFT, **fields):
        values = dict(
            staff_id=users["staff"].id,
            manager_id=users["manager"].id,
            director_id=users["director"].id,
            template_id=template.id,
            period="2025-2026",
            status=AssessmentStatus(status).value,
            staff_scores={},
            staff_evidence={},
            manager_scores={},
            manager_evidence={},
        )
        values.update(fields)
        assessment = Assessment(**values)
        db.add(assessment)
        await db.commit()
        await db.refresh(assessment)
        return assessment

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def mailer(monkeypatch):
    """Replace the mail transport used by background notifications."""
    fake = FakeMailer()
    monkeypatch.setattr(
        "appraisal.services.notifications.dispatcher.EmailService", lambda: fake
    )
    return fake


@pytest_asyncio.fixture
async def client(db_setup):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
