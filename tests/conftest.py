"""
Pytest configuration and fixtures for the quiz API tests.
"""
import sys
import os
from datetime import datetime, timedelta

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Must be set before core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "s3cret pass"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOGIN_RATE_LIMIT"] = "5"
os.environ["SHUFFLE_CHOICES"] = "true"
os.environ["RESULTS_POLICY"] = "current"

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from models.base import Base
from models.question import Question, Choice
from models.group import Group, QuestionGroup
from models.attempt import Attempt
from models import settings as _settings_model  # noqa: F401 (register table)

BASE_TIME = datetime(2026, 1, 1, 9, 0, 0)


class FakeRedis:
    """In-memory stand-in for the few Redis calls the API makes."""

    def __init__(self):
        self.store = {}
        self.expiries = {}

    async def get(self, key):
        return self.store.get(key)

    async def incr(self, key):
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def expire(self, key, seconds):
        self.expiries[key] = seconds
        return True


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'quiz.db'}")

    # Enforce foreign keys like PostgreSQL does
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_group(db):
    async def _make(name: str) -> Group:
        group = Group(name=name)
        db.add(group)
        await db.commit()
        await db.refresh(group)
        return group
    return _make


@pytest.fixture
def make_question(db):
    """Create a question with ``(label, is_correct)`` choices, optionally linked to groups."""
    async def _make(prompt, choices=(("A", True), ("B", False)), minutes=0, group_ids=()):
        question = Question(prompt=prompt, created_at=BASE_TIME + timedelta(minutes=minutes))
        db.add(question)
        await db.flush()

        made = [Choice(question_id=question.id, label=label, is_correct=correct) for label, correct in choices]
        db.add_all(made)
        for group_id in group_ids:
            db.add(QuestionGroup(question_id=question.id, group_id=group_id))
        await db.commit()
        return question, {c.label: c for c in made}
    return _make


@pytest.fixture
def make_attempt(db):
    async def _make(question_ids, player_name="Ada", score=0, minutes=0):
        attempt = Attempt(
            player_name=player_name,
            score=score,
            total=len(question_ids),
            question_ids=list(question_ids),
            created_at=BASE_TIME + timedelta(minutes=minutes),
        )
        db.add(attempt)
        await db.commit()
        await db.refresh(attempt)
        return attempt
    return _make


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest_asyncio.fixture
async def client(session_factory, fake_redis):
    from api.main import app
    from db.session import get_db, get_redis

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    from api.auth import generate_token
    return {"Authorization": f"Bearer {generate_token()}"}
