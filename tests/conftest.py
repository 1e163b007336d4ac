"""
Pytest fixtures for verification workflow tests.

Tests run against a temp-file SQLite database so every session (and every
concurrent reviewer) gets its own connection to the same data.
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator, Awaitable, Callable

_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reviewflow.config import get_settings

get_settings.cache_clear()

from reviewflow.database import build_engine, build_session_maker
from reviewflow.kernel.identity.jwt import JWTManager
from reviewflow.kernel.models import Base
from reviewflow.kernel.models.assignment import MentorAssignment
from reviewflow.kernel.models.items import (
    Activity,
    CompetencyClaim,
    ProfileDocument,
    Qualification,
    TeachingSession,
)
from reviewflow.kernel.models.user import User, UserRole
from reviewflow.kernel.models.verification import ItemType


ItemFactory = Callable[..., Awaitable[str]]


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine with a fresh schema."""
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_maker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


async def _make_user(session: AsyncSession, role: UserRole, name: str, is_active: bool = True) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"{name}-{uuid.uuid4().hex[:8]}@example.com",
        full_name=name.title(),
        role=role.value,
        is_active=is_active,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def student(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.STUDENT, "student")


@pytest_asyncio.fixture
async def other_student(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.STUDENT, "other student")


@pytest_asyncio.fixture
async def mentor(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.MENTOR, "mentor")


@pytest_asyncio.fixture
async def other_mentor(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.MENTOR, "other mentor")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.ADMIN, "admin")


@pytest_asyncio.fixture
async def assigned(db_session: AsyncSession, mentor: User, student: User) -> MentorAssignment:
    """`mentor` is assigned to `student`."""
    assignment = MentorAssignment(mentor_id=mentor.id, student_id=student.id)
    db_session.add(assignment)
    await db_session.commit()
    return assignment


@pytest_asyncio.fixture
async def make_item(db_session: AsyncSession) -> ItemFactory:
    """Factory creating a verifiable item row; returns its id."""

    async def _make(owner: User, item_type: ItemType = ItemType.QUALIFICATION, item_id: str = None) -> str:
        item_id = item_id or uuid.uuid4().hex
        if item_type == ItemType.QUALIFICATION:
            item = Qualification(id=item_id, student_id=owner.id, title="First Aid Certificate")
        elif item_type == ItemType.SESSION:
            item = TeachingSession(id=item_id, student_id=owner.id, title="Year 9 Algebra")
        elif item_type == ItemType.ACTIVITY:
            item = Activity(id=item_id, student_id=owner.id, title="Safeguarding workshop")
        elif item_type == ItemType.COMPETENCY:
            item = CompetencyClaim(id=item_id, student_id=owner.id, competency_name="Classroom management")
        else:
            item = ProfileDocument(id=item_id, student_id=owner.id, document_url="https://files.example.com/dbs.pdf")
        db_session.add(item)
        await db_session.commit()
        return item_id

    return _make


@pytest.fixture
def jwt_manager() -> JWTManager:
    """JWT manager using the application's settings."""
    return JWTManager()


@pytest.fixture
def headers_for(jwt_manager: JWTManager) -> Callable[[User], dict]:
    """Build bearer auth headers for a user."""

    def _headers(user: User) -> dict:
        token, _ = jwt_manager.create_access_token(
            user_id=user.id,
            role=UserRole(user.role).value,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
