# tests/conftest.py - Shared test fixtures
import os
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test_playbooks.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["ENVIRONMENT"] = "test"

from models import (
    Base, Channel, ChannelMember, Playbook, PlaybookMember, PlaybookRole,
    Team, TeamMember, User, UserRole,
)
from auth import AuthService
from database import get_db_session
from licensing import LicenseChecker, LicensePlan, get_license_checker
from main import app


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def license_checker():
    """Enterprise license by default; tests may mutate it"""
    return LicenseChecker(LicensePlan.ENTERPRISE, public_allowed=True)


@pytest_asyncio.fixture(scope="function")
async def client(db_engine, license_checker):
    """HTTP test client with overridden DB and license dependencies"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_license_checker] = lambda: license_checker
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db_session, username: str, role: UserRole = UserRole.USER) -> User:
    user = User(
        id=str(uuid.uuid4()),
        username=username,
        email=f"{username}@playbooks.dev",
        display_name=username.title(),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_team(db_session):
    team = Team(id=str(uuid.uuid4()), name="incident-response", display_name="Incident Response")
    db_session.add(team)
    await db_session.commit()
    await db_session.refresh(team)
    return team


@pytest_asyncio.fixture
async def playbook_admin(db_session, test_team):
    """Team member holding the playbook admin role"""
    user = await _make_user(db_session, "admin")
    db_session.add(TeamMember(team_id=test_team.id, user_id=user.id))
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def playbook_member(db_session, test_team):
    """Team member with the plain playbook member role"""
    user = await _make_user(db_session, "member")
    db_session.add(TeamMember(team_id=test_team.id, user_id=user.id))
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def teammate(db_session, test_team):
    """Team member who is not a playbook member"""
    user = await _make_user(db_session, "teammate")
    db_session.add(TeamMember(team_id=test_team.id, user_id=user.id))
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def outsider(db_session):
    """Active user outside the team"""
    return await _make_user(db_session, "outsider")


@pytest_asyncio.fixture
async def system_admin(db_session):
    return await _make_user(db_session, "sysadmin", role=UserRole.SYSTEM_ADMIN)


@pytest_asyncio.fixture
async def test_playbook(db_session, test_team, playbook_admin, playbook_member):
    playbook = Playbook(
        id=str(uuid.uuid4()),
        title="Outage Runbook",
        description="Steps for a production outage",
        team_id=test_team.id,
        public=True,
        delete_at=0,
    )
    db_session.add(playbook)
    db_session.add_all([
        PlaybookMember(playbook_id=playbook.id, member_id=playbook_admin.id, role=PlaybookRole.ADMIN),
        PlaybookMember(playbook_id=playbook.id, member_id=playbook_member.id, role=PlaybookRole.MEMBER),
    ])
    await db_session.commit()
    await db_session.refresh(playbook)
    return playbook


@pytest_asyncio.fixture
async def archived_playbook(db_session, test_team, playbook_admin):
    playbook = Playbook(
        id=str(uuid.uuid4()),
        title="Retired Runbook",
        team_id=test_team.id,
        delete_at=1_700_000_000_000,
    )
    db_session.add(playbook)
    db_session.add(PlaybookMember(playbook_id=playbook.id, member_id=playbook_admin.id, role=PlaybookRole.ADMIN))
    await db_session.commit()
    await db_session.refresh(playbook)
    return playbook


@pytest_asyncio.fixture
async def test_channel(db_session, test_team, playbook_admin):
    """Channel the playbook admin belongs to"""
    channel = Channel(id=str(uuid.uuid4()), team_id=test_team.id, name="war-room")
    db_session.add(channel)
    db_session.add(ChannelMember(channel_id=channel.id, user_id=playbook_admin.id))
    await db_session.commit()
    return channel


async def reload(db_session, model, **filters):
    """Fetch a row bypassing the session's identity map"""
    stmt = select(model).filter_by(**filters).execution_options(populate_existing=True)
    result = await db_session.execute(stmt)
    return result.scalar_one_or_none()


def get_auth_headers(user: User) -> dict:
    """Generate auth headers for a user"""
    token = AuthService.create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}
