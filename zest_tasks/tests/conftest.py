"""
Test fixtures - in-memory SQLite database + authenticated HTTP clients
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from zest_tasks.database import Base, get_db
from zest_tasks.main import app
from zest_tasks.api.auth import get_password_hash, create_access_token
from zest_tasks.models.user import User
from zest_tasks.models.workflow import Workflow


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline test data: two users, two workflows for the first"""
    user = User(
        email="test@zest.app",
        full_name="Test User",
        hashed_password=get_password_hash("testpass123"),
    )
    other = User(
        email="other@zest.app",
        full_name="Other User",
        hashed_password=get_password_hash("otherpass123"),
    )
    db_session.add_all([user, other])
    await db_session.commit()

    productivity = Workflow(name="Productivity", description="Work stuff", user_id=user.id)
    fitness = Workflow(name="Fitness", user_id=user.id)
    db_session.add_all([productivity, fitness])
    await db_session.commit()

    return {"user": user, "other": other, "productivity": productivity, "fitness": fitness}


def _bind_db(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture()
async def client(db_session, seed_data):
    """Authenticated httpx AsyncClient bound to the FastAPI app"""
    _bind_db(db_session)

    token = create_access_token(data={"sub": seed_data["user"].email})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def other_client(db_session, seed_data):
    """Client authenticated as a second user"""
    _bind_db(db_session)

    token = create_access_token(data={"sub": seed_data["other"].email})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauth_client(db_session):
    """Unauthenticated httpx AsyncClient"""
    _bind_db(db_session)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
