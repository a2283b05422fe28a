import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from auratracker.database import get_db
from auratracker.main import app
from auratracker.models import Action, Base


@pytest.fixture
async def db_engine(tmp_path):
    """Fresh SQLite file per test with every AuraTracker table created."""
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'auratracker.db'}"
    engine = create_async_engine(db_url, connect_args={"check_same_thread": False})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncSession:
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client() -> AsyncClient:
    """Client for routes that never open a session (health, guest login, token checks)."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_client(db_session: AsyncSession) -> AsyncClient:
    """Client whose requests share the test's db_session, so tests can inspect rows directly."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def failing_action_commit(monkeypatch):
    """Any commit that would insert an action-log row fails; other commits go through."""
    real_commit = AsyncSession.commit

    async def commit(self):
        if any(isinstance(obj, Action) for obj in self.new):
            raise OperationalError("INSERT INTO actions", {}, Exception("database is locked"))
        await real_commit(self)

    monkeypatch.setattr(AsyncSession, "commit", commit)
