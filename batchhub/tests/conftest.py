"""
Centralized Test Configuration.

Each test gets a fresh in-memory SQLite database and an in-memory Redis
stand-in, wired into the app through dependency overrides.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from batchhub.app.main import app
from batchhub.app.db.session import get_db, init_models
import batchhub.app.core.redis_client as redis_client_module

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class MockRedis:
    """Just enough of redis.asyncio.Redis for token revocation."""

    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def apply_overrides(session_factory, mock_redis):
    """Point the app at the per-test database and Redis."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = mock_redis

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture
async def client(apply_overrides):
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def register(client):
    """Factory: register a user, return (headers, user_id)."""

    async def _register(name: str, email: str = None, password: str = "password123"):
        email = email or f"{name.lower()}@college.edu"
        response = await client.post("/v1/auth/register", json={
            "email": email,
            "name": name,
            "password": password,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['access_token']}"}, body["user_id"]

    return _register


@pytest.fixture
async def trio(client, register):
    """
    Three members of one community: Alice (creator), Bob and Carol.

    Returns a dict with headers, ids and the community id.
    """
    alice_headers, alice_id = await register("Alice")
    bob_headers, bob_id = await register("Bob")
    carol_headers, carol_id = await register("Carol")

    response = await client.post("/v1/communities", json={
        "name": "Hostel Block C",
        "description": "Flatmates sharing groceries and trips",
        "type": "chillout",
    }, headers=alice_headers)
    assert response.status_code == 201, response.text
    community = response.json()

    for headers in (bob_headers, carol_headers):
        joined = await client.post("/v1/communities/join", json={"code": community["code"]}, headers=headers)
        assert joined.status_code == 200, joined.text

    return {
        "community_id": community["id"],
        "code": community["code"],
        "alice": (alice_headers, alice_id),
        "bob": (bob_headers, bob_id),
        "carol": (carol_headers, carol_id),
    }


@pytest.fixture
async def ledger_world(db_session):
    """
    Direct ORM fixture for domain-level tests.

    Users a, b, c, outsider; community "cs" with a, b, c as members;
    event "trip" in cs; a second community "other" with its own event.
    """
    from datetime import datetime, timezone
    from batchhub.app.models.user import User
    from batchhub.app.models.community import Community, CommunityMember, CommunityType
    from batchhub.app.models.event import Event

    users = {
        key: User(email=f"{key}@college.edu", name=key.title(), hashed_password="x")
        for key in ("a", "b", "c", "outsider")
    }
    db_session.add_all(users.values())
    await db_session.flush()

    cs = Community(
        name="CS Batch", description="Computer science batch of 2027",
        type=CommunityType.ACADEMIC, code="CSB027", creator_id=users["a"].id,
        memberships=[
            CommunityMember(user_id=users["a"].id, is_moderator=True),
            CommunityMember(user_id=users["b"].id),
            CommunityMember(user_id=users["c"].id),
        ],
    )
    other = Community(
        name="Chess Club", description="Weekend chess and snacks",
        type=CommunityType.CHILLOUT, code="CHESS1", creator_id=users["outsider"].id,
        memberships=[CommunityMember(user_id=users["outsider"].id, is_moderator=True)],
    )
    db_session.add_all([cs, other])
    await db_session.flush()

    when = datetime(2026, 11, 1, 9, 0, tzinfo=timezone.utc)
    trip = Event(
        community_id=cs.id, created_by_id=users["a"].id, title="Goa trip",
        description="Three day trip after exams", date=when,
    )
    tournament = Event(
        community_id=other.id, created_by_id=users["outsider"].id, title="Open tournament",
        description="Rapid chess open tournament", date=when,
    )
    db_session.add_all([trip, tournament])
    await db_session.commit()

    return {
        "users": {key: user.id for key, user in users.items()},
        "community_id": cs.id,
        "other_community_id": other.id,
        "event_id": trip.id,
        "other_event_id": tournament.id,
    }
