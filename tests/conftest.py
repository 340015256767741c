"""Shared test fixtures with in-memory SQLite and an in-memory key/value store."""
import os

os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("APP_ENV", "testing")

import uuid
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles

from sitecms.models.base import Base
from sitecms.models.faq import Faq
from sitecms.models.faq_category import ActiveStatus, FaqCategory
from sitecms.models.resource import Resource, ResourceStatus
from sitecms.models.resource_category import ResourceCategory
from sitecms.models.user import User, UserRole
from sitecms.main import app
from sitecms.database import watch_slow_queries
from sitecms.dependencies import get_db
from sitecms.services.auth_service import create_access_token, hash_password
from sitecms.utils.helpers import slugify, utc_now
from sitecms.utils.kv_store import MemoryStore, set_store

# --- SQLite compatibility: compile PostgreSQL types for SQLite ---

@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


@compiles(UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "VARCHAR(36)"


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
watch_slow_queries(test_engine.sync_engine)
test_session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@event.listens_for(test_engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(autouse=True)
async def setup_db():
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.connect() as conn:
        # Self-referential RESTRICT foreign keys block SQLite's implicit
        # row deletion on DROP TABLE, so disable enforcement for teardown.
        await conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        await conn.run_sync(Base.metadata.drop_all)
        await conn.commit()
        await conn.exec_driver_sql("PRAGMA foreign_keys=ON")


async def _override_get_db():
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = _override_get_db


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def kv_store(clock: FakeClock) -> MemoryStore:
    store = MemoryStore(clock=clock)
    set_store(store)
    yield store
    set_store(None)


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with test_session_factory() as session:
        yield session


async def _create_test_user(
    db: AsyncSession, role: UserRole = UserRole.ADMIN, email: str | None = None,
) -> tuple[User, str]:
    """Create a test user and return (user, access_token)."""
    user = User(
        id=uuid.uuid4(),
        email=email or f"{role.value}_{uuid.uuid4().hex[:8]}@test.com",
        password_hash=hash_password("testpass123"),
        name=f"Test {role.value.title()}",
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    token = create_access_token(str(user.id), role.value)
    return user, token


@pytest.fixture
def make_user(db_session: AsyncSession):
    async def factory(role: UserRole = UserRole.ADMIN, email: str | None = None) -> tuple[User, str]:
        return await _create_test_user(db_session, role, email)

    return factory


@pytest.fixture
async def admin_auth(db_session: AsyncSession) -> tuple[User, dict]:
    """Return (admin_user, auth_headers)."""
    user, token = await _create_test_user(db_session, UserRole.ADMIN)
    return user, {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def editor_auth(db_session: AsyncSession) -> tuple[User, dict]:
    user, token = await _create_test_user(db_session, UserRole.EDITOR)
    return user, {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def staff(admin_auth) -> User:
    return admin_auth[0]


# --- Content factories ---

@pytest.fixture
def make_faq_category(db_session: AsyncSession):
    async def factory(name: str = "General", **kwargs) -> FaqCategory:
        category = FaqCategory(
            name=name,
            slug=kwargs.pop("slug", slugify(name)),
            status=kwargs.pop("status", ActiveStatus.ACTIVE),
            **kwargs,
        )
        db_session.add(category)
        await db_session.commit()
        return category

    return factory


@pytest.fixture
def make_faq(db_session: AsyncSession):
    async def factory(category: FaqCategory, question: str = "How do I get started with the platform?", **kwargs) -> Faq:
        faq = Faq(
            question=question,
            answer=kwargs.pop("answer", "Create an account and follow the onboarding checklist."),
            category_id=category.id,
            slug=kwargs.pop("slug", slugify(question)),
            status=kwargs.pop("status", ActiveStatus.ACTIVE),
            **kwargs,
        )
        db_session.add(faq)
        await db_session.commit()
        return faq

    return factory


@pytest.fixture
def make_resource_category(db_session: AsyncSession):
    async def factory(name: str = "Guides", parent: ResourceCategory | None = None, **kwargs) -> ResourceCategory:
        category = ResourceCategory(
            name=name,
            slug=kwargs.pop("slug", slugify(name)),
            parent_id=parent.id if parent else None,
            **kwargs,
        )
        db_session.add(category)
        await db_session.commit()
        return category

    return factory


@pytest.fixture
def make_resource(db_session: AsyncSession, staff: User):
    async def factory(category: ResourceCategory, title: str = "Getting started with ERP", **kwargs) -> Resource:
        published = kwargs.pop("published", True)
        resource = Resource(
            title=title,
            slug=kwargs.pop("slug", slugify(title)),
            excerpt=kwargs.pop("excerpt", "A short introduction."),
            content=kwargs.pop("content", "<p>" + "word " * 150 + "</p>"),
            category_id=category.id,
            author_id=staff.id,
            status=ResourceStatus.PUBLISHED if published else ResourceStatus.DRAFT,
            is_published=published,
            published_at=kwargs.pop("published_at", utc_now() - timedelta(days=1) if published else None),
            **kwargs,
        )
        db_session.add(resource)
        category.resource_count = (category.resource_count or 0) + 1
        await db_session.commit()
        return resource

    return factory
