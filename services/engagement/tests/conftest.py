import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import set_session_factory
from app.dependencies import get_settings
from app.main import app
from app.models import ContentItem
from app.models.enums import Category, Visibility
from shared.database.postgres import Base, session_factory_for

# In-memory SQLite shared across connections via StaticPool
TEST_DATABASE_URL = "sqlite+aiosqlite://"

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class MemoryRedis:
    """Minimal async stand-in for the three Redis calls the feed cache makes."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, key: str) -> int:
        self.ttls.pop(key, None)
        return 1 if self.store.pop(key, None) is not None else 0


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory_for(engine)() as session:
        yield session


@pytest.fixture
def redis() -> MemoryRedis:
    return MemoryRedis()


@pytest.fixture
def make_item(db_session: AsyncSession):
    """Factory: insert a content item and flush it."""

    async def _make(
        *,
        title: str = "meme",
        category: Category = Category.OTHER,
        created_at: datetime | None = None,
        owner_id: uuid.UUID | None = None,
        owner_name: str = "alice",
        like_count: int = 0,
        comment_count: int = 0,
        description: str = "",
        tags: list[str] | None = None,
        visibility: Visibility = Visibility.PUBLIC,
    ) -> ContentItem:
        item = ContentItem(
            title=title,
            media_url=f"https://cdn.example.com/{uuid.uuid4()}.png",
            description=description,
            category=category,
            tags=tags or [],
            owner_id=owner_id or uuid.uuid4(),
            owner_name=owner_name,
            visibility=visibility,
            like_count=like_count,
            comment_count=comment_count,
            created_at=created_at or NOW,
        )
        db_session.add(item)
        await db_session.flush()
        return item

    return _make


def _make_token(actor_id: uuid.UUID) -> str:
    settings = get_settings()
    payload = {
        "sub": str(actor_id),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_headers():
    """Factory: Authorization header carrying a signed token for the actor."""

    def _headers(actor_id: uuid.UUID) -> dict[str, str]:
        return {"Authorization": f"Bearer {_make_token(actor_id)}"}

    return _headers


@pytest_asyncio.fixture
async def async_client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    set_session_factory(session_factory_for(engine))
    app.state.redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    set_session_factory(None)
