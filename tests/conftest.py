import os
import tempfile
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import settings

# Override settings for tests
settings.jwt_secret_key = "test-secret-key-that-is-at-least-32-bytes-long"
settings.openrouter_api_key = "test-openrouter-key"
settings.app_env = "test"
settings.tracking_pacing_seconds = 0.0

from app.core.dependencies import get_session_factory  # noqa: E402
from app.core.rate_limit import limiter  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.postgres import get_db  # noqa: E402
from app.gateway.types import AiBackend, QueryResult  # noqa: E402
from app.main import app  # noqa: E402
from app.models.business import Business  # noqa: E402
from app.models.tracked_prompt import TrackedPrompt  # noqa: E402

# File-backed SQLite so the request session and the tracking service's own
# sessions see each other's commits; NullPool keeps connections off other loops
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"visibility_tracker_test_{os.getpid()}.db")
TEST_DB_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"

test_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_session_factory] = lambda: test_session_factory


@pytest.fixture
def session_factory() -> async_sessionmaker[AsyncSession]:
    return test_session_factory


@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    limiter.reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


def make_token(user_id: uuid.UUID, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Token as the external auth service would issue it."""
    now = datetime.now(timezone.utc)
    payload = {"sub": str(user_id), "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
async def business(db: AsyncSession, user_id: uuid.UUID) -> Business:
    """A plumbing business in Austin with no prompts yet."""
    business = Business(
        user_id=user_id,
        business_name="Acme Plumbing, LLC",
        industry="Plumbing Services",
        country="United States",
        location="Austin, TX",
        next_check_date=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    db.add(business)
    await db.commit()
    return business


@pytest.fixture
async def business_with_prompts(db: AsyncSession, business: Business) -> tuple[Business, list[TrackedPrompt]]:
    base = datetime.now(timezone.utc)
    prompts = [
        TrackedPrompt(
            business_id=business.id,
            prompt_text=f"Who is the best plumber in Austin? #{i}",
            created_at=base + timedelta(seconds=i),
        )
        for i in range(3)
    ]
    db.add_all(prompts)
    await db.commit()
    return business, prompts


class ScriptedAiClient:
    """Stands in for AiQueryClient: answers from a per-call script.

    ``script`` items are QueryResult objects, exceptions (raised), or a callable
    ``(prompt, backend) -> QueryResult``. When exhausted, ``default`` is used.
    """

    def __init__(self, script=None, default: QueryResult | None = None):
        self.script = list(script or [])
        self.default = default or QueryResult.ok("Nothing relevant here.")
        self.calls: list[tuple[str, str]] = []

    async def query(self, prompt_text: str, backend) -> QueryResult:
        backend = AiBackend(backend)
        self.calls.append((prompt_text, backend.value))
        item = self.script.pop(0) if self.script else self.default
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(prompt_text, backend)
        return item


@pytest.fixture
def scripted_client():
    return ScriptedAiClient


@pytest.fixture
def token_factory():
    return make_token
