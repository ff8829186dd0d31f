import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_EMAILS"] = "owner@vocavision.ai"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["STABILITY_API_KEY"] = ""

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from vocavision.db import get_db  # noqa: E402
from vocavision.models import (  # noqa: E402
    Base, User, UserRole, SubscriptionStatus, Word, Difficulty, ExamCategory,
)
from vocavision.resilience import breakers  # noqa: E402
from vocavision.webapp.deps import create_access_token, hash_password  # noqa: E402
from vocavision.webapp.server import create_app  # noqa: E402


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def app(session_factory):
    app = create_app(use_lifespan=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture(autouse=True)
def reset_breakers():
    breakers.reset_all()
    yield
    breakers.reset_all()


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(session_factory):
    async def _make_user(email="learner@example.com", role=UserRole.USER,
                         status=SubscriptionStatus.TRIAL, password="password123", **fields):
        async with session_factory() as session:
            user = User(
                email=email,
                password_hash=hash_password(password),
                role=role,
                subscription_status=status,
                **fields,
            )
            session.add(user)
            await session.commit()
        return user, create_access_token(user.id, user.role)

    return _make_user


@pytest.fixture
async def user_token(make_user):
    _, token = await make_user()
    return token


@pytest.fixture
async def admin_token(make_user):
    _, token = await make_user(email="admin@example.com", role=UserRole.ADMIN)
    return token


@pytest.fixture
def make_word(session_factory):
    async def _make_word(word="abandon", **fields):
        fields.setdefault("definition", f"definition of {word}")
        fields.setdefault("difficulty", Difficulty.INTERMEDIATE)
        fields.setdefault("exam_category", ExamCategory.CSAT)
        fields.setdefault("frequency", 0)
        async with session_factory() as session:
            record = Word(word=word, **fields)
            session.add(record)
            await session.commit()
        return record

    return _make_word
