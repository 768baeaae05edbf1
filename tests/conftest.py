import asyncio
import os

# Settings are read at import time, so the environment goes first
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["MODE"] = "dev"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = "test-key"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.core.db.base import Base, get_session  # noqa: E402
from app.core.db.schemas import User  # noqa: E402
from app.apis.deps import get_flashcards_generator  # noqa: E402
from app.modules.auth import current_active_user  # noqa: E402
from app.modules.flashcards.main import FlashcardsGenerator  # noqa: E402
from helpers import FakeGemini  # noqa: E402


@pytest.fixture
def fake_gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def session_maker(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool
    )

    async def init() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


def _create_user(session_maker, email: str) -> User:
    async def create() -> User:
        async with session_maker() as session:
            user = User(
                email=email,
                hashed_password="not-a-real-hash",
                is_active=True,
                is_superuser=False,
                is_verified=True,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return asyncio.run(create())


@pytest.fixture
def user(session_maker) -> User:
    return _create_user(session_maker, "learner@example.com")


@pytest.fixture
def other_user(session_maker) -> User:
    return _create_user(session_maker, "someone@example.com")


@pytest.fixture
def client(session_maker, user, fake_gemini):
    from main import app

    async def override_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[current_active_user] = lambda: user
    app.dependency_overrides[get_flashcards_generator] = lambda: FlashcardsGenerator(
        fake_gemini.generator()
    )
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
