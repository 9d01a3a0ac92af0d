"""Shared test fixtures for all test modules."""

import os
from datetime import datetime, timedelta, timezone

import pytest

# ── Environment overrides (must be set before importing socialsearch modules) ──
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["HISTORY_BACKEND"] = "inline"
os.environ["JWT_SECRET"] = "pytest-secret-key"
os.environ["JWT_ISSUER"] = ""
os.environ["JWT_AUDIENCE"] = ""

import httpx  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from socialsearch.db.base import Base  # noqa: E402
from socialsearch.db.session import build_engine  # noqa: E402
from socialsearch.models import (  # noqa: E402
    Conversation,
    ConversationParticipant,
    Follow,
    Message,
    Post,
    PostComment,
    PostLike,
    User,
)
from socialsearch.services.auth import Actor, create_access_token  # noqa: E402

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def actor_of(user: User) -> Actor:
    return Actor(id=user.id, username=user.username, name=user.name)


class Seed:
    """Small helper for inserting rows with explicit timestamps."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._clock = NOW - timedelta(days=1)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def _save(self, row):
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        return row

    async def user(self, username, *, name=None, bio=None, verified=False, created_at=None) -> User:
        ts = created_at or self._tick()
        return await self._save(
            User(
                username=username,
                name=name or username.title(),
                email=f"{username}@example.com",
                bio=bio,
                is_verified=verified,
                created_at=ts,
                updated_at=ts,
            )
        )

    async def follow(self, follower: User, following: User) -> Follow:
        return await self._save(Follow(follower_id=follower.id, following_id=following.id))

    async def post(self, author: User, content, *, title=None, privacy="public", created_at=None) -> Post:
        ts = created_at or self._tick()
        return await self._save(
            Post(author_id=author.id, content=content, title=title, privacy=privacy, created_at=ts, updated_at=ts)
        )

    async def like(self, post: Post, user: User) -> PostLike:
        return await self._save(PostLike(post_id=post.id, user_id=user.id))

    async def comment(self, post: Post, user: User, content="nice") -> PostComment:
        return await self._save(PostComment(post_id=post.id, author_id=user.id, content=content))

    async def conversation(self, members, *, title=None, kind="group", updated_at=None, last_read_at=None):
        ts = updated_at or self._tick()
        conversation = await self._save(
            Conversation(title=title, conversation_type=kind, created_at=ts, updated_at=ts)
        )
        for member in members:
            self.db.add(
                ConversationParticipant(conversation_id=conversation.id, user_id=member.id, last_read_at=last_read_at)
            )
        await self.db.commit()
        return conversation

    async def message(self, conversation: Conversation, sender: User, content="hi", created_at=None) -> Message:
        return await self._save(
            Message(
                conversation_id=conversation.id,
                sender_id=sender.id,
                content=content,
                created_at=created_at or self._tick(),
            )
        )


class CollectingRecorder:
    def __init__(self) -> None:
        self.events = []

    async def publish(self, event) -> None:
        self.events.append(event)


@pytest.fixture
async def engine(tmp_path):
    # File-backed so every provider session sees the same data.
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'search.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(db):
    return Seed(db)


@pytest.fixture
def recorder():
    return CollectingRecorder()


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
async def api(session_factory, recorder):
    from socialsearch.api.v1.deps import get_recorder
    from socialsearch.db.session import get_db, get_session_factory
    from socialsearch.main import app

    async def _db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_recorder] = lambda: recorder

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api/v1") as client:
        yield client
    app.dependency_overrides.clear()
