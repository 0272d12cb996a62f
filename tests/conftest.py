import asyncio
import os
import secrets
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

AUTHORITY_IDENTITY = "aa" * 32
PLAYER_WALLET = "11" * 32
OTHER_WALLET = "22" * 32

# Read once at import time by load_secrets, so set before importing the package.
os.environ["VRF_AUTHORITY_IDENTITY"] = AUTHORITY_IDENTITY
os.environ["PEPPER_DATA"] = "test-pepper"
os.environ["AUTH_DB_PATH"] = os.path.join(tempfile.gettempdir(), "hack_resolver_auth_test.sqlite3")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from hack_resolver.authentication import basic_authentication
from hack_resolver.authentication.basic_authentication_crud import hash_password
from hack_resolver.models.basic_authentication_models import UserModel
from hack_resolver.models.basic_authentication_shemas import UserTable
from hack_resolver.models import basic_authentication_shemas, schemas
from hack_resolver.services import hack_db, oracle


class RecordingPubSub:
    def __init__(self, redis: "RecordingRedis"):
        self.redis = redis
        self.channels: set[str] = set()
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    async def subscribe(self, channel: str):
        self.channels.add(channel)
        self.redis.subscribers.append(self)

    async def get_message(self, ignore_subscribe_messages: bool = False, timeout=None):
        return await self.queue.get()

    async def unsubscribe(self, channel: str):
        self.channels.discard(channel)

    async def close(self):
        self.closed = True


class RecordingRedis:
    """In-memory stand-in for the redis calls the server makes."""

    def __init__(self):
        self.counters: dict[str, int] = {}
        self.lists: dict[str, list[str]] = {}
        self.published: list[tuple[str, str]] = []
        self.subscribers: list[RecordingPubSub] = []

    async def incr(self, key: str) -> int:
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    async def rpush(self, key: str, value: str) -> int:
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        receivers = [sub for sub in self.subscribers if channel in sub.channels]
        for sub in receivers:
            sub.queue.put_nowait({"type": "message", "channel": channel, "data": message})
        return len(receivers)

    def pubsub(self) -> RecordingPubSub:
        return RecordingPubSub(self)

    async def aclose(self):
        pass


@pytest.fixture
def database(tmp_path, monkeypatch):
    """Fresh SQLite file shared by the hack tables and the user table.

    Tables are created through the sync driver so no event loop is needed
    before the test starts its own.
    """
    db_path = tmp_path / "hack.sqlite3"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    schemas.Base.metadata.create_all(sync_engine)
    basic_authentication_shemas.Base.metadata.create_all(sync_engine)

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    async_session = async_sessionmaker(
        autocommit=False,
        class_=AsyncSession,
        autoflush=True,
        expire_on_commit=False,
        bind=engine,
    )
    monkeypatch.setattr(hack_db, "Session", async_session)
    monkeypatch.setattr(basic_authentication, "Session", async_session)
    yield sync_engine
    sync_engine.dispose()


@pytest.fixture
def redis(monkeypatch) -> RecordingRedis:
    recording_redis = RecordingRedis()
    monkeypatch.setattr(oracle, "redis", recording_redis)
    return recording_redis


def _insert_user(sync_engine, username: str, password: str, identity: str) -> UserModel:
    salt = secrets.token_hex(8)
    user = UserModel(
        username=username,
        hash_password=hash_password(password, salt),
        salt=salt,
        identity=identity,
    )
    with Session(sync_engine) as session, session.begin():
        session.add(UserTable(**user.model_dump()))
    return user


@pytest.fixture
def users(database):
    """Player and randomness authority users, keyed by role."""
    return {
        "player": _insert_user(database, "player", "player-pass", PLAYER_WALLET),
        "other": _insert_user(database, "other", "other-pass", OTHER_WALLET),
        "authority": _insert_user(database, "oracle", "oracle-pass", AUTHORITY_IDENTITY),
    }
