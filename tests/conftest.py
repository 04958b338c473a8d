# tests/conftest.py
# Shared fixtures: controllable clock, in-memory board store, SQLite share
# links, temporary blob directory and a TestClient bound to all of them.

from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from sendlink.config import Settings
from sendlink.db.base import create_engine, create_session_factory, create_tables
from sendlink.main import create_app
from sendlink.middleware.error_handler import StorageError
from sendlink.repositories.board_repository import BoardRepository
from sendlink.repositories.share_link_repository import ShareLinkRepository
from sendlink.services.media_service import MediaService
from sendlink.storage.blob import LocalBlobStore
from sendlink.storage.kv import MemoryKeyValueStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class BrokenStore:
    """Key-value store whose backend is always down."""

    async def get_json(self, key):
        raise StorageError("backend down")

    async def set_json(self, key, value, ttl_seconds):
        raise StorageError("backend down")

    async def delete(self, key):
        raise StorageError("backend down")

    async def ping(self):
        raise StorageError("backend down")

    async def close(self):
        return None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def kv_store(clock) -> MemoryKeyValueStore:
    return MemoryKeyValueStore(clock=clock)


@pytest.fixture
def board_repo(kv_store, clock) -> BoardRepository:
    return BoardRepository(kv_store, clock=clock)


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'links.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def share_repo(db_engine, clock) -> ShareLinkRepository:
    return ShareLinkRepository(create_session_factory(db_engine), clock=clock)


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "blobs"), "/media")


@pytest.fixture
def media_service(board_repo, blob_store, clock) -> MediaService:
    return MediaService(board_repo, blob_store, clock=clock)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        DB_URL=f"sqlite:///{tmp_path / 'api.db'}",
        AUTO_CREATE_TABLES=True,
        KV_BACKEND="memory",
        MEDIA_ROOT=str(tmp_path / "media"),
        MEDIA_URL_PREFIX="/media",
        PUBLIC_BASE_URL="http://testserver",
        LOGS_PATH=str(tmp_path / "logs"),
    )


@pytest.fixture
def api_client(test_settings, clock) -> Iterator[TestClient]:
    """TestClient with the lifespan running, so app.state holds live stores."""
    app = create_app(test_settings, clock=clock)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def broken_store() -> BrokenStore:
    return BrokenStore()
