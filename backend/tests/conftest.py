"""
Pytest configuration and fixtures for backend tests.
"""
import os
import uuid

# Override settings before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-pytest-only-0123456789"
os.environ["DEBUG"] = "false"

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from fieldsurvey.config import settings
from fieldsurvey.core.security import create_access_token
from fieldsurvey.database import get_db
from fieldsurvey.main import app
from fieldsurvey.models import Base
from fieldsurvey.models.enums import UserRole
from fieldsurvey.offline.connectivity import ConnectivityObserver
from fieldsurvey.offline.exceptions import RemoteApiError
from fieldsurvey.offline.gateway import SubmissionGateway
from fieldsurvey.offline.store import DraftStore


# -- device side --

class FakeBlobStore:
    """In-memory blob store; ``fail_on`` maps a photo file name to an error."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.put_order: list[str] = []
        self.fail_on: dict[str, Exception] = {}

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        name = path.rsplit("/", 1)[-1]
        if name in self.fail_on:
            raise self.fail_on[name]
        self.objects[path] = data
        self.put_order.append(path)
        return f"https://blobs.test/{path}"


class FakeRecordStore:
    """In-memory record store; set ``fail_with`` to make every write fail."""

    def __init__(self):
        self.documents: dict[str, list[tuple[str, dict]]] = {}
        self.fail_with: Exception | None = None
        self._seq = 0

    async def create(self, collection, payload: dict) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self._seq += 1
        doc_id = f"doc-{self._seq}"
        self.documents.setdefault(collection.value, []).append((doc_id, payload))
        return doc_id

    def count(self) -> int:
        return sum(len(docs) for docs in self.documents.values())


class CountingDraftStore(DraftStore):
    """DraftStore that records how often drafts are created and updated."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.add_calls = 0
        self.update_calls = 0

    async def add_draft(self, *args, **kwargs):
        self.add_calls += 1
        return await super().add_draft(*args, **kwargs)

    async def update_draft(self, *args, **kwargs):
        self.update_calls += 1
        return await super().update_draft(*args, **kwargs)


@pytest.fixture
async def draft_store(tmp_path):
    store = await CountingDraftStore.open(f"sqlite+aiosqlite:///{tmp_path / 'drafts.db'}")
    yield store
    await store.close()


@pytest.fixture
def fake_blobs() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def fake_records() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def gateway(fake_blobs, fake_records) -> SubmissionGateway:
    return SubmissionGateway(fake_blobs, fake_records)


@pytest.fixture
def offline() -> ConnectivityObserver:
    return ConnectivityObserver(online=False)


@pytest.fixture
def online() -> ConnectivityObserver:
    return ConnectivityObserver(online=True)


@pytest.fixture
def network_timeout() -> RemoteApiError:
    return RemoteApiError("network timeout")


# -- server side --

@pytest.fixture
def blob_root(tmp_path, monkeypatch):
    root = tmp_path / "blobs"
    root.mkdir()
    monkeypatch.setattr(settings, "BLOB_STORAGE_PATH", str(root))
    return root


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'records.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def api_app(session_factory, blob_root):
    """The API app wired to the per-test database and blob directory."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(api_app):
    transport = httpx.ASGITransport(app=api_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def surveyor_token() -> str:
    return create_access_token(uuid.uuid4(), UserRole.SURVEYOR)


@pytest.fixture
def admin_token() -> str:
    return create_access_token(uuid.uuid4(), UserRole.ADMIN)


@pytest.fixture
def surveyor_headers(surveyor_token) -> dict:
    return {"Authorization": f"Bearer {surveyor_token}"}


@pytest.fixture
def admin_headers(admin_token) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}
