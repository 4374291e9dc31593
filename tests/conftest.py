import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import fakeredis

from recipebox.main import app
from recipebox.db import Base, get_db
from recipebox.deps import get_storage
from recipebox.errors import StorageError
from recipebox.infra import redis_client
from recipebox.models import Category, Recipe
from recipebox.routers.recipes import limiter
from recipebox.storage.assets import StoredAsset

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# check_same_thread is needed because async routes hand the session to the threadpool
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # one shared in-memory connection
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeStore:
    """Recording stand-in for the object storage gateway."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.delete_calls: list[list[str]] = []
        self.next_ids: list[str] = []
        self.fail_filenames: set[str] = set()
        self.fail_deletes = False
        self._counter = 0

    def upload(self, data, *, filename=None, content_type=None):
        if filename in self.fail_filenames:
            raise StorageError(f"simulated upload failure for {filename}")
        if self.next_ids:
            storage_id = self.next_ids.pop(0)
        else:
            self._counter += 1
            storage_id = f"asset-{self._counter}"
        self.objects[storage_id] = data
        return StoredAsset(url=f"https://cdn.test/{storage_id}", storage_id=storage_id)

    def delete(self, storage_id):
        self.delete_many([storage_id])

    def delete_many(self, storage_ids):
        ids = list(storage_ids)
        self.delete_calls.append(ids)
        if self.fail_deletes:
            raise StorageError("simulated delete failure")
        for storage_id in ids:
            self.objects.pop(storage_id, None)
            self.deleted.append(storage_id)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def mock_redis():
    server = fakeredis.FakeServer()
    async_redis = fakeredis.FakeAsyncRedis(server=server, decode_responses=True)
    sync_redis = fakeredis.FakeRedis(server=server, decode_responses=True)

    # Force the clients into the infra module
    redis_client._redis_async = async_redis
    redis_client._redis_sync = sync_redis

    yield sync_redis

    # Cleanup
    redis_client._redis_async = None
    redis_client._redis_sync = None


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(store):
    """Test client with DB and storage overrides, acting as OWNER."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: store
    with TestClient(app, headers={"X-Owner-Id": OWNER}) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def category(db_session):
    cat = Category(owner_id=OWNER, name="Desserts")
    db_session.add(cat)
    db_session.commit()
    db_session.refresh(cat)
    return cat


@pytest.fixture
def make_recipe(db_session, category, store):
    """Insert a recipe whose primary image already exists in the fake store."""
    def _make(**overrides):
        fields = dict(
            owner_id=OWNER,
            category_id=category.id,
            name="Pancakes",
            description="Fluffy",
            image_url="https://cdn.test/img1",
            image_storage_id="img1",
            gallery=[],
            ingredients=[],
            steps=[],
            notes=[],
            likes=0,
        )
        fields.update(overrides)
        recipe = Recipe(**fields)
        db_session.add(recipe)
        db_session.commit()
        db_session.refresh(recipe)
        for storage_id in recipe.storage_ids:
            store.objects[storage_id] = b"seed"
        return recipe
    return _make


@pytest.fixture
def recipe(make_recipe):
    return make_recipe()
