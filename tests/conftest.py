import os
import tempfile
from pathlib import Path

# settings are read at import time, so point them at a scratch dir first
_TMP = Path(tempfile.mkdtemp(prefix="traveltide-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["MEDIA_ROOT"] = str(_TMP / "media")
os.environ["BLOB_BACKEND"] = "local"

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.core.errors import UploadError
from app.main import app
from app.models.listing import Listing
from app.services.blob_storage import LocalMediaStorage, get_blob_storage


class FlakyStorage(LocalMediaStorage):
    """Local storage that can be told to fail uploads of given names, or all deletes."""

    def __init__(self, media_root, media_url="/media"):
        super().__init__(media_root, media_url)
        self.fail_uploads: set[str] = set()
        self.fail_deletes = False
        self.deleted: list[str] = []

    async def upload(self, image):
        if image.filename in self.fail_uploads:
            raise UploadError(f"storage rejected {image.filename}")
        return await super().upload(image)

    async def delete(self, storage_key):
        if self.fail_deletes:
            raise OSError("storage offline")
        self.deleted.append(storage_key)
        return await super().delete(storage_key)


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def storage(tmp_path):
    return FlakyStorage(tmp_path / "media")


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_client(storage):
    app.dependency_overrides[get_blob_storage] = lambda: storage
    clients = []

    def _make() -> TestClient:
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def signup():
    def _signup(client: TestClient, username: str, password: str = "s3cret!", email: str | None = None):
        return client.post(
            "/account/signup",
            data={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
            follow_redirects=False,
        )

    return _signup


@pytest.fixture
def user_client(make_client, signup):
    """A logged in client for a fresh account."""

    def _user_client(username: str) -> TestClient:
        client = make_client()
        resp = signup(client, username)
        assert resp.status_code == 303
        return client

    return _user_client


def image_files(*names: str):
    return [("image", (name, f"bytes of {name}".encode(), "image/jpeg")) for name in names]


@pytest.fixture
def image_parts():
    return image_files


@pytest.fixture
def post_listing():
    def _post_listing(client: TestClient, images=("a.jpg", "b.jpg"), **fields):
        data = {
            "title": "Cabin",
            "description": "Quiet cabin by the lake",
            "price": "100",
            "location": "Lakeview",
            "country": "Canada",
        }
        data.update(fields)
        return client.post(
            "/listings",
            data=data,
            files=image_files(*images) if images else None,
            follow_redirects=False,
        )

    return _post_listing


@pytest.fixture
def latest_listing_id(db):
    def _latest() -> int:
        db.expire_all()
        listing = db.query(Listing).order_by(Listing.id.desc()).first()
        assert listing is not None
        return listing.id

    return _latest


@pytest.fixture
def messages():
    def _messages(client: TestClient) -> dict:
        return client.get("/messages").json()

    return _messages
